"""ORM row -> camelCase JSON dicts shared across routers"""

from typing import Optional

from ..models import Application, BTCProfile, CTVProfile, Event, Notification, Payment, Review, User


def user_to_dict(user: Optional[User]) -> Optional[dict]:
    if user is None:
        return None
    return {
        "id": user.id,
        "email": user.email,
        "role": user.role,
        "phone": user.phone,
        "status": user.status,
        "isEmailVerified": user.is_email_verified,
        "isPhoneVerified": user.is_phone_verified,
        "subscription": {
            "plan": user.subscription_plan,
            "expiredAt": user.subscription_expired_at,
            "urgentUsed": user.urgent_used,
            "postUsed": user.post_used,
        },
        "createdAt": user.created_at,
    }


def ctv_profile_to_dict(profile: Optional[CTVProfile]) -> Optional[dict]:
    if profile is None:
        return None
    return {
        "id": profile.id,
        "userId": profile.user_id,
        "fullName": profile.full_name,
        "avatar": profile.avatar,
        "gender": profile.gender,
        "address": profile.address,
        "dob": profile.date_of_birth,
        "skills": profile.skills or [],
        "experiences": profile.experiences or [],
        "joinedEvents": profile.joined_events or [],
        "reputation": {
            "score": profile.reputation_score,
            "totalReviews": profile.reputation_total_reviews,
        },
        "trustScore": profile.trust_score,
    }


def btc_profile_to_dict(profile: Optional[BTCProfile]) -> Optional[dict]:
    if profile is None:
        return None
    return {
        "id": profile.id,
        "userId": profile.user_id,
        "agencyName": profile.agency_name,
        "logo": profile.logo,
        "address": profile.address,
        "website": profile.website,
        "fanpage": profile.fanpage,
        "description": profile.description,
        "verified": profile.verified,
        "successfulEvents": profile.successful_events or [],
        "rating": {
            "average": profile.rating_average,
            "totalReviews": profile.rating_total_reviews,
        },
    }


def profile_for(user: User) -> Optional[dict]:
    """The role profile of a user, serialized"""
    if user.role == "CTV":
        return ctv_profile_to_dict(user.ctv_profile)
    if user.role == "BTC":
        return btc_profile_to_dict(user.btc_profile)
    return None


def event_to_dict(event: Event) -> dict:
    return {
        "id": event.id,
        "btcId": event.btc_id,
        "title": event.title,
        "description": event.description,
        "location": event.location,
        "eventType": event.event_type,
        "salary": event.salary,
        "benefits": event.benefits,
        "startTime": event.start_time,
        "endTime": event.end_time,
        "deadline": event.deadline,
        "quantity": event.quantity,
        "jobDetailsItems": event.job_details_items or [],
        "appliedCount": event.applied_count,
        "approvedCount": event.approved_count,
        "poster": event.poster,
        "urgent": event.urgent,
        "status": event.status,
        "views": event.views,
        "requirements": event.requirements or [],
        "createdAt": event.created_at,
        "updatedAt": event.updated_at,
    }


def application_to_dict(application: Application, include_event: bool = False) -> dict:
    data = {
        "id": application.id,
        "eventId": application.event_id,
        "ctvId": application.ctv_id,
        "coverLetter": application.cover_letter,
        "status": application.status,
        "assignedRole": application.assigned_role,
        "rejectionReason": application.rejection_reason,
        "notes": application.notes,
        "createdAt": application.created_at,
        "updatedAt": application.updated_at,
    }
    if include_event and application.event is not None:
        data["event"] = event_to_dict(application.event)
    return data


def review_to_dict(review: Review) -> dict:
    return {
        "id": review.id,
        "eventId": review.event_id,
        "fromUser": review.from_user_id,
        "toUser": review.to_user_id,
        "reviewType": review.review_type,
        "rating": review.rating,
        "skill": review.skill,
        "attitude": review.attitude,
        "comment": review.comment,
        "createdAt": review.created_at,
        "updatedAt": review.updated_at,
    }


def notification_to_dict(notification: Notification) -> dict:
    return {
        "id": notification.id,
        "userId": notification.user_id,
        "type": notification.type,
        "title": notification.title,
        "content": notification.content,
        "isRead": notification.is_read,
        "relatedId": notification.related_id,
        "relatedModel": notification.related_model,
        "metadata": notification.meta or {},
        "createdAt": notification.created_at,
    }


def payment_to_dict(payment: Payment) -> dict:
    return {
        "id": payment.id,
        "userId": payment.user_id,
        "amount": payment.amount,
        "method": payment.method,
        "status": payment.status,
        "transactionId": payment.transaction_id,
        "description": payment.description,
        "metadata": payment.meta or {},
        "subscriptionData": payment.subscription_data,
        "createdAt": payment.created_at,
        "updatedAt": payment.updated_at,
    }
