"""
Email Service
MJML templates compiled to HTML and delivered through Resend
"""

import logging
from typing import Union

import resend
from mjml import mjml_to_html

from .config import EMAIL_FROM_ADDRESS, OTP_EXPIRE_MINUTES, RESEND_API_KEY
from .email_templates import (
    btc_review_received_template,
    collaborator_event_reminder_template,
    ctv_review_received_template,
    organizer_event_reminder_template,
    otp_verification_template,
    premium_activated_template,
)

logger = logging.getLogger(__name__)

resend.api_key = RESEND_API_KEY


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    try:
        result = mjml_to_html(mjml_content)
        # mjml_to_html returns a dotmap/dict with 'html' and 'errors'
        errors = result.get("errors") if hasattr(result, "get") else None
        if errors:
            logger.warning(f"MJML compilation warnings: {errors}")
        html = result.get("html") if hasattr(result, "get") else None
        return html if html is not None else str(result)
    except Exception as e:
        logger.error(f"MJML compilation error: {e}")
        raise Exception(f"Failed to compile MJML template: {str(e)}") from e


async def send_email(to: Union[str, list[str]], subject: str, mjml_content: str) -> dict:
    """
    Send an email through Resend

    Args:
        to: Recipient email(s)
        subject: Email subject line
        mjml_content: MJML template content (compiled to HTML here)

    Returns:
        Resend response dict

    Raises:
        Exception: If Resend is not configured or the send fails
    """
    recipients = [to] if isinstance(to, str) else to

    if not RESEND_API_KEY:
        logger.error("❌ No email service configured - RESEND_API_KEY missing")
        raise Exception("Email service not configured")

    html_content = compile_mjml_to_html(mjml_content)

    try:
        logger.info(f"📧 Sending email via Resend to: {recipients}")
        response = resend.Emails.send(
            {
                "from": EMAIL_FROM_ADDRESS,
                "to": recipients,
                "subject": subject,
                "html": html_content,
            }
        )
        logger.info(f"✅ Email sent successfully via Resend: {response}")
        return response
    except Exception as e:
        logger.error(f"❌ Email send error to {recipients}: {e}")
        raise Exception(f"Failed to send email: {str(e)}") from e


# ============================================
# Pre-built emails
# ============================================


async def send_otp_email(to: str, otp: str, subject: str = "Verify Your Account") -> dict:
    return await send_email(
        to=to,
        subject=subject,
        mjml_content=otp_verification_template(otp, OTP_EXPIRE_MINUTES),
    )


async def send_btc_review_email(to: str, event_title: str, rating: int, comment) -> dict:
    return await send_email(
        to=to,
        subject="New Review Received",
        mjml_content=btc_review_received_template(event_title, rating, comment),
    )


async def send_ctv_review_email(
    to: str, event_title: str, skill: int, attitude: int, comment
) -> dict:
    return await send_email(
        to=to,
        subject="New Review Received",
        mjml_content=ctv_review_received_template(event_title, skill, attitude, comment),
    )


async def send_organizer_reminder_email(to: str, event_title: str) -> dict:
    return await send_email(
        to=to,
        subject=f"Reminder: {event_title} starts tomorrow",
        mjml_content=organizer_event_reminder_template(event_title),
    )


async def send_collaborator_reminder_email(
    to: str, event_title: str, start_time: str, location: str
) -> dict:
    return await send_email(
        to=to,
        subject=f"Reminder: {event_title} starts tomorrow",
        mjml_content=collaborator_event_reminder_template(event_title, start_time, location),
    )


async def send_premium_activated_email(to: str, expires_at: str) -> dict:
    return await send_email(
        to=to,
        subject="Your Premium subscription is active",
        mjml_content=premium_activated_template(expires_at),
    )
