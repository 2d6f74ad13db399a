"""Auth repository - Database operations for accounts and their profiles"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import BTCProfile, CTVProfile, User


class AuthRepository:
    """Repository for account database operations"""

    @staticmethod
    def get_user_by_email(db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(User.email == email).first()

    @staticmethod
    def get_user_by_id(db: Session, user_id: int) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def create_user(db: Session, **user_data) -> User:
        """Add a user and flush so the id is available for the profile"""
        user = User(**user_data)
        db.add(user)
        db.flush()
        return user

    @staticmethod
    def create_ctv_profile(db: Session, user_id: int, **profile_data) -> CTVProfile:
        profile = CTVProfile(user_id=user_id, **profile_data)
        db.add(profile)
        return profile

    @staticmethod
    def create_btc_profile(db: Session, user_id: int, **profile_data) -> BTCProfile:
        profile = BTCProfile(user_id=user_id, **profile_data)
        db.add(profile)
        return profile
