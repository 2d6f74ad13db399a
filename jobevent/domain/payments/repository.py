"""Payment repository - Database operations for payments"""

from typing import Optional

from sqlalchemy.orm import Query, Session

from ...models import Payment, User


class PaymentRepository:
    """Repository for payment database operations"""

    @staticmethod
    def get_by_transaction(db: Session, transaction_id: str) -> Optional[Payment]:
        return db.query(Payment).filter(Payment.transaction_id == transaction_id).first()

    @staticmethod
    def get_user_payment(db: Session, user_id: int, transaction_id: str) -> Optional[Payment]:
        return (
            db.query(Payment)
            .filter(Payment.user_id == user_id, Payment.transaction_id == transaction_id)
            .first()
        )

    @staticmethod
    def query_for_user(db: Session, user_id: int, status: Optional[str] = None) -> Query:
        query = db.query(Payment).filter(Payment.user_id == user_id)
        if status:
            query = query.filter(Payment.status == status)
        return query.order_by(Payment.created_at.desc(), Payment.id.desc())

    @staticmethod
    def create_payment(db: Session, **payment_data) -> Payment:
        payment = Payment(**payment_data)
        db.add(payment)
        db.flush()
        return payment

    @staticmethod
    def get_user(db: Session, user_id: int) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()
