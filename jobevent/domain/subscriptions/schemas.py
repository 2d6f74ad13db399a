"""Subscription domain schemas - Pydantic models for validation"""

from typing import Literal

from pydantic import BaseModel

PaymentMethod = Literal["MOMO", "VNPAY", "PAYOS"]


class UpgradeRequest(BaseModel):
    """Request to start a Premium checkout"""

    paymentMethod: PaymentMethod
