import os
import warnings
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./jobevent.db")

# Connection pool (ignored for sqlite)
DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "10"))
DB_MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", "20"))
DB_POOL_TIMEOUT = int(os.getenv("DB_POOL_TIMEOUT", "30"))
DB_POOL_RECYCLE = int(os.getenv("DB_POOL_RECYCLE", "300"))
DB_SLOW_QUERY_THRESHOLD = float(os.getenv("DB_SLOW_QUERY_THRESHOLD", "1.0"))

# JWT Configuration - CRITICAL: No default secrets in production
JWT_SECRET = os.getenv("JWT_SECRET")
JWT_REFRESH_SECRET = os.getenv("JWT_REFRESH_SECRET")
if not JWT_SECRET or not JWT_REFRESH_SECRET:
    warnings.warn(
        "JWT_SECRET / JWT_REFRESH_SECRET not set! Using insecure defaults - DO NOT USE IN PRODUCTION",
        RuntimeWarning,
        stacklevel=2,
    )
    JWT_SECRET = JWT_SECRET or "INSECURE-DEV-ACCESS-SECRET"  # noqa: S105 - Dev fallback only
    JWT_REFRESH_SECRET = (
        JWT_REFRESH_SECRET or "INSECURE-DEV-REFRESH-SECRET"  # noqa: S105 - Dev fallback only
    )
JWT_ALGORITHM = "HS256"
JWT_EXPIRE_MINUTES = int(os.getenv("JWT_EXPIRE_MINUTES", str(7 * 24 * 60)))
JWT_REFRESH_EXPIRE_DAYS = int(os.getenv("JWT_REFRESH_EXPIRE_DAYS", "30"))

# Auth cookie
AUTH_COOKIE_NAME = "token"
AUTH_COOKIE_MAX_AGE = 7 * 24 * 60 * 60  # 7 days
COOKIE_SECURE = os.getenv("COOKIE_SECURE", "false").lower() == "true"

# Email verification OTP lifetime
OTP_EXPIRE_MINUTES = int(os.getenv("OTP_EXPIRE_MINUTES", "10"))

# Posting limits (per calendar month)
FREE_POST_LIMIT = int(os.getenv("FREE_POST_LIMIT", "3"))
PREMIUM_POST_LIMIT = int(os.getenv("PREMIUM_POST_LIMIT", "15"))
PREMIUM_URGENT_LIMIT = int(os.getenv("PREMIUM_URGENT_LIMIT", "3"))

# Premium subscription pricing (VND)
PREMIUM_PRICE = int(os.getenv("PREMIUM_PRICE", "499000"))
PREMIUM_DURATION_DAYS = int(os.getenv("PREMIUM_DURATION_DAYS", "30"))

# Frontend base URL for redirects
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")
CLIENT_URL = os.getenv("CLIENT_URL", FRONTEND_URL)

# Cloudflare R2 Configuration
R2_ACCOUNT_ID = os.getenv("R2_ACCOUNT_ID")
R2_ACCESS_KEY_ID = os.getenv("R2_ACCESS_KEY_ID")
R2_SECRET_ACCESS_KEY = os.getenv("R2_SECRET_ACCESS_KEY")
R2_BUCKET_NAME = os.getenv("R2_BUCKET_NAME", "job-event")
R2_PUBLIC_URL = os.getenv("R2_PUBLIC_URL")  # e.g. https://cdn.example.com
MAX_FILE_SIZE = int(os.getenv("MAX_FILE_SIZE", str(5 * 1024 * 1024)))  # 5MB

# Resend Email Configuration
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", "Job Event <noreply@jobevent.vn>")

# Google sign-in (access token -> userinfo)
GOOGLE_USERINFO_URL = os.getenv(
    "GOOGLE_USERINFO_URL", "https://www.googleapis.com/oauth2/v3/userinfo"
)

# VNPay Configuration
VNPAY_TMN_CODE = os.getenv("VNPAY_TMN_CODE", "")
VNPAY_HASH_SECRET = os.getenv("VNPAY_HASH_SECRET", "")
VNPAY_URL = os.getenv("VNPAY_URL", "https://sandbox.vnpayment.vn/paymentv2/vpcpay.html")
VNPAY_RETURN_URL = os.getenv("VNPAY_RETURN_URL", "http://localhost:8000/api/payments/vnpay/return")

# MoMo Configuration
MOMO_PARTNER_CODE = os.getenv("MOMO_PARTNER_CODE", "")
MOMO_ACCESS_KEY = os.getenv("MOMO_ACCESS_KEY", "")
MOMO_SECRET_KEY = os.getenv("MOMO_SECRET_KEY", "")
MOMO_ENDPOINT = os.getenv("MOMO_ENDPOINT", "https://test-payment.momo.vn/v2/gateway/api/create")
MOMO_RETURN_URL = os.getenv("MOMO_RETURN_URL", "http://localhost:8000/api/payments/momo/return")
MOMO_NOTIFY_URL = os.getenv("MOMO_NOTIFY_URL", "http://localhost:8000/api/payments/momo/notify")

# PayOS Configuration
PAYOS_CLIENT_ID = os.getenv("PAYOS_CLIENT_ID", "")
PAYOS_API_KEY = os.getenv("PAYOS_API_KEY", "")
PAYOS_CHECKSUM_KEY = os.getenv("PAYOS_CHECKSUM_KEY", "")
PAYOS_API_URL = os.getenv("PAYOS_API_URL", "https://api-merchant.payos.vn/v2/payment-requests")
PAYOS_RETURN_URL = os.getenv("PAYOS_RETURN_URL", "http://localhost:8000/api/payments/payos/return")
PAYOS_CANCEL_URL = os.getenv("PAYOS_CANCEL_URL", PAYOS_RETURN_URL)

# CORS - specific origins are required because auth cookies are sent with credentials
ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv("ALLOWED_ORIGINS", f"{FRONTEND_URL},http://localhost:5173").split(",")
    if origin.strip()
]
