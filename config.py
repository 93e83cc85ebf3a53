import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file) or dict()
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./test.db")
    MIGRATION_DB_URI = data.get("MIGRATION_DB_URI", "sqlite:///./test.db")
    API_PREFIX = data.get("API_PREFIX", "/api")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    AUTH_DISABLED = bool(data.get("AUTH_DISABLED", False))
    ADMIN_API_TOKEN = data.get("ADMIN_API_TOKEN", "")
    ENABLE_LOGGING_MIDDLEWARE = bool(data.get("ENABLE_LOGGING_MIDDLEWARE", 1))

    # Billing
    DEFAULT_PRODUCT_ID = data.get("DEFAULT_PRODUCT_ID", "true_identity")
    DEFAULT_CREDITS_PER_SESSION = int(data.get("DEFAULT_CREDITS_PER_SESSION", 50))
    CREDITS_PER_CURRENCY_UNIT = int(data.get("CREDITS_PER_CURRENCY_UNIT", 10))  # 10 credits = RM 1
    SST_RATE = str(data.get("SST_RATE", "0.08"))
    BILLING_UTC_OFFSET_HOURS = int(data.get("BILLING_UTC_OFFSET_HOURS", 8))  # Asia/Kuala_Lumpur
    PAYMENT_TERMS_DAYS = int(data.get("PAYMENT_TERMS_DAYS", 14))
    STUCK_INVOICE_MINUTES = int(data.get("STUCK_INVOICE_MINUTES", 60))

    # Verification sessions
    SESSION_EXPIRY_HOURS = int(data.get("SESSION_EXPIRY_HOURS", 24))
    PUBLIC_BASE_URL = data.get("PUBLIC_BASE_URL", "http://localhost:8000")

    # Innovatif eKYC gateway
    INNOVATIF_BASE_URL = data.get("INNOVATIF_BASE_URL", "https://staging.ekyc.xendity.com/v1/gateway")
    INNOVATIF_API_KEY = data.get("INNOVATIF_API_KEY", "")
    INNOVATIF_PACKAGE_NAME = data.get("INNOVATIF_PACKAGE_NAME", "")
    INNOVATIF_MD5_KEY = data.get("INNOVATIF_MD5_KEY", "")
    INNOVATIF_CIPHERTEXT = data.get("INNOVATIF_CIPHERTEXT", "")  # 16 chars, used as IV
    VENDOR_TIMEOUT_SECONDS = float(data.get("VENDOR_TIMEOUT_SECONDS", 15.0))
    WEBHOOK_MAX_SKEW_SECONDS = int(data.get("WEBHOOK_MAX_SKEW_SECONDS", 600))  # 0 disables the check

    # Outbound client webhooks
    OUTBOUND_WEBHOOK_SECRET = data.get("OUTBOUND_WEBHOOK_SECRET", "")
    CLIENT_WEBHOOK_TIMEOUT_SECONDS = float(data.get("CLIENT_WEBHOOK_TIMEOUT_SECONDS", 10.0))

    # Ledger Reconciliation
    RECONCILIATION_ENABLED = bool(data.get("RECONCILIATION_ENABLED", True))
    RECONCILIATION_INTERVAL_SECONDS = data.get("RECONCILIATION_INTERVAL_SECONDS", 86400)  # Daily

    # Monthly invoicing
    INVOICING_ENABLED = bool(data.get("INVOICING_ENABLED", True))
