import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))


def _parse_refund_tiers(raw: str):
    """
    "24:100,1:50" -> [(24.0, 100), (1.0, 50)]  (lead hours, refund percent)
    """
    tiers = []
    for part in (raw or "").split(","):
        part = part.strip()
        if not part:
            continue
        hours, percent = part.split(":")
        tiers.append((float(hours), int(percent)))
    return tiers


class Config:
    # Secrets
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-only-change-me")

    # SQLite database file stored next to the app as parkslot.db
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///" + os.path.join(BASE_DIR, "parkslot.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Writers wait on SQLite's lock instead of failing immediately
    SQLALCHEMY_ENGINE_OPTIONS = {"connect_args": {"timeout": 15}} if SQLALCHEMY_DATABASE_URI.startswith("sqlite") else {}

    # Identity headers forwarded by the upstream auth gateway
    ACTOR_ID_HEADER = "X-Actor-Id"
    ACTOR_ROLE_HEADER = "X-Actor-Role"

    # Pricing
    CURRENCY = os.getenv("CURRENCY", "INR")
    TAX_RATE = os.getenv("TAX_RATE", "0.18")  # GST, kept as a string for Decimal

    # Extensions
    MAX_EXTENSION_HOURS = int(os.getenv("MAX_EXTENSION_HOURS", "12"))

    # Refund policy: full refund > 24h before start, half refund > 1h before
    REFUND_TIERS = _parse_refund_tiers(os.getenv("REFUND_TIERS", "24:100,1:50"))

    # Escape hatch for non-interactive payment flows; never on in production
    ALLOW_SIMULATED_PAYMENT = os.getenv("ALLOW_SIMULATED_PAYMENT", "false").lower() == "true"

    # Stripe
    STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
    STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET")

    # Listing
    MAX_PAGE_SIZE = 50

    # Basic app settings
    DEBUG = False


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SQLALCHEMY_ENGINE_OPTIONS = {"connect_args": {"timeout": 30}}
    ALLOW_SIMULATED_PAYMENT = True
    STRIPE_SECRET_KEY = "sk_test_dummy"
    STRIPE_WEBHOOK_SECRET = "whsec_test"
