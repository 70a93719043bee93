import os


def _env_flag(name, default=""):
    return os.environ.get(name, default).lower() in ("1", "true", "yes")


class Config:
    """Base configuration. Shared across all environments."""

    # --- Required ---
    SECRET_KEY = os.environ.get("SECRET_KEY")

    # Handle DATABASE_URL: some PaaS providers (Railway, Heroku) use
    # "postgres://" which SQLAlchemy 1.4+ doesn't accept.
    _db_url = os.environ.get("DATABASE_URL", "")
    if _db_url.startswith("postgres://"):
        _db_url = _db_url.replace("postgres://", "postgresql://", 1)
    SQLALCHEMY_DATABASE_URI = _db_url or None

    # --- Identity ---
    # The upstream identity provider authenticates the caller and forwards
    # the principal id in this header. Never expose the app without it.
    PRINCIPAL_HEADER = os.environ.get("PRINCIPAL_HEADER", "X-Principal-Id")

    # --- Inventory policy ---
    # Capability required to mutate locations, boxes and QR codes:
    # "any_member" (read_only members included) or "owner_or_admin".
    INVENTORY_WRITE_CAPABILITY = os.environ.get(
        "INVENTORY_WRITE_CAPABILITY", "any_member"
    )
    # Soft-deleting a location also soft-deletes its whole subtree.
    LOCATION_DELETE_CASCADE = _env_flag("LOCATION_DELETE_CASCADE", "true")

    # --- Rate limits ---
    QR_BATCH_RATE_LIMIT = os.environ.get("QR_BATCH_RATE_LIMIT", "30 per minute")

    # --- SQLAlchemy ---
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "pool_recycle": 300,
    }

    @staticmethod
    def validate():
        """Fail fast if required env vars are missing."""
        required = [
            "SECRET_KEY",
            "DATABASE_URL",
        ]
        missing = [v for v in required if not os.environ.get(v)]
        if missing:
            raise RuntimeError(
                f"Missing required environment variables: {', '.join(missing)}"
            )
        capability = os.environ.get("INVENTORY_WRITE_CAPABILITY", "any_member")
        if capability not in ("any_member", "owner_or_admin"):
            raise RuntimeError(
                f"INVENTORY_WRITE_CAPABILITY must be 'any_member' or "
                f"'owner_or_admin', got '{capability}'"
            )


class DevConfig(Config):
    """Local development."""

    DEBUG = True
    SQLALCHEMY_DATABASE_URI = Config.SQLALCHEMY_DATABASE_URI or "sqlite:///organizer-dev.db"


class TestConfig(Config):
    """Testing — in-memory SQLite, rate limits off."""

    TESTING = True
    DEBUG = True
    SECRET_KEY = "test-secret-key-not-for-production"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    PRINCIPAL_HEADER = "X-Principal-Id"
    INVENTORY_WRITE_CAPABILITY = "any_member"
    LOCATION_DELETE_CASCADE = True
    RATELIMIT_ENABLED = False  # disable rate limiting in tests
    SERVER_NAME = "localhost"

    @staticmethod
    def validate():
        """Skip validation in test mode — everything is hardcoded."""
        pass


class ProdConfig(Config):
    """Production."""

    DEBUG = False


config_by_name = {
    "development": DevConfig,
    "production": ProdConfig,
    "testing": TestConfig,
}
