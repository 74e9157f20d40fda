import os

# Database
SQLITE_DEV_DB = "sqlite:///./dev.db"
SQLITE_TEST_DB = "sqlite:///./test.db"
SQLITE_PROD_DB = "sqlite:///./prod.db"

APP_ENV = os.getenv("APP_ENV", "development")
SQLITE_BUSY_TIMEOUT = float(os.getenv("SQLITE_BUSY_TIMEOUT", "30"))


def database_url(env: str | None = None) -> str:
    """Resolve the database URL for an environment"""
    env = env or os.getenv("APP_ENV", APP_ENV)
    if env == "test":
        return SQLITE_TEST_DB
    if env == "production":
        return os.getenv("DATABASE_URL", SQLITE_PROD_DB)
    return SQLITE_DEV_DB


# JWT
SECRET_KEY = os.getenv("SECRET_KEY", "change-me")  # override in production
ALGORITHM = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "10080"))

# Reaction ledger conflict retry, used by callers of the ledger
REACTION_RETRY_ATTEMPTS = int(os.getenv("REACTION_RETRY_ATTEMPTS", "3"))
REACTION_RETRY_BACKOFF = float(os.getenv("REACTION_RETRY_BACKOFF", "0.05"))

# Group chat relay bot; bot posts are refused while no token is configured
BOT_SECRET_TOKEN = os.getenv("BOT_SECRET_TOKEN", "")
BOT_USERNAME = os.getenv("BOT_USERNAME", "campusbot")
BOT_EMAIL = os.getenv("BOT_EMAIL", "bot@campusnet.org")

# Comma separated usernames granted admin rights when they register
ADMIN_USERNAMES = {name.strip() for name in os.getenv("ADMIN_USERNAMES", "").split(",") if name.strip()}
