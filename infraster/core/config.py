"""Search-service configuration loaded from environment."""

from __future__ import annotations

from infraster.common.config import env, env_int

SERVICE_NAME = "infraster-search"

DATABASE_URL = env("DATABASE_URL", "")
POSTGRES_HOST = env("POSTGRES_HOST", "localhost")
POSTGRES_PORT = env_int("POSTGRES_PORT", 5432)
POSTGRES_USER = env("POSTGRES_USER", "platform")
POSTGRES_PASSWORD = env("POSTGRES_PASSWORD", "localdev")
POSTGRES_DB = env("POSTGRES_DB", "infraster")

# Bounds every store access: pool checkout, connect and statement time.
STORE_TIMEOUT_MS = env_int("STORE_TIMEOUT_MS", 5000)
STORE_POOL_SIZE = env_int("STORE_POOL_SIZE", 10)
STORE_MAX_OVERFLOW = env_int("STORE_MAX_OVERFLOW", 20)

# Viewport ordering key; must stay identical across processes and deploys,
# otherwise the map reshuffles.
VIEWPORT_SAMPLE_SEED = env("VIEWPORT_SAMPLE_SEED", "global_v1")

QUICK_SEARCH_LIMIT = env_int("QUICK_SEARCH_LIMIT", 12)
MAX_AVAILABILITY_RANGE_DAYS = env_int("MAX_AVAILABILITY_RANGE_DAYS", 731)


def database_url() -> str:
    if DATABASE_URL:
        return DATABASE_URL
    return (
        f"postgresql+psycopg2://{POSTGRES_USER}:{POSTGRES_PASSWORD}" f"@{POSTGRES_HOST}:{POSTGRES_PORT}/{POSTGRES_DB}"
    )
