import os
from functools import lru_cache

# Prefer loading environment variables from a .env file when one is present
from dotenv import load_dotenv, find_dotenv

_env_path = find_dotenv(usecwd=True)
if _env_path:
    load_dotenv(_env_path, override=False)


class Settings:
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./storefront.db")
    SECRET_KEY: str = os.getenv("SECRET_KEY", "change_me_secret")
    ALGORITHM: str = os.getenv("ALGORITHM", "HS256")
    # Default to 7 days so users stay logged in for a week
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(7 * 24 * 60)))
    # Anonymous cart identity cookie
    ANON_CART_COOKIE: str = os.getenv("ANON_CART_COOKIE", "cart_token")
    ANON_CART_TTL_DAYS: int = int(os.getenv("ANON_CART_TTL_DAYS", "30"))
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development").lower()
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"


@lru_cache
def get_settings():
    return Settings()
