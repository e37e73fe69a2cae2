import os
from dataclasses import dataclass
from typing import List

from dotenv import load_dotenv


load_dotenv()


@dataclass(frozen=True)
class Config:
    """Application configuration loaded from environment variables.

    Provides validated access to Supabase, email and portal cookie settings.
    """

    SUPABASE_URL: str = os.getenv("SUPABASE_URL", "")
    SUPABASE_ANON_KEY: str = os.getenv("SUPABASE_ANON_KEY", "")
    SUPABASE_SERVICE_KEY: str = os.getenv("SUPABASE_SERVICE_KEY", "")
    DOCUMENTS_BUCKET: str = os.getenv("DOCUMENTS_BUCKET", "documents")
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "production")
    APP_URL: str = os.getenv("APP_URL", "http://localhost:3000")

    RESEND_API_KEY: str = os.getenv("RESEND_API_KEY", "")
    PORTAL_FROM_EMAIL: str = os.getenv("PORTAL_FROM_EMAIL", "portal@menteiq.app")

    # Portal session cookie
    PORTAL_COOKIE_NAME: str = "portal_session"
    PORTAL_COOKIE_PATH: str = os.getenv("PORTAL_COOKIE_PATH", "/")
    PORTAL_COOKIE_MAX_AGE: int = 60 * 60 * 24 * 30  # 30 days

    # Magic link sessions
    MAGIC_LINK_TTL_HOURS: int = 1

    @staticmethod
    def allowed_origins(extra_origins: List[str] | None = None) -> List[str]:
        env_origins = [o.strip() for o in os.getenv("CORS_ALLOWED_ORIGINS", "http://localhost:3000").split(",") if o.strip()]
        merged = env_origins + [Config.APP_URL]
        if extra_origins:
            merged.extend(extra_origins)
        # Deduplicate while preserving order
        seen = set()
        result: List[str] = []
        for origin in merged:
            if origin not in seen:
                seen.add(origin)
                result.append(origin)
        return result

    @classmethod
    def secure_cookies(cls) -> bool:
        return cls.ENVIRONMENT == "production"

    @classmethod
    def validate(cls) -> None:
        if not cls.SUPABASE_URL:
            raise ValueError("SUPABASE_URL environment variable is required")
        if not cls.SUPABASE_ANON_KEY:
            raise ValueError("SUPABASE_ANON_KEY environment variable is required")
        if not cls.SUPABASE_SERVICE_KEY:
            raise ValueError("SUPABASE_SERVICE_KEY environment variable is required")
