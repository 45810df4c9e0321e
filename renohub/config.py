"""
Configuration settings for renohub
"""
from pydantic_settings import BaseSettings
import logging


class Settings(BaseSettings):
    """Application settings"""

    # Application
    APP_NAME: str = "Renovation Hub Client"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Backend (Supabase)
    SUPABASE_URL: str = "http://localhost:54321"
    SUPABASE_KEY: str = ""

    # Inspiration feed
    FEED_VIEW: str = "inspiration_feed"
    PAGE_SIZE: int = 20
    PERSONALIZED_FETCH_MULTIPLIER: int = 3
    DEFAULT_CURRENCY: str = "USD"

    # Provider directory
    PROVIDER_DEFAULT_CURRENCY: str = "HKD"

    # Storage buckets
    FORUM_MEDIA_BUCKET: str = "forum-media"
    PROVIDER_ASSETS_BUCKET: str = "provider-assets"
    AVATAR_BUCKET: str = "avatars"
    AVATAR_MAX_BYTES: int = 5 * 1024 * 1024

    # Profiles
    USERNAME_CHANGE_COOLDOWN_DAYS: int = 14

    # Realtime
    REALTIME_ENABLED: bool = True
    REALTIME_CHANNEL: str = "inspiration-feed-channel"
    REALTIME_TABLE: str = "provider_portfolios"
    REALTIME_QUEUE_SIZE: int = 1000

    # Optimistic interactions
    ROLLBACK_FAILED_TOGGLES: bool = False

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()


def configure_logging(app_settings: Settings = settings) -> None:
    """Configure root logging the same way for every entry point"""
    logging.basicConfig(
        level=logging.INFO if not app_settings.DEBUG else logging.DEBUG,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
