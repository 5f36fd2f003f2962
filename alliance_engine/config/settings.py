"""
Application settings using Pydantic Settings
"""


from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Database configuration"""

    url: str = Field(default="sqlite:///./alliance_engine.db", description="Database URL")
    echo: bool = Field(default=False, description="Echo SQL queries")

    model_config = SettingsConfigDict(env_prefix="DB_")


class TelegramSettings(BaseSettings):
    """Telegram bot configuration"""

    token: str | None = Field(default=None, description="Telegram bot token")
    admin_ids: list[int] = Field(
        default_factory=list, description="Telegram IDs allowed to edit slot configuration"
    )

    model_config = SettingsConfigDict(env_prefix="TG_")


class AidSettings(BaseSettings):
    """Aid coordination configuration"""

    # Home alliance id -> alliance whose nations may receive overflow aid
    cross_alliance_links: dict[int, int] = Field(
        default_factory=dict, description="Cross-alliance aid coordination links"
    )

    model_config = SettingsConfigDict(env_prefix="AID_")


class StaggerSettings(BaseSettings):
    """Stagger recommendation configuration"""

    max_recommendations: int | None = Field(
        default=None, description="Attackers listed per defender (None = all)"
    )

    model_config = SettingsConfigDict(env_prefix="STAGGER_")


class Settings(BaseSettings):
    """Main application settings"""

    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Logging level")

    # Sub-settings
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    telegram: TelegramSettings = Field(default_factory=TelegramSettings)
    aid: AidSettings = Field(default_factory=AidSettings)
    stagger: StaggerSettings = Field(default_factory=StaggerSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )


# Global settings instance
settings = Settings()
