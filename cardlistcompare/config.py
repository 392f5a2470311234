from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env")

    app_name: str = "CardListCompare"
    debug: bool = False

    database_url: str = "postgresql+asyncpg://localhost:5432/cardlistcompare"

    # Printing metadata lookup
    scryfall_api_url: str = "https://api.scryfall.com"
    scryfall_timeout: float = 30.0
    scryfall_batch_size: int = Field(default=75, ge=1, le=75)
    # Scryfall asks for at most 10 requests/second
    scryfall_batch_delay: float = Field(default=0.1, ge=0)

    # Snapshot retention, per tracked deck. 0 means unlimited.
    max_snapshots_per_deck: int = Field(default=25, ge=0)
    max_locked_per_deck: int = Field(default=5, ge=0)


settings = Settings()
