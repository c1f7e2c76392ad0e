"""Unseen configuration management using pydantic-settings."""

from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env from project root so UNSEEN_* overrides are available
load_dotenv(Path(__file__).resolve().parent.parent / ".env")


class GeneralSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="UNSEEN_")

    data_dir: Path = Field(default=Path.home() / ".local/share/unseen")
    db_url: str = Field(default="sqlite+aiosqlite:///" + str(Path.home() / ".local/share/unseen/unseen.db"))
    owner_id: str = ""
    log_level: str = "INFO"


class AuraSettings(BaseSettings):
    """Scoring constants for the aura engine."""

    max_score: float = 100.0
    knowledge_delta: float = 2.0
    project_log_delta: float = 3.0
    decay_per_missed_day: float = 5.0
    grace_days: int = 1
    history_days: int = 14
    reward_focus_conversion: bool = True


class FocusSettings(BaseSettings):
    preview_languages: list[str] = Field(
        default_factory=lambda: ["html", "css", "javascript", "js", "jsx", "tsx", "react"]
    )


class Settings(BaseSettings):
    """Top-level settings assembled from subsections."""

    general: GeneralSettings = Field(default_factory=GeneralSettings)
    aura: AuraSettings = Field(default_factory=AuraSettings)
    focus: FocusSettings = Field(default_factory=FocusSettings)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Settings":
        """Load settings from TOML config file, falling back to defaults."""
        if config_path is None:
            config_path = Path.home() / ".config/unseen/config.toml"

        if config_path.exists():
            import toml

            data = toml.load(config_path)
            return cls(
                general=GeneralSettings(**data.get("general", {})),
                aura=AuraSettings(**data.get("aura", {})),
                focus=FocusSettings(**data.get("focus", {})),
            )

        return cls()


# Module-level singleton
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings
