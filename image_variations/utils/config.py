"""Configuration management for the image variation service."""

import os
from pathlib import Path
from typing import Optional
import yaml
from pydantic import BaseModel, ConfigDict, Field
from dotenv import load_dotenv

from .errors import ConfigurationError
from .logger import get_logger

logger = get_logger(__name__)

# Load environment variables
load_dotenv()

DEFAULT_SETTINGS_PATH = Path("config/settings.yaml")


class GenerationConfig(BaseModel):
    """Configuration for the generation fan-out."""
    model: str = "gemini-2.5-flash-image-preview"
    base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    variations: int = Field(default=4, ge=1)
    max_reference_images: int = Field(default=5, ge=1)
    default_mime_type: str = "image/png"


class ViewerConfig(BaseModel):
    """Configuration for the result carousel."""
    swipe_threshold: float = Field(default=50.0, gt=0)


class SessionConfig(BaseModel):
    """Configuration for in-memory user sessions."""
    idle_ttl_seconds: float = Field(default=3600.0, gt=0)


class Config(BaseModel):
    """Main application configuration."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    # API Keys
    gemini_api_key: Optional[str] = Field(default=None, alias="GEMINI_API_KEY")

    # Application Settings
    app_env: str = Field(default="development", alias="APP_ENV")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Timeout Settings
    timeout_gemini_seconds: float = Field(default=120.0, alias="GEMINI_TIMEOUT_SECONDS")

    generation: GenerationConfig = Field(default_factory=GenerationConfig)
    viewer: ViewerConfig = Field(default_factory=ViewerConfig)
    sessions: SessionConfig = Field(default_factory=SessionConfig)

    @property
    def has_credentials(self) -> bool:
        return bool(self.gemini_api_key and self.gemini_api_key.strip())


# Global config instance
_config: Optional[Config] = None


def load_config(settings_path: Optional[Path] = None) -> Config:
    """
    Load configuration from environment and the YAML settings file.

    A missing settings file falls back to defaults; a malformed one is fatal.

    Args:
        settings_path: Override for config/settings.yaml

    Returns:
        Config instance

    Raises:
        ConfigurationError: If configuration is invalid
    """
    global _config

    path = Path(settings_path or os.getenv("SETTINGS_PATH", DEFAULT_SETTINGS_PATH))

    try:
        settings = {}
        if path.exists():
            with open(path, "r", encoding="utf-8") as f:
                settings = yaml.safe_load(f) or {}
            if not isinstance(settings, dict):
                raise ConfigurationError(f"{path} must contain a mapping")
        else:
            logger.warning(
                "Settings file not found, using defaults",
                extra={"settings_path": str(path)}
            )

        # Merge environment variables with YAML config
        config_data = {
            **os.environ,
            **settings,
        }

        _config = Config(**config_data)

        logger.info(
            "Configuration loaded successfully",
            extra={
                "model": _config.generation.model,
                "variations": _config.generation.variations,
                "environment": _config.app_env,
                "has_credentials": _config.has_credentials,
            }
        )

        return _config

    except ConfigurationError:
        raise
    except Exception as e:
        raise ConfigurationError(f"Failed to load configuration: {e}")


def get_config() -> Config:
    """
    Get the current configuration instance.

    Returns:
        Config instance

    Raises:
        ConfigurationError: If config not loaded
    """
    if _config is None:
        raise ConfigurationError("Configuration not loaded. Call load_config() first.")
    return _config


def reset_config() -> None:
    """Forget the loaded configuration."""
    global _config
    _config = None
