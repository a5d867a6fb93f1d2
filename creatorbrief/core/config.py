import logging
from pathlib import Path
from typing import Dict, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from creatorbrief.core.errors import ConfigError

# --- Base Path ---
BASE_DIR = Path(__file__).resolve().parent.parent.parent
logger = logging.getLogger(__name__)

SUPPORTED_PROVIDERS = ("openai", "anthropic", "gemini")

# --- Environment-based Settings ---

class AppSettings(BaseSettings):
    """
    Main application settings loaded from environment variables.
    The .env file is loaded automatically by pydantic-settings.
    """
    model_config = SettingsConfigDict(env_file='.env', env_file_encoding='utf-8', extra='ignore')

    # --- Provider selection ---
    AI_PROVIDER: str = Field("openai", description="Backend used for completions: openai, anthropic or gemini.")
    AI_MODEL: Optional[str] = Field(None, description="Optional: Model identifier overriding the backend default.")
    AI_MAX_TOKENS: int = Field(4000, gt=0, description="Maximum output tokens per completion.")
    AI_TEMPERATURE: float = Field(0.7, ge=0.0, le=2.0, description="Sampling temperature.")
    AI_REQUEST_TIMEOUT: float = Field(60.0, gt=0, description="Transport timeout for one backend call, in seconds.")

    # --- Credentials ---
    OPENAI_API_KEY: Optional[str] = Field(None)
    ANTHROPIC_API_KEY: Optional[str] = Field(None)
    GOOGLE_API_KEY: Optional[str] = Field(None)

    # --- Cache & Rate Limiting ---
    CACHE_TTL_SEC: int = Field(3600, gt=0)
    CACHE_MAX_SIZE: int = Field(2048, gt=0)
    RATE_LIMIT_MAX_REQUESTS: int = Field(10, gt=0)
    RATE_LIMIT_WINDOW_SEC: int = Field(3600, gt=0)

    # --- General & Core ---
    LOG_LEVEL: str = Field("INFO", description="Log level for the application (e.g., DEBUG, INFO, WARNING, ERROR)")
    LOG_FILE: Optional[str] = Field(None, description="Optional: Path of the rotating JSON log file.")
    BRIEF_CONFIG_PATH: Optional[str] = Field(None, description="Optional: Path to a specific YAML provider configuration file.")

    def api_key_for(self, provider: str) -> Optional[str]:
        return {
            "openai": self.OPENAI_API_KEY,
            "anthropic": self.ANTHROPIC_API_KEY,
            "gemini": self.GOOGLE_API_KEY,
        }.get(provider)

# --- YAML-based Configuration Models ---

class BackendConfig(BaseModel):
    model: Optional[str] = None
    base_url: Optional[str] = None


class ProvidersConfig(BaseModel):
    providers: Dict[str, BackendConfig] = Field(default_factory=dict)

    def for_provider(self, name: str) -> BackendConfig:
        return self.providers.get(name, BackendConfig())

# --- Main Config Object ---

class Config:
    """
    A unified configuration object.
    """
    def __init__(self, app: Optional[AppSettings] = None):
        try:
            self.app = app or AppSettings()
        except ValidationError as e:
            logger.critical(f"FATAL: Configuration validation error: {e}")
            raise ConfigError(f"Invalid configuration: {e}") from e

        self.app.AI_PROVIDER = self.app.AI_PROVIDER.lower()
        if self.app.AI_PROVIDER not in SUPPORTED_PROVIDERS:
            raise ConfigError(
                f"Unknown AI_PROVIDER '{self.app.AI_PROVIDER}', expected one of {', '.join(SUPPORTED_PROVIDERS)}"
            )

        self.providers: ProvidersConfig = self._load_yaml(ProvidersConfig)

    def _config_path(self) -> Path:
        if self.app.BRIEF_CONFIG_PATH:
            return Path(self.app.BRIEF_CONFIG_PATH)
        return BASE_DIR / 'configs' / 'providers.yml'

    def _load_yaml(self, model: type[BaseModel]) -> BaseModel:
        """Loads the YAML file and validates it with the given Pydantic model."""
        config_path = self._config_path()
        if not config_path.exists():
            if self.app.BRIEF_CONFIG_PATH:
                raise ConfigError(f"Configuration file '{config_path}' not found")
            logger.debug(f"No provider configuration at {config_path}, using defaults")
            return model()
        with open(config_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration file '{config_path}': {e}") from e

    @property
    def provider_name(self) -> str:
        return self.app.AI_PROVIDER

    @property
    def backend(self) -> BackendConfig:
        return self.providers.for_provider(self.provider_name)

# --- Global Config Instance ---
_settings_instance = None

def get_settings() -> Config:
    """
    Returns a singleton instance of the Config object.
    This function controls when the settings are loaded and validated,
    making the application more testable.
    """
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Config()
    return _settings_instance


def reset_settings() -> None:
    """Drop the cached Config so the next get_settings() re-reads the environment."""
    global _settings_instance
    _settings_instance = None
