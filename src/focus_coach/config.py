"""Application configuration using pydantic-settings."""

import functools
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict


def _find_project_root() -> Path:
    """Find project root by locating pyproject.toml."""
    current = Path(__file__).resolve()
    for parent in [current] + list(current.parents):
        if (parent / "pyproject.toml").exists():
            return parent
    return Path(__file__).resolve().parent.parent.parent


class YamlSettingsSource(PydanticBaseSettingsSource):
    """Custom settings source that loads from settings.yaml."""

    def get_field_value(self, field_name: str) -> tuple[Any, str, bool]:
        """Not used - we implement __call__ instead."""
        return None, "", False

    def __call__(self) -> dict[str, Any]:
        """Load settings from YAML file."""
        yaml_path = _find_project_root() / "config" / "settings.yaml"
        if not yaml_path.exists():
            return {}

        with open(yaml_path, encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}

        # Flatten nested structure to match Settings field names
        flattened = {}
        if 'server' in data:
            flattened['host'] = data['server'].get('host')
            flattened['port'] = data['server'].get('port')
        if 'coach' in data:
            coach = data['coach']
            flattened['coach_stream_url'] = coach.get('stream_url')
            flattened['coach_model'] = coach.get('model')
            flattened['coach_context_label'] = coach.get('context_label')
            flattened['temperature'] = coach.get('temperature')
            flattened['top_p'] = coach.get('top_p')
            flattened['max_tokens'] = coach.get('max_tokens')
            flattened['detail_level'] = coach.get('detail_level')
            flattened['history_window'] = coach.get('history_window')
        if 'http' in data:
            flattened['request_timeout_seconds'] = data['http'].get('request_timeout_seconds')
            flattened['connect_timeout_seconds'] = data['http'].get('connect_timeout_seconds')

        # Remove None values
        return {k: v for k, v in flattened.items() if v is not None}


class Settings(BaseSettings):
    """Application settings loaded from environment and config files."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Coaching stream endpoint
    coach_stream_url: str = Field(default="http://127.0.0.1:5001/api/ai/chat-stream")
    coach_api_key: str | None = Field(default=None)
    coach_model: str = Field(default="deepseek-reasoner")
    coach_context_label: str = Field(default="focus_coaching")
    temperature: float = Field(default=0.8)
    top_p: float = Field(default=0.95)
    max_tokens: int = Field(default=1200)
    detail_level: str = Field(default="comprehensive")
    history_window: int = Field(default=10)

    # HTTP
    request_timeout_seconds: float = Field(default=60.0)
    connect_timeout_seconds: float = Field(default=10.0)

    # Authentication (optional: None disables auth)
    app_secret: str | None = Field(default=None)

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)

    # Paths
    project_root: Path = Field(default_factory=_find_project_root)

    @property
    def profiles_dir(self) -> Path:
        d = self.project_root / "data" / "profiles"
        d.mkdir(parents=True, exist_ok=True)
        return d

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customise settings sources to include YAML file.

        Priority order (highest to lowest):
        1. init_settings (arguments passed to Settings())
        2. env_settings (environment variables)
        3. dotenv_settings (.env file)
        4. YamlSettingsSource (settings.yaml)
        5. file_secret_settings
        """
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlSettingsSource(settings_cls),
            file_secret_settings,
        )


@functools.lru_cache
def get_settings() -> Settings:
    """Get application settings singleton."""
    return Settings()
