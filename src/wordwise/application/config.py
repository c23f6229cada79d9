from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from wordwise.domain.constants import (
    CACHE_DEFAULT_TTL_MS,
    CACHE_MAX_SIZE,
    CACHE_NAMESPACE,
    FETCH_BATCH_SIZE,
)


class AppConfig(BaseSettings):
    """
    Configuration model for wordwise.
    Supports loading from:
    1. Environment variables (WORDWISE_*)
    2. Config file (~/.config/wordwise/config.toml)
    3. Manual overrides (CLI / API)
    """

    model_config = SettingsConfigDict(
        env_prefix="WORDWISE_",
        extra="ignore",
    )

    # Paths
    data_dir: Path | None = Field(default_factory=lambda: Path.home() / ".local/share/wordwise")
    store_path: Path | None = None
    reviews_path: Path | None = None

    # Local cache
    store_backend: Literal["memory", "file"] = "file"
    store_quota_chars: int | None = None
    cache_namespace: str = CACHE_NAMESPACE
    cache_default_ttl_ms: int = Field(default=CACHE_DEFAULT_TTL_MS, gt=0)
    cache_max_size: int = Field(default=CACHE_MAX_SIZE, gt=0)

    # Remote document store
    review_backend: Literal["local", "http"] = "local"
    document_store_url: str = "http://127.0.0.1:8080"
    document_store_token: str | None = None
    fetch_batch_size: int = Field(default=FETCH_BATCH_SIZE, gt=0)

    verbose: int = 1

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        from pydantic_settings import TomlConfigSettingsSource

        # Home may have changed since import (tests patch HOME)
        toml_files = [
            Path.home() / ".config/wordwise/config.toml",
            Path.home() / ".wordwise.toml",
        ]
        toml_file = next((f for f in toml_files if f.exists()), None)

        if toml_file:
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (
            init_settings,
            env_settings,
        )

    @field_validator("data_dir", "store_path", "reviews_path", mode="before")
    @classmethod
    def resolve_path(cls, v: Any) -> Path | None:
        if v is None or v == "":
            return None
        return Path(v).expanduser().resolve()


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/wordwise/config.toml (if exists)
    3. Environment variables (WORDWISE_*)
    4. cli_overrides (passed from Typer or the API)
    """
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    config = AppConfig(**overrides)

    if config.data_dir is None:
        config.data_dir = Path.home() / ".local/share/wordwise"
    if config.store_path is None:
        config.store_path = config.data_dir / "cache.json"
    if config.reviews_path is None:
        config.reviews_path = config.data_dir / "reviews.json"

    return config
