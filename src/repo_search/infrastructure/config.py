"""Application configuration — ``config.toml``, ``.env`` and environment variables."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import SecretStr
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

from repo_search.domain.value_objects import DEFAULT_SCRIPT_CHOICE, resolve_script_file

PACKAGED_SCRIPTS_DIR = Path(__file__).resolve().parent.parent / "scripts"


class Settings(BaseSettings):
    """Central configuration.

    Precedence: constructor arguments, environment, ``.env``, ``config.toml``.
    ``filecount_script`` is kept as a free string so an unknown value falls
    back to the default script instead of failing validation.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        toml_file="config.toml",
        extra="ignore",
    )

    filecount_script: str = DEFAULT_SCRIPT_CHOICE.value
    github_token: SecretStr | None = None
    scripts_dir: Path | None = None
    workspace_root: Path | None = None
    repositories_dir: Path = Path("repositories")
    search_timeout_s: float = 30.0
    clone_timeout_s: float = 300.0
    analysis_timeout_s: float = 300.0
    log_level: str = "INFO"
    log_file: str = "repo-search.log"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            TomlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )

    @property
    def script_file(self) -> str:
        """File name of the analysis script selected by ``filecount_script``."""
        return resolve_script_file(self.filecount_script)

    @property
    def resolved_scripts_dir(self) -> Path:
        return self.scripts_dir or PACKAGED_SCRIPTS_DIR


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the singleton application settings (cached after first call)."""
    return Settings()
