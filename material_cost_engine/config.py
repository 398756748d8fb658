"""Application configuration using Pydantic Settings."""

from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)


class PathsSettings(BaseModel):
    """Input and output workbook locations (``[paths]`` in config.toml)."""

    input_file: Path = Path("直接材料費原価計算表.xlsx")
    output_file: Path = Path("直接材料費原価計算表_結果.xlsx")


class Settings(BaseSettings):
    """
    Application settings.

    Priority: init kwargs, environment (``PATHS__INPUT_FILE`` for nested
    values), ``.env``, then ``config.toml``.
    """

    # Workbooks
    paths: PathsSettings = Field(default_factory=PathsSettings)
    history_sheet_name: str = "入出庫履歴"

    # Calculation
    stop_on_error: bool = True

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_reload: bool = False

    # Application
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        toml_file="config.toml",
        extra="ignore",
    )

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


settings = Settings()


def get_settings() -> Settings:
    """Dependency returning the process-wide settings."""
    return settings
