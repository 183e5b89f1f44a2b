from typing import Any, Dict, Optional, Tuple, Type

from pydantic import AliasChoices, Field
from pydantic.fields import FieldInfo
from pydantic_settings import (BaseSettings, PydanticBaseSettingsSource,
                               SettingsConfigDict)

from ..common.paths import DEFAULT_DATABASE
from ..utils.environment import load_config

# duration between two metric exports, in seconds
DEFAULT_SAMPLE_PERIOD = 5 * 60


class TomlConfigSource(PydanticBaseSettingsSource):
    """Reads the ``[client]`` table of ``docbatch.toml``."""

    def __init__(self, settings_cls: Type[BaseSettings]):
        super().__init__(settings_cls)
        self._section: Dict[str, Any] = load_config().get("client", {})

    def get_field_value(self, field: FieldInfo, field_name: str) -> Tuple[Any, str, bool]:
        return self._section.get(field_name), field_name, False

    def __call__(self) -> Dict[str, Any]:
        return {
            name: value
            for name, value in self._section.items()
            if name in self.settings_cls.model_fields
        }


class ClientSettings(BaseSettings):
    """Connection and behaviour settings for DocumentClient."""

    model_config = SettingsConfigDict(
        env_prefix="DOCBATCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
        populate_by_name=True,
    )

    project_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("DOCBATCH_PROJECT_ID", "GOOGLE_CLOUD_PROJECT", "GCLOUD_PROJECT"),
        description="GCP project that owns the database.",
    )
    database_id: str = Field(
        default=DEFAULT_DATABASE,
        description="Database within the project.",
    )
    emulator_host: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("FIRESTORE_EMULATOR_HOST", "DOCBATCH_EMULATOR_HOST"),
        description="host:port of a local emulator. Disables TLS, auth and built-in metrics.",
    )
    api_endpoint: Optional[str] = Field(
        default=None,
        description="Override for the service endpoint.",
    )
    request_timeout_seconds: Optional[float] = Field(
        default=None,
        gt=0,
        description="Default deadline for reads when the caller passes none.",
    )
    builtin_metrics_enabled: bool = Field(
        default=True,
        description="Export built-in client metrics to Cloud Monitoring.",
    )
    metrics_export_interval_seconds: float = Field(
        default=DEFAULT_SAMPLE_PERIOD,
        gt=0,
        description="Interval between two metric exports.",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        return (init_settings, env_settings, dotenv_settings, TomlConfigSource(settings_cls), file_secret_settings)
