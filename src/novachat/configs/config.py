"""Configuration management using pydantic-settings.

**Not a singleton**: each call to ``get_app_config()`` re-reads config
from disk so that edits to the YAML file are picked up without a
restart.  Values baked into long-lived objects at startup (store,
model client, locks) still require a restart.

Priority order (highest first):

1. Environment variables (``NOVACHAT_`` prefix, ``__`` nesting)
2. ``.env`` dotenv file
3. Static YAML (``configs/config.yaml``)
4. Init defaults / field defaults
5. File secrets

``GEMINI_API_KEY`` (environment or ``.env``) is honoured as a fallback
for ``llm.api_key`` so existing deployments keep working.
"""

from pathlib import Path

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from .system import (
    APIConfig,
    BudgetConfig,
    ConcurrencyConfig,
    LLMConfig,
    LoggingConfig,
    PromptConfig,
    StorageConfig,
    ThirdPartyConfig,
    TracingConfig,
)

# ---------------------------------------------------------------------------
# Path constants
# ---------------------------------------------------------------------------

CONFIG_PY_PATH = Path(__file__).resolve()
PROJECT_ROOT = CONFIG_PY_PATH.parent.parent.parent.parent
CONFIG_DIR = PROJECT_ROOT / "configs"

STATIC_CONFIG_FILE = CONFIG_DIR / "config.yaml"

DOTENV_FILE_PATH = PROJECT_ROOT / ".env"
ENV_DELIMITER = "__"  # Nested environment variable delimiter
ENV_PREFIX = "NOVACHAT_"  # Environment variable prefix
LEGACY_API_KEY_ENV = "GEMINI_API_KEY"

DEFAULT_ENCODING = "utf-8"


class AppConfig(BaseSettings):
    """Application configuration."""

    model_config = SettingsConfigDict(
        env_file=DOTENV_FILE_PATH,
        env_file_encoding=DEFAULT_ENCODING,
        env_nested_delimiter=ENV_DELIMITER,
        env_prefix=ENV_PREFIX,
        case_sensitive=False,
        extra="ignore",
        yaml_file=STATIC_CONFIG_FILE,
        yaml_file_encoding=DEFAULT_ENCODING,
    )

    third_party: ThirdPartyConfig = Field(
        default_factory=ThirdPartyConfig,
        description="Third-party service configurations",
    )

    api: APIConfig = Field(
        default_factory=APIConfig,
        description="API configuration settings",
    )

    llm: LLMConfig = Field(
        default_factory=LLMConfig,
        description="Remote model configuration settings",
    )

    budget: BudgetConfig = Field(
        default_factory=BudgetConfig,
        description="Token budget for prompt assembly",
    )

    prompt: PromptConfig = Field(
        default_factory=PromptConfig,
        description="System prompt configuration",
    )

    storage: StorageConfig = Field(
        default_factory=StorageConfig,
        description="Conversation history storage",
    )

    concurrency: ConcurrencyConfig = Field(
        default_factory=ConcurrencyConfig,
        description="Per-session serialization settings",
    )

    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Logging settings",
    )

    tracing: TracingConfig = Field(
        default_factory=TracingConfig,
        description="OpenTelemetry tracing settings",
    )

    # Unprefixed, so it is read from both the environment and ``.env``.
    gemini_api_key: SecretStr = Field(
        default=SecretStr(""),
        validation_alias=LEGACY_API_KEY_ENV,
        exclude=True,
        description="Legacy key variable; fills ``llm.api_key`` when that is unset",
    )

    @model_validator(mode="after")
    def _fallback_api_key(self) -> "AppConfig":
        if not self.llm.api_key.get_secret_value():
            legacy = self.gemini_api_key.get_secret_value()
            if legacy:
                self.llm.api_key = SecretStr(legacy)
        return self

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
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
            init_settings,
            file_secret_settings,
        )


def get_app_config() -> AppConfig:
    """Get the application configuration.

    Re-reads ``configs/config.yaml`` on every call.
    """
    return AppConfig()
