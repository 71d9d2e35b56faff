from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    FUSIONAUTH_BASE_URL: str = Field(default="http://localhost:9011", description="FusionAuth base URL")
    FUSIONAUTH_API_KEY: str = Field(default="", description="Tenant-unscoped FusionAuth API key")
    FUSIONAUTH_DEFAULT_TENANT_ID: str = Field(
        default="", description="Tenant copied as the template for new organizations"
    )
    FUSIONAUTH_TIMEOUT_SECONDS: float = Field(default=10.0, description="Per-request HTTP timeout")

    IDENTITY_PROVIDER: str = Field(default="fusionauth", description="Identity provider (fusionauth, mock)")

    BASE_DOMAIN: str = Field(default="saasbp.io", description="Parent domain of organization subdomains")
    TENANT_ISSUER: str = Field(default="saasbp.io", description="JWT issuer set on new tenants")
    REDIRECT_SCHEME: str = Field(default="https", description="Scheme of the post sign-up redirect")

    ROLLBACK_ON_FAILURE: bool = Field(
        default=False, description="Delete the tenant and API key when a later step fails"
    )
    EXPOSE_PROVIDER_ERRORS: bool = Field(
        default=True, description="Return the provider's error body to the submitting client"
    )
    SIGNUP_RATE_LIMIT: str = Field(default="10/minute", description="slowapi limit for sign-up submissions")
    TRACE_TO_CONSOLE: bool = Field(default=False, description="Export OpenTelemetry spans to stdout")
    SERVICE_NAME: str = Field(default="org-signup", description="service.name reported on spans")

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")


_settings_instance = None


def get_settings() -> Settings:
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
