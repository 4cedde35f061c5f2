"""Application settings using Pydantic Settings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AuthSettings(BaseSettings):
    """Bearer token, flow state and account linking configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SSOBROKER_AUTH__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    jwt_secret: str | None = Field(
        default=None,
        description="Secret used to sign bearer tokens (required to issue tokens)",
    )
    jwt_algorithm: str = Field(default="HS256", description="JWT algorithm")
    token_expire_days: int = Field(default=365, description="Bearer token lifetime in days")

    state_signing_secret: str | None = Field(
        default=None,
        description="When set, OAuth flow state carries an HMAC and unsigned state is rejected",
    )
    link_password_accounts: bool = Field(
        default=False,
        description="Allow a federated login to attach to an existing password account "
        "with the same email (rejected with DIFFERENT_AUTH_PROVIDER when false)",
    )
    min_password_length: int = Field(default=6, description="Minimum password length on registration")


class ProviderSettings(BaseSettings):
    """Upstream OAuth provider endpoints and HTTP behaviour."""

    model_config = SettingsConfigDict(
        env_prefix="SSOBROKER_PROVIDERS__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    public_base_url: str = Field(
        default="http://localhost:8000",
        description="Public URL of this broker; provider callbacks and the login surface hang off it",
    )
    http_timeout: float = Field(default=5.0, description="Timeout in seconds per provider call")
    http_retries: int = Field(
        default=1,
        description="Retries on transient network failure (never on an HTTP error response)",
    )
    retry_wait_seconds: float = Field(default=0.25, description="Pause before a retry")

    google_auth_url: str = Field(default="https://accounts.google.com/o/oauth2/v2/auth")
    google_token_url: str = Field(default="https://oauth2.googleapis.com/token")
    google_userinfo_url: str = Field(default="https://www.googleapis.com/oauth2/v2/userinfo")
    google_jwks_url: str = Field(default="https://www.googleapis.com/oauth2/v3/certs")
    google_jwks_cache_ttl: int = Field(default=3600, description="Google JWKS cache TTL in seconds")

    facebook_auth_url: str = Field(default="https://facebook.com/v18.0/dialog/oauth")
    facebook_token_url: str = Field(default="https://graph.facebook.com/v12.0/oauth/access_token")
    facebook_userinfo_url: str = Field(default="https://graph.facebook.com/me")

    def callback_url(self, provider: str) -> str:
        """Fixed, provider-registered redirect URI for a provider."""
        return f"{self.public_base_url.rstrip('/')}/api/auth/{provider}/callback"

    def login_url(self) -> str:
        """Login surface that OAuth callbacks route back to."""
        return f"{self.public_base_url.rstrip('/')}/login"


class StoreSettings(BaseSettings):
    """Persistence backend for clients and users."""

    model_config = SettingsConfigDict(
        env_prefix="SSOBROKER_STORE__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    backend: str = Field(
        default="filesystem",
        description="Store backend: filesystem | memory (process-local, lost on exit)",
    )
    path: str = Field(default="~/.ssobroker/data", description="Root directory for the filesystem backend")


class Settings(BaseSettings):
    """Application configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="SSOBROKER_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    # API
    api_host: str = Field(default="0.0.0.0", description="API server host")
    api_port: int = Field(default=8000, description="API server port")
    api_reload: bool = Field(default=False, description="Auto-reload on code changes")
    cors_origins: list[str] = Field(
        default_factory=lambda: ["*"],
        description="Origins allowed to call the REST endpoints from a browser",
    )

    auth: AuthSettings = Field(default_factory=AuthSettings)
    providers: ProviderSettings = Field(default_factory=ProviderSettings)
    store: StoreSettings = Field(default_factory=StoreSettings)


settings = Settings()
