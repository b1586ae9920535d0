from collections.abc import Mapping
from types import MappingProxyType
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from trixdb.exceptions import TrixDBConfigError


DEFAULT_BASE_URL = "https://api.trixdb.com"
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_MAX_RETRIES = 3

MAX_TIMEOUT_SECONDS = 3600.0
MAX_RETRIES_LIMIT = 10

# Header names the pipeline owns; custom headers may not set them.
RESERVED_HEADERS = frozenset(
    {
        "authorization",
        "host",
        "content-length",
        "transfer-encoding",
        "connection",
        "keep-alive",
        "proxy-authorization",
        "proxy-connection",
        "te",
        "trailer",
        "upgrade",
    }
)


class TrixDBClientConfig(BaseModel):
    """Configuration for the TrixDB client"""

    model_config = ConfigDict(frozen=True)

    api_key: str | None = None
    jwt_token: str | None = None
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    max_retries: int = DEFAULT_MAX_RETRIES
    allow_insecure: bool = False
    custom_headers: Mapping[str, str] | None = None

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeout must be positive")
        if v > MAX_TIMEOUT_SECONDS:
            raise ValueError(
                f"timeout must not exceed {MAX_TIMEOUT_SECONDS:g} seconds"
            )
        return v

    @field_validator("max_retries")
    @classmethod
    def validate_max_retries(cls, v: int) -> int:
        if v < 0 or v > MAX_RETRIES_LIMIT:
            raise ValueError(f"max_retries must be between 0 and {MAX_RETRIES_LIMIT}")
        return v

    @field_validator("custom_headers")
    @classmethod
    def validate_custom_headers(
        cls, v: Mapping[str, str] | None
    ) -> Mapping[str, str] | None:
        if v is None:
            return None
        for name in v:
            if name.strip().lower() in RESERVED_HEADERS:
                raise ValueError(f"custom header {name!r} is reserved")
        return MappingProxyType(dict(v))

    @model_validator(mode="after")
    def validate_credentials_and_url(self) -> "TrixDBClientConfig":
        if not self.api_key and not self.jwt_token:
            raise ValueError("Either api_key or jwt_token must be provided")

        parsed = urlparse(self.base_url)
        scheme = parsed.scheme.lower()
        if scheme not in ("http", "https") or not parsed.hostname:
            raise ValueError("base_url must be an absolute http or https URL")
        try:
            parsed.port
        except ValueError as e:
            raise ValueError(f"base_url has an invalid port: {e}") from e
        if scheme == "http" and not self.allow_insecure:
            raise ValueError(
                "base_url must use HTTPS. Set allow_insecure=True for development."
            )
        return self

    @property
    def credential(self) -> str:
        """The bearer credential; the API key wins when both are set."""
        return self.api_key or self.jwt_token or ""

    @classmethod
    def from_environment(cls, **overrides) -> "TrixDBClientConfig":
        """
        Build a configuration from ``TRIXDB_*`` environment variables.

        Reads TRIXDB_API_KEY or TRIXDB_JWT_TOKEN, and optionally TRIXDB_BASE_URL,
        TRIXDB_TIMEOUT, TRIXDB_MAX_RETRIES and TRIXDB_ALLOW_INSECURE. Keyword
        overrides take precedence over the environment.

        Raises:
            TrixDBConfigError: If no credential is set in the environment
        """
        env = TrixDBEnvironment()
        if not env.api_key and not env.jwt_token and not (
            overrides.get("api_key") or overrides.get("jwt_token")
        ):
            raise TrixDBConfigError(
                "TRIXDB_API_KEY environment variable is not set."
            )
        values = env.model_dump(exclude_none=True)
        values.update(overrides)
        return cls(**values)


class TrixDBEnvironment(BaseSettings):
    """Client settings read from the environment (and a local .env file)"""

    model_config = SettingsConfigDict(
        env_prefix="TRIXDB_", env_file=".env", extra="ignore"
    )

    api_key: str | None = None
    jwt_token: str | None = None
    base_url: str | None = None
    timeout: float | None = None
    max_retries: int | None = None
    allow_insecure: bool | None = None
