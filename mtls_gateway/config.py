"""
Gateway Configuration Module

Builds the immutable connection profile used by the gateway client.

Every field resolves independently: explicit keyword argument first, then
the GATEWAY_* environment variable (or .env file), then the hard default.
Empty environment values count as unset.
"""
import hashlib
from typing import Annotated, Any, Literal, Optional

from pydantic import Field, SecretStr, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from .exceptions import ConfigurationError, validation_details
from .models.verify import VerifyPolicy


ENV_PREFIX = "GATEWAY_"
REQUIRED_ENV_VARS = ("GATEWAY_HMAC_SECRET", "GATEWAY_CERT_PATH", "GATEWAY_KEY_PATH")


class GatewayConfig(BaseSettings):
    """
    Connection profile for one gateway client.

    Environment variables:
        GATEWAY_HMAC_SECRET: shared HMAC secret (required)
        GATEWAY_CERT_PATH: PEM client certificate (required)
        GATEWAY_KEY_PATH: PEM client private key (required)
        GATEWAY_KEY_PASSPHRASE: private key passphrase
        GATEWAY_VERIFY: true/false/on/off/yes/no/1/0 or a CA bundle path
        GATEWAY_HMAC_ALGO: hashlib algorithm name (default sha256)
        GATEWAY_SIGNATURE_HEADER: header carrying the signature (default X-Signature)
        GATEWAY_TIMEOUT_SECONDS: request timeout (default 15)
        GATEWAY_CONNECT_TIMEOUT_SECONDS: connect timeout (default 10)

    Secrets are SecretStr and never appear in repr() or logs. The instance
    is frozen; build a new one to change behaviour.
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    hmac_secret: SecretStr = SecretStr("")
    cert_path: str = ""
    key_path: str = ""
    key_passphrase: Optional[SecretStr] = None
    verify: Annotated[VerifyPolicy, NoDecode] = Field(default_factory=VerifyPolicy.enabled)
    hmac_algo: str = "sha256"
    signature_header: str = "X-Signature"
    timeout_seconds: int = Field(default=15, gt=0)
    connect_timeout_seconds: int = Field(default=10, gt=0)

    def __init__(self, **values: Any):
        # None means "not supplied": fall through to env / default
        supplied = {name: value for name, value in values.items() if value is not None}
        try:
            super().__init__(**supplied)
        except ValidationError as exc:
            raise ConfigurationError(
                f"Invalid gateway configuration: {_first_error(exc)}",
                validation_details(exc.errors())
            ) from exc

    @classmethod
    def from_env(cls) -> "GatewayConfig":
        """Build the profile purely from GATEWAY_* environment variables."""
        return cls()

    @field_validator("verify", mode="before")
    @classmethod
    def parse_verify(cls, value: Any) -> VerifyPolicy:
        try:
            return VerifyPolicy.parse(value)
        except TypeError as exc:
            raise ConfigurationError(str(exc)) from exc

    @field_validator("hmac_algo")
    @classmethod
    def supported_algorithm(cls, value: str) -> str:
        normalized = value.strip().lower()
        try:
            digest_size = hashlib.new(normalized).digest_size
        except (ValueError, TypeError) as exc:
            raise ConfigurationError(
                f"Unsupported HMAC algorithm: {value}",
                {"hmac_algo": value}
            ) from exc
        # shake_* report no fixed digest size and cannot key an HMAC
        if digest_size == 0:
            raise ConfigurationError(f"Unsupported HMAC algorithm: {value}", {"hmac_algo": value})
        return normalized

    @field_validator("signature_header")
    @classmethod
    def non_empty_header(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ConfigurationError("Signature header name must not be empty")
        return normalized

    @model_validator(mode="after")
    def required_parameters(self) -> "GatewayConfig":
        missing = [
            name for name, value in (
                ("hmac_secret", self.hmac_secret.get_secret_value()),
                ("cert_path", self.cert_path.strip()),
                ("key_path", self.key_path.strip()),
            )
            if not value
        ]
        if missing:
            raise ConfigurationError(
                "Missing required parameters: hmac_secret, cert_path, key_path. "
                f"Pass them directly or set {', '.join(REQUIRED_ENV_VARS)} env vars.",
                {"missing": missing}
            )
        return self

    @property
    def passphrase(self) -> Optional[str]:
        """Plain key passphrase, or None for an unencrypted key."""
        if self.key_passphrase is None:
            return None
        return self.key_passphrase.get_secret_value()


class RuntimeSettings(BaseSettings):
    """
    Process-level settings outside the connection profile.

    Read fresh on every access so a changed environment is picked up.
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=False,
        extra="ignore",
    )

    endpoint: str = ""
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_log_level(cls, value: Any) -> Any:
        return value.strip().upper() if isinstance(value, str) else value


def load_runtime_settings() -> RuntimeSettings:
    try:
        return RuntimeSettings()
    except ValidationError as exc:
        raise ConfigurationError(
            f"Invalid runtime settings: {_first_error(exc)}",
            validation_details(exc.errors())
        ) from exc


def default_endpoint() -> str:
    """
    Default gateway URL for the zero-argument call path.

    Raises:
        ConfigurationError: If GATEWAY_ENDPOINT is not set
    """
    endpoint = load_runtime_settings().endpoint.strip()
    if not endpoint:
        raise ConfigurationError("Missing env var: GATEWAY_ENDPOINT")
    return endpoint


def _first_error(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return str(exc)
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{location}: {first.get('msg', '')}" if location else first.get("msg", "")
