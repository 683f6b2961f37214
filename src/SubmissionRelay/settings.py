# === NAVMAP v1 ===
# {
#   "module": "SubmissionRelay.settings",
#   "purpose": "Pydantic v2 settings resolved from the ambient environment.",
#   "sections": [
#     {
#       "id": "logformat",
#       "name": "LogFormat",
#       "anchor": "class-logformat",
#       "kind": "class"
#     },
#     {
#       "id": "relaysettings",
#       "name": "RelaySettings",
#       "anchor": "class-relaysettings",
#       "kind": "class"
#     },
#     {
#       "id": "load-settings",
#       "name": "load_settings",
#       "anchor": "function-load-settings",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""
Relay Settings

Typed configuration for one relay process, read from environment variables
with Pydantic v2 ``BaseSettings``. The deployment contract names the variables
``BUCKET``, ``GCP_CREDS_JSON``, ``MAIL_TABLE``, ``MAILGUN_DOMAIN``,
``MAILGUN_PVT_API_KEY``, ``SENDER`` and ``SUBJECT``; these are bound through
field aliases. Optional tuning knobs use the ``RELAY_`` prefix.

The settings object is built once and handed to the orchestrator, which
passes the relevant slices to each collaborator.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = ["LogFormat", "RelaySettings", "load_settings"]

DEFAULT_MAILGUN_API_BASE = "https://api.mailgun.net/v3"
ARCHIVE_CONTENT_TYPE = "application/zip"


class LogFormat(str, Enum):
    """Supported log output formats."""

    CONSOLE = "console"
    JSON = "json"


class RelaySettings(BaseSettings):
    """Ambient configuration for the submission relay."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Object store
    bucket: str = Field("", alias="BUCKET", description="Destination GCS bucket name")
    gcp_creds_json: SecretStr = Field(
        SecretStr(""),
        alias="GCP_CREDS_JSON",
        description="Service-account JSON; empty means application default credentials",
    )

    # Audit table
    mail_table: str = Field("", alias="MAIL_TABLE", description="DynamoDB audit table name")
    aws_region: Optional[str] = Field(None, alias="AWS_REGION", description="DynamoDB region")

    # Email delivery
    mailgun_domain: str = Field("", alias="MAILGUN_DOMAIN", description="Mailgun sending domain")
    mailgun_api_key: SecretStr = Field(
        SecretStr(""), alias="MAILGUN_PVT_API_KEY", description="Mailgun private API key"
    )
    mailgun_api_base: str = Field(
        DEFAULT_MAILGUN_API_BASE,
        alias="RELAY_MAILGUN_API_BASE",
        description="Mailgun API root (use https://api.eu.mailgun.net/v3 for EU domains)",
    )
    sender: str = Field("", alias="SENDER", description="From address of status emails")
    subject: str = Field("", alias="SUBJECT", description="Subject line of status emails")

    # Fetcher
    expected_content_type: str = Field(
        ARCHIVE_CONTENT_TYPE,
        alias="RELAY_EXPECTED_CONTENT_TYPE",
        description="Content-Type a submission URL must declare",
    )
    http_timeout_s: float = Field(
        30.0, alias="RELAY_HTTP_TIMEOUT_S", description="HTTP timeout in seconds"
    )

    # Logging
    log_level: str = Field("INFO", alias="RELAY_LOG_LEVEL", description="Logging level")
    log_format: LogFormat = Field(
        LogFormat.CONSOLE, alias="RELAY_LOG_FORMAT", description="Console or JSON logs"
    )

    @field_validator("http_timeout_s")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("http_timeout_s must be > 0")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unsupported log level: {v}")
        return level

    @field_validator("mailgun_api_base")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    def storage_uri(self, path: str) -> str:
        """Return the fully-qualified object URI for ``path``."""
        return f"gs://{self.bucket}/{path}"

    def masked_dump(self) -> Dict[str, Any]:
        """Return settings keyed by environment name with secrets masked."""
        dumped = self.model_dump(mode="json", by_alias=True)
        for key in ("GCP_CREDS_JSON", "MAILGUN_PVT_API_KEY"):
            dumped[key] = "***" if dumped.get(key) else ""
        return dumped


def load_settings(**overrides: Any) -> RelaySettings:
    """Resolve settings from the environment at call time.

    Keyword overrides win over environment values and may use either field
    names or environment names.
    """
    return RelaySettings(**overrides)
