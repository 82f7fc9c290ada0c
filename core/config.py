"""Centralized configuration management with validation."""
import json
import os
from dataclasses import dataclass, field
from typing import Optional, List
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

VALUE_INPUT_OPTIONS = ("USER_ENTERED", "RAW")
LOG_FORMATS = ("text", "json")


class ConfigurationError(Exception):
    """Raised when configuration is invalid or missing."""
    pass


def _mask_secret(value: str, visible_chars: int = 4) -> str:
    """Mask a secret value for logging, showing only first few chars."""
    if not value:
        return "<empty>"
    if len(value) <= visible_chars:
        return "*" * len(value)
    return value[:visible_chars] + "*" * (len(value) - visible_chars)


@dataclass
class SheetsConfig:
    """Google Sheets backend configuration."""
    spreadsheet_id: str = ""
    credentials_file: str = "credentials.json"
    # Inline service-account JSON, takes precedence over credentials_file
    credentials_json: Optional[str] = None
    value_input_option: str = "USER_ENTERED"

    @property
    def enabled(self) -> bool:
        return bool(self.spreadsheet_id)

    def validate(self) -> List[str]:
        """Validate Sheets configuration, return list of errors."""
        errors = []
        if not self.spreadsheet_id:
            errors.append("SHEETS_SPREADSHEET_ID is required")
        if self.credentials_json:
            try:
                json.loads(self.credentials_json)
            except ValueError as e:
                errors.append(f"SHEETS_CREDENTIALS_JSON is not valid JSON: {e}")
        elif not Path(self.credentials_file).exists():
            errors.append(f"Credentials file not found: {self.credentials_file}")
        if self.value_input_option not in VALUE_INPUT_OPTIONS:
            errors.append(
                f"SHEETS_VALUE_INPUT_OPTION must be one of {', '.join(VALUE_INPUT_OPTIONS)}"
            )
        return errors

    def __repr__(self) -> str:
        creds = "inline" if self.credentials_json else self.credentials_file
        return (f"SheetsConfig(spreadsheet_id={self.spreadsheet_id}, credentials={creds}, "
                f"value_input_option={self.value_input_option})")


@dataclass
class WebhookConfig:
    """Edit-event webhook configuration."""
    secret: Optional[str] = None

    def validate(self) -> List[str]:
        return []

    def __repr__(self) -> str:
        return f"WebhookConfig(secret={_mask_secret(self.secret or '')})"


@dataclass
class AppConfig:
    """Main application configuration."""
    sheets: SheetsConfig = field(default_factory=SheetsConfig)
    webhook: WebhookConfig = field(default_factory=WebhookConfig)

    # Timestamp written to Players!J on confirmation
    timezone: str = "UTC"
    timestamp_format: str = "%Y-%m-%d %H:%M:%S"

    # Runtime settings
    log_level: str = "INFO"
    log_format: str = "text"  # "json" or "text"

    def validate(self, require_sheets: bool = True) -> None:
        """Validate all configuration, raise ConfigurationError if invalid."""
        errors = []

        if require_sheets:
            errors.extend(self.sheets.validate())
        errors.extend(self.webhook.validate())

        try:
            ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError):
            errors.append(f"Unknown TIMEZONE: {self.timezone}")

        if self.log_format not in LOG_FORMATS:
            errors.append(f"LOG_FORMAT must be one of {', '.join(LOG_FORMATS)}")

        if errors:
            raise ConfigurationError("Configuration errors:\n  - " + "\n  - ".join(errors))

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    def __repr__(self) -> str:
        return (f"AppConfig(\n  sheets={self.sheets},\n  webhook={self.webhook},\n  "
                f"timezone={self.timezone}, timestamp_format={self.timestamp_format!r}, "
                f"log_level={self.log_level}, log_format={self.log_format}\n)")


def load_config_from_env() -> AppConfig:
    """Load configuration from environment variables."""

    # Load .env file if present
    load_dotenv()

    config = AppConfig(
        sheets=SheetsConfig(
            spreadsheet_id=os.getenv("SHEETS_SPREADSHEET_ID", ""),
            credentials_file=os.getenv("SHEETS_CREDENTIALS_FILE", "credentials.json"),
            credentials_json=os.getenv("SHEETS_CREDENTIALS_JSON") or None,
            value_input_option=os.getenv("SHEETS_VALUE_INPUT_OPTION", "USER_ENTERED").upper(),
        ),
        webhook=WebhookConfig(
            secret=os.getenv("WEBHOOK_SECRET") or None,
        ),
        timezone=os.getenv("TIMEZONE", "UTC"),
        timestamp_format=os.getenv("TIMESTAMP_FORMAT", "%Y-%m-%d %H:%M:%S"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        log_format=os.getenv("LOG_FORMAT", "text").lower(),
    )

    return config


# Singleton config instance
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = load_config_from_env()
    return _config


def reset_config() -> None:
    """Reset the global configuration (for testing)."""
    global _config
    _config = None
