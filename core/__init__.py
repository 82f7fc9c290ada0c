"""Core modules for configuration and logging."""

from core.config import (
    AppConfig,
    ConfigurationError,
    SheetsConfig,
    WebhookConfig,
    get_config,
    load_config_from_env,
    reset_config,
)
from core.logging_config import (
    LogContext,
    generate_run_id,
    get_logger,
    setup_logging,
)

__all__ = [
    "AppConfig",
    "SheetsConfig",
    "WebhookConfig",
    "ConfigurationError",
    "load_config_from_env",
    "get_config",
    "reset_config",
    "setup_logging",
    "get_logger",
    "LogContext",
    "generate_run_id",
]
