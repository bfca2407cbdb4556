"""
Configuration Module

Loads workflow settings from ``config/training_funds.yaml`` with
environment variable overrides.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "config" / "training_funds.yaml"
DEFAULT_FROM_EMAIL = "Training Funds Request <noreply@example.org>"


def _env_flag(name: str, default: Any) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return bool(default)
    return value.strip().lower() in ("true", "on", "yes", "1")


def _split_emails(value: Any) -> list[str]:
    if not value:
        return []
    if isinstance(value, str):
        value = value.split(",")
    return [str(v).strip() for v in value if str(v).strip()]


@dataclass
class SmtpSettings:
    """Outbound mail server settings."""

    host: str | None = None
    port: int = 587
    username: str | None = None
    password: str | None = None
    use_tls: bool = True

    @property
    def configured(self) -> bool:
        return bool(self.host)


@dataclass
class WorkflowConfig:
    """Settings for the funding request workflow."""

    from_email: str = DEFAULT_FROM_EMAIL
    approver_emails: list[str] = field(default_factory=list)
    disburser_emails: list[str] = field(default_factory=list)
    base_url: str | None = None
    database_url: str | None = None
    currency_symbol: str = "$"
    allowed_domain: str | None = None
    users: list[dict] = field(default_factory=list)
    smtp: SmtpSettings = field(default_factory=SmtpSettings)

    def require_audiences(self) -> None:
        """Check that approvers and disbursers are configured.

        Raises:
            ConfigurationError: If either audience is empty
        """
        if not self.approver_emails:
            logger.error("TRAINING_APPROVER_EMAIL not configured")
            raise ConfigurationError("No approvers configured. Please contact the administrator.")
        if not self.disburser_emails:
            logger.error("TRAINING_DISBURSER_EMAIL not configured")
            raise ConfigurationError("No disbursers configured. Please contact the administrator.")


def load_config(config_path: Path | str | None = None) -> WorkflowConfig:
    """Load configuration from YAML and the environment.

    Environment variables take precedence over the YAML file.

    Args:
        config_path: Path to training_funds.yaml (defaults to TRAINING_FUNDS_CONFIG
            or the bundled config directory)

    Returns:
        WorkflowConfig
    """
    if config_path is None:
        config_path = os.getenv("TRAINING_FUNDS_CONFIG") or DEFAULT_CONFIG_PATH
    config_path = Path(config_path)

    if config_path.exists():
        with open(config_path) as f:
            raw = yaml.safe_load(f) or {}
    else:
        logger.warning(f"Config file not found: {config_path}")
        raw = {}

    email = raw.get("email", {})
    smtp_raw = raw.get("smtp", {})

    smtp = SmtpSettings(
        host=os.getenv("SMTP_HOST") or smtp_raw.get("host"),
        port=int(os.getenv("SMTP_PORT") or smtp_raw.get("port", 587)),
        username=os.getenv("SMTP_USERNAME") or smtp_raw.get("username"),
        password=os.getenv("SMTP_PASSWORD") or smtp_raw.get("password"),
        use_tls=_env_flag("SMTP_USE_TLS", smtp_raw.get("use_tls", True)),
    )

    return WorkflowConfig(
        from_email=os.getenv("TRAINING_FROM_EMAIL") or email.get("from", DEFAULT_FROM_EMAIL),
        approver_emails=_split_emails(os.getenv("TRAINING_APPROVER_EMAIL") or email.get("approvers")),
        disburser_emails=_split_emails(os.getenv("TRAINING_DISBURSER_EMAIL") or email.get("disbursers")),
        base_url=(os.getenv("TRAINING_BASE_URL") or raw.get("base_url") or None),
        database_url=os.getenv("DATABASE_URL") or raw.get("database_url"),
        currency_symbol=raw.get("currency_symbol", "$"),
        allowed_domain=raw.get("allowed_domain"),
        users=raw.get("users", []),
        smtp=smtp,
    )
