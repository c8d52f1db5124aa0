#!/usr/bin/env python3
"""
Configuration Management for ordersync

Handles environment-based configuration with secure defaults and validation.
Supports multiple environments (development, test, production).
"""

import logging
import os
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

from dotenv import load_dotenv

from .currency import dollars_to_milliunits

# Load environment variables from .env file
load_dotenv()


class Environment(Enum):
    """Application environment types."""

    DEVELOPMENT = "development"
    TEST = "test"
    PRODUCTION = "production"


@dataclass
class YNABConfig:
    """YNAB API configuration."""

    api_token: str | None = None
    budget_id: str | None = None
    base_url: str = "https://api.ynab.com/v1"
    timeout: int = 30
    # Memo substrings written by other tools that may be overwritten
    placeholder_memos: list = field(default_factory=list)


@dataclass
class EmailConfig:
    """IMAP mailbox configuration."""

    imap_server: str = "imap.gmail.com"
    imap_port: int = 993
    username: str | None = None
    password: str | None = None
    use_tls: bool = True
    mailbox: str = "INBOX"


@dataclass
class MerchantConfig:
    """Which emails and payees belong to the merchant being reconciled."""

    name: str = "amazon"
    subject_patterns: list = field(default_factory=lambda: ["Your Amazon.com order"])
    excluded_subjects: list = field(default_factory=lambda: ["has shipped", "has been canceled"])
    sender_patterns: list = field(default_factory=list)


@dataclass
class MatchingConfig:
    """Tolerances and limits for extraction and matching."""

    date_tolerance_days: int = 4
    dollar_tolerance: Decimal = Decimal("0.5")
    max_item_length: int = 45
    max_orders: int = 1000
    backfill_num_emails: int = 100

    @property
    def dollar_tolerance_milliunits(self) -> int:
        return dollars_to_milliunits(self.dollar_tolerance)


@dataclass
class ServiceConfig:
    """Run loop timing."""

    sync_interval_seconds: int = 60
    mail_poll_interval_seconds: int = 30
    shutdown_grace_seconds: int = 10


@dataclass
class Config:
    """
    Main configuration class for ordersync.

    Loads configuration from environment variables with secure defaults
    and validation for each environment type.
    """

    environment: Environment

    # Component configurations
    ynab: YNABConfig
    email: EmailConfig
    merchant: MerchantConfig
    matching: MatchingConfig
    service: ServiceConfig

    # Application settings
    debug: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_environment(cls) -> "Config":
        """Create configuration from environment variables."""
        env = Environment(os.getenv("ORDERSYNC_ENV", "development"))

        ynab = YNABConfig(
            api_token=os.getenv("YNAB_API_TOKEN"),
            budget_id=os.getenv("YNAB_BUDGET_ID"),
            base_url=os.getenv("YNAB_BASE_URL", "https://api.ynab.com/v1"),
            timeout=int(os.getenv("YNAB_TIMEOUT", "30")),
            placeholder_memos=_parse_list(os.getenv("YNAB_PLACEHOLDER_MEMOS", "")),
        )

        email = EmailConfig(
            imap_server=os.getenv("EMAIL_IMAP_SERVER", "imap.gmail.com"),
            imap_port=int(os.getenv("EMAIL_IMAP_PORT", "993")),
            username=os.getenv("EMAIL_USERNAME"),
            password=os.getenv("EMAIL_PASSWORD"),
            use_tls=os.getenv("EMAIL_USE_TLS", "true").lower() == "true",
            mailbox=os.getenv("EMAIL_MAILBOX", "INBOX"),
        )

        merchant = MerchantConfig(
            name=os.getenv("MERCHANT_NAME", "amazon"),
            subject_patterns=_parse_list(os.getenv("MERCHANT_SUBJECT_PATTERNS", "Your Amazon.com order")),
            excluded_subjects=_parse_list(
                os.getenv("MERCHANT_EXCLUDED_SUBJECTS", "has shipped,has been canceled")
            ),
            sender_patterns=_parse_list(os.getenv("MERCHANT_SENDER_PATTERNS", "")),
        )

        matching = MatchingConfig(
            date_tolerance_days=int(os.getenv("MATCH_DATE_TOLERANCE_DAYS", "4")),
            dollar_tolerance=_parse_decimal(os.getenv("MATCH_DOLLAR_TOLERANCE", "0.5")),
            max_item_length=int(os.getenv("MAX_ITEM_LENGTH", "45")),
            max_orders=int(os.getenv("MAX_ORDERS", "1000")),
            backfill_num_emails=int(os.getenv("BACKFILL_NUM_EMAILS", "100")),
        )

        service = ServiceConfig(
            sync_interval_seconds=int(os.getenv("SYNC_INTERVAL_SECONDS", "60")),
            mail_poll_interval_seconds=int(os.getenv("MAIL_POLL_INTERVAL_SECONDS", "30")),
            shutdown_grace_seconds=int(os.getenv("SHUTDOWN_GRACE_SECONDS", "10")),
        )

        return cls(
            environment=env,
            ynab=ynab,
            email=email,
            merchant=merchant,
            matching=matching,
            service=service,
            debug=os.getenv("DEBUG", "false").lower() == "true",
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    def validate(self) -> list:
        """Validate configuration and return list of errors."""
        errors = []

        # YNAB credentials are only mandatory in production
        if self.environment == Environment.PRODUCTION:
            if not self.ynab.api_token:
                errors.append("YNAB_API_TOKEN is required in production")
            if not self.ynab.budget_id:
                errors.append("YNAB_BUDGET_ID is required in production")

        if self.email.username and not self.email.password:
            errors.append("EMAIL_PASSWORD is required when EMAIL_USERNAME is provided")

        if not self.merchant.name:
            errors.append("MERCHANT_NAME must not be empty")
        if not self.merchant.subject_patterns:
            errors.append("MERCHANT_SUBJECT_PATTERNS must list at least one pattern")

        if self.ynab.timeout <= 0:
            errors.append("YNAB timeout must be positive")
        if self.email.imap_port <= 0 or self.email.imap_port > 65535:
            errors.append("Email IMAP port must be 1-65535")
        if self.matching.date_tolerance_days < 0:
            errors.append("MATCH_DATE_TOLERANCE_DAYS must be non-negative")
        if self.matching.dollar_tolerance < 0:
            errors.append("MATCH_DOLLAR_TOLERANCE must be non-negative")
        # Room for at least one character plus the "..." suffix
        if self.matching.max_item_length < 4:
            errors.append("MAX_ITEM_LENGTH must be at least 4")
        if self.matching.max_orders <= 0:
            errors.append("MAX_ORDERS must be positive")
        if self.matching.backfill_num_emails < 0:
            errors.append("BACKFILL_NUM_EMAILS must be non-negative")
        if self.service.sync_interval_seconds <= 0:
            errors.append("SYNC_INTERVAL_SECONDS must be positive")
        if self.service.mail_poll_interval_seconds <= 0:
            errors.append("MAIL_POLL_INTERVAL_SECONDS must be positive")
        if self.service.shutdown_grace_seconds < 0:
            errors.append("SHUTDOWN_GRACE_SECONDS must be non-negative")

        return errors

    def setup_logging(self) -> None:
        """Configure logging based on configuration."""
        level = getattr(logging, self.log_level, logging.INFO)

        # Configure format based on environment
        if self.environment == Environment.DEVELOPMENT:
            format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        else:
            format_str = "%(asctime)s - %(levelname)s - %(message)s"

        logging.basicConfig(level=level, format=format_str, datefmt="%Y-%m-%d %H:%M:%S")

        # Reduce noise from external libraries in production
        if self.environment == Environment.PRODUCTION:
            logging.getLogger("urllib3").setLevel(logging.WARNING)
            logging.getLogger("requests").setLevel(logging.WARNING)

    def get_sensitive_fields(self) -> list:
        """Get list of field names that contain sensitive data."""
        return [
            "ynab.api_token",
            "email.password",
            "email.username",
        ]

    def to_dict(self, include_sensitive: bool = False) -> dict[str, Any]:
        """Convert configuration to dictionary, optionally excluding sensitive data."""
        result: dict[str, Any] = {}

        for field_name, field_value in self.__dict__.items():
            if hasattr(field_value, "__dict__") and not isinstance(field_value, Enum):
                # Nested dataclass
                nested_dict: dict[str, Any] = {}
                for nested_name, nested_value in field_value.__dict__.items():
                    full_field_name = f"{field_name}.{nested_name}"

                    if not include_sensitive and full_field_name in self.get_sensitive_fields():
                        nested_dict[nested_name] = "***REDACTED***"
                    elif isinstance(nested_value, Decimal):
                        nested_dict[nested_name] = str(nested_value)
                    else:
                        nested_dict[nested_name] = nested_value

                result[field_name] = nested_dict
            elif isinstance(field_value, Enum):
                result[field_name] = field_value.value
            else:
                result[field_name] = field_value

        return result


def _parse_list(value: str, delimiter: str = ",") -> list:
    """Parse comma-separated string into list, handling empty values."""
    if not value:
        return []
    return [item.strip() for item in value.split(delimiter) if item.strip()]


def _parse_decimal(value: str) -> Decimal:
    try:
        return Decimal(value.strip())
    except InvalidOperation as e:
        raise ValueError(f"Invalid decimal value: {value!r}") from e


# Global configuration instance
_config: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config.from_environment()

        # Validate configuration
        errors = _config.validate()
        if errors:
            raise ValueError(f"Configuration validation failed: {'; '.join(errors)}")

        # Setup logging
        _config.setup_logging()

    return _config


def reload_config() -> Config:
    """Reload configuration from environment (useful for testing)."""
    global _config
    _config = None
    return get_config()


def is_development() -> bool:
    """Check if running in development environment."""
    return get_config().environment == Environment.DEVELOPMENT


def is_test() -> bool:
    """Check if running in test environment."""
    return get_config().environment == Environment.TEST


def is_production() -> bool:
    """Check if running in production environment."""
    return get_config().environment == Environment.PRODUCTION
