"""Structured logging for the key service.

Modules log through the standard library with an event name as the
message and fields in ``extra=``::

    logger = logging.getLogger(__name__)
    logger.info("api_key_created", extra={"tenant": "u1", "key_id": "..."})

``configure_logging`` puts a structlog ``ProcessorFormatter`` on the root
logger so those records are rendered as JSON in production and as console
lines elsewhere, with the request id merged in and secrets redacted.
"""

from __future__ import annotations

import logging
import sys
from functools import lru_cache
from typing import TYPE_CHECKING, Any, Literal

import structlog
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    from collections.abc import MutableMapping

    from structlog.types import Processor

REDACTED_VALUE = "***REDACTED***"

# Exact field names, compared lowercased.
_SENSITIVE_NAMES = frozenset({"authorization", "bearer", "api_key", "apikey", "credential"})
# Any field whose name contains one of these.
_SENSITIVE_FRAGMENTS = ("secret", "password", "token")

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LoggingSettings(BaseSettings):
    """``LOG_LEVEL`` (case-insensitive) and ``ENVIRONMENT``.

    >>> LoggingSettings(log_level="debug", environment="production").use_json_logs
    True
    """

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    log_level: LogLevel = Field(default="INFO", alias="LOG_LEVEL")
    environment: str = Field(default="development", alias="ENVIRONMENT")

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value

    @property
    def use_json_logs(self) -> bool:
        return self.environment == "production"

    @property
    def log_level_int(self) -> int:
        return logging.getLevelName(self.log_level)  # type: ignore[no-any-return]


@lru_cache(maxsize=1)
def get_logging_settings() -> LoggingSettings:
    return LoggingSettings()


class SensitiveDataProcessor:
    """Replace the value of every credential-named field with ``REDACTED_VALUE``.

    Runs on both structlog events and stdlib ``extra=`` fields, so a secret
    handed to a log call by mistake never reaches the output.
    """

    def __call__(
        self,
        logger: Any,
        method_name: str,
        event_dict: MutableMapping[str, Any],
    ) -> MutableMapping[str, Any]:
        for key in [k for k in event_dict if _is_sensitive(k)]:
            event_dict[key] = REDACTED_VALUE
        return event_dict


def _is_sensitive(field: str) -> bool:
    name = field.lower()
    return name in _SENSITIVE_NAMES or any(part in name for part in _SENSITIVE_FRAGMENTS)


def _pre_chain() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        SensitiveDataProcessor(),
    ]


def build_formatter(settings: LoggingSettings) -> structlog.stdlib.ProcessorFormatter:
    """Formatter for the root handler.

    ``ExtraAdder`` copies a record's ``extra=`` fields into the event dict
    ahead of redaction.
    """
    renderer: Processor = (
        structlog.processors.JSONRenderer()
        if settings.use_json_logs
        else structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    )
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[structlog.stdlib.ExtraAdder(), *_pre_chain()],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            renderer,
        ],
    )


def configure_logging(settings: LoggingSettings | None = None) -> None:
    """Route all logging through one stderr handler. Safe to call again."""
    settings = settings or get_logging_settings()

    structlog.configure(
        processors=[*_pre_chain(), structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.make_filtering_bound_logger(settings.log_level_int),
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(build_formatter(settings))
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(settings.log_level_int)
