"""
Structured logging configuration and the audit log capability.

Uses structlog for JSON-formatted logs; every processing attempt is bound
to a process id so its entries can be grouped afterwards.
"""
import json
import logging
import sys
from typing import Any, Optional, Protocol, runtime_checkable

import structlog
from pythonjsonlogger import jsonlogger

from checkout_gateway.config import GatewaySettings

logger = structlog.get_logger(__name__)


@runtime_checkable
class PaymentLogger(Protocol):
    """Caller-supplied audit sink, e.g. a shop's payment log table."""

    def log(self, message: str, debug_detail: Optional[str] = None) -> None: ...


def render_detail(detail: Any) -> Optional[str]:
    """Render diagnostic payloads (envelopes, snapshots) as stable text."""
    if detail is None or isinstance(detail, str):
        return detail
    try:
        return json.dumps(detail, sort_keys=True, default=str)
    except (TypeError, ValueError):
        return repr(detail)


class AuditLog:
    """
    Best-effort fan-out of audit messages.

    Every message goes to structlog. When a PaymentLogger was injected it is
    called too; whatever it raises is reported as a warning and discarded,
    a broken audit sink never fails a payment.
    """

    def __init__(self, sink: Optional[PaymentLogger] = None):
        self.sink = sink

    def log(self, message: str, debug_detail: Any = None) -> None:
        detail = render_detail(debug_detail)
        logger.info("audit_entry", message=message, detail=detail)

        if self.sink is None:
            return
        try:
            self.sink.log(message, detail)
        except Exception as exc:
            logger.warning(
                "audit_logger_failed",
                error_type=type(exc).__name__,
                error=str(exc),
                message=message,
            )


class StructlogPaymentLogger:
    """PaymentLogger writing entries through a named structlog logger."""

    def __init__(self, name: str = "checkout_gateway.audit"):
        self._logger = structlog.get_logger(name)

    def log(self, message: str, debug_detail: Optional[str] = None) -> None:
        self._logger.info(message, dev_info=debug_detail)


def add_app_context(
    settings: GatewaySettings,
) -> Any:
    """
    Build a processor adding application context to log events.

    Args:
        settings: Gateway settings

    Returns:
        Any: structlog processor
    """

    def processor(
        logger: Any, method_name: str, event_dict: dict[str, Any]
    ) -> dict[str, Any]:
        event_dict["app_name"] = settings.app_name
        event_dict["app_env"] = settings.app_env
        return event_dict

    return processor


def setup_logging(settings: GatewaySettings) -> None:
    """
    Configure structured logging.

    Sets up:
    - JSON-formatted (or console) logs
    - Process id tracking through contextvars
    - Standard library root logger with a JSON handler
    """
    renderer = (
        structlog.processors.JSONRenderer()
        if settings.json_logs
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            add_app_context(settings),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.log_level))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    json_handler = logging.StreamHandler(sys.stdout)
    formatter = jsonlogger.JsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s",
        rename_fields={
            "timestamp": "@timestamp",
            "level": "level",
            "name": "logger",
            "message": "message",
        },
    )
    json_handler.setFormatter(formatter)
    root_logger.addHandler(json_handler)

    # httpx logs every request line at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    logger.info(
        "logging_configured",
        log_level=settings.log_level,
        app_env=settings.app_env,
    )
