"""
Centralized logging module for the tenant user sync backend.

Follows Layer 6 rules:
- Structured logging suitable for Grafana/Prometheus/Loki/ELK
- Appropriate log levels (info, warning, error)
- NEVER logs passwords, tokens, secrets, or full request bodies with sensitive data
- Security-sensitive actions emit structured logs with user_id, tenant_id, action, result, timestamp
- Reconciliation emits one structured line per candidate (username, tenant_schema, outcome)
"""
import logging
import json
from typing import Any, Dict, Optional
from datetime import datetime, timezone
from core.config import settings

# Configure root logger
logger = logging.getLogger("tenantsync")
logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

# Console handler with JSON formatter for structured logs
_handler = logging.StreamHandler()
_handler.setLevel(logging.DEBUG)

_EXTRA_FIELDS = (
    "user_id",
    "tenant_id",
    "tenant_schema",
    "username",
    "outcome",
    "variant",
    "action",
    "result",
    "meta",
)


# JSON formatter for structured logging
class JSONFormatter(logging.Formatter):
    """Formatter that outputs structured JSON logs."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Add extra fields if present
        for field in _EXTRA_FIELDS:
            if hasattr(record, field):
                log_data[field] = getattr(record, field)

        # Add exception info if present
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)

_handler.setFormatter(JSONFormatter())
logger.addHandler(_handler)

# Prevent duplicate logs
logger.propagate = False


def get_logger(name: str) -> logging.Logger:
    """Child logger of the app logger, sharing its JSON handler."""
    return logger.getChild(name)


_reconcile_logger = get_logger("reconcile")


def log_security_event(
    action: str,
    result: str,
    user_id: Optional[str] = None,
    tenant_id: Optional[str] = None,
    meta: Optional[Dict[str, Any]] = None,
    level: str = "info",
) -> None:
    """
    Log security-sensitive actions (password resets, credential propagation).

    Emits structured logs with:
    - user_id, tenant_id, action, result, timestamp
    - Additional metadata in meta dict

    Args:
        action: Action name (e.g., "password_reset")
        result: Result status (e.g., "success", "failure", "denied")
        user_id: User ID (optional)
        tenant_id: Tenant ID (optional)
        meta: Additional metadata dict (optional)
        level: Log level ("info", "warning", "error")
    """
    log_method = getattr(logger, level.lower(), logger.info)
    extra = {
        "action": action,
        "result": result,
    }
    if user_id:
        extra["user_id"] = user_id
    if tenant_id:
        extra["tenant_id"] = tenant_id
    if meta:
        extra["meta"] = meta

    log_method("Security event", extra=extra)


def log_reconcile_event(
    variant: str,
    username: str,
    tenant_schema: str,
    outcome: str,
    meta: Optional[Dict[str, Any]] = None,
    level: str = "info",
) -> None:
    """
    Log the outcome of reconciling one registry user into its tenant schema.

    Never include password hashes in `meta`.
    """
    log_method = getattr(_reconcile_logger, level.lower(), _reconcile_logger.info)
    extra: Dict[str, Any] = {
        "variant": variant,
        "username": username,
        "tenant_schema": tenant_schema,
        "outcome": outcome,
    }
    if meta:
        extra["meta"] = meta
    log_method("Reconcile candidate", extra=extra)
