"""Logging setup and audit trail for security-relevant account actions."""

import logging

AUDIT_LOGGER_NAME = "app.audit"

audit_logger = logging.getLogger(AUDIT_LOGGER_NAME)


def configure_logging(level: str = "INFO") -> None:
    """Configure the root logger once for the process (API server or CLI)."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%SZ",
    )


def audit(
    action: str,
    user_id: int | None,
    ip: str | None = None,
    error: Exception | str | None = None,
) -> None:
    """
    Record an audit event (register, login, block_user, purchase, ...).
    Events with an error are logged at WARNING, others at INFO.
    """
    extra: dict[str, str | int | None] = {
        "audit_action": action,
        "user_id": user_id,
        "ip": ip,
    }
    if error is not None:
        extra["reason"] = str(error)[:500]
        audit_logger.warning("Audit %s failed for user_id=%s", action, user_id, extra=extra)
    else:
        audit_logger.info("Audit %s for user_id=%s", action, user_id, extra=extra)
