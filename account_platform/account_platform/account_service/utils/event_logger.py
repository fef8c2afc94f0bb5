"""
Logging setup and event logger for authentication events.
"""
from typing import Optional
import sys
import logging
import os

from fastapi import Request

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

ALLOWED_EVENT_TYPES = {
    "register_success",
    "register_failure",
    "login_success",
    "login_failure",
    "profile_update",
}


# auth_events.log handler owned by the event logger; replaced on reconfigure
_file_handler: Optional[logging.Handler] = None


def configure_logging(level: str = "INFO", log_dir: Optional[str] = None) -> None:
    """
    Configure stdout logging and, when ``log_dir`` is given, an auth event log file.

    Safe to call more than once: the level is applied on every call and the
    event log file handler is swapped rather than stacked.

    Args:
        level: Root log level name (DEBUG, INFO, ...)
        log_dir: Directory for ``auth_events.log``; skipped when None
    """
    global _file_handler

    logging.basicConfig(format=LOG_FORMAT, handlers=[logging.StreamHandler(sys.stdout)])
    logging.getLogger().setLevel(getattr(logging, level.upper(), logging.INFO))

    if _file_handler is not None:
        logger.removeHandler(_file_handler)
        _file_handler.close()
        _file_handler = None

    # Try to add file handler, but continue without it if directory creation fails
    if log_dir:
        try:
            os.makedirs(log_dir, exist_ok=True)
            handler = logging.FileHandler(os.path.join(log_dir, "auth_events.log"))
        except (OSError, PermissionError) as e:
            print(f"WARNING: Could not set up file logging: {e}", file=sys.stderr)
        else:
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
            logger.addHandler(handler)
            _file_handler = handler


def _client_ip(request: Optional[Request]) -> Optional[str]:
    if request is None:
        return None
    ip_address = None
    if request.client:
        ip_address = request.client.host

    # Check for X-Forwarded-For header (proxy/load balancer scenarios)
    forwarded = request.headers.get("x-forwarded-for")
    if not ip_address and forwarded:
        # X-Forwarded-For can contain multiple IPs, take the first one
        ip_address = forwarded.split(",")[0].strip()
    return ip_address


def log_auth_event(
    event_type: str,
    account_id: Optional[str],
    email: Optional[str],
    request: Optional[Request] = None,
    reason: Optional[str] = None,
) -> None:
    """
    Emit one structured log line for an authentication event.

    Args:
        event_type: One of: register_success, register_failure, login_success,
                    login_failure, profile_update
        account_id: Account id, None when no account was resolved
        email: Email submitted with the request
        request: FastAPI Request, used for client ip and user agent
        reason: Short error code for failure events

    Raises:
        ValueError: If event_type is invalid
    """
    if event_type not in ALLOWED_EVENT_TYPES:
        raise ValueError(
            f"Invalid event_type '{event_type}'. Must be one of: {', '.join(sorted(ALLOWED_EVENT_TYPES))}"
        )

    user_agent = request.headers.get("user-agent") if request is not None else None

    level = logging.WARNING if event_type.endswith("_failure") else logging.INFO
    logger.log(
        level,
        "AUTH %s account_id=%s email=%s ip=%s user_agent=%s reason=%s",
        event_type, account_id, email, _client_ip(request), user_agent, reason,
    )
