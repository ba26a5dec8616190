"""
Logging configuration for the kara backend using eliot.

Queue mutations, master arbitration and realtime broadcasts are logged as
structured eliot messages. Stdout gets a short human-readable line per
message; the optional log file receives the raw JSON stream.
"""

import eliot
import logging
import sys
from eliot import log_message, write_traceback
from eliot.stdlib import EliotHandler
from pathlib import Path


class HumanReadableDestination:
    """Destination that formats eliot messages as one readable line each."""

    def __init__(self, file):
        self.file = file

    def __call__(self, message):
        # Skip action start/finish bookkeeping
        if message.get("action_type") and not message.get("message_type"):
            return

        msg_type = message.get("message_type", "")

        if msg_type == "queue_operation":
            output = f"[QUEUE] {message.get('operation')}"
            details = _format_context(message, skip={"operation"})
            if details:
                output += f": {details}"

        elif msg_type == "master_operation":
            output = f"[MASTER] {message.get('operation')}"
            details = _format_context(message, skip={"operation", "token"})
            if details:
                output += f": {details}"

        elif msg_type == "broadcast":
            output = f"[WS] {message.get('event')} -> {message.get('subscribers', 0)} client(s)"

        elif msg_type == "api_request":
            output = f"[API] {message.get('action')}"
            if message.get("description"):
                output += f": {message['description']}"

        elif msg_type == "error_occurred":
            output = f"[ERROR] {message.get('error_type')}: {message.get('error_message')}"

        elif "message" in message:
            output = str(message["message"])

        else:
            return

        if output and output.strip():
            self.file.write(output + "\n")
            self.file.flush()


_INTERNAL_FIELDS = {"message_type", "task_uuid", "task_level", "timestamp", "action_type", "action_status"}


def _format_context(message: dict, skip: set[str]) -> str:
    parts = []
    for key, value in message.items():
        if key in _INTERNAL_FIELDS or key in skip:
            continue
        parts.append(f"{key}={value}")
    return ", ".join(parts)


def setup_logging(log_level: str = "INFO", log_file: str | None = None) -> None:
    """
    Set up eliot logging for the application.

    Args:
        log_level: Logging level for the stdlib root logger (DEBUG, INFO, ...)
        log_file: Optional file path for raw JSON logs (stdout is always used)
    """
    eliot.add_destination(HumanReadableDestination(sys.stdout))

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        eliot.to_file(open(log_path, "a"))

    # Route stdlib logging (uvicorn, fastapi) through eliot
    logger = logging.getLogger()
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    logger.addHandler(EliotHandler())

    log_message(message_type="logging_setup", log_level=log_level, log_file=log_file or "stdout", message="Eliot logging configured")


def log_queue_operation(operation: str, **context):
    """
    Log queue engine mutations.

    Args:
        operation: Queue operation (add_song, remove_song, reorder, ...)
        **context: Additional context data
    """
    log_message(message_type="queue_operation", operation=operation, **context)


def log_master_operation(operation: str, **context):
    """Log master arbitration decisions (claim, release, lock, authorize...)."""
    log_message(message_type="master_operation", operation=operation, **context)


def log_broadcast(event: str, subscribers: int):
    """Log a realtime fan-out."""
    log_message(message_type="broadcast", event=event, subscribers=subscribers)


def log_api_request(action: str, trigger_source: str = "api", **context):
    """
    Log API requests with context.

    Args:
        action: API action being performed
        trigger_source: Source of the request (default: "api")
        **context: Additional context data
    """
    log_message(message_type="api_request", action=action, trigger_source=trigger_source, **context)


def log_error(error: Exception, **context):
    """
    Log errors with full context and traceback.

    The traceback is taken from the exception itself, so this also works
    outside an ``except`` block (e.g. for a failed future).
    """
    write_traceback(exc_info=(type(error), error, error.__traceback__))
    log_message(message_type="error_occurred", error_message=str(error), error_type=type(error).__name__, **context)
