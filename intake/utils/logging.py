"""Logging setup for the claim intake wizard."""

import contextvars
import functools
import logging
from pathlib import Path
from typing import Any, Dict, Optional

# Every record carries these, so formats may reference them unconditionally
CONTEXT_DEFAULTS: Dict[str, Any] = {"claim_id": "-", "step": "-"}


# Scoped per thread and per task; the dict is replaced, never mutated
_log_context: contextvars.ContextVar = contextvars.ContextVar("intake_log_context", default={})


class ContextFilter(logging.Filter):
    """Stamp the calling thread's claim id and wizard step onto each log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in {**CONTEXT_DEFAULTS, **_log_context.get()}.items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


_context_filter = ContextFilter()


def setup_logging(
    level: str = "INFO",
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    log_file: Optional[str] = None
) -> logging.Logger:
    """
    Configure the root logger for the app or the sandbox server.

    Streamlit re-executes the app script on every interaction, so existing
    handlers are replaced rather than stacked.

    Args:
        level: Logging level name
        log_format: Format string; may use %(claim_id)s and %(step)s
        log_file: Optional path of a log file written next to the console

    Returns:
        Configured root logger
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    formatter = logging.Formatter(log_format)

    handlers = [logging.StreamHandler()]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()
    for handler in handlers:
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)
        handler.addFilter(_context_filter)
        root_logger.addHandler(handler)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(max(numeric_level, logging.WARNING))
    return root_logger


def set_context(**kwargs: Any) -> None:
    """Set context fields (e.g. claim_id) for subsequent log records from this thread."""
    _log_context.set({**_log_context.get(), **kwargs})


def get_context() -> Dict[str, Any]:
    return dict(_log_context.get())


def clear_context() -> None:
    _log_context.set({})


def with_context(**context_kwargs: Any):
    """
    Decorator that sets context fields for the duration of a call.

    Only the decorated keys are restored afterwards, so a claim id set
    inside the call survives it.

    Example:
        @with_context(step="decision")
        def run_decision(self):
            logger.info("Requesting decision")  # record.step == "decision"
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            saved = _log_context.get()
            _log_context.set({**saved, **context_kwargs})
            try:
                return func(*args, **kwargs)
            finally:
                context = dict(_log_context.get())
                for key in context_kwargs:
                    if key in saved:
                        context[key] = saved[key]
                    else:
                        context.pop(key, None)
                _log_context.set(context)

        return wrapper
    return decorator
