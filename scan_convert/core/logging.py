from __future__ import annotations

import contextvars
import logging
import sys
import uuid

# Carries the current tool invocation id across awaits
_invocation_id_ctx: contextvars.ContextVar[str] = contextvars.ContextVar("invocation_id", default="-")


def get_invocation_id() -> str:
    return _invocation_id_ctx.get()


def new_invocation_id() -> contextvars.Token[str]:
    """Start a fresh invocation id; pass the returned token to ``reset_invocation_id``."""
    return _invocation_id_ctx.set(uuid.uuid4().hex)


def reset_invocation_id(token: contextvars.Token[str]) -> None:
    _invocation_id_ctx.reset(token)


class InvocationIdFilter(logging.Filter):
    """Inject invocation_id from contextvars into log records."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
        record.invocation_id = get_invocation_id()
        return True


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once at startup. Safe to call repeatedly."""
    root = logging.getLogger()
    root.setLevel(level.upper())

    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level.upper())
    handler.addFilter(InvocationIdFilter())
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s | %(levelname)s | %(name)s | invocation_id=%(invocation_id)s | %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S%z",
        )
    )
    root.addHandler(handler)
