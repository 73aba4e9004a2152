"""Correlation ID management, so every trace line of one quote can be grouped."""

import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar, Token

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")

CORRELATION_ID_HEADER = "X-Correlation-ID"


def generate_correlation_id() -> str:
    return str(uuid.uuid4())


def get_correlation_id() -> str:
    return correlation_id_var.get()


def set_correlation_id(cid: str) -> Token[str]:
    return correlation_id_var.set(cid)


def reset_correlation_id(token: Token[str]) -> None:
    correlation_id_var.reset(token)


@contextmanager
def correlation_scope() -> Iterator[str]:
    """Reuse the caller's correlation ID, or open a fresh one for this block.

    Engine calls made outside an HTTP request (scripts, batch scans) still
    get one ID shared by all of their log lines.
    """
    existing = get_correlation_id()
    if existing:
        yield existing
        return
    cid = generate_correlation_id()
    token = set_correlation_id(cid)
    try:
        yield cid
    finally:
        reset_correlation_id(token)
