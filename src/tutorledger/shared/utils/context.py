# src/tutorledger/shared/utils/context.py
from __future__ import annotations

import contextvars
from contextlib import contextmanager
from typing import Dict, Iterator, Optional
from uuid import UUID

# Context variables, set once per request by middleware

OWNER_ID_VAR   = contextvars.ContextVar[Optional[UUID]]("owner_id", default=None)
REQUEST_ID_VAR = contextvars.ContextVar[Optional[str]]("request_id", default=None)


def set_all(*, owner_id: Optional[UUID], request_id: Optional[str]) -> None:
    OWNER_ID_VAR.set(owner_id)
    REQUEST_ID_VAR.set(request_id)


def clear_all() -> None:
    OWNER_ID_VAR.set(None)
    REQUEST_ID_VAR.set(None)


def get_owner_id() -> Optional[UUID]:
    return OWNER_ID_VAR.get()


def get_request_id() -> Optional[str]:
    return REQUEST_ID_VAR.get()


def snapshot() -> Dict[str, object]:
    """Ready-to-log context dict."""
    owner_id = get_owner_id()
    return {
        "request_id": get_request_id() or "",
        "owner_id": str(owner_id) if owner_id else "",
    }


@contextmanager
def bind_owner(owner_id: UUID) -> Iterator[None]:
    """
    Temporarily bind an owner for the current task (workers, scripts, tests).
    Example:
        with bind_owner(owner_id):
            await service.do_something(resolve_owner_id())
    """
    token = OWNER_ID_VAR.set(owner_id)
    try:
        yield
    finally:
        OWNER_ID_VAR.reset(token)
