from __future__ import annotations

from uuid import UUID

from tutorledger.shared.exceptions import UnauthorizedError
from tutorledger.shared.utils.context import get_owner_id


def resolve_owner_id() -> UUID:
    """
    The authenticated owner for the current request/task.

    Nothing is cached beyond the request-scoped context variable, which the
    middleware clears when the request ends.
    """
    owner_id = get_owner_id()
    if owner_id is None:
        raise UnauthorizedError("Authentication required")
    return owner_id
