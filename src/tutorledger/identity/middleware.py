from __future__ import annotations

import uuid
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from tutorledger.identity.security import decode_access_token
from tutorledger.shared.exceptions import UnauthorizedError
from tutorledger.shared.logging import bind_context, clear_context, get_logger
from tutorledger.shared.utils.context import clear_all, set_all

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def extract_bearer_token(request: Request) -> Optional[str]:
    auth = request.headers.get("Authorization", "")
    if not auth.lower().startswith("bearer "):
        return None
    return auth.split(" ", 1)[1].strip() or None


class OwnerContextMiddleware(BaseHTTPMiddleware):
    """
    Tags the request with a correlation id and, when a valid bearer token is
    present, binds its owner id. Both are cleared when the request ends.

    An invalid token leaves the owner unbound; routes that need one fail in
    the owner resolver.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id

        owner_id = None
        token = extract_bearer_token(request)
        if token:
            try:
                owner_id = decode_access_token(token, getattr(request.app.state, "settings", None))
            except UnauthorizedError as e:
                logger.info("Rejected bearer token", reason=e.code)

        set_all(owner_id=owner_id, request_id=request_id)
        bind_context(request_id=request_id, owner_id=str(owner_id) if owner_id else None)
        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            clear_all()
            clear_context()
