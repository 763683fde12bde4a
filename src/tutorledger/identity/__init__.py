from .owner_resolver import resolve_owner_id
from .security import create_access_token, decode_access_token

__all__ = ["resolve_owner_id", "create_access_token", "decode_access_token"]
