"""Cursor-based pagination utilities shared by list endpoints."""

import base64
import json


def cursor_encode(last_id: str) -> str:
    """Encode the last seen id into an opaque Base64 cursor string."""
    payload = json.dumps({"id": str(last_id)})
    return base64.b64encode(payload.encode()).decode()


def cursor_decode(cursor: str | None) -> str | None:
    """Decode a cursor string back to the last seen id. Returns None on error."""
    if cursor is None:
        return None
    try:
        payload = json.loads(base64.b64decode(cursor.encode()).decode())
        return str(payload["id"])
    except Exception:
        return None
