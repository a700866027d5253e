import base64
from datetime import datetime
import hashlib
import hmac
import json
import time
from typing import Optional, Tuple
from goryl.config.settings import config_settings


def _sign(payload_bytes: bytes) -> str:
    sig = hmac.new(config_settings.CURSOR_SECRET.encode(), payload_bytes, hashlib.sha256).digest()
    return base64.urlsafe_b64encode(sig).decode().rstrip("=")


def decode_cursor(token: str, max_age: Optional[int] = None) -> Tuple[datetime, str]:
    try:
        token_part, sig_part = token.split(".")
        padded = token_part + "=" * ((4 - len(token_part) % 4) % 4)
        raw = base64.urlsafe_b64decode(padded)
    except ValueError:
        raise ValueError("Invalid cursor format")
    expected = _sign(raw)
    if not hmac.compare_digest(expected, sig_part):
        raise ValueError("Cursor signature mismatch")
    payload = json.loads(raw.decode())
    if max_age is not None and int(time.time()) - payload.get("t", 0) > max_age:
        raise ValueError("Cursor expired")
    created_at_iso, id_value = payload["s"]
    return datetime.fromisoformat(created_at_iso), id_value


def encode_cursor(last_cursor: datetime, last_cursor_id, ttl_seconds: int = 3600) -> str:
    payload = {
        "t": int(time.time()),
        "ttl": ttl_seconds,
        "s": [last_cursor.isoformat(), str(last_cursor_id)]
    }
    raw_bytes = json.dumps(payload, separators=(",", ":"), default=str).encode()
    bytes_encoded = base64.urlsafe_b64encode(raw_bytes).decode().rstrip("=")
    return f"{bytes_encoded}.{_sign(raw_bytes)}"
