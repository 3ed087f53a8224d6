import json
from typing import Any

try:
    import jcs
except ImportError:
    raise ImportError("Please install jcs: pip install jcs")


def canonical_json(obj: Any) -> bytes:
    """
    Produce deterministic UTF-8 bytes according to RFC 8785 (JSON Canonicalization Scheme).
    Used as the structured-object codec of asset bodies, so equal objects give equal asset ids.
    """
    return jcs.canonicalize(obj)


def canonical_json_str(obj: Any) -> str:
    """Same as above, but returns string (dumps, key files)."""
    return canonical_json(obj).decode("utf-8")


def decode_canonical_json(data: bytes) -> Any:
    return json.loads(bytes(data).decode("utf-8"))
