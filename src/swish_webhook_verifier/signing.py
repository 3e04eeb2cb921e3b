"""
Canonical message construction and HMAC-SHA256 signing.

The signed message is ``timestamp + "\\n" + nonce + "\\n" + body`` where the
timestamp is the literal header value, the nonce is an empty string when not
used, and the body is the raw request bytes.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import secrets
import string
from datetime import datetime, timezone

from .config import HeaderNames
from .errors import SignatureDecodeError

_HEX_DIGITS = frozenset(string.hexdigits)


def build_canonical_message(timestamp: str, nonce: str | None, body: bytes | str) -> bytes:
    """
    Build the exact byte sequence that is signed.

    Examples:
        >>> build_canonical_message("1700000000", "abc", b'{"id":1}')
        b'1700000000\\nabc\\n{"id":1}'
        >>> build_canonical_message("1700000000", None, b"x")
        b'1700000000\\n\\nx'
    """
    if isinstance(body, str):
        body = body.encode("utf-8")
    return b"".join([
        timestamp.encode("utf-8"),
        b"\n",
        (nonce or "").encode("utf-8"),
        b"\n",
        body,
    ])


def compute_signature(secret: bytes | str, message: bytes) -> bytes:
    """Raw HMAC-SHA256 tag of ``message``."""
    if isinstance(secret, str):
        secret = secret.encode("utf-8")
    return hmac.new(secret, message, hashlib.sha256).digest()


def encode_signature(tag: bytes) -> str:
    """Encode a tag the way outgoing signatures are emitted (standard base64)."""
    return base64.b64encode(tag).decode("ascii")


def decode_signature(value: str) -> bytes:
    """
    Decode a signature header given as hex (any case) or standard base64.

    Raises:
        SignatureDecodeError: If the value is neither
    """
    candidate = value.strip()
    if not candidate:
        raise SignatureDecodeError("Empty signature")

    if len(candidate) % 2 == 0 and all(c in _HEX_DIGITS for c in candidate):
        return bytes.fromhex(candidate)

    try:
        return base64.b64decode(candidate, validate=True)
    except (binascii.Error, ValueError):
        raise SignatureDecodeError("Signature is neither hex nor base64") from None


def signature_matches(secret: bytes | str, message: bytes, provided: str) -> bool:
    """
    Check ``provided`` against the HMAC of ``message`` in constant time.

    Raises:
        SignatureDecodeError: If ``provided`` cannot be decoded
    """
    provided_tag = decode_signature(provided)
    expected_tag = compute_signature(secret, message)
    return hmac.compare_digest(provided_tag, expected_tag)


def sign_headers(
    secret: bytes | str,
    body: bytes | str,
    timestamp: datetime | None = None,
    nonce: str | None = None,
    header_names: HeaderNames | None = None,
    iso_timestamp: bool = False,
) -> dict[str, str]:
    """
    Produce a signed header set for a webhook body.

    Used by senders and tests. The timestamp is rendered as unix seconds, or
    as ISO-8601 UTC when ``iso_timestamp`` is set; the nonce defaults to a
    random 32-character hex string.

    Args:
        secret: Shared HMAC secret
        body: Body that will be sent verbatim
        timestamp: Send time (default: now)
        nonce: Nonce to use (default: random)
        header_names: Header names to emit
        iso_timestamp: Emit ISO-8601 instead of unix seconds

    Returns:
        Dict of canonical header names to values
    """
    names = header_names or HeaderNames()
    when = timestamp or datetime.now(timezone.utc)
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)

    if iso_timestamp:
        ts = when.astimezone(timezone.utc).isoformat()
    else:
        ts = str(int(when.timestamp()))

    if nonce is None:
        nonce = secrets.token_hex(16)

    tag = compute_signature(secret, build_canonical_message(ts, nonce, body))
    return {
        names.timestamp: ts,
        names.nonce: nonce,
        names.signature: encode_signature(tag),
    }
