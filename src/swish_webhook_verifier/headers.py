"""
Header normalization: fold a raw header bag into an InboundMessage.
"""

from __future__ import annotations

from typing import Iterable, Mapping, Union

from .config import HeaderNames
from .models import InboundMessage

HeaderInput = Union[Mapping[str, str], Iterable[tuple[str, str]]]


def normalize_headers(headers: HeaderInput) -> dict[str, str]:
    """
    Lowercase header names, keeping the first value seen for each name.

    Accepts a mapping or an iterable of (name, value) pairs, so both plain
    dicts and ASGI/WSGI header lists work.

    Examples:
        >>> normalize_headers({"X-Swish-Nonce": "abc"})
        {'x-swish-nonce': 'abc'}
    """
    items = headers.items() if isinstance(headers, Mapping) else headers

    normalized: dict[str, str] = {}
    for key, value in items:
        normalized.setdefault(key.lower(), value)
    return normalized


def _pick(normalized: Mapping[str, str], names: tuple[str, ...]) -> str | None:
    # Blank values count as absent so an empty canonical header does not
    # shadow a populated alias.
    for name in names:
        value = normalized.get(name)
        if value is not None and value.strip():
            return value
    return None


def extract_message(
    body: bytes | str,
    headers: HeaderInput,
    header_names: HeaderNames | None = None,
) -> InboundMessage:
    """
    Build an InboundMessage from a raw body and request headers.

    Header values are kept literally (no trimming) because the timestamp is
    part of the signed message.

    Args:
        body: Raw request body; str is encoded as UTF-8 without other changes
        headers: Request headers (case-insensitive names, aliases allowed)
        header_names: Names and aliases to look for

    Returns:
        InboundMessage with None for every header that is absent or blank
    """
    names = header_names or HeaderNames()
    normalized = normalize_headers(headers)

    if isinstance(body, str):
        body = body.encode("utf-8")

    return InboundMessage(
        body=bytes(body),
        timestamp=_pick(normalized, names.lookup_order(names.timestamp)),
        signature=_pick(normalized, names.lookup_order(names.signature)),
        nonce=_pick(normalized, names.lookup_order(names.nonce)),
    )


def has_webhook_headers(headers: HeaderInput, header_names: HeaderNames | None = None) -> bool:
    """Check if any timestamp, signature or nonce header is present."""
    names = header_names or HeaderNames()
    normalized = normalize_headers(headers)
    wanted = (
        names.lookup_order(names.timestamp)
        + names.lookup_order(names.signature)
        + names.lookup_order(names.nonce)
    )
    return any(name in normalized for name in wanted)
