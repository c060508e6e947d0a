"""
Input validation for element identifiers and request URLs
"""

import re
from typing import Iterable
from urllib.parse import urlsplit, urlunsplit

from ..exceptions import ValidationError

ELEMENT_ID_PATTERN = re.compile(r"[1-9][0-9]{0,18}")


def validate_element_id(value, kind: str = "id") -> str:
    """
    Validate an OSM element identifier

    Leading '#' characters are stripped, so "#123" and "123" are the same id.

    Args:
        value: Identifier as typed by the user (str) or an int
        kind: Label used in error messages ("way id", "node id", ...)

    Returns:
        The identifier digits as a string

    Raises:
        ValidationError: If the identifier is not a positive integer of at most 19 digits
    """
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        raise ValidationError(f"Invalid {kind}: must be a non-empty string")

    clean_value = str(value).lstrip("#")
    if not ELEMENT_ID_PATTERN.fullmatch(clean_value):
        raise ValidationError(f"Invalid {kind}: {value!r} is not a positive integer")

    return clean_value


def sanitize_url(url: str, allowed_hosts: Iterable[str]) -> str:
    """
    Normalize a request URL and check it points at an allowed host over HTTPS

    A host is allowed when it equals one of ``allowed_hosts`` or is a subdomain of one.

    Returns:
        The normalized URL (lower-cased scheme and host, no fragment)

    Raises:
        ValidationError: If the URL is malformed, not HTTPS, or the host is not allowed
    """
    try:
        parts = urlsplit(url)
        hostname = (parts.hostname or "").lower()
        port = parts.port
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid URL: {e}") from e

    if parts.scheme.lower() != "https":
        raise ValidationError("Invalid URL: only HTTPS requests are allowed")

    if parts.username or parts.password:
        raise ValidationError("Invalid URL: credentials are not allowed")

    if not any(hostname == host or hostname.endswith("." + host) for host in allowed_hosts):
        raise ValidationError(f"Invalid URL: host {hostname!r} is not allowed")

    netloc = hostname if port in (None, 443) else f"{hostname}:{port}"
    return urlunsplit(("https", netloc, parts.path or "/", parts.query, ""))
