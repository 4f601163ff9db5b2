"""Turn user-supplied website strings into safe, fetchable URLs."""

from __future__ import annotations

import ipaddress
import re
from urllib.parse import urlsplit, urlunsplit

from src.enrichment.errors import InvalidUrl

ALLOWED_SCHEMES = {"http", "https"}
_DEFAULT_PORTS = {"http": 80, "https": 443}

_LABEL_RE = re.compile(r"^(?!-)[a-z0-9-]{1,63}(?<!-)$")
_MAX_HOST_LENGTH = 253
_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://")


def _parse_ip(host: str) -> ipaddress.IPv4Address | ipaddress.IPv6Address | None:
    try:
        addr = ipaddress.ip_address(host)
    except ValueError:
        return None
    if isinstance(addr, ipaddress.IPv6Address) and addr.ipv4_mapped is not None:
        return addr.ipv4_mapped
    return addr


def _is_blocked_ip(addr: ipaddress.IPv4Address | ipaddress.IPv6Address) -> bool:
    """Return True for addresses that must never be fetched (internal networks)."""
    return (
        addr.is_private
        or addr.is_loopback
        or addr.is_link_local
        or addr.is_reserved
        or addr.is_multicast
        or addr.is_unspecified
        or not addr.is_global
    )


def _normalize_hostname(host: str) -> str:
    """Validate DNS hostname syntax and return its ASCII (IDNA) form."""
    if host == "localhost" or host.endswith(".localhost"):
        raise InvalidUrl("Requests to local hosts are not allowed.")

    try:
        ascii_host = host.encode("idna").decode("ascii")
    except UnicodeError:
        raise InvalidUrl("The website host name is not valid.") from None

    labels = ascii_host.split(".")
    if len(ascii_host) > _MAX_HOST_LENGTH or len(labels) < 2:
        raise InvalidUrl("The website host name is not valid.")
    if not all(_LABEL_RE.match(label) for label in labels):
        raise InvalidUrl("The website host name is not valid.")
    # A numeric final label means a shorthand IP literal such as "127.1".
    if labels[-1].isdigit():
        raise InvalidUrl("The website host name is not valid.")
    return ascii_host


def normalize_url(raw: str) -> str:
    """Return the canonical form of *raw* or raise :class:`InvalidUrl`.

    A missing scheme becomes ``https://``. Credentials, non-http(s) schemes,
    internal IP literals and malformed host names are rejected. The host is
    lowercased and IDNA-encoded, default ports and fragments are dropped and
    an empty path becomes ``/``. Normalizing an already normalized URL
    returns it unchanged.
    """
    if not isinstance(raw, str):
        raise InvalidUrl("The website must be a string.")

    value = raw.strip()
    if not value:
        raise InvalidUrl("The website must not be empty.")

    if not _SCHEME_RE.match(value):
        value = "https:" + value if value.startswith("//") else "https://" + value

    try:
        parts = urlsplit(value)
        port = parts.port
    except ValueError:
        raise InvalidUrl("The website is not a valid URL.") from None
    if port == 0:
        raise InvalidUrl("The website is not a valid URL.")

    scheme = parts.scheme.lower()
    if scheme not in ALLOWED_SCHEMES:
        raise InvalidUrl(f"Scheme '{scheme}' is not allowed. Use http or https.")

    if "@" in parts.netloc:
        raise InvalidUrl("URLs with embedded credentials are not allowed.")

    host = (parts.hostname or "").rstrip(".")
    if not host:
        raise InvalidUrl("The website must include a host name.")

    addr = _parse_ip(host)
    if addr is not None:
        if _is_blocked_ip(addr):
            raise InvalidUrl("Requests to private or internal addresses are not allowed.")
        host = f"[{addr}]" if addr.version == 6 else str(addr)
    else:
        host = _normalize_hostname(host)

    netloc = host
    if port is not None and port != _DEFAULT_PORTS[scheme]:
        netloc = f"{host}:{port}"

    return urlunsplit((scheme, netloc, parts.path or "/", parts.query, ""))
