"""
URL normalization for ingestion requests.
"""

from __future__ import annotations

import re
from urllib.parse import quote, urlsplit, urlunsplit

ALLOWED_SCHEMES = frozenset({"http", "https"})

# Characters left untouched when re-quoting path and query.
_PATH_SAFE = "/:@!$&'()*+,;=-._~%"
_QUERY_SAFE = "/?:@!$&'()*+,;=-._~%"

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*:")
_LABEL_RE = re.compile(r"^[a-z0-9_](?:[a-z0-9_\-]{0,61}[a-z0-9_])?$")
_IPV4_RE = re.compile(r"^\d{1,3}(?:\.\d{1,3}){3}$")

# Schemes whose opaque part may hold an "@" without being user info.
_OPAQUE_SCHEMES = frozenset({"mailto", "javascript", "data", "tel", "sip", "sips", "xmpp", "news", "urn"})


class InvalidUrlError(ValueError):
    """Raised when an input cannot be turned into an absolute http(s) URL."""

    def __init__(self, raw: str, reason: str = "not an absolute http(s) URL") -> None:
        super().__init__(f"Invalid URL {raw!r}: {reason}")
        self.raw = raw
        self.reason = reason


def _has_scheme(value: str) -> bool:
    if value.startswith("//"):
        return False
    match = _SCHEME_RE.match(value)
    if not match:
        return False
    # "example.com:8080/path" parses as scheme "example.com"; treat a scheme
    # followed by digits as host:port instead.
    rest = value[match.end() :]
    if rest[:1].isdigit():
        return False
    # "user:pw@example.com/x" carries user info, not a scheme.
    scheme = match.group(0)[:-1].lower()
    authority = value.split("/", 1)[0]
    return "@" not in authority or scheme in _OPAQUE_SCHEMES or scheme in ALLOWED_SCHEMES


def _is_valid_host(host: str) -> bool:
    if ":" in host:  # IPv6 literal, already validated by urlsplit
        return True
    if host == "localhost" or _IPV4_RE.match(host):
        return True
    # Fully qualified names may end in a single root dot.
    labels = host.lower().removesuffix(".").split(".")
    return len(labels) >= 2 and all(_LABEL_RE.match(label) for label in labels)


def normalize_url(raw: str) -> str:
    """
    Validate and canonicalize a user supplied URL.

    Missing schemes are coerced to ``https://``. Scheme and host are
    lower-cased and unsafe characters in path, query and fragment are
    percent-encoded.

    Raises:
        InvalidUrlError: If the input is empty or not an absolute http(s) URL.
    """
    if not isinstance(raw, str) or not raw.strip():
        raise InvalidUrlError(raw if isinstance(raw, str) else repr(raw), "empty input")

    candidate = raw.strip()
    if candidate.startswith("//"):
        candidate = f"https:{candidate}"
    elif not _has_scheme(candidate):
        candidate = f"https://{candidate}"

    try:
        parts = urlsplit(candidate)
        hostname = parts.hostname
        port = parts.port
    except ValueError as e:
        raise InvalidUrlError(raw, str(e)) from e

    scheme = parts.scheme.lower()
    if scheme not in ALLOWED_SCHEMES:
        raise InvalidUrlError(raw, f"unsupported scheme {scheme!r}")
    if not hostname:
        raise InvalidUrlError(raw, "missing host")

    try:
        host = hostname if hostname.isascii() else hostname.encode("idna").decode("ascii")
    except UnicodeError as e:
        raise InvalidUrlError(raw, "host is not encodable") from e
    if not _is_valid_host(host):
        raise InvalidUrlError(raw, f"invalid host {hostname!r}")

    netloc = host.lower()
    if ":" in netloc:  # IPv6 literal
        netloc = f"[{netloc}]"
    if port is not None:
        netloc = f"{netloc}:{port}"
    if parts.username:
        userinfo = parts.username + (f":{parts.password}" if parts.password else "")
        netloc = f"{userinfo}@{netloc}"

    path = quote(parts.path, safe=_PATH_SAFE) or "/"
    query = quote(parts.query, safe=_QUERY_SAFE)
    fragment = quote(parts.fragment, safe=_QUERY_SAFE)
    return urlunsplit((scheme, netloc, path, query, fragment))


def domain_of(url: str) -> str:
    """Lower-cased hostname of ``url``, or an empty string."""
    try:
        return (urlsplit(url).hostname or "").lower()
    except ValueError:
        return ""
