"""Keep credentials in overlay remote URLs out of logs and errors.

A remote overlay reference or catalog URL may embed a token, as in
``https://ghp_xxx@github.com/acme/overlays.git``. Such URLs go through these
helpers before they are printed, logged or attached to an error.

The SSH user ``git`` is a convention rather than a secret, so
``git@github.com:acme/overlays.git`` is left alone.
"""
from __future__ import annotations

import re
from urllib.parse import urlsplit, urlunsplit

MASK = "<redacted>"

# scheme://user[:password]@ anywhere in free text
_URL_USERINFO = re.compile(r"([a-zA-Z][a-zA-Z0-9+.-]*://)([^\s/@]+(:[^\s/@]*)?@)")
# user@host: (scp-like ssh), except the conventional git@
_SCP_USER_IN_TEXT = re.compile(r"\b(?!git@)([^\s@]+)@([^\s:]+):")
_SCP_URL = re.compile(r"(?P<user>[^@\s/]+)@(?P<host>[^:\s/]+):(?P<path>.+)$")


def redact_url_credentials(url: str) -> str:
    """Drop the userinfo part of ``url``.

    >>> redact_url_credentials("https://tok:x@example.com:8443/o/r.git")
    'https://example.com:8443/o/r.git'
    >>> redact_url_credentials("deploy@example.com:o/r.git")
    '<redacted>@example.com:o/r.git'
    """
    url = str(url)
    if "://" not in url:
        match = _SCP_URL.match(url)
        if match is None or match.group("user") == "git":
            return url
        return f"{MASK}@{match.group('host')}:{match.group('path')}"

    parts = urlsplit(url)
    if parts.username is None and parts.password is None:
        return url
    netloc = parts.hostname or ""
    if parts.port:
        netloc += f":{parts.port}"
    return urlunsplit(parts._replace(netloc=netloc))


def redact_text_credentials(text: str) -> str:
    """Mask credentials in free text such as git's stderr."""
    masked = _URL_USERINFO.sub(rf"\1{MASK}@", str(text))
    return _SCP_USER_IN_TEXT.sub(rf"{MASK}@\2:", masked)


def redact_git_args(args: list[str]) -> list[str]:
    return [redact_url_credentials(arg) for arg in args]


__all__ = ["MASK", "redact_git_args", "redact_text_credentials", "redact_url_credentials"]
