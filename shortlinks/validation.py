"""Pure format checks for target URLs and short codes."""

import re
from urllib.parse import SplitResult, quote, urlsplit, urlunsplit

import validators

__all__ = ["ALLOWED_SCHEMES", "CODE_PATTERN", "is_valid_code", "is_valid_url"]

ALLOWED_SCHEMES = frozenset({"http", "https"})
CODE_PATTERN = re.compile(r"[A-Za-z0-9]{6,8}")

# Reserved characters and existing escapes are left as they are.
_URL_SAFE_CHARS = "!#$%&'()*+,/:;=?@[]~"


def _check_url(value: str) -> bool:
    # validators returns a falsy ValidationError instead of raising
    return bool(validators.url(value, simple_host=True, rfc_2782=True, strict_query=False))


def _percent_encode(parts: SplitResult) -> str:
    return urlunsplit(
        parts._replace(
            path=quote(parts.path, safe=_URL_SAFE_CHARS),
            query=quote(parts.query, safe=_URL_SAFE_CHARS),
            fragment=quote(parts.fragment, safe=_URL_SAFE_CHARS),
        )
    )


def is_valid_url(value: object) -> bool:
    """Return True iff ``value`` is an absolute http(s) URL with a host.

    Scheme-less input, other schemes (``ftp``, ``file``, ...) and strings the
    parser rejects are all invalid. Characters a browser would percent-encode
    in the path, query or fragment (spaces, ``|``, ...) are accepted; the host
    itself must still be well formed.
    """
    if not isinstance(value, str) or not value:
        return False
    try:
        parts = urlsplit(value)
    except ValueError:
        return False
    if parts.scheme.lower() not in ALLOWED_SCHEMES or not parts.netloc:
        return False
    if _check_url(value):
        return True
    return _check_url(_percent_encode(parts))


def is_valid_code(value: object) -> bool:
    return isinstance(value, str) and CODE_PATTERN.fullmatch(value) is not None
