"""
Format Checks
==============
Best-effort structural checks for the ``format`` keyword.

These are deliberately not RFC-complete: each check recognizes the usual
shape of the format and rejects obvious garbage. A ``format`` value without a
checker is an annotation only and always passes.
"""

from __future__ import annotations

import ipaddress
import re
from datetime import date
from functools import lru_cache
from typing import Callable
from urllib.parse import urlsplit

from ..models.schema import Format


@lru_cache(maxsize=1024)
def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Compile a schema regex once; ``re.error`` propagates to the caller."""
    return re.compile(pattern)


# ---------------------------------------------------------------------------
# Date and time (RFC 3339, ISO 8601 durations)
# ---------------------------------------------------------------------------

_DATE_RE = re.compile(r"(\d{4})-(\d{2})-(\d{2})", re.ASCII)
_TIME_RE = re.compile(r"(\d{2}):(\d{2}):(\d{2})(\.\d+)?([Zz]|[+-](\d{2}):(\d{2}))", re.ASCII)
_DURATION_RE = re.compile(
    r"P(?!\Z)(\d+Y)?(\d+M)?(\d+W)?(\d+D)?(T(?=\d)(\d+H)?(\d+M)?(\d+S)?)?", re.ASCII
)


def is_date(value: str) -> bool:
    match = _DATE_RE.fullmatch(value)
    if match is None:
        return False
    try:
        date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
    except ValueError:
        return False
    return True


def is_time(value: str) -> bool:
    match = _TIME_RE.fullmatch(value)
    if match is None:
        return False
    hour, minute, second = int(match.group(1)), int(match.group(2)), int(match.group(3))
    if hour > 23 or minute > 59 or second > 60:
        return False
    if match.group(6) is not None and (int(match.group(6)) > 23 or int(match.group(7)) > 59):
        return False
    return True


def is_date_time(value: str) -> bool:
    head, sep, tail = value.partition("T") if "T" in value else value.partition("t")
    return bool(sep) and is_date(head) and is_time(tail)


def is_duration(value: str) -> bool:
    if _DURATION_RE.fullmatch(value) is None:
        return False
    # Weeks cannot be combined with other units.
    return "W" not in value or re.fullmatch(r"P\d+W", value) is not None


# ---------------------------------------------------------------------------
# Network
# ---------------------------------------------------------------------------

_HOST_LABEL_RE = re.compile(r"(?!-)[A-Za-z0-9-]{1,63}(?<!-)", re.ASCII)
_EMAIL_LOCAL_RE = re.compile(r"[A-Za-z0-9!#$%&'*+/=?^_`{|}~-]+(\.[A-Za-z0-9!#$%&'*+/=?^_`{|}~-]+)*")


def is_hostname(value: str) -> bool:
    if not value or len(value) > 253:
        return False
    host = value[:-1] if value.endswith(".") else value
    return all(_HOST_LABEL_RE.fullmatch(label) for label in host.split("."))


def is_idn_hostname(value: str) -> bool:
    try:
        encoded = value.encode("idna").decode("ascii")
    except UnicodeError:
        return False
    return is_hostname(encoded)


def is_email(value: str) -> bool:
    local, sep, domain = value.rpartition("@")
    if not sep or not local or not domain:
        return False
    if domain.startswith("[") and domain.endswith("]"):
        literal = domain[1:-1]
        if literal.lower().startswith("ipv6:"):
            return is_ipv6(literal[5:])
        return is_ipv4(literal)
    return _EMAIL_LOCAL_RE.fullmatch(local) is not None and is_hostname(domain)


def is_idn_email(value: str) -> bool:
    local, sep, domain = value.rpartition("@")
    if not sep or not local or any(ch.isspace() for ch in local):
        return False
    return is_idn_hostname(domain)


def is_ipv4(value: str) -> bool:
    if not re.fullmatch(r"\d{1,3}(\.\d{1,3}){3}", value, re.ASCII):
        return False
    try:
        ipaddress.IPv4Address(value)
    except ValueError:
        return False
    return True


def is_ipv6(value: str) -> bool:
    if "%" in value or not value.isascii():
        return False
    try:
        ipaddress.IPv6Address(value)
    except ValueError:
        return False
    return True


# ---------------------------------------------------------------------------
# Identifiers and references
# ---------------------------------------------------------------------------

_UUID_RE = re.compile(r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}")
_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*:")
_URI_CHARS_RE = re.compile(r"[A-Za-z0-9\-._~:/?#\[\]@!$&'()*+,;=%]*")
_JSON_POINTER_RE = re.compile(r"(/([^~/]|~[01])*)*")
_RELATIVE_POINTER_RE = re.compile(r"(0|[1-9][0-9]*)(#|(/([^~/]|~[01])*)*)")


def is_uuid(value: str) -> bool:
    return _UUID_RE.fullmatch(value) is not None


def _valid_percent_escapes(value: str) -> bool:
    return re.search(r"%(?![0-9A-Fa-f]{2})", value) is None


def is_uri_reference(value: str) -> bool:
    if _URI_CHARS_RE.fullmatch(value) is None or not _valid_percent_escapes(value):
        return False
    try:
        urlsplit(value)
    except ValueError:
        return False
    return True


def is_uri(value: str) -> bool:
    return _SCHEME_RE.match(value) is not None and is_uri_reference(value)


def is_iri_reference(value: str) -> bool:
    if any(ch.isspace() or ch in '<>"{}|\\^`' for ch in value):
        return False
    try:
        urlsplit(value)
    except ValueError:
        return False
    return _valid_percent_escapes(value)


def is_iri(value: str) -> bool:
    return _SCHEME_RE.match(value) is not None and is_iri_reference(value)


def is_uri_template(value: str) -> bool:
    depth = 0
    for ch in value:
        if ch == "{":
            depth += 1
            if depth > 1:
                return False
        elif ch == "}":
            depth -= 1
            if depth < 0:
                return False
    return depth == 0


def is_json_pointer(value: str) -> bool:
    return _JSON_POINTER_RE.fullmatch(value) is not None


def is_relative_json_pointer(value: str) -> bool:
    return _RELATIVE_POINTER_RE.fullmatch(value) is not None


def is_regex(value: str) -> bool:
    try:
        compile_pattern(value)
    except re.error:
        return False
    return True


FORMAT_CHECKERS: dict[str, Callable[[str], bool]] = {
    Format.DATE_TIME.value: is_date_time,
    Format.DATE.value: is_date,
    Format.TIME.value: is_time,
    Format.DURATION.value: is_duration,
    Format.EMAIL.value: is_email,
    Format.IDN_EMAIL.value: is_idn_email,
    Format.HOSTNAME.value: is_hostname,
    Format.IDN_HOSTNAME.value: is_idn_hostname,
    Format.IPV4.value: is_ipv4,
    Format.IPV6.value: is_ipv6,
    Format.UUID.value: is_uuid,
    Format.URI.value: is_uri,
    Format.URI_REFERENCE.value: is_uri_reference,
    Format.IRI.value: is_iri,
    Format.IRI_REFERENCE.value: is_iri_reference,
    Format.URI_TEMPLATE.value: is_uri_template,
    Format.JSON_POINTER.value: is_json_pointer,
    Format.RELATIVE_JSON_POINTER.value: is_relative_json_pointer,
    Format.REGEX.value: is_regex,
}


def check_format(name: str, value: str) -> bool:
    """True if ``value`` satisfies ``name``, or if ``name`` has no checker."""
    checker = FORMAT_CHECKERS.get(name)
    return checker is None or checker(value)
