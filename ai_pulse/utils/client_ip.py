from typing import Mapping, Optional

# Checked in order; the first non-empty value wins
ORIGIN_HEADERS = ("x-forwarded-for", "x-real-ip", "cf-connecting-ip")

LOOPBACK_ORIGIN = "127.0.0.1"


def get_client_ip(headers: Mapping[str, str]) -> str:
    """
    Pick the submitter's origin from proxy headers.

    Comma separated values (proxy chains) resolve to the left-most entry,
    which is the original client. With no usable header we fall back to
    loopback, which the geo resolver treats as a local/dev request.
    """
    for name in ORIGIN_HEADERS:
        ip = _first_entry(headers.get(name))
        if ip:
            return ip
    return LOOPBACK_ORIGIN


def _first_entry(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    return value.split(",")[0].strip() or None
