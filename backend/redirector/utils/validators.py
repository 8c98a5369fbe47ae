from typing import Mapping, Optional

UNKNOWN_IP = "unknown"

# Checked in order
CLIENT_IP_HEADERS = ("x-client-ip", "x-arr-clientip")


def truncate(value: Optional[str], max_length: int) -> Optional[str]:
    """Cut a header value down to a column width, keeping None as None"""
    if value is None:
        return None
    return value[:max_length]


def get_client_ip(headers: Mapping[str, str]) -> str:
    """
    Get client IP address from request headers.

    Args:
        headers: Request headers (case-insensitive mapping)

    Returns:
        First X-Forwarded-For entry, else X-Client-IP, else X-ARR-ClientIP,
        else "unknown"
    """
    # Take the first IP in the proxy chain
    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    for header in CLIENT_IP_HEADERS:
        value = (headers.get(header) or "").strip()
        if value:
            return value

    return UNKNOWN_IP


def get_referrer(headers: Mapping[str, str], max_length: int) -> Optional[str]:
    """Referer header (or the Referrer spelling), None when absent"""
    referrer = headers.get("referer") or headers.get("referrer")
    if not referrer:
        return None
    return truncate(referrer, max_length)
