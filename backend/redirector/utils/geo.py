import re
import logging
from functools import lru_cache
from typing import Optional, Tuple

import httpx

from ..config import settings
from .validators import UNKNOWN_IP

logger = logging.getLogger(__name__)

# Private IP patterns
PRIVATE_IP_PATTERNS = [
    re.compile(r'^127\.'),  # Loopback
    re.compile(r'^10\.'),  # Class A private
    re.compile(r'^172\.(1[6-9]|2[0-9]|3[0-1])\.'),  # Class B private
    re.compile(r'^192\.168\.'),  # Class C private
    re.compile(r'^169\.254\.'),  # Link-local
    re.compile(r'^::1$'),  # IPv6 loopback
    re.compile(r'^fc00:', re.IGNORECASE),  # IPv6 unique local
    re.compile(r'^fe80:', re.IGNORECASE),  # IPv6 link-local
]


def is_private_ip(ip: str) -> bool:
    """Check if IP address is private/local"""
    if not ip:
        return True
    for pattern in PRIVATE_IP_PATTERNS:
        if pattern.match(ip):
            return True
    return False


class GeoData:
    """Container for geo data, either fully populated or empty"""
    def __init__(self, country: Optional[str] = None,
                 state: Optional[str] = None,
                 city: Optional[str] = None):
        self.country = country
        self.state = state
        self.city = city

    def __bool__(self):
        return self.country is not None

    def __repr__(self):
        return f"<GeoData {self.country}/{self.state}/{self.city}>"


# LRU cache for geo data (max 10000 entries)
@lru_cache(maxsize=10000)
def _get_geo_data_cached(ip: str) -> Tuple[Optional[str], Optional[str], Optional[str]]:
    """
    Look up geo data from the configured provider with caching.
    Returns tuple: (country, state, city)
    """
    if ip == UNKNOWN_IP or is_private_ip(ip):
        return (None, None, None)

    try:
        with httpx.Client(timeout=settings.GEO_LOOKUP_TIMEOUT) as client:
            response = client.get(
                settings.GEO_LOOKUP_URL.format(ip=ip),
                params={"fields": "status,country,regionName,city"}
            )

            if response.status_code == 200:
                data = response.json()
                if data.get("status") == "success" and data.get("country"):
                    # ip-api sends "" for unknown region or city
                    return (
                        data.get("country"),
                        data.get("regionName") or None,
                        data.get("city") or None
                    )
    except (httpx.HTTPError, ValueError) as e:
        logger.debug("Geo lookup failed for %s: %s", ip, e)

    return (None, None, None)


def get_geo_data(ip: str) -> GeoData:
    """
    Get geo data for IP address with LRU caching.
    A miss of any kind gives an empty GeoData.
    """
    if not settings.GEO_LOOKUP_ENABLED:
        return GeoData()

    country, state, city = _get_geo_data_cached(ip)
    if country is None:
        return GeoData()
    return GeoData(country=country, state=state, city=city)
