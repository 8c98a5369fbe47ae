from typing import Mapping, Optional

from ..config import BOT_MAP

UNKNOWN_OS = "Unknown"

# First match wins
OS_SIGNATURES = [
    ("Android", ("android",)),
    ("iOS", ("iphone", "ipad", "ios")),
    ("Windows", ("windows",)),
    ("macOS", ("mac os", "macintosh")),
    ("Linux", ("linux",)),
]


def get_device_os(user_agent: Optional[str]) -> str:
    """Map a user agent to one of the OS labels, "Unknown" if none matches"""
    ua = (user_agent or "").lower()
    for label, signatures in OS_SIGNATURES:
        if any(signature in ua for signature in signatures):
            return label
    return UNKNOWN_OS


def get_crawler_name(user_agent: Optional[str],
                     bot_map: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """
    Return the label of the first bot map key found in the user agent.

    Keys are scanned in the mapping's insertion order, so a generic key
    such as "bot" should come after the specific ones.
    """
    if bot_map is None:
        bot_map = BOT_MAP

    ua = (user_agent or "").lower()
    for key, label in bot_map.items():
        if key in ua:
            return label
    return None
