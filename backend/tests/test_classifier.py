import pytest

from redirector.core.classifier import get_crawler_name, get_device_os


@pytest.mark.parametrize("user_agent, expected", [
    ("Mozilla/5.0 (Linux; Android 10)", "Android"),
    ("Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X)", "iOS"),
    ("Mozilla/5.0 (iPad; CPU OS 16_6 like Mac OS X)", "iOS"),
    ("Mozilla/5.0 (Windows NT 10.0; Win64; x64)", "Windows"),
    ("Mozilla/5.0 (Macintosh; Intel Mac OS X 14_0)", "macOS"),
    ("Mozilla/5.0 (X11; Linux x86_64)", "Linux"),
    ("curl/8.4.0", "Unknown"),
    ("Googlebot/2.1", "Unknown"),
    ("", "Unknown"),
    (None, "Unknown"),
])
def test_device_os(user_agent, expected):
    assert get_device_os(user_agent) == expected


def test_device_os_first_match_wins():
    # Android user agents also mention Linux
    assert get_device_os("LINUX; ANDROID 14") == "Android"


def test_crawler_name_from_default_map():
    assert get_crawler_name("Mozilla/5.0 (compatible; Googlebot/2.1)") == "Google"
    assert get_crawler_name("facebookexternalhit/1.1") == "Facebook"
    assert get_crawler_name("WhatsApp/2.23.20.0") == "WhatsApp"
    assert get_crawler_name("SomeRandomSpider/0.1") == "Generic Spider"


def test_crawler_name_for_browser_is_none():
    assert get_crawler_name("Mozilla/5.0 (Windows NT 10.0; Win64; x64) Chrome/120.0") is None
    assert get_crawler_name("") is None
    assert get_crawler_name(None) is None


def test_crawler_name_follows_map_order():
    ua = "Mozilla/5.0 (compatible; bingbot/2.0)"
    assert get_crawler_name(ua, {"bingbot": "Bing", "bot": "Generic Bot"}) == "Bing"
    assert get_crawler_name(ua, {"bot": "Generic Bot", "bingbot": "Bing"}) == "Generic Bot"
