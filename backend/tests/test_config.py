import json

import pytest

from redirector.config import (
    CONNECTION_STRING_ENV_VARS,
    Settings,
    get_connection_string,
    parse_bot_map,
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in CONNECTION_STRING_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_connection_string_first_non_empty_wins(clean_env):
    clean_env.setenv("DB_CONN_STRING", "   ")
    clean_env.setenv("SQLCONNSTR_SqlConnectionString", "  Server=second  ")
    clean_env.setenv("SqlConnectionString", "Server=third")

    assert get_connection_string() == "Server=second"


def test_connection_string_primary_name_has_priority(clean_env):
    clean_env.setenv("SqlConnectionString__Value", "Server=last")
    clean_env.setenv("DB_CONN_STRING", "Server=first")

    assert get_connection_string() == "Server=first"


def test_connection_string_missing_is_empty(clean_env, caplog):
    assert get_connection_string() == ""
    assert "connection string not found" in caplog.text


def test_default_bot_map():
    bot_map = parse_bot_map("")

    assert len(bot_map) >= 10
    assert bot_map["googlebot"] == "Google"
    assert bot_map["facebookexternalhit"] == "Facebook"
    assert bot_map["bot"] == "Generic Bot"
    # Generic catch-alls come after the named crawlers
    keys = list(bot_map)
    assert keys.index("googlebot") < keys.index("bot")
    assert keys[-1] == "bot"


def test_bot_map_from_json():
    bot_map = parse_bot_map('{"SlackBot": "Slack", "Discordbot": "Discord"}')
    assert bot_map == {"slackbot": "Slack", "discordbot": "Discord"}
    assert list(bot_map) == ["slackbot", "discordbot"]


def test_bot_map_from_delimited_string():
    bot_map = parse_bot_map(" SlackBot : Slack ,discordbot:Discord, broken, :NoKey, nolabel: ,")
    assert bot_map == {"slackbot": "Slack", "discordbot": "Discord"}


def test_bot_map_formats_are_equivalent():
    mapping = {"pinterest": "Pinterest", "yandexbot": "Yandex", "bot": "Generic Bot"}
    delimited = ",".join(f"{key}:{label}" for key, label in mapping.items())

    from_json = parse_bot_map(json.dumps(mapping))
    from_delimited = parse_bot_map(delimited)

    assert from_json == from_delimited
    assert list(from_json) == list(from_delimited)


def test_bot_map_non_object_json_falls_back():
    assert parse_bot_map("[1, 2]") == {}
    assert parse_bot_map("42") == {}


def test_settings_defaults():
    settings = Settings(_env_file=None)

    assert settings.REDIRECT_TABLE == "redirects"
    assert settings.CLICK_TABLE == "link_clicks"
    assert settings.BOT_AUDIT_TABLE == "bot_audit"
    assert settings.HUMAN_DELAY_MS == 0


def test_settings_table_overrides(monkeypatch):
    monkeypatch.setenv("REDIRECT_TABLE", "short_links")
    monkeypatch.setenv("CLICK_TABLE", "clicks_v2")

    settings = Settings(_env_file=None)
    assert settings.REDIRECT_TABLE == "short_links"
    assert settings.CLICK_TABLE == "clicks_v2"


def test_human_delay_aliases(monkeypatch):
    monkeypatch.delenv("HUMAN_DELAY_MS", raising=False)
    monkeypatch.setenv("REDIRECT_DELAY_MS", "250")
    assert Settings(_env_file=None).HUMAN_DELAY_MS == 250

    monkeypatch.delenv("REDIRECT_DELAY_MS")
    monkeypatch.setenv("HUMAN_DELAY_MS", "soon")
    assert Settings(_env_file=None).HUMAN_DELAY_MS == 0


def test_bot_map_pair_uses_first_two_segments():
    assert parse_bot_map("preview:Link:Preview,yandex:Yandex") == {"preview": "Link", "yandex": "Yandex"}
