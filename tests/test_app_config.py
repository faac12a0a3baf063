from __future__ import annotations

import json
import logging

import pytest

from discord_7dtd.classes.app_config import AppConfig
from discord_7dtd.exceptions.config import ConfigError, ConfigPersistFailure

VALID_TOKEN = "x" * 59


def test_missing_config_is_created_from_example_json(tmp_path) -> None:
    path = tmp_path / "config.json"
    config = AppConfig(config_path=str(path))

    assert path.exists()
    assert config.get_token() == "your_token_here"
    # The placeholder channel in example.json doesn't count as a binding.
    assert config.get_channel_id() is None


def test_defaults_fill_in_unset_keys(make_config) -> None:
    config = make_config(password="pw")

    assert config.get_ip() == "localhost"
    assert config.get_port() == 8081
    assert config.get_command_prefix() == "7D!"
    assert config.get_flag("show-private-chat") is False
    assert config.get_heartbeat_interval() == 3600
    assert config.get_pending_request_timeout() == 0


def test_overrides_win_over_the_file(tmp_path) -> None:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"port": 1234, "ip": "10.0.0.1", "prefix": "!"}))

    config = AppConfig(config_path=str(path), overrides={"port": "26900", "ip": None})

    assert config.get_port() == 26900
    assert config.get_ip() == "10.0.0.1"
    assert config.get_command_prefix() == "!"


def test_channel_ids_are_kept_as_strings(make_config) -> None:
    assert make_config(channel=123456789012345678).get_channel_id() == "123456789012345678"
    assert make_config(channel="channelid").get_channel_id() is None


def test_log_level(make_config) -> None:
    assert make_config(log_level="debug").get_log_level() == logging.DEBUG
    assert make_config(log_level="nonsense").get_log_level() == logging.INFO


def test_set_config_value_writes_the_whole_document(make_config) -> None:
    config = make_config(password="pw", token=VALID_TOKEN)

    config.set_config_value("channel", "100")

    with open(config.config_path) as config_file:
        saved = json.load(config_file)
    assert saved["channel"] == "100"
    assert saved["password"] == "pw"


def test_set_config_value_keeps_the_value_when_the_write_fails(make_config, tmp_path) -> None:
    config = make_config()
    config.config_path = str(tmp_path)

    with pytest.raises(ConfigPersistFailure) as excinfo:
        config.set_config_value("channel", "100")

    assert excinfo.value.path == str(tmp_path)
    assert config.get_channel_id() == "100"


@pytest.mark.parametrize(
    ("values", "message"),
    [
        ({"token": VALID_TOKEN}, "ERROR: No telnet password specified!"),
        ({"password": "pw"}, "ERROR: No Discord token specified!"),
        ({"password": "pw", "token": "your_token_here"}, 'Please replace "your_token_here"'),
        ({"password": "pw", "token": "client-secret"}, "client secret or other invalid string"),
    ],
)
def test_validate(make_config, values, message) -> None:
    with pytest.raises(ConfigError, match=message):
        make_config(**values).validate()


def test_validate_accepts_a_complete_config(make_config) -> None:
    make_config(password="pw", token=VALID_TOKEN).validate()


def test_token_is_not_needed_without_discord(make_config) -> None:
    make_config(password="pw", **{"skip-discord-auth": True}).validate()
