import configparser

import pytest

from store_config import ConfigError, ConfigStore, parse_config


def test_default_file_is_created_and_loaded(tmp_path):
    path = tmp_path / "sub" / "bt-autoswitch.cfg"
    cfg = ConfigStore(path_override=path).load()

    assert path.exists()
    assert cfg.mute_enabled is True
    assert cfg.per_profile_volume is False
    assert cfg.telephony_profile == "headset_head_unit"
    assert cfg.high_fidelity_profile == "a2dp_sink"
    assert cfg.startup_timeout == 30.0
    assert cfg.client_filter.approve("Skype")
    assert not cfg.client_filter.approve("UnknownApp")
    assert cfg.client_filter.canonical("Google Chrome input") == "Google Chrome"
    assert cfg.client_filter.is_persistent_speaker_user("ZOOM VoiceEngine")


def test_xdg_config_home(tmp_path, monkeypatch):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    monkeypatch.setattr("store_config.platform.system", lambda: "Linux")
    store = ConfigStore()
    assert store.file_path == tmp_path / "bt-autoswitch" / "bt-autoswitch.cfg"


def test_overrides(tmp_path):
    path = tmp_path / "c.cfg"
    path.write_text(
        "[Clients]\n"
        "valid = ^(?:Jitsi Meet|Slack)$\n"
        "persistent_speaker_users =\n"
        "[NameMap]\n"
        "Slack input = Slack\n"
        "[Muting]\n"
        "enabled = no\n"
        "[Profiles]\n"
        "telephony = headset-head-unit\n"
        "[Volume]\n"
        "per_profile = yes\n",
        encoding="utf-8",
    )
    cfg = ConfigStore(path_override=path).load()

    assert cfg.mute_enabled is False
    assert cfg.per_profile_volume is True
    assert cfg.telephony_profile == "headset-head-unit"
    assert cfg.client_filter.approve("Slack")
    assert not cfg.client_filter.approve("Skype")
    assert cfg.client_filter.persistent_speaker_users is None
    assert cfg.client_filter.canonical("Slack input") == "Slack"


def test_bad_regex_is_a_config_error():
    cfg = configparser.ConfigParser(interpolation=None)
    cfg.read_dict({"Clients": {"valid": "(unclosed"}})
    with pytest.raises(ConfigError, match="valid"):
        parse_config(cfg)


def test_bad_boolean_is_a_config_error():
    cfg = configparser.ConfigParser(interpolation=None)
    cfg.read_dict({"Muting": {"enabled": "sometimes"}})
    with pytest.raises(ConfigError):
        parse_config(cfg)


def test_missing_name_map_section_keeps_default_map(tmp_path):
    path = tmp_path / "c.cfg"
    path.write_text("[Muting]\nenabled = yes\n", encoding="utf-8")
    cfg = ConfigStore(path_override=path).load()
    assert cfg.client_filter.canonical("Google Chrome input") == "Google Chrome"
