"""Tests for layered flag defaults."""

import logging

from hetzner_driver.flags import DEFAULT_SERVER_TYPE
from hetzner_driver.settings import SettingsLoader


def _write_user_settings(xdg, text):
    path = xdg / "hetzner-driver" / "config.yaml"
    path.parent.mkdir(parents=True)
    path.write_text(text)
    return path


def test_builtin_defaults(tmp_path):
    loader = SettingsLoader(environ={"XDG_CONFIG_HOME": str(tmp_path / "xdg")}, cwd=tmp_path)

    settings = loader.load()

    assert settings["hetzner-server-type"] == DEFAULT_SERVER_TYPE
    assert settings["hetzner-api-token"] == ""
    assert settings["hetzner-networks"] == []


def test_precedence_user_project_env(tmp_path):
    xdg = tmp_path / "xdg"
    _write_user_settings(xdg, "hetzner-server-type: cx22\nhetzner-server-location: nbg1\nhetzner-image: debian-12\n")
    project = tmp_path / "project"
    (project / "nested").mkdir(parents=True)
    (project / "hetzner-driver.yaml").write_text("hetzner-server-location: hel1\nhetzner-image: rocky-9\n")

    loader = SettingsLoader(
        environ={"XDG_CONFIG_HOME": str(xdg), "HETZNER_IMAGE": "fedora-39"},
        cwd=project / "nested",
    )
    settings = loader.load()

    assert settings["hetzner-server-type"] == "cx22"
    assert settings["hetzner-server-location"] == "hel1"
    assert settings["hetzner-image"] == "fedora-39"


def test_env_values_are_typed(tmp_path):
    loader = SettingsLoader(environ={
        "XDG_CONFIG_HOME": str(tmp_path),
        "HETZNER_IMAGE_ID": "42",
        "HETZNER_USE_PRIVATE_NETWORK": "1",
        "HETZNER_FIREWALLS": "web,ssh",
    }, cwd=tmp_path)

    settings = loader.load()

    assert settings["hetzner-image-id"] == 42
    assert settings["hetzner-use-private-network"] is True
    assert settings["hetzner-firewalls"] == ["web", "ssh"]


def test_invalid_settings_file_is_skipped(tmp_path, caplog):
    xdg = tmp_path / "xdg"
    path = _write_user_settings(xdg, "hetzner-image: [unclosed\n")

    with caplog.at_level(logging.WARNING):
        settings = SettingsLoader(environ={"XDG_CONFIG_HOME": str(xdg)}, cwd=tmp_path).load()

    assert settings["hetzner-image"] == ""
    assert f"Failed to load settings {path}" in caplog.text


def test_unknown_keys_are_ignored(tmp_path, caplog):
    xdg = tmp_path / "xdg"
    _write_user_settings(xdg, "colour: blue\nhetzner-server-label: [env=prod]\n")

    with caplog.at_level(logging.WARNING):
        settings = SettingsLoader(environ={"XDG_CONFIG_HOME": str(xdg)}, cwd=tmp_path).load()

    assert "colour" not in settings
    assert settings["hetzner-server-label"] == ["env=prod"]
    assert "Ignoring unknown flag 'colour'" in caplog.text


def test_get_sources(tmp_path):
    (tmp_path / ".hetzner-driver.yaml").write_text("hetzner-image: debian-12\n")
    loader = SettingsLoader(environ={"XDG_CONFIG_HOME": str(tmp_path / "xdg")}, cwd=tmp_path)

    sources = {source['source']: source for source in loader.get_sources()}

    assert sources['user']['exists'] is False
    assert sources['project']['path'] == str(tmp_path / ".hetzner-driver.yaml")
    assert sources['project']['exists'] is True


def test_invalid_env_value_is_skipped(tmp_path, caplog):
    loader = SettingsLoader(environ={
        "XDG_CONFIG_HOME": str(tmp_path / "xdg"),
        "HETZNER_SSH_PORT": "ssh",
        "HETZNER_IMAGE": "debian-12",
    }, cwd=tmp_path)

    with caplog.at_level(logging.WARNING):
        settings = loader.load()

    assert settings["hetzner-ssh-port"] == 22
    assert settings["hetzner-image"] == "debian-12"
    assert "Ignoring $HETZNER_SSH_PORT" in caplog.text


def test_invalid_settings_value_is_skipped(tmp_path, caplog):
    xdg = tmp_path / "xdg"
    path = _write_user_settings(xdg, "hetzner-ssh-port: twenty-two\nhetzner-server-type: cx22\n")

    with caplog.at_level(logging.WARNING):
        settings = SettingsLoader(environ={"XDG_CONFIG_HOME": str(xdg)}, cwd=tmp_path).load()

    assert settings["hetzner-ssh-port"] == 22
    assert settings["hetzner-server-type"] == "cx22"
    assert f"Ignoring invalid value in {path}" in caplog.text
