"""Tests for create flag validators."""

import logging

import pytest

from hetzner_driver.config import DriverConfig, ImageArchitecture
from hetzner_driver.flags import (
    AUTO_SPREAD_PLACEMENT_GROUP,
    DEFAULT_IMAGE,
    FLAG_AUTO_SPREAD,
    FLAG_DISABLE_PUBLIC_4,
    FLAG_KEY_LABEL,
    FLAG_PLACEMENT_GROUP,
    FLAG_SERVER_LABEL,
    LEGACY_FLAG_DISABLE_PUBLIC_4,
    DriverOptions,
)
from hetzner_driver.validation import (
    FlagError,
    deprecated_boolean_flag,
    is_default_image_name,
    set_image_arch,
    set_labels_from_flags,
    set_placement_group_flags,
    verify_image_flags,
    verify_key_flags,
    verify_network_flags,
)


@pytest.mark.parametrize("name", [DEFAULT_IMAGE, "ubuntu-18.04", "ubuntu-16.04", "debian-9"])
def test_legacy_default_images(name):
    assert is_default_image_name(name)


def test_other_images_are_not_legacy_defaults():
    assert not is_default_image_name("ubuntu-22.04")
    assert not is_default_image_name("")


def test_set_image_arch():
    config = DriverConfig()

    set_image_arch(config, "arm")
    assert config.image_arch is ImageArchitecture.ARM

    set_image_arch(config, "x86")
    assert config.image_arch is ImageArchitecture.X86

    set_image_arch(config, "")
    assert config.image_arch is None


def test_set_image_arch_unknown():
    with pytest.raises(FlagError, match="unknown architecture mips"):
        set_image_arch(DriverConfig(), "mips")


def test_image_name_and_id_are_mutually_exclusive():
    config = DriverConfig(image="fedora-39", image_id=42)

    with pytest.raises(FlagError, match="--hetzner-image and --hetzner-image-id are mutually exclusive"):
        verify_image_flags(config)


def test_image_id_with_legacy_default_name_is_allowed():
    config = DriverConfig(image="ubuntu-18.04", image_id=42)

    verify_image_flags(config)

    assert config.image_id == 42


def test_image_id_and_arch_are_mutually_exclusive():
    config = DriverConfig(image_id=42, image_arch=ImageArchitecture.ARM)

    with pytest.raises(FlagError, match="--hetzner-image-arch and --hetzner-image-id"):
        verify_image_flags(config)


def test_image_defaults_when_unset():
    config = DriverConfig()

    verify_image_flags(config)

    assert config.image == DEFAULT_IMAGE


def test_image_not_defaulted_when_id_given():
    config = DriverConfig(image_id=7)

    verify_image_flags(config)

    assert config.image == ""


def test_all_public_networking_disabled_requires_private_network():
    config = DriverConfig(disable_public_ipv4=True, disable_public_ipv6=True)

    with pytest.raises(FlagError, match="--hetzner-use-private-network must be used"):
        verify_network_flags(config)


def test_all_public_networking_disabled_with_private_network():
    config = DriverConfig(disable_public_ipv4=True, disable_public_ipv6=True, use_private_network=True)

    verify_network_flags(config)


def test_primary_ipv4_conflicts_with_disabled_ipv4():
    config = DriverConfig(disable_public_ipv4=True, primary_ipv4="1.2.3.4")

    with pytest.raises(FlagError, match="--hetzner-primary-ipv4 and --hetzner-disable-public-ipv4"):
        verify_network_flags(config)


def test_primary_ipv6_conflicts_with_disabled_ipv6():
    config = DriverConfig(disable_public_ipv6=True, primary_ipv6="2001:db8::1")

    with pytest.raises(FlagError, match="--hetzner-primary-ipv6 and --hetzner-disable-public-ipv6"):
        verify_network_flags(config)


def test_primary_ip_with_other_family_disabled():
    config = DriverConfig(disable_public_ipv6=True, primary_ipv4="1.2.3.4")

    verify_network_flags(config)


def test_existing_key_path_requires_key_id():
    with pytest.raises(FlagError, match="--hetzner-existing-key-path requires --hetzner-existing-key-id"):
        verify_key_flags(DriverConfig(existing_key_path="/home/me/.ssh/id_ed25519"))

    verify_key_flags(DriverConfig(existing_key_path="/home/me/.ssh/id_ed25519", key_id=5))


def test_deprecated_flag_wins_and_warns(caplog):
    config = DriverConfig()
    opts = DriverOptions({LEGACY_FLAG_DISABLE_PUBLIC_4: True})

    with caplog.at_level(logging.WARNING):
        value = deprecated_boolean_flag(config, opts, FLAG_DISABLE_PUBLIC_4, LEGACY_FLAG_DISABLE_PUBLIC_4)

    assert value is True
    assert config.uses_deprecated_flags
    assert "--hetzner-disable-public-4 is DEPRECATED FOR REMOVAL" in caplog.text


def test_current_flag_used_without_deprecated_one(caplog):
    config = DriverConfig()
    opts = DriverOptions({FLAG_DISABLE_PUBLIC_4: True})

    with caplog.at_level(logging.WARNING):
        value = deprecated_boolean_flag(config, opts, FLAG_DISABLE_PUBLIC_4, LEGACY_FLAG_DISABLE_PUBLIC_4)

    assert value is True
    assert not config.uses_deprecated_flags
    assert "DEPRECATED" not in caplog.text


def test_labels_parsed():
    config = DriverConfig()
    opts = DriverOptions({
        FLAG_SERVER_LABEL: ["env=prod", "url=https://example.com/?a=b", "empty="],
        FLAG_KEY_LABEL: ["owner=ops"],
    })

    set_labels_from_flags(config, opts)

    assert config.server_labels == {"env": "prod", "url": "https://example.com/?a=b", "empty": ""}
    assert config.key_labels == {"owner": "ops"}


def test_duplicate_label_keys_keep_last_value():
    config = DriverConfig()

    set_labels_from_flags(config, DriverOptions({FLAG_SERVER_LABEL: ["env=dev", "env=prod"]}))

    assert config.server_labels == {"env": "prod"}


def test_server_label_without_separator():
    with pytest.raises(FlagError, match="server label env is not in key=value format"):
        set_labels_from_flags(DriverConfig(), DriverOptions({FLAG_SERVER_LABEL: ["env"]}))


def test_key_label_without_separator():
    with pytest.raises(FlagError, match="key label owner is not in key=value format"):
        set_labels_from_flags(DriverConfig(), DriverOptions({FLAG_KEY_LABEL: ["owner"]}))


def test_auto_spread_sets_placement_group():
    config = DriverConfig()

    set_placement_group_flags(config, DriverOptions({FLAG_AUTO_SPREAD: True}))

    assert config.placement_group == AUTO_SPREAD_PLACEMENT_GROUP


def test_auto_spread_conflicts_with_placement_group():
    opts = DriverOptions({FLAG_AUTO_SPREAD: True, FLAG_PLACEMENT_GROUP: "web"})

    with pytest.raises(FlagError, match="mutually exclusive"):
        set_placement_group_flags(DriverConfig(), opts)
