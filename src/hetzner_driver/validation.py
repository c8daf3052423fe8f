"""Validation of create flags against the driver configuration."""

import logging
from typing import Dict, List

from .config import DriverConfig, ImageArchitecture
from .flags import (
    AUTO_SPREAD_PLACEMENT_GROUP,
    DEFAULT_IMAGE,
    FLAG_AUTO_SPREAD,
    FLAG_DISABLE_PUBLIC,
    FLAG_DISABLE_PUBLIC_4,
    FLAG_DISABLE_PUBLIC_6,
    FLAG_EXISTING_KEY_ID,
    FLAG_EXISTING_KEY_PATH,
    FLAG_IMAGE,
    FLAG_IMAGE_ARCH,
    FLAG_IMAGE_ID,
    FLAG_KEY_LABEL,
    FLAG_PLACEMENT_GROUP,
    FLAG_PRIMARY_4,
    FLAG_PRIMARY_6,
    FLAG_SERVER_LABEL,
    FLAG_USE_PRIVATE_NETWORK,
    DriverOptions,
)

logger = logging.getLogger(__name__)

# Images that were the driver default at some point. Selecting one of these
# together with --hetzner-image-id is accepted for backwards compatibility.
LEGACY_DEFAULT_IMAGES = (
    DEFAULT_IMAGE,
    "ubuntu-18.04",
    "ubuntu-16.04",
    "debian-9",
)


class FlagError(ValueError):
    """Exception raised when create flags are invalid or conflict."""
    pass


def is_default_image_name(image_name: str) -> bool:
    return image_name in LEGACY_DEFAULT_IMAGES


def set_image_arch(config: DriverConfig, arch: str):
    """Set the image architecture from its flag value.

    Raises:
        FlagError: If the architecture is not known
    """
    if arch == "":
        config.image_arch = None
        return

    try:
        config.image_arch = ImageArchitecture(arch)
    except ValueError:
        raise FlagError(f"unknown architecture {arch}") from None


def verify_image_flags(config: DriverConfig):
    """Check image selection flags, defaulting the image when none is given.

    Raises:
        FlagError: If an image ID is combined with an image name or architecture
    """
    if config.image_id != 0 and config.image and not is_default_image_name(config.image):
        raise FlagError(f"--{FLAG_IMAGE} and --{FLAG_IMAGE_ID} are mutually exclusive")
    elif config.image_id != 0 and config.image_arch is not None:
        raise FlagError(f"--{FLAG_IMAGE_ARCH} and --{FLAG_IMAGE_ID} are mutually exclusive")
    elif config.image_id == 0 and not config.image:
        config.image = DEFAULT_IMAGE


def verify_network_flags(config: DriverConfig):
    """Check public/private networking flags.

    Raises:
        FlagError: If all public networking is disabled without a private
            network, or a primary IP is given for a disabled address family
    """
    if config.disable_public_ipv4 and config.disable_public_ipv6 and not config.use_private_network:
        raise FlagError(
            f"--{FLAG_USE_PRIVATE_NETWORK} must be used if public networking is disabled "
            f"(hint: implicitly set by --{FLAG_DISABLE_PUBLIC})"
        )

    if config.disable_public_ipv4 and config.primary_ipv4:
        raise FlagError(f"--{FLAG_PRIMARY_4} and --{FLAG_DISABLE_PUBLIC_4} are mutually exclusive")

    if config.disable_public_ipv6 and config.primary_ipv6:
        raise FlagError(f"--{FLAG_PRIMARY_6} and --{FLAG_DISABLE_PUBLIC_6} are mutually exclusive")


def verify_key_flags(config: DriverConfig):
    if config.existing_key_path and not config.is_existing_key:
        raise FlagError(f"--{FLAG_EXISTING_KEY_PATH} requires --{FLAG_EXISTING_KEY_ID}")


def deprecated_boolean_flag(config: DriverConfig, opts: DriverOptions, flag: str, deprecated_flag: str) -> bool:
    """Read a boolean option that also exists under a deprecated name.

    A true deprecated flag wins over the current one, logs a deprecation
    warning and marks the configuration as using deprecated flags.
    """
    if opts.bool(deprecated_flag):
        logger.warning(f"--{deprecated_flag} is DEPRECATED FOR REMOVAL, use --{flag} instead")
        config.mark_deprecated_usage()
        return True
    return opts.bool(flag)


def set_placement_group_flags(config: DriverConfig, opts: DriverOptions):
    """Resolve the placement group, honouring --hetzner-auto-spread.

    Raises:
        FlagError: If auto-spread is combined with an explicit placement group
    """
    config.placement_group = opts.string(FLAG_PLACEMENT_GROUP)
    if opts.bool(FLAG_AUTO_SPREAD):
        if config.placement_group:
            raise FlagError(f"--{FLAG_AUTO_SPREAD} and --{FLAG_PLACEMENT_GROUP} are mutually exclusive")
        config.placement_group = AUTO_SPREAD_PLACEMENT_GROUP


def parse_labels(labels: List[str], kind: str) -> Dict[str, str]:
    """Parse ``key=value`` label strings; later duplicates win.

    Raises:
        FlagError: If a label has no ``=``
    """
    result = {}
    for label in labels:
        key, sep, value = label.partition("=")
        if not sep:
            raise FlagError(f"{kind} label {label} is not in key=value format")
        result[key] = value
    return result


def set_labels_from_flags(config: DriverConfig, opts: DriverOptions):
    config.server_labels = parse_labels(opts.string_slice(FLAG_SERVER_LABEL), "server")
    config.key_labels = parse_labels(opts.string_slice(FLAG_KEY_LABEL), "key")
