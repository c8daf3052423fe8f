"""Create flags accepted by the Hetzner driver and the options interface."""

import argparse
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional


DRIVER_NAME = "hetzner"

DEFAULT_IMAGE = "ubuntu-20.04"
DEFAULT_SERVER_TYPE = "cx11"
DEFAULT_SSH_USER = "root"
DEFAULT_SSH_PORT = 22
DEFAULT_WAIT_ON_POLLING = 1
AUTO_SPREAD_PLACEMENT_GROUP = "__auto_spread"

FLAG_API_TOKEN = "hetzner-api-token"
FLAG_IMAGE = "hetzner-image"
FLAG_IMAGE_ID = "hetzner-image-id"
FLAG_IMAGE_ARCH = "hetzner-image-arch"
FLAG_SERVER_TYPE = "hetzner-server-type"
FLAG_LOCATION = "hetzner-server-location"
FLAG_EXISTING_KEY_ID = "hetzner-existing-key-id"
FLAG_EXISTING_KEY_PATH = "hetzner-existing-key-path"
FLAG_ADDITIONAL_KEYS = "hetzner-additional-key"
FLAG_USER_DATA = "hetzner-user-data"
FLAG_USER_DATA_FILE = "hetzner-user-data-file"
FLAG_ADDITIONAL_USER_DATA = "hetzner-additional-user-data"
FLAG_VOLUMES = "hetzner-volumes"
FLAG_NETWORKS = "hetzner-networks"
FLAG_USE_PRIVATE_NETWORK = "hetzner-use-private-network"
FLAG_DISABLE_PUBLIC_4 = "hetzner-disable-public-ipv4"
FLAG_DISABLE_PUBLIC_6 = "hetzner-disable-public-ipv6"
FLAG_DISABLE_PUBLIC = "hetzner-disable-public"
FLAG_PRIMARY_4 = "hetzner-primary-ipv4"
FLAG_PRIMARY_6 = "hetzner-primary-ipv6"
FLAG_FIREWALLS = "hetzner-firewalls"
FLAG_SERVER_LABEL = "hetzner-server-label"
FLAG_KEY_LABEL = "hetzner-key-label"
FLAG_PLACEMENT_GROUP = "hetzner-placement-group"
FLAG_AUTO_SPREAD = "hetzner-auto-spread"
FLAG_SSH_USER = "hetzner-ssh-user"
FLAG_SSH_PORT = "hetzner-ssh-port"
FLAG_WAIT_ON_ERROR = "wait-on-error"
FLAG_WAIT_ON_POLLING = "wait-on-polling"
FLAG_WAIT_FOR_RUNNING_TIMEOUT = "wait-for-running-timeout"

LEGACY_FLAG_USER_DATA_FROM_FILE = "hetzner-user-data-from-file"
LEGACY_FLAG_DISABLE_PUBLIC_4 = "hetzner-disable-public-4"
LEGACY_FLAG_DISABLE_PUBLIC_6 = "hetzner-disable-public-6"

STRING = "string"
INT = "int"
BOOL = "bool"
STRING_SLICE = "string-slice"

_ZERO_VALUES = {
    STRING: "",
    INT: 0,
    BOOL: False,
    STRING_SLICE: [],
}


@dataclass(frozen=True)
class Flag:
    """A single create flag."""

    name: str
    kind: str
    usage: str
    default: Any = None

    @property
    def env_var(self) -> str:
        return self.name.upper().replace("-", "_")

    @property
    def dest(self) -> str:
        return self.name.replace("-", "_")

    @property
    def deprecated(self) -> bool:
        return self.name in LEGACY_FLAGS

    def default_value(self) -> Any:
        if self.default is not None:
            return self.default
        zero = _ZERO_VALUES[self.kind]
        return list(zero) if isinstance(zero, list) else zero


LEGACY_FLAGS = {
    LEGACY_FLAG_USER_DATA_FROM_FILE,
    LEGACY_FLAG_DISABLE_PUBLIC_4,
    LEGACY_FLAG_DISABLE_PUBLIC_6,
}

CREATE_FLAGS: List[Flag] = [
    Flag(FLAG_API_TOKEN, STRING, "Project-specific Hetzner API token"),
    Flag(FLAG_IMAGE, STRING, f"Image to use for server creation (default: {DEFAULT_IMAGE})"),
    Flag(FLAG_IMAGE_ID, INT, "Image to use for server creation"),
    Flag(FLAG_IMAGE_ARCH, STRING, "Image architecture for lookup to use for server creation (arm, x86)"),
    Flag(FLAG_SERVER_TYPE, STRING, "Server type to create", DEFAULT_SERVER_TYPE),
    Flag(FLAG_LOCATION, STRING, "Location to create machine at"),
    Flag(FLAG_EXISTING_KEY_ID, INT, "Existing key ID to use for server; requires --hetzner-existing-key-path"),
    Flag(FLAG_EXISTING_KEY_PATH, STRING, "Path to existing key (new public key will be created unless --hetzner-existing-key-id is specified)"),
    Flag(FLAG_ADDITIONAL_KEYS, STRING_SLICE, "Additional public keys to be attached to the server"),
    Flag(FLAG_USER_DATA, STRING, "Cloud-init based user data (inline)"),
    Flag(FLAG_USER_DATA_FILE, STRING, "Cloud-init based user data (read from file)"),
    Flag(FLAG_ADDITIONAL_USER_DATA, STRING, "Additional cloud-init YAML merged into the user data"),
    Flag(LEGACY_FLAG_USER_DATA_FROM_FILE, BOOL, f"DEPRECATED, use --{FLAG_USER_DATA_FILE}: treat --{FLAG_USER_DATA} argument as filename"),
    Flag(FLAG_VOLUMES, STRING_SLICE, "Volume IDs or names which should be attached to the server"),
    Flag(FLAG_NETWORKS, STRING_SLICE, "Network IDs or names which should be attached to the server private network interface"),
    Flag(FLAG_USE_PRIVATE_NETWORK, BOOL, "Use private network"),
    Flag(FLAG_DISABLE_PUBLIC_4, BOOL, "Disable public ipv4"),
    Flag(LEGACY_FLAG_DISABLE_PUBLIC_4, BOOL, f"DEPRECATED, use --{FLAG_DISABLE_PUBLIC_4}; disable public ipv4"),
    Flag(FLAG_DISABLE_PUBLIC_6, BOOL, "Disable public ipv6"),
    Flag(LEGACY_FLAG_DISABLE_PUBLIC_6, BOOL, f"DEPRECATED, use --{FLAG_DISABLE_PUBLIC_6}; disable public ipv6"),
    Flag(FLAG_DISABLE_PUBLIC, BOOL, f"Disable public ip (v4 & v6); implies --{FLAG_USE_PRIVATE_NETWORK}"),
    Flag(FLAG_PRIMARY_4, STRING, "Existing primary IPv4 address"),
    Flag(FLAG_PRIMARY_6, STRING, "Existing primary IPv6 address"),
    Flag(FLAG_FIREWALLS, STRING_SLICE, "Firewall IDs or names which should be applied on the server"),
    Flag(FLAG_SERVER_LABEL, STRING_SLICE, "Key value pairs of additional labels to assign to the server"),
    Flag(FLAG_KEY_LABEL, STRING_SLICE, "Key value pairs of additional labels to assign to the SSH key"),
    Flag(FLAG_PLACEMENT_GROUP, STRING, "Placement group ID or name to add the server to; will be created if it does not exist"),
    Flag(FLAG_AUTO_SPREAD, BOOL, f"Auto-spread on a docker-machine-specific default placement group ({AUTO_SPREAD_PLACEMENT_GROUP})"),
    Flag(FLAG_SSH_USER, STRING, "SSH username", DEFAULT_SSH_USER),
    Flag(FLAG_SSH_PORT, INT, "SSH port", DEFAULT_SSH_PORT),
    Flag(FLAG_WAIT_ON_ERROR, INT, "Wait if an error happens while creating the server"),
    Flag(FLAG_WAIT_ON_POLLING, INT, "Period for waiting between requests when waiting for some state to change", DEFAULT_WAIT_ON_POLLING),
    Flag(FLAG_WAIT_FOR_RUNNING_TIMEOUT, INT, "Period for waiting for a machine to be running before failing"),
]

FLAGS_BY_NAME: Dict[str, Flag] = {flag.name: flag for flag in CREATE_FLAGS}


def get_flag(name: str) -> Flag:
    """Look up a create flag by name.

    Raises:
        KeyError: If the driver has no flag with that name
    """
    try:
        return FLAGS_BY_NAME[name]
    except KeyError:
        raise KeyError(f"Unknown flag: --{name}") from None


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def _to_string_slice(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return [str(item) for item in value]


def coerce_flag_value(flag: Flag, value: Any) -> Any:
    """Convert a raw value (env var, settings file) to the flag's type."""
    if value is None:
        return flag.default_value()
    if flag.kind == BOOL:
        return _to_bool(value)
    if flag.kind == INT:
        try:
            return int(value)
        except (TypeError, ValueError) as e:
            raise ValueError(f"--{flag.name} expects an integer, got: {value!r}") from e
    if flag.kind == STRING_SLICE:
        return _to_string_slice(value)
    return str(value)


class DriverOptions:
    """Typed read access to flag values supplied by the host tool.

    Unset flags read as their default, or the zero value of their type.
    """

    def __init__(self, values: Optional[Mapping[str, Any]] = None):
        self._values: Dict[str, Any] = {}
        for name, value in (values or {}).items():
            flag = get_flag(name)
            self._values[name] = coerce_flag_value(flag, value)

    @classmethod
    def from_namespace(cls, args: argparse.Namespace) -> "DriverOptions":
        """Build options from a namespace parsed with ``add_create_flags``."""
        values = {}
        for flag in CREATE_FLAGS:
            if hasattr(args, flag.dest):
                values[flag.name] = getattr(args, flag.dest)
        return cls(values)

    def _get(self, name: str, kind: str) -> Any:
        flag = get_flag(name)
        if flag.kind != kind:
            raise TypeError(f"--{name} is a {flag.kind} flag, not {kind}")
        if name in self._values:
            return self._values[name]
        return flag.default_value()

    def string(self, name: str) -> str:
        return self._get(name, STRING)

    def int(self, name: str) -> int:
        return self._get(name, INT)

    def bool(self, name: str) -> bool:
        return self._get(name, BOOL)

    def string_slice(self, name: str) -> List[str]:
        return list(self._get(name, STRING_SLICE))


def add_create_flags(parser: argparse.ArgumentParser, defaults: Optional[Mapping[str, Any]] = None):
    """Register every create flag on an argparse parser.

    Args:
        parser: Parser (or subparser) to extend
        defaults: Layered flag defaults keyed by flag name, see
            ``hetzner_driver.settings.load_flag_defaults``
    """
    defaults = defaults or {}
    group = parser.add_argument_group("hetzner driver options")

    for flag in CREATE_FLAGS:
        default = defaults.get(flag.name, flag.default_value())
        help_text = f"{flag.usage} [${flag.env_var}]"

        if flag.kind == BOOL:
            group.add_argument(f"--{flag.name}", dest=flag.dest, action=argparse.BooleanOptionalAction,
                               default=default, help=help_text)
        elif flag.kind == INT:
            group.add_argument(f"--{flag.name}", dest=flag.dest, type=int,
                               default=default, help=help_text)
        elif flag.kind == STRING_SLICE:
            # Repeatable; command line values replace the configured defaults
            group.add_argument(f"--{flag.name}", dest=flag.dest, action="append",
                               default=None, help=help_text)
        else:
            group.add_argument(f"--{flag.name}", dest=flag.dest,
                               default=default, help=help_text)

    parser.set_defaults(_slice_defaults={
        flag.dest: list(defaults.get(flag.name, []))
        for flag in CREATE_FLAGS if flag.kind == STRING_SLICE
    })


def apply_slice_defaults(args: argparse.Namespace) -> argparse.Namespace:
    """Fill unset repeatable flags with their configured defaults."""
    slice_defaults = getattr(args, "_slice_defaults", {})
    for dest, default in slice_defaults.items():
        if getattr(args, dest, None) is None:
            setattr(args, dest, list(default))
    return args
