"""Hetzner Cloud machine driver: create flag processing and cloud-init user data."""

__version__ = "5.0.2"

from .config import DriverConfig, ImageArchitecture
from .driver import Driver
from .flags import CREATE_FLAGS, DriverOptions
from .userdata import YAMLMergeError, merge_yaml_docs
from .validation import FlagError

__all__ = [
    "CREATE_FLAGS",
    "Driver",
    "DriverConfig",
    "DriverOptions",
    "FlagError",
    "ImageArchitecture",
    "YAMLMergeError",
    "merge_yaml_docs",
]
