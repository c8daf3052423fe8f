"""Hetzner Cloud machine driver: configuration from create flags."""

import logging
from typing import List, Optional

from .config import DriverConfig
from .flags import (
    CREATE_FLAGS,
    DRIVER_NAME,
    FLAG_ADDITIONAL_KEYS,
    FLAG_API_TOKEN,
    FLAG_DISABLE_PUBLIC,
    FLAG_DISABLE_PUBLIC_4,
    FLAG_DISABLE_PUBLIC_6,
    FLAG_EXISTING_KEY_ID,
    FLAG_EXISTING_KEY_PATH,
    FLAG_FIREWALLS,
    FLAG_IMAGE,
    FLAG_IMAGE_ARCH,
    FLAG_IMAGE_ID,
    FLAG_LOCATION,
    FLAG_NETWORKS,
    FLAG_PRIMARY_4,
    FLAG_PRIMARY_6,
    FLAG_SERVER_TYPE,
    FLAG_SSH_PORT,
    FLAG_SSH_USER,
    FLAG_USE_PRIVATE_NETWORK,
    FLAG_VOLUMES,
    FLAG_WAIT_FOR_RUNNING_TIMEOUT,
    FLAG_WAIT_ON_ERROR,
    FLAG_WAIT_ON_POLLING,
    LEGACY_FLAG_DISABLE_PUBLIC_4,
    LEGACY_FLAG_DISABLE_PUBLIC_6,
    DriverOptions,
    Flag,
)
from .userdata import get_user_data, set_user_data_flags
from .validation import (
    FlagError,
    deprecated_boolean_flag,
    set_image_arch,
    set_labels_from_flags,
    set_placement_group_flags,
    verify_image_flags,
    verify_key_flags,
    verify_network_flags,
)

logger = logging.getLogger(__name__)


class Driver:
    """Hetzner Cloud driver for the host orchestration tool.

    Only the configuration side lives here; server lifecycle calls are made
    by the host against the Hetzner Cloud API using ``self.config``.
    """

    def __init__(self, machine_name: str = "", config: Optional[DriverConfig] = None):
        self.machine_name = machine_name
        self.config = config or DriverConfig()

    @staticmethod
    def driver_name() -> str:
        return DRIVER_NAME

    @staticmethod
    def get_create_flags() -> List[Flag]:
        return list(CREATE_FLAGS)

    def set_config_from_flags(self, opts: DriverOptions) -> DriverConfig:
        """Populate and validate the configuration from create flags.

        Returns:
            The populated configuration

        Raises:
            FlagError: If flags are missing, malformed or conflict
            YAMLMergeError: If additional user data cannot be merged
            OSError: If a user data file needed for merging cannot be read
        """
        config = self.config

        config.access_token = opts.string(FLAG_API_TOKEN)
        config.image = opts.string(FLAG_IMAGE)
        config.image_id = opts.int(FLAG_IMAGE_ID)
        set_image_arch(config, opts.string(FLAG_IMAGE_ARCH))
        config.location = opts.string(FLAG_LOCATION)
        config.server_type = opts.string(FLAG_SERVER_TYPE)
        config.key_id = opts.int(FLAG_EXISTING_KEY_ID)
        config.existing_key_path = opts.string(FLAG_EXISTING_KEY_PATH)

        set_user_data_flags(config, opts)

        config.volumes = opts.string_slice(FLAG_VOLUMES)
        config.networks = opts.string_slice(FLAG_NETWORKS)

        disable_public = opts.bool(FLAG_DISABLE_PUBLIC)
        config.use_private_network = opts.bool(FLAG_USE_PRIVATE_NETWORK) or disable_public
        config.disable_public_ipv4 = deprecated_boolean_flag(
            config, opts, FLAG_DISABLE_PUBLIC_4, LEGACY_FLAG_DISABLE_PUBLIC_4) or disable_public
        config.disable_public_ipv6 = deprecated_boolean_flag(
            config, opts, FLAG_DISABLE_PUBLIC_6, LEGACY_FLAG_DISABLE_PUBLIC_6) or disable_public
        config.primary_ipv4 = opts.string(FLAG_PRIMARY_4)
        config.primary_ipv6 = opts.string(FLAG_PRIMARY_6)
        config.firewalls = opts.string_slice(FLAG_FIREWALLS)
        config.additional_keys = opts.string_slice(FLAG_ADDITIONAL_KEYS)

        config.ssh_user = opts.string(FLAG_SSH_USER)
        config.ssh_port = opts.int(FLAG_SSH_PORT)
        config.wait_on_error = opts.int(FLAG_WAIT_ON_ERROR)
        config.wait_on_polling = opts.int(FLAG_WAIT_ON_POLLING)
        config.wait_for_running_timeout = opts.int(FLAG_WAIT_FOR_RUNNING_TIMEOUT)

        set_placement_group_flags(config, opts)
        set_labels_from_flags(config, opts)

        if not config.access_token:
            raise FlagError(f"hetzner requires --{FLAG_API_TOKEN} to be set")

        verify_key_flags(config)
        verify_image_flags(config)
        verify_network_flags(config)

        if config.uses_deprecated_flags:
            logger.warning("!!!! BREAKING-V6 !!!! some of the used flags are deprecated and will be removed "
                           "in the next major release; see the warnings above for replacements")

        logger.info(f"Configured machine '{self.machine_name}' with image "
                    f"{config.image or config.image_id} on {config.server_type}")
        return config

    def get_user_data(self) -> str:
        return get_user_data(self.config)
