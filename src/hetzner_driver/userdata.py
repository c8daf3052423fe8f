"""Cloud-init user data handling and YAML document merging."""

import logging
from io import StringIO
from typing import Any, Dict

from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap, CommentedSeq
from ruamel.yaml.error import YAMLError

from .config import DriverConfig
from .flags import (
    FLAG_ADDITIONAL_USER_DATA,
    FLAG_USER_DATA,
    FLAG_USER_DATA_FILE,
    LEGACY_FLAG_USER_DATA_FROM_FILE,
    DriverOptions,
)
from .validation import FlagError

logger = logging.getLogger(__name__)

CLOUD_CONFIG_HEADER = "#cloud-config"


class YAMLMergeError(Exception):
    """Exception raised when user data documents cannot be merged."""
    pass


def _yaml() -> YAML:
    # Round-trip mode keeps mapping key order and the source's flow style
    yaml = YAML()
    yaml.preserve_quotes = True
    return yaml


def _load_mapping(doc: str, which: str) -> Dict[str, Any]:
    try:
        data = _yaml().load(doc)
    except YAMLError as e:
        raise YAMLMergeError(f"failed to unmarshal {which} YAML: {e}") from e

    if data is None:
        return CommentedMap()
    if not isinstance(data, dict):
        raise YAMLMergeError(
            f"failed to unmarshal {which} YAML: expected a mapping, got {type(data).__name__}"
        )
    return data


def merge_maps(dst: Dict[str, Any], src: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge src into dst.

    Merge rules:
    - Mappings under the same key are merged recursively
    - Sequences under the same key are concatenated (dst items first)
    - Any other src value replaces the dst value

    Keys of dst are updated in place, but nested mappings and sequences are
    replaced by merged copies: anchors and aliases share one object, and
    merging under one key must not leak into the keys aliasing it.

    Returns:
        dst
    """
    for key, value in src.items():
        current = dst.get(key)
        if isinstance(value, dict) and isinstance(current, dict):
            dst[key] = merge_maps(CommentedMap(current), value)
        elif isinstance(value, list) and isinstance(current, list):
            merged = CommentedSeq(current)
            merged.extend(value)
            dst[key] = merged
        else:
            dst[key] = value
    return dst


def merge_yaml_docs(doc1: str, doc2: str) -> str:
    """Merge two YAML documents, merging arrays under the same key.

    doc2 is merged into doc1, so doc2 wins on scalar conflicts. The result
    always starts with the ``#cloud-config`` marker.

    Raises:
        YAMLMergeError: If either document is not a YAML mapping, or the
            merged document cannot be serialized
    """
    first = _load_mapping(doc1, "first")
    second = _load_mapping(doc2, "second")

    merged = merge_maps(first, second)

    stream = StringIO()
    try:
        _yaml().dump(merged, stream)
    except YAMLError as e:
        raise YAMLMergeError(f"failed to marshal merged YAML: {e}") from e

    result = stream.getvalue()
    if not result.lstrip().startswith(CLOUD_CONFIG_HEADER):
        result = f"{CLOUD_CONFIG_HEADER}\n{result}"
    return result


def merge_additional_user_data(additional_user_data: str, user_data: str) -> str:
    """Merge user data over additional user data passed on the command line.

    Literal ``\\n`` sequences in the additional user data become newlines,
    so multi-line YAML can be passed through a single-line flag.
    """
    additional = additional_user_data.replace("\\n", "\n")
    try:
        return merge_yaml_docs(additional, user_data)
    except YAMLMergeError as e:
        raise YAMLMergeError(f"failed to merge user data YAML: {e}") from e


def _read_user_data_file(path: str) -> str:
    with open(path, 'r', encoding='utf-8') as f:
        return f.read()


def set_user_data_flags(config: DriverConfig, opts: DriverOptions):
    """Populate user data fields from the user data flags.

    Raises:
        FlagError: If mutually exclusive user data flags are combined
        YAMLMergeError: If additional user data cannot be merged
        OSError: If a user data file needed for merging cannot be read
    """
    user_data = opts.string(FLAG_USER_DATA)
    user_data_file = opts.string(FLAG_USER_DATA_FILE)
    additional_user_data = opts.string(FLAG_ADDITIONAL_USER_DATA)

    if opts.bool(LEGACY_FLAG_USER_DATA_FROM_FILE):
        if user_data_file:
            raise FlagError(f"--{FLAG_USER_DATA_FILE} and --{LEGACY_FLAG_USER_DATA_FROM_FILE} "
                            f"are mutually exclusive")

        logger.warning(f"--{LEGACY_FLAG_USER_DATA_FROM_FILE} is DEPRECATED FOR REMOVAL, "
                       f"pass '--{FLAG_USER_DATA_FILE} \"{user_data}\"'")
        config.mark_deprecated_usage()

        if additional_user_data:
            content = _read_user_data_file(user_data)
            config.user_data = merge_additional_user_data(additional_user_data, content)
            config.user_data_file = ""
        else:
            config.user_data_file = user_data
        return

    config.user_data = user_data
    config.user_data_file = user_data_file

    if config.user_data and config.user_data_file:
        raise FlagError(f"--{FLAG_USER_DATA} and --{FLAG_USER_DATA_FILE} are mutually exclusive")

    if additional_user_data:
        base = config.user_data
        if config.user_data_file:
            base = _read_user_data_file(config.user_data_file)
        config.user_data = merge_additional_user_data(additional_user_data, base)
        config.user_data_file = ""
        logger.debug(f"Merged --{FLAG_ADDITIONAL_USER_DATA} into user data")


def get_user_data(config: DriverConfig) -> str:
    """Return the cloud-init user data to send on server creation.

    Raises:
        OSError: If the configured user data file cannot be read
    """
    if not config.user_data_file:
        return config.user_data
    return _read_user_data_file(config.user_data_file)
