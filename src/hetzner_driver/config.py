"""Driver configuration record."""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, PrivateAttr

from .flags import DEFAULT_SERVER_TYPE, DEFAULT_SSH_PORT, DEFAULT_SSH_USER, DEFAULT_WAIT_ON_POLLING


class ImageArchitecture(str, Enum):
    """CPU architecture used for image lookup."""

    ARM = "arm"
    X86 = "x86"


class DriverConfig(BaseModel):
    """Configuration of a single Hetzner machine, populated from create flags."""

    access_token: str = Field(default="", description="Hetzner Cloud API token")
    image: str = Field(default="", description="Image name used for server creation")
    image_id: int = Field(default=0, description="Image ID used for server creation")
    image_arch: Optional[ImageArchitecture] = Field(
        default=None,
        description="Architecture for image lookup by name; None when unset"
    )
    server_type: str = Field(default=DEFAULT_SERVER_TYPE, description="Server type to create")
    location: str = Field(default="", description="Location to create the server at")

    key_id: int = Field(default=0, description="ID of an existing SSH key")
    existing_key_path: str = Field(default="", description="Path to an existing private key")
    additional_keys: List[str] = Field(default_factory=list, description="Additional public keys")

    user_data: str = Field(default="", description="Inline cloud-init user data")
    user_data_file: str = Field(default="", description="Path to a cloud-init user data file")

    volumes: List[str] = Field(default_factory=list)
    networks: List[str] = Field(default_factory=list)
    firewalls: List[str] = Field(default_factory=list)
    use_private_network: bool = Field(default=False, description="Attach and use the private network")
    disable_public_ipv4: bool = Field(default=False)
    disable_public_ipv6: bool = Field(default=False)
    primary_ipv4: str = Field(default="", description="Existing primary IPv4 to assign")
    primary_ipv6: str = Field(default="", description="Existing primary IPv6 to assign")

    server_labels: Dict[str, str] = Field(default_factory=dict)
    key_labels: Dict[str, str] = Field(default_factory=dict)
    placement_group: str = Field(default="")

    ssh_user: str = Field(default=DEFAULT_SSH_USER)
    ssh_port: int = Field(default=DEFAULT_SSH_PORT)
    wait_on_error: int = Field(default=0, description="Seconds to wait after a create error")
    wait_on_polling: int = Field(default=DEFAULT_WAIT_ON_POLLING, description="Seconds between state polls")
    wait_for_running_timeout: int = Field(default=0, description="Seconds to wait for the server to run; 0 waits forever")

    _uses_deprecated_flags: bool = PrivateAttr(default=False)

    @property
    def is_existing_key(self) -> bool:
        return self.key_id != 0

    @property
    def uses_deprecated_flags(self) -> bool:
        return self._uses_deprecated_flags

    def mark_deprecated_usage(self):
        self._uses_deprecated_flags = True

    def to_dict(self) -> Dict[str, Any]:
        """JSON-safe view with the API token masked."""
        data = self.model_dump(mode="json")
        if data["access_token"]:
            data["access_token"] = "********"
        return data
