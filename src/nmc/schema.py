"""
Host catalog schema.

Contract between the generator (which writes host_config.yaml at build time)
and the apply pipeline (which reads it at boot). Also holds the result of a
reconcile run so the CLI and tests can inspect what was installed.
"""

import re
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .errors import ConfigFormatError

HOST_MAPPING_FILE = "host_config.yaml"
CONNECTION_FILE_EXT = ".nmconnection"


class _Loader(yaml.SafeLoader):
    """SafeLoader that does not read colon-separated digits as base-60 integers."""


_Loader.yaml_implicit_resolvers = {
    first: [(tag, rx) for tag, rx in resolvers if tag != "tag:yaml.org,2002:int"]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}
_Loader.add_implicit_resolver(
    "tag:yaml.org,2002:int",
    re.compile(
        r"""^(?:[-+]?0b[0-1_]+
        |[-+]?0[0-7_]+
        |[-+]?(?:0|[1-9][0-9_]*)
        |[-+]?0x[0-9a-fA-F_]+)$""",
        re.X,
    ),
    list("-+0123456789"),
)


def load_yaml(text: str) -> Any:
    """yaml.safe_load, except 00:11:22:33:44:55 stays a string."""
    return yaml.load(text, Loader=_Loader)


def load_yaml_all(text: str) -> Iterator[Any]:
    return yaml.load_all(text, Loader=_Loader)


def normalize_mac(mac: str) -> str:
    """Lower-case and strip a MAC address so lookups ignore letter case."""
    return mac.strip().lower()


class Interface(BaseModel):
    """A NIC declared for a host: the name its profile uses and its hardware address."""

    logical_name: str
    mac_address: Optional[str] = None
    interface_type: Optional[str] = None  # e.g. "ethernet", "linux-bridge"

    model_config = {"frozen": True}

    @field_validator("mac_address")
    @classmethod
    def _normalize_mac(cls, v: Optional[str]) -> Optional[str]:
        return normalize_mac(v) if v else None


class Host(BaseModel):
    """A preconfigured machine: a name and the interfaces it is expected to have."""

    name: str = Field(alias="hostname")
    interfaces: List[Interface] = Field(default_factory=list)

    model_config = {"frozen": True, "populate_by_name": True}

    @model_validator(mode="after")
    def _unique_macs(self) -> "Host":
        seen = set()
        for iface in self.interfaces:
            if iface.mac_address is None:
                continue
            if iface.mac_address in seen:
                raise ValueError(
                    f"host {self.name!r} declares MAC address {iface.mac_address} more than once"
                )
            seen.add(iface.mac_address)
        return self

    @property
    def source_dir(self) -> str:
        """Subdirectory of the config root holding this host's profiles."""
        return self.name


class ReconcileResult(BaseModel):
    """What a reconcile run installed, plus advisory warnings."""

    host: str
    installed: List[str] = Field(default_factory=list)
    renamed: Dict[str, str] = Field(default_factory=dict)  # logical -> live
    warnings: List[dict] = Field(default_factory=list)


def parse_hosts(text: str, source: str = "<string>") -> List[Host]:
    """Parse host mapping YAML. Each YAML document holds a list of hosts."""
    try:
        docs = list(load_yaml_all(text))
    except yaml.YAMLError as exc:
        raise ConfigFormatError(f"parsing {source}: {exc}") from exc

    raw: List[dict] = []
    for doc in docs:
        if doc is None:
            continue
        if not isinstance(doc, list):
            raise ConfigFormatError(f"parsing {source}: expected a list of hosts")
        raw.extend(doc)

    try:
        hosts = [Host.model_validate(h) for h in raw]
    except ValidationError as exc:
        raise ConfigFormatError(f"parsing {source}: {exc}") from exc

    names = set()
    for host in hosts:
        if host.name in names:
            raise ConfigFormatError(f"parsing {source}: duplicate host {host.name!r}")
        names.add(host.name)
    return hosts


def load_hosts(config_dir: Path) -> List[Host]:
    """Load the host catalog from <config_dir>/host_config.yaml."""
    path = Path(config_dir) / HOST_MAPPING_FILE
    return parse_hosts(path.read_text(), source=str(path))


def append_hosts(config_dir: Path, hosts: List[Host]) -> Path:
    """Append hosts to <config_dir>/host_config.yaml as a new YAML document."""
    path = Path(config_dir) / HOST_MAPPING_FILE
    data = [h.model_dump(by_alias=True, exclude_none=True) for h in hosts]
    with open(path, "a") as f:
        yaml.safe_dump(data, f, explicit_start=True, sort_keys=False)
    return path
