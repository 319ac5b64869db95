"""
State-to-profile generation (build time).

Each declarative network-state document is compiled by nmstate into
NetworkManager keyfiles, which are written to <output_dir>/<host>/. When a
whole directory of documents is generated, the interfaces of every host are
also recorded in <output_dir>/host_config.yaml for the apply step.
"""

import os
from pathlib import Path
from typing import List, Optional, Tuple

import yaml

from ._util import debug as _debug_fn, make_warning, sorted_entries
from .errors import CompiledConfigError, GenerateError
from .keyfile import PROFILE_MODE
from .nmstate import Compiler
from .schema import Host, Interface, append_hosts, load_yaml

# (filename, content) pairs as emitted by nmstate.
NetworkConfig = List[Tuple[str, str]]

NM_CONFIG_KEY = "NetworkManager"

# A config dir holding only this file yields one profile set for every host.
ALL_NODES_FILE = "_all.yaml"
ALL_NODES_DIR = "_all"

_HOST_DIR_MODE = 0o700


def _debug(msg: str) -> None:
    _debug_fn("generator", msg)


# ---------------------------------------------------------------------------
# Parsing (pure functions, no I/O)
# ---------------------------------------------------------------------------

def parse_compiled_config(result: str) -> NetworkConfig:
    """Parse nmstate output into (filename, content) pairs.

    The whole document is validated before anything is returned, so a bad
    entry anywhere means no files get written.
    """
    try:
        data = load_yaml(result)
    except yaml.YAMLError as exc:
        raise CompiledConfigError(f"parsing configuration: {exc}") from exc

    if not isinstance(data, dict) or not isinstance(data.get(NM_CONFIG_KEY), list):
        raise CompiledConfigError(f"parsing configuration: missing {NM_CONFIG_KEY!r} list")

    config: NetworkConfig = []
    for entry in data[NM_CONFIG_KEY]:
        if not isinstance(entry, list) or len(entry) != 2:
            raise CompiledConfigError("invalid network manager configuration")
        filename, content = entry
        if not isinstance(filename, str) or not isinstance(content, str):
            raise CompiledConfigError("invalid network manager configuration")
        if not filename or os.sep in filename or filename in (".", ".."):
            raise CompiledConfigError(f"invalid connection file name: {filename!r}")
        config.append((filename, content))
    return config


def extract_interfaces(state: str) -> List[Interface]:
    """Interfaces declared in a network-state document, loopback excluded."""
    try:
        data = load_yaml(state)
    except yaml.YAMLError as exc:
        raise GenerateError(f"invalid network state: {exc}") from exc
    if not isinstance(data, dict):
        raise GenerateError("invalid network state: expected a mapping")

    interfaces: List[Interface] = []
    for iface in data.get("interfaces") or []:
        if not isinstance(iface, dict) or "name" not in iface:
            raise GenerateError("invalid network state: interface without a name")
        iface_type = iface.get("type")
        if iface_type == "loopback":
            continue
        interfaces.append(Interface(
            logical_name=str(iface["name"]),
            mac_address=iface.get("mac-address"),
            interface_type=iface_type,
        ))
    return interfaces


def validate_interfaces(interfaces: List[Interface]) -> None:
    """Every host needs Ethernet interfaces, and each must carry a MAC to be matched on."""
    ethernet = [i for i in interfaces if i.interface_type == "ethernet"]
    if not ethernet:
        raise GenerateError("No Ethernet interfaces were provided")

    missing = [i.logical_name for i in ethernet if not i.mac_address]
    if missing:
        raise GenerateError(
            "Detected Ethernet interfaces without a MAC address: " + ", ".join(missing)
        )


def extract_hostname(path: Path) -> Optional[str]:
    """Host name for a state file: the stem of *.yml/*.yaml, the full name otherwise."""
    path = Path(path)
    if not path.name:
        return None
    if path.suffix in (".yml", ".yaml"):
        return path.stem
    return path.name


# ---------------------------------------------------------------------------
# Writing
# ---------------------------------------------------------------------------

def store_network_config(output_dir: Path, host: str, config: NetworkConfig) -> List[Path]:
    """Create <output_dir>/<host> (must not exist) and write each profile, mode 0600."""
    host_dir = Path(output_dir) / host
    try:
        host_dir.mkdir(mode=_HOST_DIR_MODE)
    except OSError as exc:
        raise OSError(exc.errno, f"creating {str(host_dir)!r} dir: {exc.strerror}", str(host_dir)) from exc

    written: List[Path] = []
    for filename, content in config:
        path = host_dir / filename
        _debug(f"writing {path}")
        path.write_text(content)
        os.chmod(path, PROFILE_MODE)
        written.append(path)
    return written


def _read_state(state_file: Path) -> str:
    path = Path(state_file)
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise GenerateError(f"reading network config {str(path)!r}: {exc}") from exc


def generate(
    host: str,
    state_file: Path,
    compiler: Compiler,
    output_dir: Path = Path("."),
) -> List[Path]:
    """Compile one network-state file into <output_dir>/<host>/*.nmconnection."""
    state = _read_state(state_file)
    result = compiler.compile(state)
    config = parse_compiled_config(result)
    return store_network_config(output_dir, host, config)


def _unique_by_mac(interfaces: List[Interface]) -> List[Interface]:
    """Drop interfaces reusing an earlier MAC (bonds, bridges inheriting a port address)."""
    seen = set()
    unique: List[Interface] = []
    for iface in interfaces:
        if iface.mac_address:
            if iface.mac_address in seen:
                continue
            seen.add(iface.mac_address)
        unique.append(iface)
    return unique


def _generate_host(host: str, state_file: Path, compiler: Compiler, output_dir: Path) -> List[Interface]:
    state = _read_state(state_file)
    interfaces = extract_interfaces(state)
    validate_interfaces(interfaces)
    config = parse_compiled_config(compiler.compile(state))
    store_network_config(output_dir, host, config)
    return interfaces


def generate_all(
    config_dir: Path,
    output_dir: Path,
    compiler: Compiler,
    warnings: Optional[list] = None,
) -> List[Host]:
    """Generate profiles for every network-state file in *config_dir*.

    Returns the hosts recorded in host_config.yaml; empty when the directory
    holds only the unified _all.yaml (no host mapping is written then).
    Subdirectories are skipped and reported through *warnings*.
    """
    config_dir = Path(config_dir)
    output_dir = Path(output_dir)
    if warnings is None:
        warnings = []

    entries = sorted_entries(config_dir)
    if not entries:
        raise GenerateError("Empty config directory")

    output_dir.mkdir(parents=True, exist_ok=True)

    if len(entries) == 1 and entries[0].name == ALL_NODES_FILE and entries[0].is_file():
        _debug(f"generating unified config from {entries[0]}")
        _generate_host(ALL_NODES_DIR, entries[0], compiler, output_dir)
        return []

    hosts: List[Host] = []
    for entry in entries:
        if entry.is_dir():
            warnings.append(make_warning("generator", f"ignoring unexpected dir: {entry.name}"))
            continue

        hostname = extract_hostname(entry)
        if not hostname:
            raise GenerateError(f"invalid file path: {entry}")

        _debug(f"generating config from {entry}...")
        interfaces = _generate_host(hostname, entry, compiler, output_dir)
        host = Host(name=hostname, interfaces=_unique_by_mac(interfaces))
        append_hosts(output_dir, [host])
        hosts.append(host)

    return hosts
