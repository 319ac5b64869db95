"""
Install a host's connection profiles into the NetworkManager directory.

Profiles are authored against logical interface names (eth0, eth1, ...). The
kernel on the target machine may name the same NIC differently, so for each
profile whose logical name maps (by MAC) to a different live name, every
value equal to the logical name is rewritten and the file is installed as
<live name>.nmconnection.

Failures abort immediately; files already written stay in place.
"""

from collections.abc import Mapping
from pathlib import Path
from typing import Optional

from ._util import debug as _debug_fn, make_warning, sorted_entries
from .keyfile import ConnectionProfile, write_profile
from .schema import CONNECTION_FILE_EXT, Host, Interface, ReconcileResult


def _debug(msg: str) -> None:
    _debug_fn("reconciler", msg)


def _declared(host: Host, logical_name: str) -> Optional[Interface]:
    for iface in host.interfaces:
        if iface.logical_name == logical_name:
            return iface
    return None


def _live_name(iface: Interface, network_interfaces: Mapping) -> Optional[str]:
    """Live name for *iface* when it differs from the logical one, else None."""
    if not iface.mac_address or iface.mac_address not in network_interfaces:
        return None
    live = network_interfaces[iface.mac_address]
    if live == iface.logical_name:
        return None
    return live


def copy_connection_files(
    host: Host,
    network_interfaces: Mapping,
    config_dir: Path,
    destination_dir: Path,
) -> ReconcileResult:
    """Copy all *.nmconnection files from <config_dir>/<host> to *destination_dir*.

    Subdirectories and files with other extensions are skipped with a
    warning in the returned result. A profile that fails to parse, and any
    I/O error, is raised.
    """
    source = Path(config_dir) / host.source_dir
    destination_dir = Path(destination_dir)
    result = ReconcileResult(host=host.name)

    entries = sorted_entries(source)
    destination_dir.mkdir(parents=True, exist_ok=True)

    for entry in entries:
        name = entry.name
        if entry.is_dir():
            result.warnings.append(make_warning("reconciler", f"ignoring unexpected directory: {name}"))
            continue
        if entry.suffix != CONNECTION_FILE_EXT:
            result.warnings.append(make_warning("reconciler", f"ignoring unexpected file: {name}"))
            continue

        profile = ConnectionProfile.load(entry)
        stem = entry.stem
        destination = destination_dir / name
        live = None

        iface = _declared(host, stem)
        if iface is None:
            _debug(f"no interface declared for {name}, installing as is")
        else:
            live = _live_name(iface, network_interfaces)
            if live is not None:
                _debug(
                    f"using name {live!r} for interface with MAC address {iface.mac_address!r} "
                    f"instead of the preconfigured {iface.logical_name!r}"
                )
                changed = profile.replace_value(iface.logical_name, live)
                _debug(f"{name}: rewrote {changed} reference(s)")
                destination = destination_dir / f"{live}{CONNECTION_FILE_EXT}"
                result.renamed[iface.logical_name] = live

        _debug(f"storing file {destination}...")
        if live is None:
            # Not renamed: install the source text as is, comments included.
            write_profile(destination, profile.text)
        else:
            profile.save(destination)
        result.installed.append(str(destination))

    return result
