"""
Pipeline orchestrator.

generate (build time): network-state documents -> per-host profile dirs + host_config.yaml.
apply (boot time): host_config.yaml + local NICs -> identify host -> install its profiles.
"""

from collections.abc import Mapping
from pathlib import Path
from typing import List, Optional

from ._util import debug as _debug_fn
from .generator import ALL_NODES_DIR, generate_all
from .nmstate import Compiler
from .reconciler import copy_connection_files
from .resolver import identify_host
from .schema import HOST_MAPPING_FILE, Host, ReconcileResult, load_hosts


def _debug(msg: str) -> None:
    _debug_fn("pipeline", msg)


def run_generate(
    *,
    config_dir: Path,
    output_dir: Path,
    compiler: Compiler,
    warnings: Optional[list] = None,
) -> List[Host]:
    """Generate profiles for every network-state file in config_dir."""
    return generate_all(Path(config_dir), Path(output_dir), compiler, warnings)


def run_apply(
    *,
    config_dir: Path,
    destination_dir: Path,
    network_interfaces: Mapping,
) -> ReconcileResult:
    """
    Identify this host and install its connection profiles into destination_dir.

    Without a host mapping file, a unified _all profile set is installed as is.
    """
    config_dir = Path(config_dir)
    mapping = config_dir / HOST_MAPPING_FILE

    if mapping.exists():
        hosts = load_hosts(config_dir)
        _debug(f"loaded hosts config: {[h.name for h in hosts]}")
        host = identify_host(hosts, network_interfaces)
    elif (config_dir / ALL_NODES_DIR).is_dir():
        _debug(f"no {HOST_MAPPING_FILE}, using unified config")
        host = Host(name=ALL_NODES_DIR)
    else:
        raise FileNotFoundError(
            f"neither {mapping} nor {config_dir / ALL_NODES_DIR} exists"
        )

    return copy_connection_files(host, network_interfaces, config_dir, Path(destination_dir))
