"""Host identification: pick the preconfigured host whose NICs are present locally."""

from collections.abc import Mapping
from typing import Iterable

from ._util import debug as _debug_fn
from .errors import HostNotFoundError
from .schema import Host


def _debug(msg: str) -> None:
    _debug_fn("resolver", msg)


def identify_host(hosts: Iterable[Host], network_interfaces: Mapping) -> Host:
    """Return the first host with at least one declared MAC present in *network_interfaces*.

    Hosts are tried in catalog order and interfaces in declaration order; the
    first hit wins, there is no scoring. Catalog authors control tie-breaks
    by ordering. *network_interfaces* must do case-insensitive lookups
    (see NetworkInterfaces); declared MACs are already lower-case.
    """
    for host in hosts:
        for iface in host.interfaces:
            if iface.mac_address and iface.mac_address in network_interfaces:
                _debug(f"host {host.name!r} matched on {iface.logical_name} ({iface.mac_address})")
                return host
    raise HostNotFoundError("none of the preconfigured hosts match local NICs")
