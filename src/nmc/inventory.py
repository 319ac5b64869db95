"""
Interface inventory: MAC address -> interface name as assigned by the running kernel.

Keys are normalized with normalize_mac, and so is every lookup, so callers
can query with whatever letter case their MAC came in.
"""

from collections.abc import Mapping
from pathlib import Path
from typing import Dict, Iterator, Optional

from ._util import debug as _debug_fn
from .schema import normalize_mac

SYS_CLASS_NET = Path("/sys/class/net")

# Interfaces without a usable hardware address.
_NULL_MAC = "00:00:00:00:00:00"


def _debug(msg: str) -> None:
    _debug_fn("inventory", msg)


class NetworkInterfaces(Mapping):
    """Read-only, case-insensitive mapping of MAC address to live interface name."""

    def __init__(self, entries: Optional[Dict[str, str]] = None):
        self._by_mac: Dict[str, str] = {}
        for mac, name in (entries or {}).items():
            self._by_mac[normalize_mac(mac)] = name

    def __getitem__(self, mac: str) -> str:
        return self._by_mac[normalize_mac(mac)]

    def __contains__(self, mac: object) -> bool:
        return isinstance(mac, str) and normalize_mac(mac) in self._by_mac

    def __iter__(self) -> Iterator[str]:
        return iter(self._by_mac)

    def __len__(self) -> int:
        return len(self._by_mac)

    def __repr__(self) -> str:
        return f"NetworkInterfaces({self._by_mac!r})"

    @classmethod
    def from_sysfs(cls, sys_class_net: Path = SYS_CLASS_NET) -> "NetworkInterfaces":
        """Probe /sys/class/net/<iface>/address for every interface on the system.

        Loopback and interfaces reporting an all-zero address are skipped, as
        are entries whose address cannot be read.
        """
        entries: Dict[str, str] = {}
        for iface in sorted(Path(sys_class_net).iterdir(), key=lambda p: p.name):
            if iface.name == "lo":
                continue
            try:
                mac = (iface / "address").read_text().strip()
            except (PermissionError, OSError) as exc:
                _debug(f"cannot read address of {iface.name}: {exc}")
                continue
            if not mac or mac == _NULL_MAC:
                continue
            # The first interface reporting a MAC keeps it; bond slaves can share one.
            entries.setdefault(normalize_mac(mac), iface.name)
        _debug(f"retrieved network interfaces: {entries}")
        return cls(entries)
