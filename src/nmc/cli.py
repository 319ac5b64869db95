"""
CLI argument parsing. Two subcommands: generate (build time) and apply (boot time).
"""

import argparse
from pathlib import Path
from typing import Optional

from . import __version__
from .inventory import SYS_CLASS_NET

DEFAULT_DESTINATION_DIR = Path("/etc/NetworkManager/system-connections")


def parse_args(argv: Optional[list] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="nmc",
        description="Generate and install NetworkManager connection profiles "
                    "matched to the local NICs by MAC address.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser(
        "generate",
        help="Compile nmstate network-state files into per-host connection profiles",
    )
    gen.add_argument(
        "--config-dir",
        type=Path,
        default=Path("config"),
        help="Directory of network-state files, one per host (default: config)",
    )
    gen.add_argument(
        "-o",
        "--output-dir",
        dest="output_dir",
        type=Path,
        default=Path("_out"),
        help="Where host directories and host_config.yaml are written (default: _out)",
    )

    apply = sub.add_parser(
        "apply",
        help="Identify this host and install its connection profiles",
    )
    apply.add_argument(
        "--config-dir",
        type=Path,
        default=Path("/config"),
        help="Output of 'nmc generate' (default: /config)",
    )
    apply.add_argument(
        "--destination-dir",
        type=Path,
        default=DEFAULT_DESTINATION_DIR,
        help=f"NetworkManager connection directory (default: {DEFAULT_DESTINATION_DIR})",
    )
    apply.add_argument(
        "--sys-class-net",
        type=Path,
        default=SYS_CLASS_NET,
        metavar="DIR",
        help=f"Where to enumerate network interfaces (default: {SYS_CLASS_NET})",
    )

    return parser.parse_args(argv)
