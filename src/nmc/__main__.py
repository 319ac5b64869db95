"""
CLI entry point. Parses args and delegates to pipeline.
"""

import sys
from typing import Optional

from .cli import parse_args
from .pipeline import run_apply, run_generate


def _print_warnings(warnings: list) -> None:
    for w in warnings:
        print(f"WARNING: {w['message']}", file=sys.stderr)


def _generate(args) -> None:
    from .nmstate import NmstatectlCompiler

    warnings: list = []
    hosts = run_generate(
        config_dir=args.config_dir,
        output_dir=args.output_dir,
        compiler=NmstatectlCompiler(),
        warnings=warnings,
    )
    _print_warnings(warnings)
    if hosts:
        print(f"Generated config for {len(hosts)} host(s) in {args.output_dir}")
    else:
        print(f"Generated unified config in {args.output_dir}")


def _apply(args) -> None:
    from .inventory import NetworkInterfaces

    network_interfaces = NetworkInterfaces.from_sysfs(args.sys_class_net)
    result = run_apply(
        config_dir=args.config_dir,
        destination_dir=args.destination_dir,
        network_interfaces=network_interfaces,
    )
    _print_warnings(result.warnings)
    print(f"Identified host: {result.host}")
    for logical, live in result.renamed.items():
        print(f"  {logical} -> {live}")
    print(f"Installed {len(result.installed)} connection file(s) in {args.destination_dir}")


def main(argv: Optional[list] = None) -> int:
    args = parse_args(argv)
    try:
        if args.command == "generate":
            _generate(args)
        else:
            _apply(args)
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
