"""Command line entry point: scaffolding of controllers and services."""

from __future__ import annotations

import argparse
import sys
from typing import Optional, Sequence

from .scaffold import controller_command, service_command


def _first(args: list[str]) -> str:
    return args[0] if args else ""


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="fuego", description="The framework for busy developers")
    sub = parser.add_subparsers(dest="command")

    controller = sub.add_parser("controller", aliases=["c"], help="creates a new controller file")
    controller.add_argument("entity", nargs="*")
    controller.add_argument(
        "--with-service", action="store_true", help="enable service file generation"
    )
    controller.set_defaults(
        run=lambda a: controller_command(_first(a.entity), with_service=a.with_service)
    )

    service = sub.add_parser("service", aliases=["s"], help="creates a new service file")
    service.add_argument("entity", nargs="*")
    service.set_defaults(run=lambda a: service_command(_first(a.entity)))
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    run = getattr(args, "run", None)
    if run is None:
        print("The 🔥 CLI!")
        return 0
    try:
        run(args)
    except OSError as exc:
        print(f"fuego: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())