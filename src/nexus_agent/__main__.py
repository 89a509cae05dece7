"""CLI entrypoint for Nexus Agent."""

from __future__ import annotations

import argparse
from collections.abc import Sequence
from importlib import metadata

from .app import NexusAgentApp
from .config import ensure_config_dir
from .models import ActiveMode


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nexus-agent",
        description="Nexus Agent - terminal client for a multi-modal assistant",
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Print version and exit",
    )
    parser.add_argument(
        "--mode",
        choices=[mode.value for mode in ActiveMode],
        default=None,
        help="Start in this generation mode instead of the configured default",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> None:
    """Ensure configuration exists, handle CLI flags, and run the TUI."""

    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    if args.version:
        try:
            version = metadata.version("nexus-agent")
        except metadata.PackageNotFoundError:
            version = "0.0.0"
        print(f"nexus-agent {version}")
        return

    ensure_config_dir()
    app = NexusAgentApp(mode=args.mode)
    app.run()


if __name__ == "__main__":
    main()
