"""Command line entry point.

Stands in for the host framework: loads driver config from TOML, keeps one
JSON state record per instance, and runs ``create`` or ``destroy``.

    kitchen-oraclecloud create default-ol7
    kitchen-oraclecloud --log-level DEBUG destroy default-ol7
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.text import Text

from kitchen_oraclecloud.config import resolve_config
from kitchen_oraclecloud.constants import DEFAULT_CONNECT_TIMEOUT, DEFAULT_SSH_PORT, VERSION
from kitchen_oraclecloud.driver import Instance, OracleCloudDriver
from kitchen_oraclecloud.errors import OracleCloudError
from kitchen_oraclecloud.observability import LogConfig, setup_logging, teardown_logging
from kitchen_oraclecloud.state import DEFAULT_STATE_DIR, HOSTNAME, StateFile
from kitchen_oraclecloud.transport import TCPTransport

console = Console(stderr=True)

_OVERRIDES = ("shape", "image", "project_name", "public_ip", "wait_time", "refresh_time")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kitchen-oraclecloud",
        description="Create and destroy Oracle Compute Cloud test instances",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    parser.add_argument(
        "--project-dir", type=Path, default=None,
        help="Directory holding kitchen.toml (default: current directory)",
    )
    parser.add_argument(
        "--config", type=Path, default=None,
        help="Global config file (default: ~/.kitchen/oraclecloud.toml)",
    )
    parser.add_argument("--state-dir", type=Path, default=DEFAULT_STATE_DIR)
    parser.add_argument(
        "--log-level", default="INFO",
        choices=["TRACE", "DEBUG", "INFO", "WARNING", "ERROR"],
    )
    parser.add_argument("--log-file", default=None)
    parser.add_argument("--port", type=int, default=DEFAULT_SSH_PORT, help="Port probed for reachability")
    parser.add_argument(
        "--connect-timeout", type=float, default=DEFAULT_CONNECT_TIMEOUT,
        help="Seconds to wait for the port to accept connections",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    create = commands.add_parser("create", help="Create the instance unless it already exists")
    create.add_argument("instance")
    create.add_argument("--shape")
    create.add_argument("--image")
    create.add_argument("--project-name")
    create.add_argument("--public-ip", help='"pool" or the name of an IP reservation')
    create.add_argument("--wait-time", type=int)
    create.add_argument("--refresh-time", type=int)

    destroy = commands.add_parser("destroy", help="Destroy the instance if it exists")
    destroy.add_argument("instance")

    return parser


def _overrides(args: argparse.Namespace) -> dict[str, Any]:
    return {
        key: value
        for key in _OVERRIDES
        if (value := getattr(args, key, None)) is not None
    }


def run(args: argparse.Namespace) -> int:
    config = resolve_config(
        project_dir=args.project_dir,
        global_path=args.config,
        overrides=_overrides(args),
    )
    transport = TCPTransport(port=args.port, timeout=args.connect_timeout)
    driver = OracleCloudDriver(config, Instance(args.instance, transport))
    state_file = StateFile(args.instance, args.state_dir)
    state = state_file.read()

    match args.command:
        case "create":
            try:
                driver.create(state)
            finally:
                state_file.write(state)
            console.print(Text.assemble((args.instance, "bold"), " ready at ", str(state.get(HOSTNAME))))
        case "destroy":
            driver.destroy(state)
            state_file.delete()
            console.print(Text.assemble((args.instance, "bold"), " destroyed"))
        case command:
            raise ValueError(f"Unknown command: {command}")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    handler_ids = setup_logging(LogConfig(level=args.log_level, file=args.log_file))
    try:
        return run(args)
    except OracleCloudError as e:
        console.print(Text.assemble(("Error: ", "bold red"), str(e)))
        return 1
    finally:
        teardown_logging(handler_ids)


if __name__ == "__main__":
    raise SystemExit(main())
