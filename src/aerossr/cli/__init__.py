"""AeroSSR CLI: project scaffolding and the server command.

Entry point registered as ``aerossr`` in ``pyproject.toml``::

    [project.scripts]
    aerossr = "aerossr.cli:main"
"""

import argparse
import sys


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``aerossr`` command."""
    parser = argparse.ArgumentParser(
        prog="aerossr",
        description="AeroSSR: server-side rendering with on-demand JavaScript bundles.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- aerossr init -----------------------------------------------------
    init_parser = subparsers.add_parser("init", help="Scaffold a new project")
    init_parser.add_argument(
        "directory",
        nargs="?",
        default=".",
        help="Project directory (created if missing)",
    )

    # -- aerossr run ------------------------------------------------------
    run_parser = subparsers.add_parser("run", help="Start the server")
    run_parser.add_argument("app", help="Import string (e.g. app:app)")
    run_parser.add_argument("--host", default=None, help="Bind host address")
    run_parser.add_argument("--port", type=int, default=None, help="Bind port number")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "init":
        from aerossr.cli._init import init_project

        init_project(args)
    elif args.command == "run":
        from aerossr.cli._run import run_app

        run_app(args)
