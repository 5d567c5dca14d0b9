"""Bramble CLI: bramble build / bramble serve / bramble init.

Entry point for the ``bramble`` command-line interface.
"""

import argparse
import asyncio
import logging
import shutil
import sys
from pathlib import Path
from typing import Any

from bramble.config import Settings, write_default_site_config
from bramble.core.errors import BrambleError
from bramble.core.render import DEFAULT_VIEWS_PATH

logger = logging.getLogger(__name__)


def _add_build_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--input", type=Path, help="Content directory (default: .)")
    parser.add_argument("--output", type=Path, help="Output directory (default: _site)")
    parser.add_argument("--config", type=Path, help="Site config file")
    parser.add_argument("--drafts", action="store_true", help="Include draft pages")
    parser.add_argument("--quiet", action="store_true", help="Only log warnings and errors")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the bramble CLI."""
    parser = argparse.ArgumentParser(
        prog="bramble",
        description="Static site generator for interlinked markdown notes.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # bramble build
    build_parser = subparsers.add_parser("build", help="Build the site once")
    _add_build_arguments(build_parser)

    # bramble serve
    serve_parser = subparsers.add_parser(
        "serve",
        help="Build, watch for changes and serve with live reload",
    )
    _add_build_arguments(serve_parser)
    serve_parser.add_argument("--host", help="Bind address (default: 127.0.0.1)")
    serve_parser.add_argument("--port", type=int, help="Bind port (default: 8000)")

    # bramble init
    init_parser = subparsers.add_parser(
        "init",
        help="Write the default site config and views",
    )
    init_parser.add_argument("--config", type=Path, help="Site config file")
    init_parser.add_argument("--quiet", action="store_true", help="Only log warnings and errors")

    return parser


def settings_from_args(args: argparse.Namespace) -> Settings:
    """Settings from the environment, overridden by any flags given."""
    overrides: dict[str, Any] = {}
    for flag, field in (
        ("input", "input_dir"),
        ("output", "output_dir"),
        ("config", "site_config"),
        ("host", "host"),
        ("port", "port"),
    ):
        value = getattr(args, flag, None)
        if value is not None:
            overrides[field] = value
    if getattr(args, "drafts", False):
        overrides["render_drafts"] = True
    if getattr(args, "quiet", False):
        overrides["quiet"] = True
    return Settings(**overrides)


def init_site(settings: Settings) -> list[Path]:
    """Scaffold the site config, views and assets directories.

    Existing files are left alone.

    Returns:
        The files written.
    """
    written: list[Path] = []
    if write_default_site_config(settings.site_config):
        written.append(settings.site_config)

    settings.views_dir.mkdir(parents=True, exist_ok=True)
    for view in sorted(DEFAULT_VIEWS_PATH.iterdir()):
        target = settings.views_dir / view.name
        if not view.is_file() or target.exists():
            continue
        shutil.copyfile(view, target)
        written.append(target)

    settings.assets_dir.mkdir(parents=True, exist_ok=True)
    return written


def _configure_logging(quiet: bool) -> None:
    logging.basicConfig(
        level=logging.WARNING if quiet else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )


def main(argv: list[str] | None = None) -> int:
    """CLI entry point. Returns the process exit code."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    settings = settings_from_args(args)
    _configure_logging(settings.quiet)

    try:
        if args.command == "build":
            from bramble.core.builder import build

            asyncio.run(build(settings))
        elif args.command == "serve":
            import uvicorn

            from bramble.main import create_app

            logger.info("Serving %s on http://%s:%d", settings.output_dir, settings.host, settings.port)
            uvicorn.run(
                create_app(settings),
                host=settings.host,
                port=settings.port,
                log_level="warning" if settings.quiet else "info",
            )
        elif args.command == "init":
            for path in init_site(settings):
                logger.info("Created %s", path)
    except BrambleError as e:
        logger.error("%s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
