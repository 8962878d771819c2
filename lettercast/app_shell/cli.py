import argparse
import logging
import os
import sys
from pathlib import Path

import uvicorn

from lettercast.adapters.sqlite.migrator import SQLiteMigrator
from lettercast.app_shell.context import ServiceContext
from lettercast.app_shell.logging_config import build_log_config, setup_logging
from lettercast.components.newsletter import PublishInput
from lettercast.core.errors import LettercastError
from lettercast.settings import Settings, load_settings, resolve_config_path
from lettercast.settings.loader import CONFIG_PATH_ENV

logger = logging.getLogger("lettercast.cli")


def get_settings(config_path: str | None) -> Settings:
    path = Path(config_path) if config_path else resolve_config_path()
    try:
        return load_settings(path)
    except (FileNotFoundError, ValueError) as e:
        print(f"CRITICAL: {e}", file=sys.stderr)
        sys.exit(1)


def handle_serve(settings: Settings, args: argparse.Namespace) -> None:
    app_cfg = settings.application
    # create_app runs in the server process and reads the path from the environment
    if args.config:
        os.environ[CONFIG_PATH_ENV] = args.config
    uvicorn.run(
        "lettercast.api.main:create_app",
        factory=True,
        host=args.host or app_cfg.host,
        port=args.port or app_cfg.port,
        log_config=build_log_config(settings.log_level),
    )


def handle_migrate(settings: Settings, args: argparse.Namespace) -> None:
    db_path = Path(settings.database.path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    applied = SQLiteMigrator(str(db_path), settings.migrations_dir).run_migrations()
    if applied:
        print(f"Applied {len(applied)} migration(s): {', '.join(applied)}")
    else:
        print("Database is up to date.")


def handle_publish(settings: Settings, args: argparse.Namespace) -> None:
    content = Path(args.content_file).read_text(encoding="utf-8")
    ctx = ServiceContext.create(settings)
    try:
        result = ctx.broadcast_workflow().publish(
            PublishInput(title=args.title, html_content=content)
        )
    except LettercastError as e:
        logger.error("Publish failed: %s", e, exc_info=e)
        sys.exit(1)
    finally:
        ctx.close()

    print(f"Delivered: {len(result.delivered)}")
    if result.failed:
        print(f"Failed: {', '.join(result.failed)}")
    if result.skipped:
        print(f"Skipped (invalid stored email): {result.skipped}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Lettercast newsletter service")
    parser.add_argument("--config", help="Path to configuration.yaml")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # serve
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", help="Override application.host")
    serve_parser.add_argument("--port", type=int, help="Override application.port")

    # migrate
    subparsers.add_parser("migrate", help="Apply pending database migrations")

    # publish
    publish_parser = subparsers.add_parser(
        "publish", help="Send an issue to all confirmed subscribers"
    )
    publish_parser.add_argument("--title", required=True, help="Issue title")
    publish_parser.add_argument(
        "--content-file", required=True, help="Path to the HTML body of the issue"
    )

    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    settings = get_settings(args.config)
    setup_logging(settings.log_level)

    if args.command == "serve":
        handle_serve(settings, args)
    elif args.command == "migrate":
        handle_migrate(settings, args)
    elif args.command == "publish":
        handle_publish(settings, args)


if __name__ == "__main__":
    main()
