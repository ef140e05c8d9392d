"""CLI entry point for snapthink."""

from __future__ import annotations

import argparse
import asyncio
import sys

from snapthink.app import SnapThinkApp
from snapthink.config import AppConfig, load_config
from snapthink.console import ConsoleUI
from snapthink.log import setup_logging


def _add_config_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-c", "--config", default="config.yaml", help="Path to config file")
    parser.add_argument("-e", "--env", default=".env", help="Path to .env file")


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="snapthink",
        description="Chat with a local LLM and keep every conversation",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    _add_config_args(subparsers.add_parser("start", help="Open the chat console"))
    _add_config_args(subparsers.add_parser("config-check", help="Validate configuration"))
    _add_config_args(subparsers.add_parser("list", help="List stored chats"))

    args = parser.parse_args()

    if args.command is None:
        args.command = "start"
        args.config = "config.yaml"
        args.env = ".env"

    if args.command == "config-check":
        _check_config(args.config, args.env)
    elif args.command == "list":
        asyncio.run(_list_chats(_load(args.config, args.env)))
    elif args.command == "start":
        _run(_load(args.config, args.env))


def _load(config_path: str, env_path: str) -> AppConfig:
    try:
        config = load_config(config_path, env_path, required=False)
    except Exception as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)
    setup_logging(config.log_level, config.log_format)
    return config


def _check_config(config_path: str, env_path: str) -> None:
    """Validate configuration and print summary."""
    try:
        config = load_config(config_path, env_path)
    except Exception as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    print(f"Configuration valid: {config_path}")
    print(f"  Data directory: {config.data_dir}")
    print(f"  Backend       : {config.ollama.base_url}")
    print(f"  Model         : {config.ollama.model}")
    timeout = f"{config.ollama.timeout}s" if config.ollama.timeout else "(none)"
    print(f"  Timeout       : {timeout}")
    print(f"  Storage       : {config.storage.db_path}")


async def _list_chats(config: AppConfig) -> None:
    app = SnapThinkApp(config)
    await app.start()
    try:
        sessions = app.controller.sessions
        if not sessions:
            print("No chats stored.")
        for session in sessions:
            print(f"{session.id}  {session.name}")
    finally:
        await app.stop()


def _run(config: AppConfig) -> None:
    """Start the application and hand control to the console."""

    async def _async_main() -> None:
        ui: ConsoleUI | None = None

        def _on_warning(text: str) -> None:
            if ui is not None:
                ui.warn(text)

        app = SnapThinkApp(config, on_warning=_on_warning)
        ui = ConsoleUI(app.controller)
        await app.start()
        try:
            await ui.run()
        finally:
            await app.stop()

    try:
        asyncio.run(_async_main())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
