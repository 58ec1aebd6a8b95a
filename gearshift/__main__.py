"""
Gearshift CLI entry point.

Provides command-line interface for running the bot and utility commands.
"""

import argparse
import asyncio
import sys
from pathlib import Path

from gearshift import __version__
from gearshift.commands import CommandRegistry, extract_flags, tokenize
from gearshift.config.logging import get_logger, setup_logging
from gearshift.config.settings import Settings, load_settings


def create_parser() -> argparse.ArgumentParser:
    """Create and configure argument parser."""
    parser = argparse.ArgumentParser(
        prog="gearshift",
        description="Discord bot with typed, prefix-based text commands",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Gearshift {__version__}",
    )

    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Path to .env file (default: .env in current directory)",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Override logging level from config",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("run", help="Run the Discord bot")
    subparsers.add_parser("config", help="Show current configuration")
    subparsers.add_parser("commands", help="List the bundled commands and their usage")

    parse_parser = subparsers.add_parser(
        "parse",
        help="Show how a message body is split into command, arguments and flags",
    )
    parse_parser.add_argument(
        "text",
        help='Message text without the prefix, e.g. \'roll 2d6 --times=3\'',
    )

    return parser


def cmd_config(settings: Settings) -> int:
    """Show current configuration."""
    logger = get_logger(__name__)

    logger.info("\n=== Gearshift Configuration ===\n")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Log Level: {settings.log_level}")
    logger.info(f"discord.py Log Level: {settings.discord_log_level}")
    logger.info(f"Log File: {settings.log_file or 'None (console only)'}")
    logger.info(f"\nBot Name: {settings.bot.name}")
    logger.info(f"Bot Token: {'Set' if settings.bot.token else 'Not set'}")
    logger.info(f"Command Prefix: {settings.bot.command_prefix}")
    logger.info(f"Unknown Command Response: {settings.bot.unknown_command_response}")
    logger.info(f"Strict Entity Lookup: {settings.bot.strict_entity_lookup}")
    logger.info(f"Ignore Bots: {settings.bot.ignore_bots}")
    logger.info(f"Allowed Channels: {settings.bot.allowed_channel_ids or 'All'}")

    return 0


def cmd_parse(args) -> int:
    """Print the tokens and flags produced for a message body."""
    tokens = list(tokenize(args.text))
    if not tokens:
        print("(empty message: nothing to dispatch)")
        return 0

    positional, flags = extract_flags(tokens[1:])
    print(f"Command: {tokens[0].text}")
    print("Arguments:")
    for token in positional:
        print(f"  [{token.index}:{token.end}] {token.text!r}")
    print("Flags:")
    for name, value in flags.items():
        print(f"  --{name} = {value!r}")
    return 0


async def cmd_commands(settings: Settings) -> int:
    """List bundled commands without connecting to Discord."""
    from gearshift.bot.client import default_gears

    registry = CommandRegistry()
    for gear in default_gears(None):
        await registry.register_owner(gear)

    prefix = settings.bot.command_prefix
    for command in registry:
        print(f"{prefix}{command.signature()}")
    return 0


def cmd_run(settings: Settings) -> int:
    """Start the Discord bot."""
    logger = get_logger(__name__)

    if not settings.bot.token:
        logger.error(
            "Discord bot token not set. Add BOT__TOKEN=<your-token> to your .env file."
        )
        return 1

    from gearshift.bot import GearshiftBot

    bot = GearshiftBot(settings)
    logger.info(f"Starting {settings.bot.name} (prefix {settings.bot.command_prefix!r})...")
    # log_handler=None: disable discord.py's default logging setup and use ours
    bot.run(settings.bot.token, log_handler=None)
    return 0


def main() -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args()

    try:
        settings = load_settings(env_file=args.env_file)
    except Exception as e:
        print(f"Error loading settings: {e}", file=sys.stderr)
        return 1

    if args.log_level:
        settings.log_level = args.log_level

    setup_logging(settings)

    if args.command == "config":
        return cmd_config(settings)
    elif args.command == "run":
        return cmd_run(settings)
    elif args.command == "parse":
        return cmd_parse(args)
    elif args.command == "commands":
        return asyncio.run(cmd_commands(settings))
    else:
        parser.print_help()
        return 0


if __name__ == "__main__":
    sys.exit(main())
