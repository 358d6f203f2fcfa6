"""
Plugin Dispatch Bot - Main Entry Point

Starts the Slack platform and the dispatcher that:
- Discovers commands, events, and jobs under the plugin directory
- Routes prefixed messages to commands
- Routes workspace events and scheduled jobs to their plugins
"""

import os
import sys
import asyncio
import argparse
import logging
from pathlib import Path

from plugbot.config import DispatcherConfig, load_config_file, load_environment
from plugbot.dispatcher import Dispatcher
from plugbot.slack import SlackPlatform

BOT_DIR = Path(__file__).parent

# Configure logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def parse_args(argv=None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(description="Plugin Dispatch Bot")
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to bot config JSON file (e.g., bots/slack_bot.json)"
    )
    return parser.parse_args(argv)


def build_config(config: dict | None) -> DispatcherConfig:
    """Turn the bot JSON config into dispatcher settings with lifecycle hooks."""
    settings = DispatcherConfig.from_dict(config or {}, root=BOT_DIR)

    def on_starting():
        logger.info("Starting app...")

    def on_ready():
        logger.info(f"App is ready! Command prefix: {settings.command_prefix}")

    settings.on_starting = on_starting
    settings.on_ready = on_ready
    return settings


async def run(settings: DispatcherConfig) -> None:
    """Start the bot and keep it running until cancelled."""
    platform = SlackPlatform(
        bot_token=os.environ["SLACK_BOT_TOKEN"],
        app_token=os.environ["SLACK_APP_TOKEN"],
    )
    dispatcher = Dispatcher(platform, settings)

    await dispatcher.start()

    logger.info(
        f"Loaded {len(dispatcher.registry.unique())} commands, "
        f"{len(dispatcher.get_events())} events, {len(dispatcher.get_jobs())} jobs"
    )
    logger.info("Bot is running! Press Ctrl+C to stop.")

    try:
        await asyncio.Event().wait()
    finally:
        await dispatcher.shutdown()
        await platform.close()


def main(argv=None):
    """Start the bot."""
    args = parse_args(argv)
    config = None

    if args.config:
        config = load_config_file(BOT_DIR / args.config)

    env_file = BOT_DIR / config["env_file"] if config and "env_file" in config else None
    if load_environment(env_file):
        sys.exit(1)

    try:
        asyncio.run(run(build_config(config)))
    except KeyboardInterrupt:
        logger.info("Shutting down")


if __name__ == "__main__":
    main()
