"""Main application entry point for VoicePrompt."""

import asyncio
import sys
import logging
from pathlib import Path
from typing import Optional

import click

from . import __version__
from .config import VoicePromptConfig
from .services.backends import (
    create_chat_engine,
    create_device_factory,
    create_transcription_adapter,
)
from .services.orchestrator import UIOrchestrator
from .server.app import create_app, run_server
from .storage.file_manager import FileManager
from .ui.terminal_screen import TerminalScreen

logger = logging.getLogger(__name__)


def setup_logging(config: VoicePromptConfig, level: str = "INFO") -> None:
    """Set up logging configuration from YAML config."""
    log_file_path = config.get('logging.file_path', 'data/logs/voiceprompt.log')
    console_output = config.get('logging.console_output', True)

    log_dir = Path(log_file_path).parent
    log_dir.mkdir(parents=True, exist_ok=True)

    handlers = []

    # File handler - always write to file
    file_handler = logging.FileHandler(log_file_path)
    file_handler.setLevel(logging.DEBUG)
    file_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    )
    file_handler.setFormatter(file_formatter)
    handlers.append(file_handler)

    # Console handler - only if enabled in config
    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.WARNING)  # Only show warnings and above on console
        console_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        console_handler.setFormatter(console_formatter)
        handlers.append(console_handler)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    logger.info("=" * 50)
    logger.info("VoicePrompt starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("=" * 50)


@click.group()
@click.option("--config", "config_path", type=click.Path(dir_okay=False),
              help="Path to configuration YAML file (defaults are used when omitted)")
@click.option("--log-level", type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
              default=None, help="Override logging.level from the config")
@click.version_option(__version__, prog_name="VoicePrompt")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[str], log_level: Optional[str]) -> None:
    """VoicePrompt - speak a prompt, get a markdown answer."""
    try:
        config = VoicePromptConfig(config_path)
    except (FileNotFoundError, ValueError) as e:
        raise click.ClickException(str(e))

    setup_logging(config, log_level or config.get('logging.level', 'INFO'))
    ctx.obj = config


@cli.command()
@click.option("--host", default=None, help="Interface to bind (overrides server.host)")
@click.option("--port", type=int, default=None, help="Port to bind (overrides server.port)")
@click.pass_obj
def serve(config: VoicePromptConfig, host: Optional[str], port: Optional[int]) -> None:
    """Serve /api/transcribe and /api/chat on one port."""
    max_age_days = config.get('storage.max_age_days')
    if max_age_days:
        FileManager(config.get_data_directory()).cleanup_old_captures(max_age_days)

    try:
        app = create_app(create_transcription_adapter(config), create_chat_engine(config))
    except (FileNotFoundError, ValueError) as e:
        raise click.ClickException(str(e))

    host = host or config.get('server.host', '0.0.0.0')
    port = port or config.get('server.port', 3000)
    click.echo(f"ℹ️ VoicePrompt now running on port {port} ...")
    run_server(app, host=host, port=port)


@cli.command()
@click.option("--language", default=None, help="Spoken language hint, e.g. en or de")
@click.option("--max-seconds", type=int, default=None, help="Recording time limit in seconds")
@click.pass_obj
def ask(config: VoicePromptConfig, language: Optional[str], max_seconds: Optional[int]) -> None:
    """Record a prompt from the microphone and ask the chat backend."""
    try:
        orchestrator = UIOrchestrator(
            device_factory=create_device_factory(config),
            adapter=create_transcription_adapter(config),
            chat_engine=create_chat_engine(config),
            language=language or config.get('transcription.language', 'en'),
            max_seconds=max_seconds or config.get('audio.max_record_seconds', 5),
            tick_interval=config.get('audio.tick_interval_seconds', 1.0),
        )
    except (FileNotFoundError, ValueError) as e:
        raise click.ClickException(str(e))

    try:
        asyncio.run(TerminalScreen(orchestrator).run())
    except KeyboardInterrupt:
        click.echo("\n👋 Goodbye!")


def main() -> None:
    """Main entry point for VoicePrompt."""
    cli()


if __name__ == "__main__":
    main()
