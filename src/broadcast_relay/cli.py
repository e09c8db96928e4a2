import sys
from pathlib import Path

import click
from telegram.error import TelegramError

from . import __version__
from .config import RelayConfig
from .errors import ConfigError, StoreError, StreamTerminatedError


def load_config() -> RelayConfig:
    try:
        return RelayConfig.from_env()
    except ConfigError as e:
        click.echo(f"❌ {e}", err=True)
        sys.exit(1)


@click.group(name="broadcast-relay", help="Telegram subscriber broadcast relay")
def cli():
    pass


@cli.command(help="Show version")
def version():
    click.echo(f"broadcast-relay {__version__}")


@cli.command(help="Show configuration read from the environment")
def config():
    cfg = load_config()
    click.echo("📋 Current configuration:\n")
    click.echo(f"  Bot Token: {cfg.masked_token()}")
    click.echo(f"  Admin: @{cfg.admin_username}")
    click.echo(f"  Feed URL: {cfg.feed_url}")
    click.echo(f"  Post base URL: {cfg.post_base_url}")
    click.echo(f"  Feed limit: {cfg.feed_limit}")
    click.echo(f"  Database: {cfg.database_url}")
    click.echo(f"  Health port: {cfg.port}")
    if cfg.log_dir:
        click.echo(f"  Log dir: {cfg.log_dir}")


@cli.command(help="List stored subscribers")
def subscribers():
    from .database import SubscriberStore

    cfg = load_config()
    try:
        store = SubscriberStore(cfg.database_url)
        rows = store.get_all()
    except StoreError as e:
        click.echo(f"❌ {e}", err=True)
        sys.exit(1)

    for sub in rows:
        click.echo(f"  {sub.chat_id}  (since {sub.created_at:%Y-%m-%d %H:%M})")
    click.echo(f"\n👥 {len(rows)} subscribers")


@cli.command(help="Start the relay")
@click.option(
    "--port",
    type=click.IntRange(1, 65535),
    default=None,
    help="Health check port (overrides PORT)"
)
@click.option(
    "--log-dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Log directory (overrides LOG_DIR)"
)
def run(port, log_dir):
    cfg = load_config()
    overrides = {}
    if port is not None:
        overrides["port"] = port
    if log_dir is not None:
        overrides["log_dir"] = Path(log_dir)
    if overrides:
        cfg = cfg.model_copy(update=overrides)

    from .app import Application, setup_logging
    setup_logging(cfg.log_dir)

    click.echo("🚀 Starting broadcast relay...")
    click.echo(f"   Admin: @{cfg.admin_username}")
    click.echo(f"   Health port: {cfg.port}\n")

    try:
        app = Application(cfg)
        app.run()
    except (StoreError, StreamTerminatedError) as e:
        click.echo(f"❌ {e}", err=True)
        sys.exit(1)
    except TelegramError as e:
        click.echo(f"❌ Telegram rejected the bot: {e}", err=True)
        sys.exit(1)
    except KeyboardInterrupt:
        click.echo("\n🛑 Stopped")


def main():
    cli()


if __name__ == "__main__":
    main()
