import asyncio
from pathlib import Path

import click
import yaml
from rich.console import Console
from rich.table import Table

from . import __version__
from .app import AppContainer, build_validator
from .backend import BackendClient
from .config import Config
from .safety import Accepted
from .utils.logger import setup_logger

ENTITIES = {
    "characters": ("characters", ["ID", "Name", "Type", "Used"]),
    "templates": ("templates", ["ID", "Title", "Category", "Tier"]),
    "stories": ("user_stories", ["ID", "Title", "Language", "Created"]),
    "prewritten": ("prewritten", ["ID", "Title", "Category", "Minutes"]),
    "favorites": ("favorites", ["ID", "Title", "Language", "Created"]),
    "transactions": ("transactions", ["ID", "Type", "Amount", "Reason", "When"]),
}


def _row(entity: str, item) -> list[str]:
    if entity == "characters":
        return [item.id, item.name, item.type.value, str(item.times_used)]
    if entity == "templates":
        return [item.id, item.title, item.category.value, item.tier.value]
    if entity == "prewritten":
        return [item.id, item.title, item.category, str(item.estimated_minutes)]
    if entity == "transactions":
        return [item.id, item.type.value, item.display_amount, item.reason, f"{item.timestamp:%Y-%m-%d %H:%M}"]
    return [item.id, item.title, item.language, f"{item.created_at:%Y-%m-%d}"]


@click.group()
@click.option('--config', '-c', type=click.Path(), default='config.yaml',
              help='Path to configuration file')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.pass_context
def cli(ctx: click.Context, config: str, verbose: bool):
    """Storyshelf - cached data layer for the storytelling backend."""
    ctx.ensure_object(dict)

    config_path = Path(config)
    if config_path.exists():
        ctx.obj['config'] = Config.from_yaml(config_path)
    else:
        ctx.obj['config'] = Config()

    log_level = "DEBUG" if verbose else ctx.obj['config'].log_level
    logger = setup_logger(log_level)
    ctx.obj['logger'] = logger

    logger.info(f"Storyshelf v{__version__}")
    if config_path.exists():
        logger.info(f"Config loaded from: {config_path}")


@cli.command('check-text')
@click.argument('text')
@click.option('--language', '-l', default=None, help='Language code (defaults to safety.default_language)')
@click.pass_context
def check_text(ctx: click.Context, text: str, language: str):
    """Check story input against the content-safety blocklists."""
    config = ctx.obj['config']
    language = language or config.safety.default_language

    try:
        validator = build_validator(config.safety)
    except Exception as e:
        ctx.obj['logger'].error(f"Could not load blocklists: {e}")
        raise click.ClickException(str(e))

    result = validator.validate(text, language)
    if isinstance(result, Accepted):
        click.echo("OK")
        return

    click.echo(result.formatted_message)
    if result.examples_text:
        click.echo(result.examples_text)
    ctx.exit(1)


@cli.command()
@click.argument('entity', type=click.Choice(sorted(ENTITIES)))
@click.option('--scope', '-s', required=True, help='User id or language code, depending on the entity')
@click.option('--token', envvar='STORYSHELF_TOKEN', default=None, help='Bearer token for the backend')
@click.pass_context
def fetch(ctx: click.Context, entity: str, scope: str, token: str):
    """Fetch one collection through its repository and print it."""
    config = ctx.obj['config']
    logger = ctx.obj['logger']
    repository_name, columns = ENTITIES[entity]

    async def token_provider():
        return token

    async def run():
        async with BackendClient.from_config(
            config.backend, token_provider=token_provider, transport=ctx.obj.get('transport')
        ) as backend:
            container = AppContainer.build(config, backend)
            return await container.repository(repository_name).get(scope)

    try:
        items = asyncio.run(run())
    except Exception as e:
        logger.error(f"Fetching {entity} failed: {e}")
        raise click.ClickException(str(e))

    table = Table(title=f"{entity} ({scope})")
    for column in columns:
        table.add_column(column)
    for item in items:
        table.add_row(*_row(entity, item))
    Console().print(table)
    logger.success(f"Fetched {len(items)} {entity}")


@cli.command('show-config')
@click.pass_context
def show_config(ctx: click.Context):
    """Print the effective configuration as YAML."""
    config = ctx.obj['config']
    click.echo(yaml.dump(config.model_dump(mode="json"), default_flow_style=False))


def main():
    cli(obj={})


if __name__ == '__main__':
    main()
