"""Marti CLI: search, inspect and index the sample collection."""

import click

from marti import __version__


@click.group()
@click.version_option(version=__version__, package_name="marti-samples")
@click.option(
    "--config",
    "config_file",
    type=click.Path(dir_okay=False),
    default=None,
    help="YAML or JSON config file (default: ~/.marti/config.yaml).",
)
@click.pass_context
def main(ctx: click.Context, config_file: str | None) -> None:
    """Marti: geotagged sample records."""
    ctx.ensure_object(dict)
    ctx.obj["config_file"] = config_file


from .samples_cmd import init_indexes, list_entries, search, show

main.add_command(search)
main.add_command(show)
main.add_command(list_entries)
main.add_command(init_indexes)
