"""marti search / show / list / init-indexes."""

from __future__ import annotations

import sys

import click


@click.command()
@click.option("--lat", "latitude", type=float, required=True, help="Latitude of the search centre.")
@click.option("--lon", "longitude", type=float, required=True, help="Longitude of the search centre.")
@click.option("--start", "start_date", default=None, help="Start of the time window (YYYY-MM-DD[THH:MM:SS]).")
@click.option("--end", "end_date", default=None, help="End of the time window.")
@click.option("--min-distance", type=float, default=0, show_default=True, help="Minimum distance in metres.")
@click.option("--max-distance", type=float, default=0, show_default=True, help="Maximum distance in metres.")
@click.pass_context
def search(
    ctx: click.Context,
    latitude: float,
    longitude: float,
    start_date: str | None,
    end_date: str | None,
    min_distance: float,
    max_distance: float,
) -> None:
    """Find samples near a point, optionally within a time window."""
    from marti.core.cli.common import create_repository, echo_entries, load_config
    from marti.samples.models import OperationStatus
    from marti.samples.store import ServiceJob

    repo = create_repository(load_config(ctx.obj["config_file"]))
    job = ServiceJob(name="search")

    entries = repo.search_near(
        latitude,
        longitude,
        job,
        start_date=start_date,
        end_date=end_date,
        min_distance=min_distance,
        max_distance=max_distance,
    )
    echo_entries(entries, repo.schema)

    if job.status == OperationStatus.FAILED:
        click.echo("Search failed.", err=True)
        sys.exit(1)


@click.command()
@click.option("--id", "store_id", default=None, help="Store id of the sample.")
@click.option("--marti-id", default=None, help="MARTi ID of the sample.")
@click.pass_context
def show(ctx: click.Context, store_id: str | None, marti_id: str | None) -> None:
    """Show one sample by store id or MARTi ID."""
    from marti.core.cli.common import create_repository, echo_entries, load_config

    if bool(store_id) == bool(marti_id):
        raise click.UsageError("Give exactly one of --id or --marti-id.")

    repo = create_repository(load_config(ctx.obj["config_file"]))
    entry = repo.find_by_id(store_id) if store_id else repo.find_by_external_id(marti_id)

    if entry is None:
        click.echo(f"No unique sample found for {store_id or marti_id}.", err=True)
        sys.exit(1)

    echo_entries([entry], repo.schema)


@click.command(name="list")
@click.pass_context
def list_entries(ctx: click.Context) -> None:
    """List every sample, sorted by name."""
    from marti.core.cli.common import create_repository, echo_entries, load_config
    from marti.core.exceptions import StoreError

    repo = create_repository(load_config(ctx.obj["config_file"]))
    try:
        entries = repo.list_entries()
    except StoreError as e:
        click.echo(f"Failed to list samples: {e}", err=True)
        sys.exit(1)

    echo_entries(entries, repo.schema)


@click.command(name="init-indexes")
@click.pass_context
def init_indexes(ctx: click.Context) -> None:
    """Create the geospatial index proximity searches need."""
    from marti.core.cli.common import create_repository, load_config
    from marti.core.exceptions import StoreError

    repo = create_repository(load_config(ctx.obj["config_file"]))
    try:
        repo.ensure_indexes()
    except StoreError as e:
        click.echo(f"Failed to create indexes: {e}", err=True)
        sys.exit(1)

    click.echo(f"Indexes ready on {repo.collection}.")
