#!/usr/bin/env python3
"""
CLI for the BuildFlow estimation back end.

Usage:
    python cli.py init-db
    python cli.py serve --port 8000
    python cli.py info
    python cli.py recompute <estimate-id>
    python cli.py show-estimate <estimate-id>

Commands:
    init-db        Create all database tables
    serve          Start the API server
    info           Display configuration and environment information
    recompute      Reprice every line of an estimate from current quotes
    show-estimate  Print an estimate with its groups and lines
"""
import logging
import uuid

import click

from buildflow import __version__
from buildflow.config import get_config

logger = logging.getLogger(__name__)


def _configure_logging() -> None:
    config = get_config()
    logging.basicConfig(level=config.log_level, format=config.log_format)


def _parse_uuid(value: str) -> uuid.UUID:
    try:
        return uuid.UUID(value)
    except ValueError:
        raise click.BadParameter(f"'{value}' is not a valid UUID")


@click.group()
@click.version_option(version=__version__)
def cli():
    """BuildFlow Estimation CLI.

    Manage the database and inspect cost estimates built from
    work items, quotes and multipliers.
    """
    _configure_logging()


@cli.command('init-db')
def init_db_command():
    """Create all database tables.

    Example:
        python cli.py init-db
    """
    from buildflow.models import init_db, DATABASE_URL

    click.echo(click.style('BuildFlow - Database Setup', fg='cyan', bold=True))
    init_db()
    logger.info(f"Tables created on {DATABASE_URL}")
    click.echo(click.style('Database initialized.', fg='green'))


@cli.command()
@click.option('--port', type=int, default=8000, help='Server port')
@click.option('--host', default='0.0.0.0', help='Server host')
@click.option('--reload', is_flag=True, help='Enable auto-reload')
def serve(port: int, host: str, reload: bool):
    """Start the API server.

    Runs the FastAPI application with uvicorn.

    Example:
        python cli.py serve --port 8000 --reload
    """
    import uvicorn

    click.echo(click.style('BuildFlow - API Server', fg='cyan', bold=True))
    click.echo(f"Starting server at http://{host}:{port}")
    click.echo("Press CTRL+C to stop\n")

    uvicorn.run(
        "buildflow.main:app",
        host=host,
        port=port,
        reload=reload
    )


@cli.command()
def info():
    """Display configuration and environment information."""
    import fastapi
    import sqlalchemy

    config = get_config()
    click.echo(click.style('BuildFlow - Info', fg='cyan', bold=True))
    click.echo(f"  - Version: {__version__}")
    click.echo(f"  - Config version: {config.version}")
    click.echo(f"  - Database: {config.database_url}")
    click.echo(f"  - Default page size: {config.default_page_size}")
    click.echo(f"  - Default overall multiplier: {config.default_overall_multiplier}")
    click.echo(f"  - Default unit cost: {config.default_unit_cost}")
    click.echo(f"  - Default currency: {config.default_currency}")
    click.echo(f"  - SQLAlchemy: {sqlalchemy.__version__}")
    click.echo(f"  - FastAPI: {fastapi.__version__}")


@cli.command()
@click.argument('estimate_id')
def recompute(estimate_id: str):
    """Reprice every line of an estimate from current quotes.

    Example:
        python cli.py recompute 3f0c...-...
    """
    from buildflow.models import SessionLocal
    from buildflow.domain.exceptions import DomainError
    from buildflow.domain.services import EstimateService

    estimate_uuid = _parse_uuid(estimate_id)
    db = SessionLocal()
    try:
        estimate = EstimateService(db).recompute_estimate(estimate_uuid)
        total = estimate.total_cost
        db.commit()
    except DomainError as e:
        db.rollback()
        raise click.ClickException(e.message)
    finally:
        db.close()

    click.echo(click.style(f"Estimate {estimate_uuid} recomputed", fg='green'))
    click.echo(f"  - Total cost: {total}")


@cli.command('show-estimate')
@click.argument('estimate_id')
def show_estimate(estimate_id: str):
    """Print an estimate with its groups and lines."""
    from buildflow.models import SessionLocal
    from buildflow.domain.dto import estimate_to_dto
    from buildflow.domain.exceptions import DomainError
    from buildflow.domain.services import EstimateService

    estimate_uuid = _parse_uuid(estimate_id)
    db = SessionLocal()
    try:
        dto = estimate_to_dto(EstimateService(db).get_estimate(estimate_uuid))
    except DomainError as e:
        raise click.ClickException(e.message)
    finally:
        db.close()

    click.echo(click.style(f"Estimate {dto.id}", fg='cyan', bold=True))
    click.echo(f"Project: {dto.project_id}")
    click.echo(f"Overall multiplier: {dto.overall_multiplier}")
    for group in dto.groups:
        click.echo(f"\n  [{group.name}] {group.total_cost}")
        for line in group.lines:
            click.echo(
                f"    - work item {line.work_item_id}: {line.quantity} x {line.multiplier} "
                f"({line.strategy}) = {line.computed_cost}"
            )
    click.echo("\n" + "=" * 50)
    click.echo(f"Total: {dto.total_cost}")


if __name__ == '__main__':
    cli()
