# budget_tracker/cli.py
import logging
from pathlib import Path

import click
import uvicorn
from dotenv import find_dotenv, load_dotenv

from budget_tracker import database
from budget_tracker.config import DEFAULT_CONFIG, load_config, save_config
from budget_tracker.database import Database
from budget_tracker.loaders import get_loader
from budget_tracker.outputs import get_output
from budget_tracker.utils import dedupe_transactions

logger = logging.getLogger(__name__)

_DATE = click.DateTime(formats=['%Y-%m-%d'])


@click.group()
@click.option(
    '--config', 'config_path',
    default='config.yaml',
    type=click.Path(dir_okay=False),
    help='Path to config.yaml (defaults are used when it does not exist)'
)
@click.option(
    '--env-file', 'env_file',
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help='Optional .env file with DATABASE_URL, PORT, CORS_ORIGINS, ...'
)
@click.option(
    '--db', 'db_location',
    default=None,
    help='SQLite file path or PostgreSQL URL (overrides config)'
)
@click.pass_context
def main(ctx, config_path, env_file, db_location):
    """
    Personal budget tracker: serve the REST API and dashboard, or move
    transactions in and out of the database.
    """
    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv(find_dotenv(usecwd=True))

    cfg = load_config(config_path)
    logging.basicConfig(
        level=str(cfg.get('log_level', 'INFO')).upper(),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
    db = Database.from_location(db_location) if db_location else Database.from_config(cfg)
    ctx.obj = {'config': cfg, 'config_path': config_path, 'db': db}


@main.command('serve')
@click.option('--host', default=None, help='Host to bind (default: server.host)')
@click.option('--port', default=None, type=int, help='Port to bind (default: server.port)')
@click.option('--api-only', is_flag=True, default=False, help='Serve the JSON API without the dashboard')
@click.pass_obj
def serve(obj, host, port, api_only):
    """Run the API (and dashboard) with uvicorn."""
    cfg, db = obj['config'], obj['db']
    host = host or cfg['server']['host']
    port = port or int(cfg['server']['port'])

    if api_only:
        from budget_tracker.web import create_app
    else:
        from webapp.main import create_app
    app = create_app(cfg, db)

    click.echo(f"Budget tracker running at http://{host}:{port} ({db.label})")
    uvicorn.run(app, host=host, port=port, log_level=str(cfg['log_level']).lower())


@main.command('init-db')
@click.pass_obj
def init_db(obj):
    """Create the transactions table and summary views."""
    db = obj['db']
    database.init_db(db)
    click.echo(f"Database ready ({db.label}).")


@main.command('write-config')
@click.option('--force', is_flag=True, default=False, help='Overwrite an existing file')
@click.pass_obj
def write_config(obj, force):
    """Write the default configuration to --config."""
    path = Path(obj['config_path'])
    if path.exists() and not force:
        raise click.ClickException(f"{path} already exists (use --force to overwrite)")
    save_config(DEFAULT_CONFIG, path)
    click.echo(f"Wrote {path}.")


@main.command('import')
@click.argument('file_path', type=click.Path(exists=True, dir_okay=False))
@click.option(
    '--loader', 'loader_name',
    default='spreadsheet',
    help='Loader name from the config "loaders" section'
)
@click.pass_obj
def import_transactions(obj, file_path, loader_name):
    """Import transactions from a CSV or Excel file."""
    cfg, db = obj['config'], obj['db']
    if loader_name not in cfg['loaders']:
        raise click.BadParameter(f"unknown loader '{loader_name}'", param_hint='--loader')
    loader = get_loader(loader_name, cfg)
    try:
        txs = list(loader.load(file_path))
    except ValueError as e:
        raise click.ClickException(str(e))

    unique_txs = dedupe_transactions(txs)
    skipped = len(txs) - len(unique_txs)
    if skipped:
        click.echo(f"Skipping {skipped} duplicate row(s).", err=True)
    count = database.append_transactions(db, unique_txs)
    click.echo(f"Imported {count} transaction(s) into {db.label}.")


@main.command('export')
@click.option(
    '--output', 'output_format',
    default='csv',
    type=click.Choice(['csv', 'excel']),
    help='Output target: csv or excel'
)
@click.option('--start-date', type=_DATE, default=None, help='Inclusive start date (YYYY-MM-DD)')
@click.option('--end-date', type=_DATE, default=None, help='Inclusive end date (YYYY-MM-DD)')
@click.option('--budget-type', default=None, help='Only export this budget type')
@click.option('--output-dir', default=None, type=click.Path(file_okay=False), help='Override output_dir')
@click.pass_obj
def export_transactions(obj, output_format, start_date, end_date, budget_type, output_dir):
    """Export stored transactions to CSV or an Excel workbook."""
    cfg, db = dict(obj['config']), obj['db']
    if output_dir:
        cfg['output_dir'] = output_dir
    rows = database.query_transactions(
        db,
        budget_type=budget_type,
        start_date=start_date.date() if start_date else None,
        end_date=end_date.date() if end_date else None,
    )
    out_path = get_output(output_format, cfg).write(rows)
    if out_path is None:
        click.echo("No transactions to export.")
        return
    click.echo(f"Exported {len(rows)} transaction(s) to {out_path}.")


if __name__ == '__main__':
    main()
