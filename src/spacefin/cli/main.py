"""Main CLI entry point."""

import logging

import click
from spacefin.domain.calculator import DEFAULT_TAX_RATE

# Import and register all commands at module level
from spacefin.cli.commands import invoice, report

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides SPACEFIN_DB_PATH environment variable)",
    envvar="SPACEFIN_DB_PATH",
)
@click.option(
    "--tax-rate",
    default=str(DEFAULT_TAX_RATE),
    show_default=True,
    envvar="SPACEFIN_TAX_RATE",
    help="Default tax rate in percent for new invoices and tax reports",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    show_default=True,
    envvar="SPACEFIN_LOG_LEVEL",
    help="Logging verbosity",
)
@click.pass_context
def cli(ctx, db_path: str | None, tax_rate: str, log_level: str):
    """Spacefin - invoicing and financial reports for workspace rentals.

    Price invoices, track their lifecycle from draft to paid, and build
    revenue, aging, cash flow and tax reports.
    """
    ctx.ensure_object(dict)
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj["tax_rate"] = tax_rate
    # The database is opened on first use by get_database
    ctx.obj["db_path"] = db_path


# Register all commands
invoice.register_commands(cli)
report.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
