"""
Billing batch CLI.

Runs the monthly billing steps outside the HTTP API, e.g. from a scheduler:

     python billing_cli.py generate-summaries 1 2025-09 --tax-rate 0.10
     python billing_cli.py generate-invoice 1 2025-09

Ctrl+C stops summary generation after the current collector and rolls back
an invoice that is being composed.
"""
import logging
import signal
import threading
from contextlib import contextmanager
from decimal import Decimal

import click
from rich.console import Console
from rich.table import Table

from config import settings
from database import get_session_context
from services.billing_summary_service import BillingSummaryService
from services.exceptions import BillingError
from services.tenant_invoice_service import TenantInvoiceService

console = Console()


@contextmanager
def cancel_on_signal():
     """Set the yielded event on SIGINT/SIGTERM; previous handlers are restored on exit."""
     cancel_event = threading.Event()

     def signal_handler(signum, frame):
          console.print("\n[yellow]Cancelling...[/yellow]")
          cancel_event.set()

     previous = {sig: signal.signal(sig, signal_handler) for sig in (signal.SIGINT, signal.SIGTERM)}
     try:
          yield cancel_event
     finally:
          for sig, handler in previous.items():
               signal.signal(sig, handler)


@click.group()
@click.version_option(version="1.0.0", prog_name="billing-cli")
@click.option("--log-level", default=settings.LOG_LEVEL, help="Logging level")
def cli(log_level):
     """Waste collection billing - summary and invoice batch jobs."""
     logging.basicConfig(level=log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")


@cli.command("generate-summaries")
@click.argument("org_id", type=int)
@click.argument("month")
@click.option("--tax-rate", type=Decimal, default=None, help="Tax rate as a fraction (default: organization setting, then DEFAULT_TAX_RATE)")
@click.option("--force", is_flag=True, help="Overwrite existing summaries")
def generate_summaries(org_id, month, tax_rate, force):
     """Aggregate approved billing items of ORG_ID for MONTH (YYYY-MM)."""
     try:
          with cancel_on_signal() as cancel_event, get_session_context() as db:
               result = BillingSummaryService.generate_summaries(
                    db,
                    org_id=org_id,
                    billing_month=month,
                    tax_rate=tax_rate,
                    force_regenerate=force,
                    cancel_event=cancel_event,
               )
     except BillingError as exc:
          raise click.ClickException(exc.message)

     table = Table(title=f"Billing summaries {result.billing_month:%Y-%m}")
     table.add_column("Collector", style="cyan")
     table.add_column("Result")
     table.add_column("Total", justify="right")
     table.add_column("Detail")

     for entry in result.generated:
          table.add_row(entry.collector_name, f"[green]{entry.action.value}[/green]", f"{entry.total_amount:,}", f"{entry.items_count} items")
     for entry in result.skipped:
          table.add_row(entry.collector_name, "[yellow]SKIPPED[/yellow]", "-", entry.message)
     for entry in result.errors:
          table.add_row(entry.collector_name, f"[red]{entry.error_type}[/red]", "-", f"{entry.stage}: {entry.error}")

     console.print(table)
     console.print(
          f"Processed {result.collectors_processed}: "
          f"{result.generated_count} generated, {result.skipped_count} skipped, {result.error_count} errors"
     )
     if result.cancelled:
          console.print("[yellow]Run was cancelled; remaining collectors were not processed[/yellow]")
     if result.errors or result.cancelled:
          raise SystemExit(1)


@cli.command("generate-invoice")
@click.argument("org_id", type=int)
@click.argument("month")
def generate_invoice(org_id, month):
     """Compose the tenant invoice of ORG_ID for MONTH from approved summaries."""
     try:
          with cancel_on_signal() as cancel_event, get_session_context() as db:
               invoice = TenantInvoiceService.generate_invoice(
                    db,
                    org_id=org_id,
                    billing_month=month,
                    cancel_event=cancel_event,
               )
     except BillingError as exc:
          raise click.ClickException(exc.message)

     table = Table(title=f"Tenant invoice {invoice.invoice_number}")
     table.add_column("#", justify="right")
     table.add_column("Item")
     table.add_column("Subtotal", justify="right")
     table.add_column("Tax", justify="right")
     table.add_column("Total", justify="right")
     for item in invoice.items:
          table.add_row(str(item.display_order), item.item_name, f"{item.subtotal:,}", f"{item.tax_amount:,}", f"{item.total_amount:,}")

     console.print(table)
     console.print(f"[green]Grand total: {invoice.grand_total:,}[/green]")


if __name__ == "__main__":
     cli()
