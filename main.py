#!/usr/bin/env python3
"""Asset Register Station Report CLI.

This module provides a command-line interface for building the station
report (assigned units grouped Asset -> Batch -> Item) from the register
backend, printing a summary, and optionally writing the print HTML or a
CSV/Excel export.

Architecture:
    - Uses RegisterClient as the shared HTTP layer for all API calls
    - SessionTokenManager logs in with username/password and re-logs on 401
    - BackendRegisterRepository and GetStationReportUseCase build the report
    - HtmlReportRenderer and StationReportExporter write the files

Environment Variables Required:
    - REGISTER_API_BASE_URL: Register backend base URL
    - REGISTER_USERNAME: Login username
    - REGISTER_PASSWORD: Login password

Example Usage:
    $ python main.py --station 5                         # Print a summary
    $ python main.py --station 5 --html station5.html    # Write the print HTML
    $ python main.py --station 5 --export station5.xlsx  # Excel export
    $ python main.py --station 5 --export station5.csv   # CSV export
    $ python main.py --list-stations                     # List station ids
"""
import argparse
import asyncio
import logging
import os
import sys
from datetime import datetime
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Local imports
from src.darb.api import RegisterClient, RegisterError, SessionTokenManager
from src.darb.register.adapters import (
    BackendRegisterRepository,
    HtmlReportRenderer,
    StationReportExporter,
)
from src.darb.register.adapters.export import EXPORT_FORMATS
from src.darb.register.adapters.print_renderer import format_currency, format_date
from src.darb.register.domain.entities import StationReport
from src.darb.register.use_cases import GetStationReportUseCase

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("main")


def export_format_for(path: str) -> str:
    """Export format from the file extension (.csv or .xlsx)."""
    fmt = Path(path).suffix.lower().lstrip(".")
    if fmt not in EXPORT_FORMATS:
        raise ValueError(
            f"Cannot infer export format from '{path}'. Use a .csv or .xlsx file name."
        )
    return fmt


def print_summary(report: StationReport) -> None:
    """Print the grouped report to stdout."""
    print("\n" + "=" * 60)
    print(f"STATION ASSETS REPORT: {report.title}")
    print("=" * 60)

    if report.aggregate.is_empty:
        print("No assets assigned to this station.")
        return

    for asset in report.grouped_assets:
        number = f" ({asset.asset_number})" if asset.asset_number else ""
        print(f"\n{asset.asset_name}{number}: {asset.item_count} item(s)")
        for batch in asset.batches:
            print(
                f"  {batch.batch_name:<24} purchased {format_date(batch.purchase_date):<10} "
                f"{format_currency(batch.purchase_price)} x {len(batch.items)}"
            )
            for item in batch.items:
                print(
                    f"    - {item.serial_number or '—':<20} "
                    f"assigned {format_date(item.assignment_date)}"
                )

    print("\n" + "-" * 60)
    print(f"Total Value of Assigned Assets: {format_currency(report.total_value)}")


async def list_stations(repository: BackendRegisterRepository) -> None:
    stations = await repository.list_stations()
    print(f"\n{'ID':<8} {'Name':<30} {'Location':<25} {'Assets':>6}")
    print("-" * 72)
    for station in stations:
        print(
            f"{str(station.id):<8} {station.display_name[:28]:<30} "
            f"{(station.location or '—')[:23]:<25} {station.asset_count:>6}"
        )


async def run_report(args: argparse.Namespace):
    """Main report orchestration function.

    Args:
        args: Parsed command-line arguments
    """
    start_time = datetime.now()
    logger.info(f"Starting at {start_time.isoformat()}")

    export_fmt = None
    if args.export:
        try:
            export_fmt = export_format_for(args.export)
        except ValueError as e:
            print(f"[Main] {e}")
            sys.exit(2)

    try:
        token_manager = SessionTokenManager()
        client = RegisterClient(token_manager=token_manager)
    except RegisterError as e:
        print(f"[Main] Configuration error: {e}")
        sys.exit(1)

    async with client:
        repository = BackendRegisterRepository(client)

        if args.list_stations:
            await list_stations(repository)
            return

        report = await GetStationReportUseCase(repository).execute(args.station)
        print_summary(report)

        if args.html:
            html = HtmlReportRenderer().render_station_report(report)
            Path(args.html).write_text(html, encoding="utf-8")
            print(f"\n[Main] Print HTML saved to {args.html}")

        if args.export:
            content = await StationReportExporter().export(report, export_fmt)
            Path(args.export).write_bytes(content)
            print(f"[Main] {export_fmt.upper()} export saved to {args.export} ({len(report.rows)} rows)")

    duration = (datetime.now() - start_time).total_seconds()
    logger.info(f"Completed in {duration:.1f} seconds")


def main():
    parser = argparse.ArgumentParser(
        description="Build an asset register station report",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py --station 5                          # Summary on stdout
  python main.py --station 5 --html station5.html     # Print-ready HTML
  python main.py --station 5 --export station5.xlsx   # Excel workbook
  python main.py --station 5 --export station5.csv    # CSV
  python main.py --list-stations                      # Station ids and names
        """
    )

    target_group = parser.add_mutually_exclusive_group(required=True)
    target_group.add_argument(
        "--station",
        type=str,
        metavar="ID",
        help="Station (pump) id to report on"
    )
    target_group.add_argument(
        "--list-stations",
        action="store_true",
        help="List stations and exit"
    )

    output_group = parser.add_argument_group("Output Options")
    output_group.add_argument(
        "--html",
        type=str,
        metavar="FILE",
        help="Write the print-ready HTML report to FILE"
    )
    output_group.add_argument(
        "--export",
        type=str,
        metavar="FILE",
        help="Write the flat report to FILE (.csv or .xlsx)"
    )

    args = parser.parse_args()

    try:
        asyncio.run(run_report(args))
    except RegisterError as e:
        print(f"[Main] {e.code}: {e.message}")
        sys.exit(1)


if __name__ == "__main__":
    main()
