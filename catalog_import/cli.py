"""
Command Line Interface
Generate the upload template, validate upload files and run bulk imports.
"""

import argparse
import signal
import sys
import threading
from datetime import datetime
from typing import List, Optional

from colorama import Fore, Style, init
from loguru import logger
from tqdm import tqdm

from .config import DEFAULT_CONFIG_PATH, ImportSettings, load_config, resolve_settings
from .creator import BulkProductCreator
from .csv_handler import CSVHandler
from .exceptions import CatalogImportError
from .models import ParseResult, Progress
from .parser import CatalogCSVParser
from .store import RestProductStore
from .template import TEMPLATE_FILENAME


MAX_ERRORS_SHOWN = 50


def setup_logging(settings: ImportSettings) -> None:
    """Route loguru output through tqdm so progress bars stay intact."""
    logger.remove()
    logger.add(
        lambda message: tqdm.write(message, end='', file=sys.stderr),
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>",
        level=settings.log_level,
        colorize=True,
    )
    if settings.log_file:
        log_file = settings.log_file.replace('{date}', datetime.now().strftime('%Y%m%d_%H%M%S'))
        logger.add(
            log_file,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {message}",
            level=settings.log_level,
            rotation="10 MB"
        )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='catalog-import',
        description='Bulk create products and variants from a CSV upload'
    )
    parser.add_argument(
        '--config',
        type=str,
        default=DEFAULT_CONFIG_PATH,
        help='Path to configuration YAML file'
    )
    parser.add_argument(
        '--log-level',
        type=str,
        help='Log level (DEBUG, INFO, WARNING, ERROR)'
    )

    subparsers = parser.add_subparsers(dest='command', required=True)

    template_parser = subparsers.add_parser('template', help='Write the upload template CSV')
    template_parser.add_argument(
        '--output',
        type=str,
        default=TEMPLATE_FILENAME,
        help='Output file or directory'
    )

    validate_parser = subparsers.add_parser('validate', help='Check an upload file without creating anything')
    validate_parser.add_argument('csv', type=str, help='Path to the upload CSV')
    validate_parser.add_argument('--report', type=str, help='Write validation errors to this CSV')

    import_parser = subparsers.add_parser('import', help='Validate an upload file and create its products')
    import_parser.add_argument('csv', type=str, help='Path to the upload CSV')
    import_parser.add_argument('--owner-id', type=str, help='Seller id the products belong to')
    import_parser.add_argument('--store-url', type=str, help='Backend URL (overrides config)')
    import_parser.add_argument('--report', type=str, help='Write per-product results to this CSV')
    import_parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Validate and list what would be created'
    )

    return parser


def load_and_parse(csv_path: str, settings: ImportSettings) -> ParseResult:
    handler = CSVHandler(max_file_size=settings.max_file_size)
    content = handler.read_upload(csv_path)
    return CatalogCSVParser().parse(content)


def print_validation_errors(result: ParseResult) -> None:
    print(Fore.RED + f"Found {len(result.errors)} validation error(s). Please fix them before importing.")
    for error in result.errors[:MAX_ERRORS_SHOWN]:
        print(Fore.RED + f"  - {error}")
    if len(result.errors) > MAX_ERRORS_SHOWN:
        print(Fore.RED + f"  ... and {len(result.errors) - MAX_ERRORS_SHOWN} more")


def print_products(result: ParseResult) -> None:
    print(Fore.CYAN + f"{result.total_rows} rows, {len(result.products)} products:")
    for group in result.products:
        suffix = f" ({len(group.variant_rows)} variants)" if group.has_variants else ''
        print(f"  - {group.product_name}{suffix}")


def command_template(args, settings: ImportSettings) -> int:
    path = CSVHandler().write_template(args.output)
    print(Fore.GREEN + f"Template written to {path}")
    return 0


def command_validate(args, settings: ImportSettings) -> int:
    result = load_and_parse(args.csv, settings)
    if args.report:
        CSVHandler().write_validation_report(result.errors, args.report)

    if not result.is_valid:
        print_validation_errors(result)
        return 1

    print_products(result)
    print(Fore.GREEN + "✓ File is valid")
    return 0


def command_import(args, settings: ImportSettings) -> int:
    result = load_and_parse(args.csv, settings)
    if not result.is_valid:
        print_validation_errors(result)
        return 1

    print_products(result)
    if args.dry_run:
        print(Fore.YELLOW + "Dry run, nothing was created")
        return 0

    if not settings.owner_id:
        print(Fore.RED + "ERROR: Owner id not provided!")
        print("Please provide --owner-id, set CATALOG_OWNER_ID, or configure import.owner_id in config.yaml")
        return 1
    settings.require_store()

    store = RestProductStore(settings.store_url, settings.store_api_key, timeout=settings.store_timeout)
    creator = BulkProductCreator(store, throttle_seconds=settings.throttle_seconds)

    cancel_event = threading.Event()

    def request_cancel(signum, frame):
        logger.warning("Cancel requested, stopping after the current product")
        cancel_event.set()

    previous_handler = signal.signal(signal.SIGINT, request_cancel)
    progress_bar = tqdm(total=len(result.products), desc="Creating", unit="product")

    def on_progress(progress: Progress) -> None:
        progress_bar.set_postfix_str(progress.current_product[:30])
        progress_bar.update(1)

    try:
        bulk_result = creator.create_products(
            result.products,
            settings.owner_id,
            on_progress=on_progress,
            cancel_event=cancel_event,
        )
    finally:
        progress_bar.close()
        signal.signal(signal.SIGINT, previous_handler)

    if args.report:
        CSVHandler().write_result_report(bulk_result, args.report)

    print()
    print(Fore.CYAN + "=" * 60)
    print(Fore.CYAN + "BULK IMPORT COMPLETED" + (" (CANCELLED)" if bulk_result.cancelled else ''))
    print(Fore.CYAN + "=" * 60)
    print(f"Created: {Fore.GREEN}{len(bulk_result.successes)}{Style.RESET_ALL}")
    print(f"Failed:  {Fore.RED}{len(bulk_result.errors)}{Style.RESET_ALL}")
    for failure in bulk_result.errors[:MAX_ERRORS_SHOWN]:
        print(Fore.RED + f"  ✗ {failure.product_name}: {failure.error}")

    return 1 if bulk_result.errors else 0


COMMANDS = {
    'template': command_template,
    'validate': command_validate,
    'import': command_import,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    init(autoreset=True)
    args = build_parser().parse_args(argv)

    overrides = {
        'log_level': args.log_level,
        'owner_id': getattr(args, 'owner_id', None),
        'store_url': getattr(args, 'store_url', None),
    }
    try:
        config = load_config(args.config)
        settings = resolve_settings(config, overrides)
    except CatalogImportError as e:
        print(Fore.RED + f"ERROR: {e}")
        return 1
    setup_logging(settings)

    try:
        return COMMANDS[args.command](args, settings)
    except FileNotFoundError as e:
        print(Fore.RED + f"ERROR: {e}")
        return 1
    except CatalogImportError as e:
        print(Fore.RED + f"ERROR: {e}")
        return 1
    except Exception as e:
        logger.exception("Import failed with unexpected error")
        print(Fore.RED + f"\nERROR: Import failed: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
