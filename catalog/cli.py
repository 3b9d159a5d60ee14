"""
Command line entry points.

Usage:
    catalog import [PATH] [--limit N] [--no-force-update] [--yes]
    catalog export [--dir DIR] [--all]
    catalog ranking [--category NAME] [--limit N]
"""
import argparse
import asyncio
import os
import sys
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from catalog.config import config
from catalog.errors import CatalogError
from catalog.logger import logger
from catalog.ranking.facade import RankingFacade
from catalog.ranking.query import ProductQueryService
from catalog.sentry import initialize_sentry
from catalog.services.exporter import AmazonProductExporter
from catalog.services.importer import AmazonProductImporter
from catalog.storage.postgres import PostgresProductRepository
from catalog.storage.repository import BaseProductRepository

EXIT_SUCCESS = 0
EXIT_FAILURE = 1


def format_table(rows: Sequence[Tuple[str, object]], headers: Tuple[str, str] = ("Metric", "Value")) -> str:
    width = max(len(str(label)) for label, _ in list(rows) + [headers])
    lines = [f"{headers[0]:<{width}}  {headers[1]}", f"{'-' * width}  {'-' * len(headers[1])}"]
    lines.extend(f"{label:<{width}}  {value}" for label, value in rows)
    return "\n".join(lines)


def format_errors(errors) -> List[str]:
    return [f"• ASIN {error.identifier}: {error.message}" for error in errors]


def format_file_size(file_path: str) -> str:
    if not os.path.exists(file_path):
        return "N/A"

    size = os.path.getsize(file_path)
    if size >= 1048576:
        return f"{round(size / 1048576, 2)} MB"
    if size >= 1024:
        return f"{round(size / 1024, 2)} KB"
    return f"{size} bytes"


def export_file_name(now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    return f"amazon_{now.strftime('%d-%m-%Y__%H-%M-%S')}.json"


def confirm(prompt: str) -> bool:
    try:
        return input(prompt).strip().lower() == "yes"
    except EOFError:
        return False


async def run_import(args: argparse.Namespace, repository: BaseProductRepository) -> int:
    file_path = args.path or config.IMPORT_FILE_PATH

    print("Amazon product importer")
    print("WARNING: products already edited in the back office will be overwritten.")
    if not args.yes and not confirm("Are you sure you want to import the data? (yes/no): "):
        print("Import cancelled by user")
        return EXIT_SUCCESS

    if not os.path.exists(file_path):
        print(f"ERROR: file '{file_path}' does not exist", file=sys.stderr)
        return EXIT_FAILURE

    with open(file_path, encoding="utf-8") as f:
        json_data = f.read()

    print(f"File: {file_path}")
    importer = AmazonProductImporter(repository)
    result = await importer.import_products(json_data, force_update=not args.no_force_update, limit=args.limit)

    print(format_table([
        ("Total processed", result.total_processed),
        ("Imported", result.successfully_imported),
        ("Updated", result.updated),
        ("Skipped", result.skipped),
        ("Failed", result.failed),
    ]))
    if result.errors:
        print("\nErrors:")
        print("\n".join(format_errors(result.errors)))

    print("\nImport completed")
    return EXIT_SUCCESS


async def run_export(args: argparse.Namespace, repository: BaseProductRepository) -> int:
    export_dir = args.dir or config.EXPORT_DIR
    file_path = os.path.join(export_dir, export_file_name())

    print("Amazon product exporter")
    print(f"Output file: {file_path}")
    exporter = AmazonProductExporter(repository)
    result = await exporter.export_products(file_path, only_active=not args.all)

    print(format_table([
        ("Total processed", result.total_processed),
        ("Exported", result.total_exported),
        ("Skipped", result.skipped),
        ("Failed", result.failed),
        ("File size", format_file_size(file_path)),
    ]))
    if result.errors:
        print("\nErrors:")
        print("\n".join(format_errors(result.errors)))

    if result.total_exported > 0:
        print(f"\n• Products with images: {result.with_images or 0}")
        print(f"• Products with prices: {result.with_prices or 0}")
        print(f"• Products with rankings: {result.with_rankings or 0}")
        print("\nExport completed")
    else:
        print("\nNo products were exported. Check that active products exist.")
    return EXIT_SUCCESS


async def run_ranking(args: argparse.Namespace, repository: BaseProductRepository) -> int:
    facade = RankingFacade(ProductQueryService(repository))
    products = await facade.get_top_products_for_display(args.category or config.RANKING_CATEGORY, args.limit)

    if not products:
        print("No products available")
        return EXIT_SUCCESS

    for product in products:
        rating = product["rating"]
        badge = f"  [{product['special_badge']}]" if product["special_badge"] else ""
        print(
            f"{product['position']:>3}. {product['title']} ({product['brand']}) "
            f"{rating['score']} {rating['label']} - {product['price']['display_price']}{badge}"
        )
    return EXIT_SUCCESS


COMMANDS = {
    "import": run_import,
    "export": run_export,
    "ranking": run_ranking,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="catalog", description="Amazon product catalog tools")
    subparsers = parser.add_subparsers(dest="command", required=True)

    import_parser = subparsers.add_parser("import", help="Import products from an Amazon JSON file")
    import_parser.add_argument("path", nargs="?", help=f"JSON file (default: {config.IMPORT_FILE_PATH})")
    import_parser.add_argument("--limit", type=int, help="Import only the first N items")
    import_parser.add_argument("--no-force-update", action="store_true", help="Skip products that already exist")
    import_parser.add_argument("--yes", action="store_true", help="Do not ask for confirmation")

    export_parser = subparsers.add_parser("export", help="Export products to an Amazon JSON file")
    export_parser.add_argument("--dir", help=f"Output directory (default: {config.EXPORT_DIR})")
    export_parser.add_argument("--all", action="store_true", help="Include inactive products")

    ranking_parser = subparsers.add_parser("ranking", help="Print the storefront ranking")
    ranking_parser.add_argument("--category", help=f"Category filter (default: {config.RANKING_CATEGORY})")
    ranking_parser.add_argument("--limit", type=int, help="Maximum number of products")

    return parser


async def execute(args: argparse.Namespace, repository: Optional[BaseProductRepository] = None) -> int:
    """Run one command; a Postgres repository is opened when none is given."""
    owned = repository is None
    try:
        if owned:
            repository = PostgresProductRepository()
            await repository.initialize()
        return await COMMANDS[args.command](args, repository)
    except CatalogError as e:
        logger.error(f"Command '{args.command}' failed: {e}", exc_info=config.DEBUG)
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_FAILURE
    finally:
        if owned and repository is not None:
            await repository.close()


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    initialize_sentry()
    return asyncio.run(execute(args))


if __name__ == "__main__":
    sys.exit(main())
