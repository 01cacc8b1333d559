"""
Monikers CLI - Command-line interface.

Usage:
    monikers serve [--host H] [--port P]        Run the game server
    monikers cards [--category C] [--count N]   Print a deck, one card per line
    monikers categories                         List catalog categories
"""

import argparse
import logging
import sys


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Monikers - turn-based party guessing game",
        prog="monikers",
    )
    parser.add_argument("--catalog", help="Path to a card catalog JSON file")
    parser.add_argument("--log-level", help="Logging level (default from MONIKERS_LOG_LEVEL)")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    serve_parser = subparsers.add_parser("serve", help="Run the game server")
    serve_parser.add_argument("--host", help="Bind address")
    serve_parser.add_argument("--port", type=int, help="Port")

    cards_parser = subparsers.add_parser("cards", help="Print a deck from the catalog")
    cards_parser.add_argument("--category", default="All", help="Category (default: All)")
    cards_parser.add_argument("--count", type=int, default=20, help="Deck size for All")

    subparsers.add_parser("categories", help="List catalog categories")

    args = parser.parse_args()

    from .config import get_env_settings
    settings = get_env_settings()
    if args.catalog:
        settings.catalog_path = args.catalog

    logging.basicConfig(
        level=(args.log_level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "serve":
        cmd_serve(args, settings)
    elif args.command == "cards":
        cmd_cards(args, settings)
    elif args.command == "categories":
        cmd_categories(args, settings)
    else:
        parser.print_help()
        sys.exit(1)


def _load_catalog(settings):
    from .catalog import CardCatalog
    if settings.catalog_path:
        return CardCatalog.load(settings.catalog_path)
    return CardCatalog.default()


def cmd_serve(args, settings):
    """Run the API server with uvicorn."""
    import uvicorn
    from .api import create_app

    host = args.host or settings.host
    port = args.port or settings.port
    uvicorn.run(create_app(settings=settings), host=host, port=port)


def cmd_cards(args, settings):
    """Print a deck, one card per line (the format the lobby accepts)."""
    catalog = _load_catalog(settings)
    if args.category == "All":
        entries = catalog.random_entries(args.count)
    else:
        entries = catalog.by_category(args.category)

    if not entries:
        print(f"Error: No cards in category: {args.category}", file=sys.stderr)
        sys.exit(1)

    for entry in entries:
        print(entry.word)


def cmd_categories(args, settings):
    """List catalog categories."""
    catalog = _load_catalog(settings)
    print(f"Cards: {len(catalog)}")
    for name in catalog.categories():
        print(f"  - {name} ({len(catalog.by_category(name))})")


if __name__ == "__main__":
    main()
