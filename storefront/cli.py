"""
Operator commands.

    storefront serve
    storefront import-catalog --catalog data/catalog.xml --offers data/offers.xml
    storefront rebuild-search-fields
"""

import argparse
import logging
import sys
import xml.etree.ElementTree as ET

import uvicorn

from storefront.application.catalog_import import import_catalog
from storefront.core.config import Settings
from storefront.core.exceptions import StorefrontError
from storefront.core.logging_config import setup_logging
from storefront.infrastructure.database import build_engine, build_session_factory, init_db
from storefront.infrastructure.repositories.product_repository import SqlProductRepository

log = logging.getLogger(__name__)


def _product_repo(settings: Settings) -> SqlProductRepository:
    engine = build_engine(settings.DATABASE_URL)
    if not init_db(engine, settings.DB_CONNECT_RETRIES, settings.DB_CONNECT_WAIT_SECONDS):
        raise StorefrontError("Database is not reachable", status_code=503)
    return SqlProductRepository(build_session_factory(engine))


def cmd_serve(args, settings: Settings) -> int:
    uvicorn.run("storefront.main:build_app", factory=True, host=args.host, port=args.port or settings.PORT)
    return 0


def cmd_import_catalog(args, settings: Settings) -> int:
    count = import_catalog(_product_repo(settings), args.catalog, args.offers)
    log.info(f"Inserted {count} products")
    return 0


def cmd_rebuild_search_fields(args, settings: Settings) -> int:
    seen, modified = _product_repo(settings).rebuild_search_fields(batch_size=args.batch_size)
    log.info(f"[DONE] seen={seen} modified={modified}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="storefront")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="run the HTTP API")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=None)
    serve.set_defaults(handler=cmd_serve)

    imp = sub.add_parser("import-catalog", help="replace products from CommerceML files")
    imp.add_argument("--catalog", default="./data/catalog.xml")
    imp.add_argument("--offers", default="./data/offers.xml")
    imp.set_defaults(handler=cmd_import_catalog)

    rebuild = sub.add_parser("rebuild-search-fields", help="recompute normalized search fields")
    rebuild.add_argument("--batch-size", type=int, default=1000)
    rebuild.set_defaults(handler=cmd_rebuild_search_fields)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    settings = Settings()
    setup_logging(settings.LOG_LEVEL, settings.LOG_FILE)
    try:
        return args.handler(args, settings)
    except (StorefrontError, OSError, ET.ParseError) as e:
        log.error(f"❌ {args.command} failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
