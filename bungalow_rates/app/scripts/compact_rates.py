"""CLI utility to compact the active rate timelines."""

from __future__ import annotations

import argparse
import logging
from typing import Optional

from ..database import session_scope
from ..migrations import run_database_migrations
from ..services import RateService
from ..stores import SqlAlchemyRateStore

LOGGER = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=(
            "Merges adjacent active rates that share the same price, "
            "for the given bungalows or for every bungalow with rates."
        )
    )
    parser.add_argument(
        "--bungalow-id",
        type=int,
        action="append",
        dest="bungalow_ids",
        help="Bungalow to compact; repeat the flag for several (default: all).",
    )
    parser.add_argument(
        "--full",
        action="store_true",
        help="Repeat the merge pass until nothing is left to merge.",
    )
    parser.add_argument(
        "--skip-migrations",
        action="store_true",
        help="Do not apply pending database migrations first.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log every merge performed.",
    )
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    args = _parse_args(argv)
    _configure_logging(args.verbose)

    if not args.skip_migrations:
        run_database_migrations()

    with session_scope() as session:
        store = SqlAlchemyRateStore(session)
        service = RateService(store)
        bungalow_ids = args.bungalow_ids or store.list_bungalow_ids()
        total = 0
        for bungalow_id in bungalow_ids:
            merges = service.compact(bungalow_id, full=args.full)
            LOGGER.info("Bungalow %s: %s merge(s)", bungalow_id, merges)
            total += merges

    LOGGER.info("Compaction finished: %s merge(s) over %s bungalow(s)", total, len(bungalow_ids))
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
