"""Command line entry-point to quote a stay against the stored rates."""

from __future__ import annotations

import argparse
import logging
from datetime import date
from typing import Optional

from .. import schemas
from ..database import session_scope
from ..migrations import run_database_migrations
from ..services import RateService, RateServiceError
from ..stores import SqlAlchemyRateStore

LOGGER = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Prints the night-by-night price of a stay as JSON."
    )
    parser.add_argument("--bungalow-id", type=int, required=True, help="Bungalow to price.")
    parser.add_argument(
        "--arrival", type=date.fromisoformat, required=True, help="Check-in date (YYYY-MM-DD)."
    )
    parser.add_argument(
        "--departure",
        type=date.fromisoformat,
        required=True,
        help="Check-out date (YYYY-MM-DD); this night is not charged.",
    )
    parser.add_argument(
        "--booking-date",
        type=date.fromisoformat,
        default=None,
        help="Date the booking is made (default: today).",
    )
    parser.add_argument(
        "--skip-migrations",
        action="store_true",
        help="Do not apply pending database migrations first.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Print additional debugging information.",
    )
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    args = _parse_args(argv)
    _configure_logging(args.verbose)

    if not args.skip_migrations:
        run_database_migrations()

    booking_date = args.booking_date or date.today()
    with session_scope() as session:
        service = RateService(SqlAlchemyRateStore(session))
        try:
            quote = service.quote_stay(
                args.bungalow_id, args.arrival, args.departure, booking_date
            )
        except RateServiceError as exc:
            LOGGER.error("Unable to price the stay: %s", exc)
            return 1

    payload = schemas.StayQuoteRead.model_validate(quote)
    print(payload.model_dump_json(indent=2))
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
