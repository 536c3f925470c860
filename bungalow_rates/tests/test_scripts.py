from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from datetime import date
from decimal import Decimal

import pytest

from bungalow_rates.app import models
from bungalow_rates.app.scripts import compact_rates, price_stay
from bungalow_rates.app.stores import SqlAlchemyRateStore


def _seed(session, bungalow_id: int, stay_from: date, stay_to: date, value: str) -> models.BungalowRate:
    return SqlAlchemyRateStore(session).save(
        models.BungalowRate(
            bungalow_id=bungalow_id,
            stay_from=stay_from,
            stay_to=stay_to,
            booking_from=date(2024, 12, 1),
            booking_to=None,
            nights=1,
            value=Decimal(value),
        )
    )


@pytest.fixture
def script_session(db_session, monkeypatch):
    @contextmanager
    def _scope():
        yield db_session

    monkeypatch.setattr(compact_rates, "session_scope", _scope)
    monkeypatch.setattr(price_stay, "session_scope", _scope)
    return db_session


def test_compact_rates_merges_requested_bungalow(script_session, caplog):
    _seed(script_session, 3, date(2025, 2, 1), date(2025, 2, 5), "200")
    _seed(script_session, 3, date(2025, 2, 6), date(2025, 2, 10), "200")
    _seed(script_session, 4, date(2025, 2, 1), date(2025, 2, 5), "200")
    _seed(script_session, 4, date(2025, 2, 6), date(2025, 2, 10), "200")

    with caplog.at_level(logging.INFO):
        exit_code = compact_rates.main(["--skip-migrations", "--bungalow-id", "3"])

    assert exit_code == 0
    store = SqlAlchemyRateStore(script_session)
    assert [(r.stay_from, r.stay_to) for r in store.find_active(3)] == [
        (date(2025, 2, 1), date(2025, 2, 10))
    ]
    assert len(store.find_active(4)) == 2
    assert "Bungalow 3: 1 merge(s)" in caplog.text


def test_compact_rates_defaults_to_every_bungalow(script_session):
    _seed(script_session, 3, date(2025, 2, 1), date(2025, 2, 3), "150")
    _seed(script_session, 3, date(2025, 2, 4), date(2025, 2, 6), "150")
    _seed(script_session, 3, date(2025, 2, 7), date(2025, 2, 9), "150")
    _seed(script_session, 4, date(2025, 2, 1), date(2025, 2, 5), "200")
    _seed(script_session, 4, date(2025, 2, 6), date(2025, 2, 10), "200")

    assert compact_rates.main(["--skip-migrations", "--full"]) == 0

    store = SqlAlchemyRateStore(script_session)
    assert len(store.find_active(3)) == 1
    assert len(store.find_active(4)) == 1


def test_price_stay_prints_quote(script_session, capsys):
    rate = _seed(script_session, 4, date(2025, 1, 1), date(2025, 1, 10), "100")

    exit_code = price_stay.main(
        [
            "--skip-migrations",
            "--bungalow-id",
            "4",
            "--arrival",
            "2025-01-01",
            "--departure",
            "2025-01-04",
            "--booking-date",
            "2024-12-15",
        ]
    )

    assert exit_code == 0
    payload = json.loads(capsys.readouterr().out)
    assert Decimal(payload["total"]) == Decimal("300")
    assert [line["night"] for line in payload["nights"]] == ["2025-01-01", "2025-01-02", "2025-01-03"]
    assert {line["rate_id"] for line in payload["nights"]} == {rate.id}


def test_price_stay_reports_pricing_errors(script_session, caplog, capsys):
    exit_code = price_stay.main(
        [
            "--skip-migrations",
            "--bungalow-id",
            "4",
            "--arrival",
            "2025-03-05",
            "--departure",
            "2025-03-01",
        ]
    )

    assert exit_code == 1
    assert capsys.readouterr().out == ""
    assert "Unable to price the stay" in caplog.text
