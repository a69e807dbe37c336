from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from marketsim.domain.models import PricePoint
from marketsim.history.store import PriceHistoryStore

T0 = datetime(2025, 1, 2, 15, 0, tzinfo=UTC)


def tick(index: int, price: float | None = None) -> PricePoint:
    return PricePoint(price=price or 100.0 + index, timestamp=T0 + timedelta(seconds=10 * index))


def test_overflow_evicts_oldest_points_first() -> None:
    store = PriceHistoryStore(capacity=100)
    points = [tick(index) for index in range(105)]
    for point in points:
        store.append("X", point)

    series = store.series("X")

    assert len(series) == 100
    assert series[0] == points[5]
    assert series[-1] == points[-1]
    assert all(point not in series for point in points[:5])


def test_latest_is_none_before_first_tick() -> None:
    store = PriceHistoryStore(capacity=10, symbols=["X"])

    assert store.latest("X") is None
    assert store.latest("UNKNOWN") is None
    assert store.series("UNKNOWN") == ()

    store.append("X", tick(0))
    store.append("X", tick(1))
    assert store.latest("X") == tick(1)


def test_series_is_a_read_only_copy() -> None:
    store = PriceHistoryStore(capacity=10)
    store.append("X", tick(0))

    series = store.series("X")
    store.append("X", tick(1))

    assert isinstance(series, tuple)
    assert len(series) == 1
    assert len(store.series("X")) == 2


def test_append_rejects_out_of_order_ticks() -> None:
    store = PriceHistoryStore(capacity=10)
    store.append("X", tick(2))

    with pytest.raises(ValueError, match="Out-of-order"):
        store.append("X", tick(1))
    store.append("X", PricePoint(price=99.0, timestamp=tick(2).timestamp))
    assert len(store.series("X")) == 2


def test_capacity_must_be_positive() -> None:
    with pytest.raises(ValueError):
        PriceHistoryStore(capacity=0)


def test_to_frame_has_utc_index_and_price_column() -> None:
    store = PriceHistoryStore(capacity=10)
    store.append("X", tick(0, 101.5))
    store.append("X", PricePoint(price=102.5, timestamp=tick(1).timestamp, volume=300))

    frame = store.to_frame("X")

    assert list(frame.columns) == ["price", "volume"]
    assert str(frame.index.tz) == "UTC"
    assert frame["price"].tolist() == [101.5, 102.5]
    assert frame["volume"].iloc[-1] == 300


def test_price_point_rejects_non_positive_price() -> None:
    with pytest.raises(ValueError):
        PricePoint(price=0.0, timestamp=T0)
    with pytest.raises(ValueError):
        PricePoint(price=1.0, timestamp=T0, volume=-1)
