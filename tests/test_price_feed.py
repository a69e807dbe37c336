from __future__ import annotations

import random
from collections.abc import Iterable
from datetime import UTC, datetime, timedelta

import pytest

from marketsim.domain.errors import NoPriceDataError, QuoteSourceUnavailableError
from marketsim.feed.price_feed import DEFAULT_BASE_PRICES, PriceFeed
from marketsim.feed.static import StaticQuoteSource
from marketsim.feed.synthetic import RandomWalkModel

T0 = datetime(2025, 1, 2, 15, 0, tzinfo=UTC)


class ScriptedRandom(random.Random):
    def __init__(self, draws: list[float]) -> None:
        super().__init__(0)
        self.draws = list(draws)

    def random(self) -> float:
        return self.draws.pop(0)


class StubQuoteSource:
    def __init__(self, responses: list[dict[str, float] | Exception]) -> None:
        self.responses = list(responses)
        self.calls = 0

    def fetch_quotes(self, symbols: Iterable[str]) -> dict[str, float]:
        _ = list(symbols)
        self.calls += 1
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def scripted_feed(draws: list[float], **kwargs: object) -> PriceFeed:
    kwargs.setdefault("symbols", ["X"])
    kwargs.setdefault("base_prices", {"X": 100.0})
    return PriceFeed(model=RandomWalkModel(rng=ScriptedRandom(draws)), clock=lambda: T0, **kwargs)


def test_random_walk_step_matches_drift_formula() -> None:
    model = RandomWalkModel(rng=ScriptedRandom([0.98, 0.0, 0.48]))

    assert model.next_price(100.0) == pytest.approx(101.0)
    assert model.next_price(100.0) == pytest.approx(99.04)
    assert model.next_price(100.0) == pytest.approx(100.0)


def test_random_walk_never_drops_below_floor_in_one_step() -> None:
    model = RandomWalkModel(max_step_fraction=50.0, rng=ScriptedRandom([0.0]))

    assert model.next_price(100.0) == pytest.approx(10.0)


def test_seeded_models_are_reproducible() -> None:
    first = RandomWalkModel.seeded(7)
    second = RandomWalkModel.seeded(7)

    prices_a = [first.next_price(100.0) for _ in range(20)]
    prices_b = [second.next_price(100.0) for _ in range(20)]

    assert prices_a == prices_b
    assert all(98.0 <= price <= 102.0 for price in prices_a)


def test_model_rejects_invalid_parameters() -> None:
    with pytest.raises(ValueError):
        RandomWalkModel(bias=1.5)
    with pytest.raises(ValueError):
        RandomWalkModel(floor_fraction=0.0)


def test_prime_uses_configured_base_prices() -> None:
    feed = PriceFeed(symbols=list(DEFAULT_BASE_PRICES), clock=lambda: T0)

    opening = feed.prime()

    assert opening["AAPL"].price == 175.0
    assert opening["TSLA"].price == 250.0
    assert opening["AAPL"].timestamp == T0
    assert feed.last_price("GOOGL") == 2800.0


def test_prime_draws_from_band_when_no_base_price() -> None:
    feed = scripted_feed([0.5], symbols=["NEW"], base_prices={}, price_band=(10.0, 20.0))

    assert feed.prime()["NEW"].price == pytest.approx(15.0)


def test_missing_base_price_without_band_is_rejected() -> None:
    with pytest.raises(ValueError, match="No base price"):
        PriceFeed(symbols=["NEW"], base_prices={})


def test_prime_prefers_external_quotes() -> None:
    source = StubQuoteSource([{"X": 180.5}])
    feed = scripted_feed([], quote_source=source)

    assert feed.prime()["X"].price == 180.5


def test_next_tick_is_synthetic_step_from_previous_price() -> None:
    feed = scripted_feed([0.98])

    point = feed.next_tick("X", 200.0)

    assert point.price == pytest.approx(202.0)
    assert point.timestamp == T0
    assert feed.last_price("X") == pytest.approx(202.0)


def test_poll_before_prime_returns_opening_prices() -> None:
    feed = scripted_feed([])

    assert feed.poll()["X"].price == 100.0


def test_poll_walks_from_last_price() -> None:
    feed = scripted_feed([0.98, 0.98])
    feed.prime()

    assert feed.poll()["X"].price == pytest.approx(101.0)
    assert feed.poll()["X"].price == pytest.approx(102.01)


def test_per_call_fallback_retries_source_next_cycle() -> None:
    source = StubQuoteSource(
        [{"X": 100.0}, QuoteSourceUnavailableError("timeout"), {"X": 150.0}]
    )
    feed = scripted_feed([0.98], quote_source=source)
    feed.prime()

    assert feed.poll()["X"].price == pytest.approx(101.0)
    assert feed.poll()["X"].price == 150.0
    assert source.calls == 3
    assert feed.using_quote_source


def test_sticky_fallback_disables_source_until_restart() -> None:
    source = StubQuoteSource([QuoteSourceUnavailableError("down"), {"X": 999.0}])
    feed = scripted_feed([0.98, 0.98], quote_source=source, fallback_policy="sticky")

    assert feed.prime()["X"].price == 100.0
    assert feed.poll()["X"].price == pytest.approx(101.0)
    assert feed.poll()["X"].price == pytest.approx(102.01)
    assert source.calls == 1
    assert not feed.using_quote_source


def test_symbols_missing_or_invalid_in_quotes_step_synthetically() -> None:
    source = StubQuoteSource([{}, {"X": -3.0, "Y": 50.0, "OTHER": 1.0}])
    feed = scripted_feed(
        [0.48],
        symbols=["X", "Y"],
        base_prices={"X": 100.0, "Y": 40.0},
        quote_source=source,
    )
    feed.prime()

    ticks = feed.poll()

    assert ticks["X"].price == pytest.approx(100.0)
    assert ticks["Y"].price == 50.0
    assert set(ticks) == {"X", "Y"}


@pytest.mark.parametrize("bad_quote", [float("inf"), float("nan"), True, "101"])
def test_non_finite_or_non_numeric_quotes_step_synthetically(bad_quote: object) -> None:
    source = StubQuoteSource([{}, {"X": bad_quote}])
    feed = scripted_feed([0.98], quote_source=source)
    feed.prime()

    ticks = feed.poll()

    assert ticks["X"].price == pytest.approx(101.0)
    assert feed.using_quote_source


def test_last_price_without_data_raises() -> None:
    feed = scripted_feed([])

    with pytest.raises(NoPriceDataError):
        feed.last_price("X")


def test_unknown_fallback_policy_is_rejected() -> None:
    with pytest.raises(ValueError, match="fallback_policy"):
        scripted_feed([], fallback_policy="never")


class SteppingClock:
    def __init__(self, readings: list[datetime]) -> None:
        self.readings = list(readings)

    def __call__(self) -> datetime:
        return self.readings.pop(0)


def test_timestamps_never_go_backwards_when_clock_steps_back() -> None:
    clock = SteppingClock([T0, T0 - timedelta(seconds=1), T0 + timedelta(seconds=5)])
    feed = PriceFeed(
        symbols=["X"],
        model=RandomWalkModel(rng=ScriptedRandom([0.5, 0.5])),
        base_prices={"X": 100.0},
        clock=clock,
    )

    opening = feed.prime()["X"]
    stepped_back = feed.poll()["X"]
    resumed = feed.poll()["X"]

    assert opening.timestamp == T0
    assert stepped_back.timestamp == T0
    assert resumed.timestamp == T0 + timedelta(seconds=5)


def test_static_quote_source_pins_known_symbols() -> None:
    source = StaticQuoteSource({"x": 42.0})
    feed = scripted_feed(
        [0.98],
        symbols=["X", "Y"],
        base_prices={"X": 100.0, "Y": 10.0},
        quote_source=source,
    )

    assert feed.prime()["X"].price == 42.0
    ticks = feed.poll()

    assert ticks["X"].price == 42.0
    assert ticks["Y"].price == pytest.approx(10.1)
    assert source.fetch_quotes(["Y"]) == {}


@pytest.mark.parametrize("price", [0.0, -1.0, float("inf")])
def test_static_quote_source_rejects_unusable_prices(price: float) -> None:
    with pytest.raises(ValueError, match="Static price"):
        StaticQuoteSource({"X": price})
