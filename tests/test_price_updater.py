"""Tests for the per-minute price ticker run."""

import logging
import threading

import pytest

from conftest import FakeConnector, FakePrices, SAMPLE_LISTINGS, make_coin
from core.errors import NotReady, PublishFailure
from core.session_pool import SessionPool
from core.symbol_index import SymbolIndex
from execution.price_updater import PriceUpdater


def _updater(coins, prices, connector, refresh=True):
    index = SymbolIndex(prices.fetch_coin_list)
    if refresh:
        index.refresh()
    return PriceUpdater(coins, index, SessionPool(connector), prices)


def test_not_ready_index_fails_fast_without_gateway_calls(prices, connector):
    updater = _updater([make_coin("btc")], prices, connector, refresh=False)

    with pytest.raises(NotReady):
        updater.run()

    assert prices.price_calls == []
    assert connector.connects == []
    assert connector.total_calls == 0


def test_publishes_formatted_price_and_change(prices, connector):
    updater = _updater([make_coin("btc", token="tk-btc", guild="g-1")], prices, connector)

    report = updater.run()

    assert report.published == ["btc"]
    session = connector.sessions["tk-btc"]
    assert session.nicknames == [("g-1", "@me", "btc $12345.68")]
    assert session.statuses == ["24H: -1.23%"]
    assert prices.price_calls == [("bitcoin", "usd")]


def test_decimal_places_follow_coin_config(prices, connector):
    updater = _updater([make_coin("eth", token="tk-eth", decimal_place=0)], prices, connector)
    updater.run()

    session = connector.sessions["tk-eth"]
    assert session.nicknames[0][2] == "eth $2000"
    assert session.statuses == ["24H: 3.14%"]


def test_idr_currency_symbol():
    prices = FakePrices(listings=SAMPLE_LISTINGS, quotes={"bitcoin": (950000000.0, 2.0)})
    connector = FakeConnector()
    updater = _updater([make_coin("btc", vs_currencies="idr", decimal_place=0)], prices, connector)

    updater.run()

    assert connector.sessions["token-btc"].nicknames[0][2] == "btc RP.950000000"
    assert prices.price_calls == [("bitcoin", "idr")]


def test_unknown_currency_defaults_to_dollar():
    prices = FakePrices(listings=SAMPLE_LISTINGS, quotes={"bitcoin": (30000.0, 0.0)})
    connector = FakeConnector()
    updater = _updater([make_coin("btc", vs_currencies="eur", decimal_place=1)], prices, connector)

    updater.run()

    assert connector.sessions["token-btc"].nicknames[0][2] == "btc $30000.0"


def test_explicit_override_bypasses_index():
    prices = FakePrices(listings=SAMPLE_LISTINGS, quotes={"wrapped-bitcoin": (12000.0, 1.0)})
    connector = FakeConnector()
    coin = make_coin("wbtc", token="tk-wbtc", coingecko_id="wrapped-bitcoin")
    updater = _updater([coin], prices, connector)

    report = updater.run()

    assert report.published == ["wbtc"]
    assert prices.price_calls == [("wrapped-bitcoin", "usd")]


def test_resolution_miss_skips_coin_and_continues(prices, connector):
    coins = [
        make_coin("zzz", token="tk-zzz"),
        make_coin("btc", token="tk-btc"),
    ]
    updater = _updater(coins, prices, connector)

    report = updater.run()

    assert report.skipped == ["zzz"]
    assert report.published == ["btc"]
    assert "tk-zzz" not in connector.sessions
    assert connector.sessions["tk-btc"].nicknames[0][2] == "btc $12345.68"


def test_upstream_failure_skips_coin_and_continues(connector):
    prices = FakePrices(
        listings=SAMPLE_LISTINGS,
        quotes={"bitcoin": (1.0, 0.0), "solana": (150.0, 0.5)},
        failing_ids={"bitcoin"},
    )
    coins = [make_coin("btc", token="tk-btc"), make_coin("sol", token="tk-sol")]
    updater = _updater(coins, prices, connector)

    report = updater.run()

    assert report.skipped == ["btc"]
    assert report.published == ["sol"]
    assert connector.connects == ["tk-sol"]


def test_skipped_coins_are_warnings_with_traceback(prices, connector, caplog):
    coins = [make_coin("zzz", token="tk-zzz"), make_coin("btc", token="tk-btc")]
    updater = _updater(coins, prices, connector)

    with caplog.at_level(logging.WARNING, logger="jobs.price_update"):
        updater.run()

    skips = [r for r in caplog.records if "Skipping zzz" in r.getMessage()]
    assert len(skips) == 1
    assert skips[0].levelno == logging.WARNING
    assert skips[0].exc_info is not None
    assert not [r for r in caplog.records if r.levelno >= logging.ERROR]


def test_publish_failure_aborts_remaining_coins(prices):
    connector = FakeConnector(session_fail_on={"tk-eth": "nickname"})
    coins = [
        make_coin("btc", token="tk-btc"),
        make_coin("eth", token="tk-eth"),
        make_coin("sol", token="tk-sol"),
    ]
    updater = _updater(coins, prices, connector)

    with pytest.raises(PublishFailure):
        updater.run()

    assert connector.sessions["tk-btc"].statuses == ["24H: -1.23%"]
    assert ("solana", "usd") not in prices.price_calls
    assert "tk-sol" not in connector.connects


def test_connect_failure_is_a_publish_failure(prices):
    connector = FakeConnector(fail_credentials={"tk-btc"})
    updater = _updater([make_coin("btc", token="tk-btc")], prices, connector)

    with pytest.raises(PublishFailure):
        updater.run()


def test_run_releases_index_lock_after_failure(prices):
    connector = FakeConnector(session_fail_on={"tk-btc": "status"})
    updater = _updater([make_coin("btc", token="tk-btc")], prices, connector)

    with pytest.raises(PublishFailure):
        updater.run()

    # A refresh on another thread must not block behind the failed run
    worker = threading.Thread(target=updater.index.refresh)
    worker.start()
    worker.join(timeout=5)
    assert not worker.is_alive()
