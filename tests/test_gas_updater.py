"""Tests for the gas ticker run."""

import pytest

from conftest import FakeConnector, FakeGas, make_ticker_config
from core.errors import PublishFailure, UpstreamFailure
from core.models import GasSnapshot
from core.session_pool import SessionPool
from execution.display import gas_nickname, gas_status
from execution.gas_updater import GasUpdater


def _updater(gas, connector):
    cfg = make_ticker_config(gas_token="tk-gas", gas_guild="g-gas")
    return GasUpdater(cfg.gas_ticker_config, SessionPool(connector), gas)


def test_publishes_gwei_levels(gas_snapshot):
    connector = FakeConnector()
    updater = _updater(FakeGas(snapshot=gas_snapshot), connector)

    updater.run()

    session = connector.sessions["tk-gas"]
    guild, user, nickname = session.nicknames[0]
    assert guild == "g-gas"
    assert user == "@me"
    assert "42" in nickname
    assert "gwei" in nickname
    assert "65" in session.statuses[0]
    assert "12" in session.statuses[0]


def test_gwei_values_are_truncated():
    snapshot = GasSnapshot(fast=659, fastest=700, safe_low=129, average=429)
    assert gas_nickname(snapshot) == "\U0001F6B642 gwei"
    assert gas_status(snapshot) == "⚡65 \U0001F40C12"


def test_upstream_failure_fails_run_without_publishing():
    connector = FakeConnector()
    gas = FakeGas(error=UpstreamFailure("ethgasstation", "bad gateway", status_code=502))
    updater = _updater(gas, connector)

    with pytest.raises(UpstreamFailure):
        updater.run()
    assert connector.connects == []


def test_publish_failure_fails_run(gas_snapshot):
    connector = FakeConnector(session_fail_on={"tk-gas": "status"})
    updater = _updater(FakeGas(snapshot=gas_snapshot), connector)

    with pytest.raises(PublishFailure):
        updater.run()
