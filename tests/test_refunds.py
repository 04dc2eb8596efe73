from datetime import datetime, timedelta

import pytest

from core.refunds import RefundPolicy, RefundTier

START = datetime(2030, 1, 10, 12, 0)
POLICY = RefundPolicy([(24, 100), (1, 50)])


def _at(hours_before):
    return START - timedelta(hours=hours_before)


def test_full_refund_well_ahead_of_start():
    decision = POLICY.compute("confirmed", 20060, START, _at(48))
    assert decision.eligible
    assert decision.amount == 20060
    assert decision.percent == 100


def test_half_refund_inside_a_day():
    decision = POLICY.compute("pending", 20061, START, _at(5))
    assert decision.amount == 10030  # floored to the minor unit
    assert decision.percent == 50


def test_threshold_is_strict():
    assert POLICY.compute("confirmed", 1000, START, _at(24)).percent == 50
    assert POLICY.compute("confirmed", 1000, START, _at(1)).amount == 0


def test_nothing_back_once_started_or_active():
    assert POLICY.compute("confirmed", 1000, START, START + timedelta(minutes=5)).amount == 0
    assert POLICY.compute("active", 1000, START, _at(48)).amount == 0
    assert POLICY.compute("completed", 1000, START, _at(48)).amount == 0


def test_tiers_are_configurable_and_sorted():
    policy = RefundPolicy([RefundTier(2, 25), RefundTier(72, 90)])
    assert policy.compute("confirmed", 1000, START, _at(100)).amount == 900
    assert policy.compute("confirmed", 1000, START, _at(3)).amount == 250


def test_from_config_reads_named_schedule():
    policy = RefundPolicy.from_config({"REFUND_TIERS": [(12, 80)]})
    assert policy.compute("confirmed", 1000, START, _at(13)).amount == 800
    assert policy.compute("confirmed", 1000, START, _at(11)).amount == 0


@pytest.mark.parametrize("tier", [(-1, 50), (1, 150), (1, -5)])
def test_invalid_tiers_are_rejected(tier):
    with pytest.raises(ValueError):
        RefundPolicy([tier])
