import dataclasses

import pytest

from ormlkit.weights import (
    LEGACY_WEIGHT_INFO,
    MAX_WEIGHT,
    ROCKS_DB_WEIGHT,
    RuntimeDbWeight,
    WeightInfo,
    saturating_add,
    saturating_mul,
)

FREE_DB = RuntimeDbWeight(read=0, write=0)


def test_saturating_add_clamps_at_max():
    assert saturating_add(MAX_WEIGHT, 1) == MAX_WEIGHT
    assert saturating_add(MAX_WEIGHT - 1, 1) == MAX_WEIGHT


def test_saturating_mul_clamps_at_max():
    assert saturating_mul(2**63, 2) == MAX_WEIGHT
    assert saturating_mul(MAX_WEIGHT, 0) == 0


def test_saturating_ops_never_negative():
    assert saturating_add(0, -5) == 0


@pytest.mark.parametrize("n", [0, 1, 3, 10])
def test_reads_and_writes_scale_linearly(n):
    db = ROCKS_DB_WEIGHT
    assert db.reads(n) == db.reads(1) * n
    assert db.writes(n) == db.writes(1) * n


def test_reads_writes_is_sum():
    db = ROCKS_DB_WEIGHT
    assert db.reads_writes(4, 3) == db.reads(4) + db.writes(3)


def test_base_weights_without_db_cost():
    info = WeightInfo(db_weight=FREE_DB)
    assert info.vested_transfer() == 69_000_000
    assert info.claim(0) == 31_747_000
    assert info.update_vesting_schedules(0) == 29_457_000


def test_per_item_weights():
    info = WeightInfo(db_weight=FREE_DB)
    assert info.claim(2) - info.claim(1) == 63_000
    assert info.update_vesting_schedules(5) - info.update_vesting_schedules(4) == 117_000


def test_db_cost_is_added():
    with_db = WeightInfo()
    without_db = WeightInfo(db_weight=FREE_DB)
    db = ROCKS_DB_WEIGHT
    assert with_db.vested_transfer() - without_db.vested_transfer() == db.reads_writes(4, 4)
    assert with_db.claim(3) - without_db.claim(3) == db.reads_writes(2, 2)
    assert (
        with_db.update_vesting_schedules(3) - without_db.update_vesting_schedules(3)
        == db.reads_writes(2, 3)
    )


def test_legacy_weights():
    info = dataclasses.replace(LEGACY_WEIGHT_INFO, db_weight=FREE_DB)
    assert info.vested_transfer() == 310_862_000
    assert info.claim(0) == 158_614_000
    assert info.claim(1) - info.claim(0) == 958_000
    assert info.update_vesting_schedules(1) - info.update_vesting_schedules(0) == 2_320_000


def test_huge_item_count_saturates():
    assert WeightInfo().claim(2**64) == MAX_WEIGHT