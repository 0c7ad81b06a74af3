"""Transaction weights: saturating arithmetic, database costs and vesting call weights."""

from __future__ import annotations

from dataclasses import dataclass

MAX_WEIGHT = 2**64 - 1


def _clamp(value: int) -> int:
    return max(0, min(value, MAX_WEIGHT))


def saturating_add(a: int, b: int) -> int:
    """Add two weights, clamping the result to the 64-bit weight range."""
    return _clamp(a + b)


def saturating_mul(a: int, b: int) -> int:
    """Multiply two weights, clamping the result to the 64-bit weight range."""
    return _clamp(a * b)


@dataclass(frozen=True)
class RuntimeDbWeight:
    """Cost of a single storage read and a single storage write."""

    read: int
    write: int

    def reads(self, n: int) -> int:
        return saturating_mul(self.read, n)

    def writes(self, n: int) -> int:
        return saturating_mul(self.write, n)

    def reads_writes(self, r: int, w: int) -> int:
        return saturating_add(self.reads(r), self.writes(w))


ROCKS_DB_WEIGHT = RuntimeDbWeight(read=25_000_000, write=100_000_000)


@dataclass(frozen=True)
class _Cost:
    base: int
    per_item: int
    reads: int
    writes: int

    def weight(self, db: RuntimeDbWeight, items: int = 0) -> int:
        total = saturating_add(self.base, saturating_mul(self.per_item, items))
        total = saturating_add(total, db.reads(self.reads))
        return saturating_add(total, db.writes(self.writes))


@dataclass(frozen=True)
class WeightInfo:
    """Benchmarked weights of the vesting calls."""

    db_weight: RuntimeDbWeight = ROCKS_DB_WEIGHT
    transfer_cost: _Cost = _Cost(base=69_000_000, per_item=0, reads=4, writes=4)
    claim_cost: _Cost = _Cost(base=31_747_000, per_item=63_000, reads=2, writes=2)
    update_cost: _Cost = _Cost(base=29_457_000, per_item=117_000, reads=2, writes=3)

    def vested_transfer(self) -> int:
        return self.transfer_cost.weight(self.db_weight)

    def claim(self, i: int) -> int:
        return self.claim_cost.weight(self.db_weight, i)

    def update_vesting_schedules(self, i: int) -> int:
        return self.update_cost.weight(self.db_weight, i)


LEGACY_WEIGHT_INFO = WeightInfo(
    transfer_cost=_Cost(base=310_862_000, per_item=0, reads=4, writes=4),
    claim_cost=_Cost(base=158_614_000, per_item=958_000, reads=3, writes=3),
    update_cost=_Cost(base=119_811_000, per_item=2_320_000, reads=2, writes=3),
)