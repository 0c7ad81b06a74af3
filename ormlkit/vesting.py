"""Graded vesting: balances locked on an account and released period by period."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Hashable, Union

from .balances import MAX_BALANCE, Balances, WithdrawReasons

VESTING_LOCK_ID = b"ormlvest"
MAX_BLOCK_NUMBER = 2**64 - 1
MAX_PERIOD_COUNT = 2**32 - 1


@dataclass(frozen=True)
class VestingSchedule:
    """Release `per_period` every `period` blocks after `start`, `period_count` times."""

    start: int
    period: int
    period_count: int
    per_period: int

    def __post_init__(self) -> None:
        for name in ("start", "period", "period_count", "per_period"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must not be negative")
        if self.start > MAX_BLOCK_NUMBER or self.period > MAX_BLOCK_NUMBER:
            raise ValueError("block number out of range")
        if self.period_count > MAX_PERIOD_COUNT:
            raise ValueError("period_count out of range")
        if self.per_period > MAX_BALANCE:
            raise ValueError("per_period out of range")

    def end(self) -> int | None:
        """The block at which every period has passed, or None on overflow."""
        value = self.period * self.period_count + self.start
        return value if value <= MAX_BLOCK_NUMBER else None

    def total_amount(self) -> int | None:
        """The whole amount this schedule locks, or None on overflow."""
        value = self.per_period * self.period_count
        return value if value <= MAX_BALANCE else None

    def locked_amount(self, time: int) -> int:
        """The amount still locked at block `time`.

        The schedule must have a non-zero period and a total that does not overflow.
        """
        if self.period == 0:
            raise ValueError("vesting period must be non-zero")
        full = max(time - self.start, 0) // self.period
        unrealized = max(self.period_count - min(full, MAX_PERIOD_COUNT), 0)
        amount = self.per_period * unrealized
        if amount > MAX_BALANCE:
            raise ValueError("vesting total amount overflows")
        return amount


class VestingError(Exception):
    """Base class of vesting errors."""


class ZeroVestingPeriod(VestingError):
    """The vesting period is zero."""


class ZeroVestingPeriodCount(VestingError):
    """The number of vests is zero."""


class InsufficientBalanceToLock(VestingError):
    """The account does not hold enough balance to lock."""


class TooManyVestingSchedules(VestingError):
    """The account has too many vesting schedules."""


class AmountLow(VestingError):
    """The vested transfer amount is too low."""


class MaxVestingSchedulesExceeded(VestingError):
    """The maximum number of vesting schedules was exceeded."""


class ArithmeticOverflow(VestingError):
    """A calculation overflowed."""


class BadOrigin(VestingError):
    """The caller is not allowed to make this call."""


@dataclass(frozen=True)
class Root:
    """The privileged origin."""


@dataclass(frozen=True)
class VestingScheduleAdded:
    source: Hashable
    dest: Hashable
    schedule: VestingSchedule


@dataclass(frozen=True)
class Claimed:
    who: Hashable
    locked_amount: int


@dataclass(frozen=True)
class VestingSchedulesUpdated:
    who: Hashable


Event = Union[VestingScheduleAdded, Claimed, VestingSchedulesUpdated]
GenesisItem = tuple[Hashable, int, int, int, int]


def _ensure_signed(origin: Any) -> Hashable:
    if origin is None or isinstance(origin, Root):
        raise BadOrigin("a signed origin is required")
    return origin


def _ensure_root(origin: Any) -> None:
    if not isinstance(origin, Root):
        raise BadOrigin("the root origin is required")


class Vesting:
    """Vesting schedules of accounts, enforced through locks on a balances ledger."""

    def __init__(
        self,
        currency: Balances,
        min_vested_transfer: int = 0,
        max_vesting_schedules: int = 2,
        block_number: int = 0,
        vested_transfer_origins: Iterable[Hashable] | None = None,
        genesis: Iterable[GenesisItem] = (),
    ) -> None:
        self.currency = currency
        self.min_vested_transfer = min_vested_transfer
        self.max_vesting_schedules = max_vesting_schedules
        self.block_number = block_number
        self.vested_transfer_origins = (
            None if vested_transfer_origins is None else frozenset(vested_transfer_origins)
        )
        self.events: list[Event] = []
        self._schedules: dict[Hashable, list[VestingSchedule]] = {}
        self.build_genesis(genesis)

    def build_genesis(self, genesis: Iterable[GenesisItem]) -> None:
        """Give each listed account a single schedule and lock its total."""
        for who, start, period, period_count, per_period in genesis:
            schedule = VestingSchedule(start, period, period_count, per_period)
            total = per_period * period_count
            if self.max_vesting_schedules < 1:
                raise MaxVestingSchedulesExceeded("max vesting schedules exceeded")
            if self.currency.free_balance(who) < total:
                raise InsufficientBalanceToLock(f"{who!r} does not have enough balance")
            self.currency.set_lock(VESTING_LOCK_ID, who, total, WithdrawReasons.all())
            self._schedules[who] = [schedule]

    def vesting_schedules(self, who: Hashable) -> list[VestingSchedule]:
        return list(self._schedules.get(who, []))

    def has_schedules(self, who: Hashable) -> bool:
        return who in self._schedules

    def last_event(self) -> Event | None:
        return self.events[-1] if self.events else None

    def claim(self, origin: Any) -> int:
        """Release whatever has vested for the caller; returns the amount still locked."""
        who = _ensure_signed(origin)
        locked = self._do_claim(who)
        self.events.append(Claimed(who, locked))
        return locked

    def vested_transfer(self, origin: Any, dest: Hashable, schedule: VestingSchedule) -> None:
        """Transfer the schedule's total to `dest` and lock it under the schedule."""
        source = _ensure_signed(origin)
        if self.vested_transfer_origins is not None and source not in self.vested_transfer_origins:
            raise BadOrigin(f"{source!r} may not make vested transfers")
        self._transactional_vested_transfer(source, dest, schedule)
        self.events.append(VestingScheduleAdded(source, dest, schedule))

    def update_vesting_schedules(
        self, origin: Any, who: Hashable, vesting_schedules: Iterable[VestingSchedule]
    ) -> None:
        """Replace all schedules of `who`; root only."""
        _ensure_root(origin)
        self._do_update_vesting_schedules(who, list(vesting_schedules))
        self.events.append(VestingSchedulesUpdated(who))

    def locked_balance(self, who: Hashable) -> int:
        """Locked balance at the current block, dropping fully vested schedules."""
        now = self.block_number
        total = 0
        remaining: list[VestingSchedule] = []
        for schedule in self._schedules.get(who, []):
            amount = schedule.locked_amount(now)
            total = min(total + amount, MAX_BALANCE)
            if amount:
                remaining.append(schedule)
        if total == 0:
            self._schedules.pop(who, None)
        else:
            self._schedules[who] = remaining
        return total

    def _do_claim(self, who: Hashable) -> int:
        locked = self.locked_balance(who)
        if locked == 0:
            self._schedules.pop(who, None)
            self.currency.remove_lock(VESTING_LOCK_ID, who)
        else:
            self.currency.set_lock(VESTING_LOCK_ID, who, locked, WithdrawReasons.all())
        return locked

    def _transactional_vested_transfer(
        self, source: Hashable, dest: Hashable, schedule: VestingSchedule
    ) -> None:
        currency_state = self.currency.snapshot()
        schedules_state = {who: list(items) for who, items in self._schedules.items()}
        try:
            self._do_vested_transfer(source, dest, schedule)
        except BaseException:
            self.currency.restore(currency_state)
            self._schedules = schedules_state
            raise

    def _do_vested_transfer(
        self, source: Hashable, dest: Hashable, schedule: VestingSchedule
    ) -> None:
        schedule_amount = self._ensure_valid_vesting_schedule(schedule)
        total_amount = self.locked_balance(dest) + schedule_amount
        if total_amount > MAX_BALANCE:
            raise ArithmeticOverflow("locked balance overflows")
        self.currency.transfer(source, dest, schedule_amount)
        self.currency.set_lock(VESTING_LOCK_ID, dest, total_amount, WithdrawReasons.all())
        schedules = self._schedules.get(dest, [])
        if len(schedules) + 1 > self.max_vesting_schedules:
            raise MaxVestingSchedulesExceeded(f"{dest!r} has too many vesting schedules")
        self._schedules[dest] = [*schedules, schedule]

    def _do_update_vesting_schedules(
        self, who: Hashable, schedules: list[VestingSchedule]
    ) -> None:
        if len(schedules) > self.max_vesting_schedules:
            raise MaxVestingSchedulesExceeded("too many vesting schedules")
        if not schedules:
            self._schedules.pop(who, None)
            self.currency.remove_lock(VESTING_LOCK_ID, who)
            return
        total_amount = sum(self._ensure_valid_vesting_schedule(s) for s in schedules)
        if total_amount > MAX_BALANCE:
            raise ArithmeticOverflow("total vesting amount overflows")
        if self.currency.free_balance(who) < total_amount:
            raise InsufficientBalanceToLock(f"{who!r} cannot lock {total_amount}")
        self.currency.set_lock(VESTING_LOCK_ID, who, total_amount, WithdrawReasons.all())
        self._schedules[who] = list(schedules)

    def _ensure_valid_vesting_schedule(self, schedule: VestingSchedule) -> int:
        if schedule.period == 0:
            raise ZeroVestingPeriod("vesting period is zero")
        if schedule.period_count == 0:
            raise ZeroVestingPeriodCount("number of vests is zero")
        if schedule.end() is None:
            raise ArithmeticOverflow("schedule end overflows")
        total = schedule.total_amount()
        if total is None:
            raise ArithmeticOverflow("schedule total overflows")
        if total < self.min_vested_transfer:
            raise AmountLow(f"vested transfer of {total} is below the minimum")
        return total