"""An in-memory balances ledger with named withdrawal locks."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Hashable, Iterable, Mapping

MAX_BALANCE = 2**64 - 1


class WithdrawReasons(enum.IntFlag):
    """Why funds are being withdrawn."""

    TRANSACTION_PAYMENT = 1
    TRANSFER = 2
    RESERVE = 4
    FEE = 8
    TIP = 16

    @classmethod
    def all(cls) -> "WithdrawReasons":
        return cls(31)


class Reasons(enum.Enum):
    """Which kinds of withdrawal a lock restricts."""

    FEE = "fee"
    MISC = "misc"
    ALL = "all"

    @classmethod
    def from_withdraw_reasons(cls, reasons: WithdrawReasons) -> "Reasons":
        if reasons == WithdrawReasons.TRANSACTION_PAYMENT:
            return cls.FEE
        if reasons & WithdrawReasons.TRANSACTION_PAYMENT:
            return cls.ALL
        return cls.MISC


@dataclass(frozen=True)
class BalanceLock:
    id: bytes
    amount: int
    reasons: Reasons


class BalancesError(Exception):
    """Base class of ledger errors."""


class InsufficientBalance(BalancesError):
    """The account does not hold enough free balance."""


class LiquidityRestrictions(BalancesError):
    """A lock prevents the withdrawal."""


class ExistentialDepositError(BalancesError):
    """The resulting balance would be below the existential deposit."""


class Balances:
    """Free balances of accounts plus the locks placed on them."""

    def __init__(
        self,
        existential_deposit: int = 1,
        balances: Mapping[Hashable, int] | Iterable[tuple[Hashable, int]] = (),
    ) -> None:
        self.existential_deposit = existential_deposit
        self._free: dict[Hashable, int] = dict(balances)
        self._locks: dict[Hashable, dict[bytes, BalanceLock]] = {}
        if any(amount < existential_deposit for amount in self._free.values()):
            raise ExistentialDepositError("genesis balance below the existential deposit")

    def free_balance(self, who: Hashable) -> int:
        return self._free.get(who, 0)

    def deposit(self, who: Hashable, amount: int) -> None:
        """Create `amount` new funds in `who`'s account."""
        if amount == 0:
            return
        new_balance = self.free_balance(who) + amount
        if new_balance > MAX_BALANCE:
            raise BalancesError("balance overflow")
        if new_balance < self.existential_deposit:
            raise ExistentialDepositError("deposit is below the existential deposit")
        self._free[who] = new_balance

    def transfer(self, source: Hashable, dest: Hashable, amount: int) -> None:
        """Move `amount` from `source` to `dest`, allowing `source` to be reaped."""
        if amount == 0 or source == dest:
            return
        new_from = self.free_balance(source) - amount
        if new_from < 0:
            raise InsufficientBalance(f"{source!r} cannot pay {amount}")
        self.ensure_can_withdraw(source, amount, WithdrawReasons.TRANSFER, new_from)
        new_to = self.free_balance(dest) + amount
        if new_to > MAX_BALANCE:
            raise BalancesError("balance overflow")
        if new_to < self.existential_deposit:
            raise ExistentialDepositError("destination would be below the existential deposit")
        if new_from < self.existential_deposit:
            if self._locks.get(source):
                raise BalancesError("account with locks cannot be reaped")
            self._free.pop(source, None)
        else:
            self._free[source] = new_from
        self._free[dest] = new_to

    def set_lock(
        self, lock_id: bytes, who: Hashable, amount: int, reasons: WithdrawReasons
    ) -> None:
        """Place or replace the lock `lock_id` on `who`."""
        if len(lock_id) != 8:
            raise ValueError("lock identifier must be 8 bytes")
        if amount == 0 or not reasons:
            return
        lock = BalanceLock(lock_id, amount, Reasons.from_withdraw_reasons(reasons))
        self._locks.setdefault(who, {})[lock_id] = lock

    def remove_lock(self, lock_id: bytes, who: Hashable) -> None:
        locks = self._locks.get(who, {})
        locks.pop(lock_id, None)
        if not locks:
            self._locks.pop(who, None)

    def locks(self, who: Hashable) -> list[BalanceLock]:
        return list(self._locks.get(who, {}).values())

    def frozen_balance(self, who: Hashable, reasons: Reasons) -> int:
        """The balance that must stay in the account for withdrawals of `reasons`."""
        return max(
            (
                lock.amount
                for lock in self.locks(who)
                if Reasons.ALL in (reasons, lock.reasons) or lock.reasons == reasons
            ),
            default=0,
        )

    def ensure_can_withdraw(
        self, who: Hashable, amount: int, reasons: WithdrawReasons, new_balance: int
    ) -> None:
        """Raise `LiquidityRestrictions` if locks forbid leaving `new_balance`."""
        if amount == 0:
            return
        minimum = self.frozen_balance(who, Reasons.from_withdraw_reasons(reasons))
        if new_balance < minimum:
            raise LiquidityRestrictions(f"{who!r} has {minimum} locked")

    def snapshot(self) -> Any:
        """Capture the ledger state for a later `restore`."""
        return dict(self._free), {who: dict(locks) for who, locks in self._locks.items()}

    def restore(self, state: Any) -> None:
        free, locks = state
        self._free = dict(free)
        self._locks = {who: dict(entries) for who, entries in locks.items()}