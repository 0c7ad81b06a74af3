"""Graded vesting over a lockable ledger, call weight metering and weight file generation."""

__version__ = "0.1.0"
__all__ = ["balances", "vesting", "weight_meter", "weightgen", "weights"]