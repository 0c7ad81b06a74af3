# ormlkit

Tools for scheduled balance locks and call weight accounting:

- **Vesting** (`ormlkit.vesting`): graded vesting schedules over an account
  ledger. From block `start`, every `period` blocks, `per_period` of the
  balance unlocks, until `period_count` periods have passed.
- **Balances** (`ormlkit.balances`): an in-memory ledger with named locks,
  transfers and withdrawal checks, used by the vesting module.
- **Weight metering** (`ormlkit.weight_meter`): add up the declared weight of
  every weighed function run inside a metered call, nested calls included.
- **Weights** (`ormlkit.weights`): saturating 64-bit weight arithmetic,
  database read/write costs and the weight figures of the vesting calls.
- **Weight generation** (`ormlkit.weightgen`): render benchmark results into
  a source file through a Handlebars-style template.

## Installation

```
pip install .
```

## Vesting

```python
from ormlkit.balances import Balances
from ormlkit.vesting import Root, Vesting, VestingSchedule

ALICE, BOB = 1, 2
currency = Balances(existential_deposit=1, balances={ALICE: 100})
vesting = Vesting(
    currency,
    min_vested_transfer=5,
    max_vesting_schedules=2,
    block_number=0,
    vested_transfer_origins={ALICE},
)

schedule = VestingSchedule(start=0, period=10, period_count=2, per_period=10)
vesting.vested_transfer(ALICE, BOB, schedule)

vesting.block_number = 11
vesting.claim(BOB)                 # returns 10: 10 spendable, 10 still locked
currency.transfer(BOB, ALICE, 10)

vesting.update_vesting_schedules(Root(), BOB, [])   # drop all schedules
```

An origin is the caller's account; `Root()` is the privileged origin that
`update_vesting_schedules` requires. When `vested_transfer_origins` is given,
only those accounts may make vested transfers.

Locks are kept under the identifier `VESTING_LOCK_ID` (`b"ormlvest"`) and can be
inspected with `currency.locks(who)`. Schedules are listed by
`vesting.vesting_schedules(who)`; `vesting.has_schedules(who)` tells whether an
account has any. Accounts can be given a schedule at construction time with
`genesis=[(who, start, period, period_count, per_period), ...]`.

Invalid schedules raise `ZeroVestingPeriod`, `ZeroVestingPeriodCount`,
`AmountLow` or `ArithmeticOverflow`; too many schedules raise
`MaxVestingSchedulesExceeded`; a caller without permission raises `BadOrigin`;
locking more than an account holds raises `InsufficientBalanceToLock`. All of
these derive from `VestingError`. Ledger failures raise subclasses of
`BalancesError` (`InsufficientBalance`, `LiquidityRestrictions`,
`ExistentialDepositError`). A failed vested transfer leaves the ledger and the
schedules as they were. Every successful call records an event
(`VestingScheduleAdded`, `Claimed`, `VestingSchedulesUpdated`), available
through `vesting.events` and `vesting.last_event()`.

## Weight metering

```python
from ormlkit import weight_meter

@weight_meter.weighs(100)
def put_100():
    ...

@weight_meter.metered
def call():
    put_100()
    put_100()
    return weight_meter.used_weight()

assert call() == 200
```

The meter is kept per thread. Only the outermost metered call resets the total,
so a metered call made from inside another adds to the same total. Weights
saturate at `2**64 - 1`. `start()`, `using(weight)`, `finish()` and
`used_weight()` are available for driving the meter by hand.

## Weights

```python
from ormlkit.weights import WeightInfo, LEGACY_WEIGHT_INFO, RuntimeDbWeight

WeightInfo().claim(2)                 # weight of claiming with 2 schedules
WeightInfo(db_weight=RuntimeDbWeight(read=1, write=2)).vested_transfer()
```

`saturating_add` and `saturating_mul` clamp results to the 64-bit range.

## Generating weight files

`ormlkit-weight-gen` reads benchmark results as JSON, a list of objects with
`name`, `base_weight`, `base_reads` and `base_writes`, either as its first
argument or from the first line of standard input that parses as such a list.
It renders them through a template and writes the result to a file
(`-o/--out`) or to standard output.

```
ormlkit-weight-gen --template weights.hbs --header header.txt --out weights.rs < bench.json
```

Options: `-t/--template` (required), `-h/--header` (a file whose text becomes
`{{header}}`, empty if omitted), `-o/--out`, `--help`, `-V/--version`. On a
bad input, a missing file or a template error the command prints `error: ...`
to standard error and exits with status 1.

The template can use `{{header}}`, `{{#each benchmarks}} ... {{/each}}`,
`{{#if}}`, `{{#unless}}`, `{{#with}}`, `{{else}}`, `@index`, `@first`,
`@last`, `@key`, `@root`, `../`, comments and `~` whitespace control, and the
helpers `{{underscore base_weight}}` (prints `12_345_000`) and `{{join value}}`
(joins a list with spaces). Nothing is HTML-escaped. The same functions are
available in Python as `render_template`, `parse_bench_data`, `parse_lines`,
`underscore` and `join`.

## What it does not do

- There is no built-in template: `ormlkit-weight-gen` always needs
  `--template`.
- Nothing is stored: the ledger, schedules and events live in memory only.
- Weights are not measured; `weightgen` only formats benchmark results that
  were produced elsewhere.

## Tests

```
pip install .[test]
pytest
```