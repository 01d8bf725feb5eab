"""Counterexample search: checks the engine against its contract.

This module runs independently of the test suite.  It applies every
tagged operation to every state built from a small value grid and looks
for:

1. Rule violations: transitions that break a contract rule.
2. Error condition violations: states that should make an operation
   raise but don't (or raise the wrong exception).

Run directly::

    python -m validation.counterexample_search
"""
from __future__ import annotations

import itertools
import sys
from dataclasses import dataclass, field
from typing import Iterator, Sequence

from contract import CONTRACTS, check_set_x, check_transition
from engine import CalculatorState, RegisterStack, apply_operation, set_x

GRID: tuple[float, ...] = (-2.0, -0.5, 0.0, 1.0, 3.0)


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------

@dataclass
class Counterexample:
    category: str
    operation: str
    state: CalculatorState
    expected: str
    actual: str


@dataclass
class SearchReport:
    counterexamples: list[Counterexample] = field(default_factory=list)
    checks_run: int = 0

    @property
    def passed(self) -> bool:
        return len(self.counterexamples) == 0

    def summary(self) -> str:
        lines = [
            "Counterexample Search Report",
            "=" * 40,
            f"Total checks: {self.checks_run}",
            f"Counterexamples found: {len(self.counterexamples)}",
        ]
        if self.counterexamples:
            lines.append("")
            for i, cx in enumerate(self.counterexamples, 1):
                lines.append(f"  [{i}] {cx.category} / {cx.operation}")
                lines.append(f"      State:    {cx.state}")
                lines.append(f"      Expected: {cx.expected}")
                lines.append(f"      Actual:   {cx.actual}")
        else:
            lines.append("\nNo counterexamples found.")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------

def grid_states(values: Sequence[float] = GRID) -> Iterator[CalculatorState]:
    """Every register assignment from ``values``, with and without last X."""
    for t, z, y, x in itertools.product(values, repeat=4):
        stack = RegisterStack(t=t, z=z, y=y, x=x)
        yield CalculatorState(stack=stack, last_x=None)
        yield CalculatorState(stack=stack, last_x=values[-1])


def search_operations(values: Sequence[float] = GRID) -> tuple[list[Counterexample], int]:
    cxs: list[Counterexample] = []
    checks = 0

    for before in grid_states(values):
        for name, contract in CONTRACTS.items():
            checks += 1
            expected_error = contract.should_fail(before)
            try:
                after = apply_operation(before, name)
            except Exception as e:
                if expected_error is None or not isinstance(e, expected_error.exception):
                    cxs.append(Counterexample(
                        "unexpected_error", name, before,
                        "no error" if expected_error is None
                        else expected_error.exception.__name__,
                        f"{type(e).__name__}: {e}",
                    ))
                continue

            if expected_error is not None:
                cxs.append(Counterexample(
                    "missing_error", name, before,
                    expected_error.exception.__name__, f"returned {after}",
                ))
                continue

            report = check_transition(name, before, after)
            for failure in report.failures:
                cxs.append(Counterexample(
                    "rule_violation", name, before,
                    f"[{failure.rule_id}] {failure.description}", f"returned {after}",
                ))

    return cxs, checks


def search_set_x(values: Sequence[float] = GRID) -> tuple[list[Counterexample], int]:
    cxs: list[Counterexample] = []
    checks = 0
    for before in grid_states(values):
        for value in values:
            checks += 1
            after = set_x(before, value)
            for failure in check_set_x(value, before, after).failures:
                cxs.append(Counterexample(
                    "rule_violation", f"set_x({value})", before,
                    f"[{failure.rule_id}] {failure.description}", f"returned {after}",
                ))
    return cxs, checks


def run_search(values: Sequence[float] = GRID) -> SearchReport:
    report = SearchReport()
    for search in (search_operations, search_set_x):
        cxs, checks = search(values)
        report.counterexamples.extend(cxs)
        report.checks_run += checks
    return report


def main() -> int:
    report = run_search()
    print(report.summary())
    return 0 if report.passed else 1


if __name__ == "__main__":
    sys.exit(main())
