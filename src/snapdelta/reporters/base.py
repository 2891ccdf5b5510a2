"""
Reporter interface. A reporter is a snap listener: after every trigger it
receives the delta summary, on the triggering thread.

Reporters must not call back into the accessor (trigger_snap,
add_snap_reporter, remove_snap_reporter) from inside report(). A nested
trigger_snap deadlocks.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable

from snapdelta.summary import DeltaSummary


class Reporter(ABC):

    @abstractmethod
    def report(self, summary: DeltaSummary) -> None:
        ...

    def name(self) -> str:
        return type(self).__name__


class FunctionReporter(Reporter):
    """Wraps a plain callable so it can be registered like any reporter.

    Two wrappers around the same callable compare equal, which is what
    lets remove_snap_reporter(fn) find the wrapper add_snap_reporter(fn)
    created.
    """

    def __init__(self, fn: Callable[[DeltaSummary], None]):
        self.fn = fn

    def report(self, summary: DeltaSummary) -> None:
        self.fn(summary)

    def name(self) -> str:
        return getattr(self.fn, "__qualname__", repr(self.fn))

    def __eq__(self, other):
        if isinstance(other, FunctionReporter):
            return self.fn == other.fn
        return NotImplemented

    def __hash__(self):
        return hash(self.fn)


def as_reporter(reporter) -> Reporter:
    if isinstance(reporter, Reporter):
        return reporter
    if callable(reporter):
        return FunctionReporter(reporter)
    raise TypeError(f"expected a Reporter or a callable, got {type(reporter).__name__}")
