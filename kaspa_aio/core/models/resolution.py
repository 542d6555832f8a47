"""
Resolution — output of expanding a requested profile set.
"""

from __future__ import annotations

from pydantic import Field

from kaspa_aio.core.models.validation import Issue, ResultModel


class Resolution(ResultModel):
    """Resolved profile set with its startup sequence.

    When any error is present (cycle, ordering loop or conflict) the
    resolution fails closed: ``resolved``, ``profile_order`` and
    ``startup_order`` are empty for dependency cycles, the two orders are
    empty for a dependency/prerequisite loop, and conflicts keep the
    resolved set so callers can still render it.  ``ok`` is False in
    every case.
    """

    requested: list[str] = Field(default_factory=list)
    resolved: list[str] = Field(default_factory=list)
    profile_order: list[str] = Field(default_factory=list)
    startup_order: list[str] = Field(default_factory=list)
    errors: list[Issue] = Field(default_factory=list)
    cycles: list[list[str]] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors
