"""Structured record of Metropolis-Hastings decisions."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, asdict
from typing import Any, List, Optional

import numpy as np
import pandas as pd

MOVES = ("m", "p", "eps_pos", "eps_neg")


@dataclass(frozen=True, slots=True)
class MoveEvent:
    """One accept/reject decision.

    ``index`` is the sample (for ``m``) or locus (for ``p``) that was
    updated and is ``None`` for the scalar error rates. ``value`` is the
    proposed value. ``in_bounds`` is false for proposals rejected because
    they fell outside the parameter's support.
    """
    iteration: int
    move: str
    index: Optional[int]
    accepted: bool
    value: Any
    in_bounds: bool = True

    def __post_init__(self):
        if self.move not in MOVES:
            raise ValueError(f"unknown move {self.move!r}; expected one of {MOVES}")


class ChainTrace:
    """Collects ``MoveEvent`` objects emitted by a chain.

    Only the most recent ``max_events`` events are kept, while the
    per-move counters cover the whole run. ``proposed`` counts in-bounds
    proposals only, matching the chain's own attempt counters;
    ``out_of_bounds`` counts the rest.
    """

    def __init__(self, max_events: Optional[int] = 100_000):
        self.max_events = max_events
        self.events: List[MoveEvent] = []
        self.proposed: Counter = Counter()
        self.accepted: Counter = Counter()
        self.out_of_bounds: Counter = Counter()

    def __call__(self, event: MoveEvent) -> None:
        if event.in_bounds:
            self.proposed[event.move] += 1
        else:
            self.out_of_bounds[event.move] += 1
        if event.accepted:
            self.accepted[event.move] += 1
        self.events.append(event)
        if self.max_events is not None and len(self.events) > self.max_events:
            del self.events[: len(self.events) - self.max_events]

    def acceptance_rate(self, move: str) -> float:
        if self.proposed[move] == 0:
            return float("nan")
        return self.accepted[move] / self.proposed[move]

    def to_frame(self) -> pd.DataFrame:
        rows = []
        for event in self.events:
            row = asdict(event)
            if isinstance(row["value"], np.ndarray):
                row["value"] = row["value"].tolist()
            rows.append(row)
        return pd.DataFrame(rows, columns=["iteration", "move", "index", "accepted", "value", "in_bounds"])
