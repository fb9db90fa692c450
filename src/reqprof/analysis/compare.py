from __future__ import annotations

from dataclasses import dataclass
import pandas as pd

LATENCY_REGRESSION_RATIO = 0.2
SUCCESS_RATE_DROP = 0.05


@dataclass(frozen=True, slots=True)
class Regression:
    metric: str
    delta_pct: float
    message: str


def compare_runs(base: pd.DataFrame, candidate: pd.DataFrame) -> list[Regression]:
    """Compare two ``profile_summary`` frames (one row per run)."""
    regressions: list[Regression] = []
    if base.empty or candidate.empty:
        return regressions
    base_row = base.iloc[0]
    cand_row = candidate.iloc[0]
    for metric, message in [
        ("median_ms", "median latency increased materially"),
        ("p95_ms", "p95 latency increased materially"),
    ]:
        base_value = float(base_row[metric])
        cand_value = float(cand_row[metric])
        if base_value > 0:
            delta = (cand_value - base_value) / base_value
            if delta > LATENCY_REGRESSION_RATIO:
                regressions.append(Regression(metric=metric, delta_pct=delta * 100, message=message))
    base_rate = float(base_row["success_rate"])
    cand_rate = float(cand_row["success_rate"])
    if base_rate - cand_rate > SUCCESS_RATE_DROP:
        regressions.append(
            Regression(
                metric="success_rate",
                delta_pct=(cand_rate - base_rate) * 100,
                message="success rate regression detected",
            )
        )
    return regressions
