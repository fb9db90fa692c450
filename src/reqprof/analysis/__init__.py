from __future__ import annotations

from reqprof.analysis.compare import Regression, compare_runs

__all__ = ["Regression", "compare_runs"]
