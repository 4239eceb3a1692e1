"""Progress trends computed from the wellness history.

History is stored oldest-first, so chart series keep that order and the
"latest" value is the last point.
"""

from __future__ import annotations

import logging
import statistics
from datetime import datetime
from typing import Any

from nutriaura.core.storage.models import SCORE_KEYS, WellnessDataPoint
from nutriaura.core.storage.repository import WellnessRepository

logger = logging.getLogger(__name__)

NOT_ENOUGH_DATA = "Not enough data to show a trend."
# Score points between half-means before a change counts as a direction
DIRECTION_THRESHOLD = 3.0


def _date_label(timestamp: str) -> str:
    try:
        return datetime.fromisoformat(timestamp).date().isoformat()
    except ValueError:
        return timestamp


def chart_series(history: list[WellnessDataPoint], metric: str) -> list[dict[str, Any]]:
    """One ``{"value", "label"}`` point per history entry that carries ``metric``."""
    if metric not in SCORE_KEYS:
        raise ValueError(f"Unknown metric {metric!r}; expected one of {SCORE_KEYS}")
    return [
        {"value": point.scores[metric], "label": _date_label(point.timestamp)}
        for point in history
        if metric in point.scores
    ]


def _direction(values: list[int]) -> str:
    if len(values) >= 4:
        mid = len(values) // 2
        diff = statistics.mean(values[mid:]) - statistics.mean(values[:mid])
    else:
        diff = values[-1] - values[0]
    if diff > DIRECTION_THRESHOLD:
        return "improving"
    if diff < -DIRECTION_THRESHOLD:
        return "declining"
    return "stable"


def metric_trend(history: list[WellnessDataPoint], metric: str) -> dict[str, Any]:
    """Series plus summary statistics for a single metric."""
    series = chart_series(history, metric)
    if len(series) < 2:
        return {
            "metric": metric,
            "data_points": len(series),
            "series": series,
            "status": "not_enough_data",
            "message": NOT_ENOUGH_DATA,
        }

    values = [p["value"] for p in series]
    return {
        "metric": metric,
        "data_points": len(values),
        "series": series,
        "status": "ok",
        "latest": values[-1],
        "mean": round(statistics.mean(values), 1),
        "min": min(values),
        "max": max(values),
        "direction": _direction(values),
    }


class TrendAnalyzer:
    """Computes per-metric trends from stored history.

    Usage::

        analyzer = TrendAnalyzer(repository)
        report = analyzer.progress_report()
    """

    def __init__(self, repository: WellnessRepository) -> None:
        self._repo = repository

    def progress_report(self) -> dict[str, Any]:
        history = self._repo.get_history()
        if not history:
            return {
                "data_points": 0,
                "status": "no_history",
                "message": "Complete your first analysis to start tracking your progress!",
                "metrics": {},
            }
        return {
            "data_points": len(history),
            "status": "ok",
            "metrics": {metric: metric_trend(history, metric) for metric in SCORE_KEYS},
        }
