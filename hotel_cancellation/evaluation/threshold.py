"""
Classification threshold selection.

The threshold is chosen on the training split's posterior-mean
probabilities and only then applied to the held-out test split.
"""

import numpy as np
import pandas as pd
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from hotel_cancellation.config import (
    DEFAULT_THRESHOLD_CRITERION,
    THRESHOLD_CRITERIA,
    THRESHOLD_GRID,
    get_threshold_grid,
)
from hotel_cancellation.evaluation.metrics import confusion_counts, metrics_from_counts


@dataclass
class ThresholdResult:
    """Selected threshold and its training-split metrics."""
    threshold: float
    criterion: str
    score: float
    metrics: Dict[str, float]
    sweep: pd.DataFrame


def threshold_values(grid: Tuple[float, float, float] = THRESHOLD_GRID) -> np.ndarray:
    """Cutoffs from start to stop (inclusive) in steps, rounded to avoid float drift."""
    g = get_threshold_grid(grid)
    if g['step'] <= 0:
        raise ValueError(f"Threshold step must be positive, got {g['step']}")
    if not 0 <= g['start'] <= g['stop'] <= 1:
        raise ValueError(f"Threshold grid must lie within [0, 1], got {grid}")
    n = int(np.floor((g['stop'] - g['start']) / g['step'] + 1e-9)) + 1
    return np.round(g['start'] + g['step'] * np.arange(n), 10)


def sweep_thresholds(
    y_true: np.ndarray,
    proba: np.ndarray,
    grid: Tuple[float, float, float] = THRESHOLD_GRID
) -> pd.DataFrame:
    """
    Classification metrics at every cutoff of the grid.

    Returns:
        DataFrame with one row per threshold: counts + metrics
    """
    y_true = np.asarray(y_true).astype(int)
    proba = np.asarray(proba, dtype=float)
    if len(y_true) != len(proba):
        raise ValueError(f"y_true has {len(y_true)} rows but proba has {len(proba)}")

    rows = []
    for t in threshold_values(grid):
        counts = confusion_counts(y_true, (proba >= t).astype(int))
        rows.append({'threshold': t, **counts, **metrics_from_counts(counts)})
    return pd.DataFrame(rows)


def _criterion_column(criterion: str) -> str:
    if criterion not in THRESHOLD_CRITERIA:
        raise ValueError(f"Unknown criterion: {criterion}. Choose from: {list(THRESHOLD_CRITERIA)}")
    return 'youden_j' if criterion == 'youden' else criterion


def select_threshold(
    y_true: np.ndarray,
    proba: np.ndarray,
    criterion: str = DEFAULT_THRESHOLD_CRITERION,
    grid: Tuple[float, float, float] = THRESHOLD_GRID,
    sweep: Optional[pd.DataFrame] = None
) -> ThresholdResult:
    """
    Pick the cutoff that maximizes a criterion.

    Ties go to the threshold closest to 0.5.

    Args:
        y_true: Training outcomes
        proba: Training posterior-mean probabilities
        criterion: 'youden', 'accuracy', 'f1' or 'balanced_accuracy'
        grid: (start, stop, step) of candidate cutoffs
        sweep: Precomputed sweep_thresholds output (optional)
    """
    column = _criterion_column(criterion)
    if sweep is None:
        sweep = sweep_thresholds(y_true, proba, grid)

    best_score = sweep[column].max()
    candidates = sweep[np.isclose(sweep[column], best_score)]
    best = candidates.loc[(candidates['threshold'] - 0.5).abs().idxmin()]

    metric_names = [
        'accuracy', 'sensitivity', 'specificity', 'precision',
        'npv', 'f1', 'balanced_accuracy', 'youden_j'
    ]
    return ThresholdResult(
        threshold=float(best['threshold']),
        criterion=criterion,
        score=float(best_score),
        metrics={m: float(best[m]) for m in metric_names},
        sweep=sweep,
    )
