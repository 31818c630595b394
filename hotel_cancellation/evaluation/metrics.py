"""
Predictive performance metrics for the cancellation classifier.

Label metrics work from the 2x2 confusion matrix (positive = canceled);
probability metrics (AUC, Brier, log-loss) use the predicted probabilities.
"""

import numpy as np
import pandas as pd
from dataclasses import dataclass
from typing import Dict
from sklearn.metrics import (
    brier_score_loss,
    confusion_matrix,
    log_loss,
    roc_auc_score,
    roc_curve,
)


@dataclass
class EvaluationResult:
    """Test-set performance at one threshold."""
    threshold: float
    n_samples: int
    counts: Dict[str, int]
    classification: Dict[str, float]
    probability: Dict[str, float]

    def to_frame(self) -> pd.DataFrame:
        """One metric per row: metric, value."""
        values = {'threshold': self.threshold, 'n_samples': self.n_samples}
        values.update(self.counts)
        values.update(self.classification)
        values.update(self.probability)
        return pd.DataFrame({'metric': list(values.keys()), 'value': list(values.values())})

    def __repr__(self) -> str:
        c = self.classification
        p = self.probability
        return f"""
EvaluationResult (threshold = {self.threshold:.2f}, n = {self.n_samples:,}):
  Accuracy: {c['accuracy']:.3f}
  Sensitivity: {c['sensitivity']:.3f}
  Specificity: {c['specificity']:.3f}
  Precision: {c['precision']:.3f}
  F1: {c['f1']:.3f}
  ROC AUC: {p['roc_auc']:.3f}
  Brier: {p['brier']:.4f}
"""


def _safe_div(num: float, den: float) -> float:
    return float(num / den) if den > 0 else 0.0


def confusion_counts(y_true: np.ndarray, y_pred: np.ndarray) -> Dict[str, int]:
    """TP/FP/TN/FN with canceled (1) as the positive class."""
    y_true = np.asarray(y_true).astype(int)
    y_pred = np.asarray(y_pred).astype(int)
    if y_true.shape != y_pred.shape:
        raise ValueError(f"Shape mismatch: y_true {y_true.shape}, y_pred {y_pred.shape}")

    tn, fp, fn, tp = confusion_matrix(y_true, y_pred, labels=[0, 1]).ravel()
    return {'tp': int(tp), 'fp': int(fp), 'tn': int(tn), 'fn': int(fn)}


def metrics_from_counts(counts: Dict[str, int]) -> Dict[str, float]:
    """Classification metrics from confusion counts (zero division -> 0.0)."""
    tp, fp, tn, fn = counts['tp'], counts['fp'], counts['tn'], counts['fn']
    total = tp + fp + tn + fn

    sensitivity = _safe_div(tp, tp + fn)
    specificity = _safe_div(tn, tn + fp)
    precision = _safe_div(tp, tp + fp)

    return {
        'accuracy': _safe_div(tp + tn, total),
        'sensitivity': sensitivity,
        'specificity': specificity,
        'precision': precision,
        'npv': _safe_div(tn, tn + fn),
        'f1': _safe_div(2 * precision * sensitivity, precision + sensitivity),
        'balanced_accuracy': (sensitivity + specificity) / 2,
        'youden_j': sensitivity + specificity - 1,
    }


def classification_metrics(y_true: np.ndarray, y_pred: np.ndarray) -> Dict[str, float]:
    """Accuracy, sensitivity, specificity, precision, NPV, F1, balanced accuracy, Youden's J."""
    return metrics_from_counts(confusion_counts(y_true, y_pred))


def probability_metrics(y_true: np.ndarray, proba: np.ndarray) -> Dict[str, float]:
    """
    ROC AUC, Brier score and log-loss.

    AUC is NaN when y_true holds a single class.
    """
    y_true = np.asarray(y_true).astype(int)
    proba = np.clip(np.asarray(proba, dtype=float), 1e-15, 1 - 1e-15)

    if len(np.unique(y_true)) < 2:
        auc = float('nan')
    else:
        auc = float(roc_auc_score(y_true, proba))

    return {
        'roc_auc': auc,
        'brier': float(brier_score_loss(y_true, proba)),
        'log_loss': float(log_loss(y_true, proba, labels=[0, 1])),
    }


def roc_table(y_true: np.ndarray, proba: np.ndarray) -> pd.DataFrame:
    """ROC curve points: fpr, tpr, threshold."""
    fpr, tpr, thresholds = roc_curve(np.asarray(y_true).astype(int), proba)
    return pd.DataFrame({'fpr': fpr, 'tpr': tpr, 'threshold': thresholds})


def calibration_table(
    y_true: np.ndarray,
    proba: np.ndarray,
    n_bins: int = 10
) -> pd.DataFrame:
    """
    Observed cancellation rate per equal-width probability bin.

    Returns:
        DataFrame with bin bounds, n, mean_predicted, observed_rate
        (empty bins dropped)
    """
    y_true = np.asarray(y_true).astype(int)
    proba = np.asarray(proba, dtype=float)
    edges = np.linspace(0, 1, n_bins + 1)
    # p == 1.0 falls into the last bin
    bins = np.clip(np.digitize(proba, edges[1:-1], right=False), 0, n_bins - 1)

    df = pd.DataFrame({'bin': bins, 'y': y_true, 'p': proba})
    table = df.groupby('bin').agg(
        n=('y', 'size'),
        mean_predicted=('p', 'mean'),
        observed_rate=('y', 'mean'),
    ).reset_index()
    table['bin_low'] = edges[table['bin']]
    table['bin_high'] = edges[table['bin'] + 1]
    return table[['bin', 'bin_low', 'bin_high', 'n', 'mean_predicted', 'observed_rate']]


def evaluate_predictions(
    y_true: np.ndarray,
    proba: np.ndarray,
    threshold: float
) -> EvaluationResult:
    """
    Evaluate probabilities at a fixed threshold.

    Args:
        y_true: Observed 0/1 outcomes
        proba: Predicted cancellation probabilities
        threshold: Classify as canceled when proba >= threshold
    """
    proba = np.asarray(proba, dtype=float)
    y_pred = (proba >= threshold).astype(int)
    counts = confusion_counts(y_true, y_pred)
    return EvaluationResult(
        threshold=float(threshold),
        n_samples=len(proba),
        counts=counts,
        classification=metrics_from_counts(counts),
        probability=probability_metrics(y_true, proba),
    )
