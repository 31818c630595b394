"""Threshold selection and predictive performance on the held-out split."""
from .metrics import (
    EvaluationResult,
    confusion_counts,
    metrics_from_counts,
    classification_metrics,
    probability_metrics,
    roc_table,
    calibration_table,
    evaluate_predictions,
)
from .threshold import ThresholdResult, threshold_values, sweep_thresholds, select_threshold
