"""Figures for exploration, MCMC diagnostics and evaluation."""
from .plots import (
    plot_predictor_distributions,
    plot_cancellation_rates,
    plot_correlation_matrix,
    plot_trace,
    plot_autocorrelation,
    plot_rank,
    plot_posterior,
    plot_forest,
    plot_posterior_predictive,
    plot_threshold_sweep,
    plot_roc_curve,
    plot_confusion_matrix,
    plot_calibration,
)
