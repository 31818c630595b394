"""Bayesian cancellation model and its convergence diagnostics."""
from .bayesian_logit import BayesianLogisticModel, COEF_VARS
from .diagnostics import (
    ConvergenceReport,
    compute_diagnostics,
    count_divergences,
    print_convergence_report,
)

__all__ = [
    'BayesianLogisticModel',
    'COEF_VARS',
    'ConvergenceReport',
    'compute_diagnostics',
    'count_divergences',
    'print_convergence_report',
]
