"""
Figures for the cancellation report.

Three groups:
- Exploration: predictor distributions, cancellation rates, correlations
- Posterior: ArviZ trace / autocorrelation / rank / posterior / forest / PPC
- Evaluation: threshold sweep, ROC curve, confusion matrix, calibration

Every function returns the matplotlib Figure and saves it when
output_path is given.
"""

import matplotlib
matplotlib.use('Agg')

import arviz as az
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns
from pathlib import Path
from typing import Dict, Optional

from hotel_cancellation.config import HDI_PROB, PREDICTOR_LABELS, RAW_PREDICTORS, TARGET
from hotel_cancellation.models.bayesian_logit import COEF_VARS

CANCELED_COLORS = {0: '#3498db', 1: '#e74c3c'}

# Replicated datasets overlaid in the posterior predictive check
MAX_PPC_SAMPLES = 200


def _save(fig: plt.Figure, output_path: Optional[Path]) -> None:
    if output_path:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(output_path, dpi=150, bbox_inches='tight')


def _figure_of(axes) -> plt.Figure:
    """ArviZ returns an Axes or an array of them; get the parent Figure."""
    return np.ravel(axes)[0].figure


# =============================================================================
# EXPLORATION
# =============================================================================

def _plot_lead_time_hist(ax: plt.Axes, df: pd.DataFrame) -> None:
    """Overlaid lead-time histograms by outcome."""
    for outcome, label in [(0, 'Not canceled'), (1, 'Canceled')]:
        subset = df.loc[df[TARGET] == outcome, 'lead_time']
        ax.hist(subset, bins=50, alpha=0.6, color=CANCELED_COLORS[outcome],
                label=f'{label} (n={len(subset):,})')
    ax.set_xlabel(PREDICTOR_LABELS['lead_time'], fontsize=11)
    ax.set_ylabel('Bookings', fontsize=11)
    ax.set_title('Lead Time by Outcome', fontsize=12, fontweight='bold')
    ax.legend()


def _plot_count_by_outcome(ax: plt.Axes, df: pd.DataFrame, column: str) -> None:
    """Grouped bar counts of a discrete predictor split by outcome."""
    counts = pd.crosstab(df[column], df[TARGET])
    counts = counts.reindex(columns=[0, 1], fill_value=0)
    counts.columns = ['Not canceled', 'Canceled']
    counts.plot(kind='bar', ax=ax, color=[CANCELED_COLORS[0], CANCELED_COLORS[1]], alpha=0.8)
    ax.set_xlabel(PREDICTOR_LABELS.get(column, column), fontsize=11)
    ax.set_ylabel('Bookings', fontsize=11)
    ax.set_title(f'{PREDICTOR_LABELS.get(column, column)} by Outcome', fontsize=12, fontweight='bold')
    ax.tick_params(axis='x', rotation=0)


def plot_predictor_distributions(
    df: pd.DataFrame,
    output_path: Optional[Path] = None
) -> plt.Figure:
    """
    Distribution of each raw predictor split by cancellation outcome.

    Args:
        df: Model frame (target + RAW_PREDICTORS)
        output_path: Optional path to save figure
    """
    fig, axes = plt.subplots(2, 2, figsize=(16, 11))

    _plot_lead_time_hist(axes[0, 0], df)
    _plot_count_by_outcome(axes[0, 1], df, 'total_of_special_requests')
    _plot_count_by_outcome(axes[1, 0], df, 'hotel')
    _plot_count_by_outcome(axes[1, 1], df, 'deposit_type')

    plt.tight_layout()
    _save(fig, output_path)
    return fig


def plot_cancellation_rates(
    rates: Dict[str, pd.DataFrame],
    overall_rate: Optional[float] = None,
    output_path: Optional[Path] = None
) -> plt.Figure:
    """
    Cancellation rate per level of each predictor.

    Args:
        rates: Output of calculate_exploration_stats()['rates']
        overall_rate: Draws a reference line when given
        output_path: Optional path to save figure
    """
    columns = [c for c in RAW_PREDICTORS if c in rates]
    n_cols = 2
    n_rows = int(np.ceil(len(columns) / n_cols))
    fig, axes = plt.subplots(n_rows, n_cols, figsize=(16, 5.5 * n_rows), squeeze=False)

    for ax, column in zip(axes.flat, columns):
        table = rates[column]
        levels = table['level'].astype(str)
        bars = ax.bar(levels, table['rate'], color='#e67e22', alpha=0.8)
        for bar, n in zip(bars, table['n']):
            ax.text(bar.get_x() + bar.get_width() / 2, bar.get_height(),
                    f'n={int(n):,}', ha='center', va='bottom', fontsize=8)
        if overall_rate is not None:
            ax.axhline(overall_rate, color='black', linestyle='--', linewidth=1,
                       label=f'Overall {overall_rate:.1%}')
            ax.legend()
        ax.set_ylim(0, 1)
        ax.set_ylabel('Cancellation rate', fontsize=11)
        ax.set_title(PREDICTOR_LABELS.get(column, column), fontsize=12, fontweight='bold')
        ax.tick_params(axis='x', rotation=30)

    for ax in list(axes.flat)[len(columns):]:
        ax.set_visible(False)

    plt.tight_layout()
    _save(fig, output_path)
    return fig


def plot_correlation_matrix(
    corr: pd.DataFrame,
    output_path: Optional[Path] = None
) -> plt.Figure:
    """Heatmap of the recoded predictors' correlation matrix."""
    fig, ax = plt.subplots(figsize=(8, 7))
    labels = [PREDICTOR_LABELS.get(c, c) for c in corr.columns]
    sns.heatmap(corr, annot=True, fmt='.2f', cmap='RdBu_r', vmin=-1, vmax=1,
                square=True, xticklabels=labels, yticklabels=labels, ax=ax)
    ax.set_title('Correlation Matrix (recoded variables)', fontsize=12, fontweight='bold')

    plt.tight_layout()
    _save(fig, output_path)
    return fig


# =============================================================================
# POSTERIOR
# =============================================================================

def plot_trace(idata: az.InferenceData, output_path: Optional[Path] = None) -> plt.Figure:
    """Trace and marginal density per coefficient and chain."""
    axes = az.plot_trace(idata, var_names=COEF_VARS, compact=False)
    fig = _figure_of(axes)
    fig.tight_layout()
    _save(fig, output_path)
    return fig


def plot_autocorrelation(idata: az.InferenceData, output_path: Optional[Path] = None) -> plt.Figure:
    """Autocorrelation of the draws."""
    axes = az.plot_autocorr(idata, var_names=COEF_VARS, combined=True)
    fig = _figure_of(axes)
    _save(fig, output_path)
    return fig


def plot_rank(idata: az.InferenceData, output_path: Optional[Path] = None) -> plt.Figure:
    """Rank histograms; uniform bars across chains indicate good mixing."""
    axes = az.plot_rank(idata, var_names=COEF_VARS)
    fig = _figure_of(axes)
    _save(fig, output_path)
    return fig


def plot_posterior(
    idata: az.InferenceData,
    hdi_prob: float = HDI_PROB,
    output_path: Optional[Path] = None
) -> plt.Figure:
    """Posterior densities with HDI and reference value 0."""
    axes = az.plot_posterior(idata, var_names=COEF_VARS, hdi_prob=hdi_prob, ref_val=0)
    fig = _figure_of(axes)
    _save(fig, output_path)
    return fig


def plot_forest(
    idata: az.InferenceData,
    hdi_prob: float = HDI_PROB,
    output_path: Optional[Path] = None
) -> plt.Figure:
    """Forest plot of all coefficients (log-odds scale)."""
    axes = az.plot_forest(idata, var_names=COEF_VARS, hdi_prob=hdi_prob, combined=True)
    fig = _figure_of(axes)
    ax = np.ravel(axes)[0]
    ax.axvline(0, color='black', linestyle='--', linewidth=1)
    ax.set_title(f'Coefficients ({hdi_prob:.0%} HDI, log-odds)', fontsize=12, fontweight='bold')
    _save(fig, output_path)
    return fig


def plot_posterior_predictive(
    idata: az.InferenceData,
    output_path: Optional[Path] = None
) -> plt.Figure:
    """
    Posterior predictive check of the training outcomes.

    Requires idata to carry a posterior_predictive group
    (BayesianLogisticModel.sample_posterior_predictive).
    """
    if 'posterior_predictive' not in idata.groups():
        raise ValueError("InferenceData has no posterior_predictive group. "
                         "Call sample_posterior_predictive() first.")
    predictive = idata.posterior_predictive
    n_samples = predictive.sizes['chain'] * predictive.sizes['draw']
    axes = az.plot_ppc(idata, var_names=['y_obs'], num_pp_samples=min(MAX_PPC_SAMPLES, n_samples))
    fig = _figure_of(axes)
    _save(fig, output_path)
    return fig


# =============================================================================
# EVALUATION
# =============================================================================

def plot_threshold_sweep(
    sweep: pd.DataFrame,
    selected: Optional[float] = None,
    output_path: Optional[Path] = None
) -> plt.Figure:
    """
    Training-split metrics across the probability cutoffs.

    Args:
        sweep: Output of sweep_thresholds
        selected: Chosen threshold (vertical line)
        output_path: Optional path to save figure
    """
    fig, ax = plt.subplots(figsize=(12, 6))

    for metric, color in [
        ('accuracy', '#2c3e50'),
        ('sensitivity', '#e74c3c'),
        ('specificity', '#3498db'),
        ('f1', '#27ae60'),
        ('youden_j', '#8e44ad'),
    ]:
        ax.plot(sweep['threshold'], sweep[metric], label=metric, color=color, linewidth=2)

    if selected is not None:
        ax.axvline(selected, color='black', linestyle='--', linewidth=1,
                   label=f'Selected = {selected:.2f}')

    ax.set_xlabel('Threshold', fontsize=12)
    ax.set_ylabel('Metric value', fontsize=12)
    ax.set_title('Threshold Sweep (training split)', fontsize=14, fontweight='bold')
    ax.set_ylim(-0.05, 1.05)
    ax.legend()
    ax.grid(True, alpha=0.3)

    plt.tight_layout()
    _save(fig, output_path)
    return fig


def plot_roc_curve(
    roc: pd.DataFrame,
    auc: Optional[float] = None,
    selected_point: Optional[tuple] = None,
    output_path: Optional[Path] = None
) -> plt.Figure:
    """
    ROC curve from roc_table.

    Args:
        roc: DataFrame with fpr, tpr
        auc: Area under the curve for the legend
        selected_point: (fpr, tpr) at the chosen threshold
        output_path: Optional path to save figure
    """
    fig, ax = plt.subplots(figsize=(7, 7))

    label = f'Model (AUC = {auc:.3f})' if auc is not None else 'Model'
    ax.plot(roc['fpr'], roc['tpr'], color='#e74c3c', linewidth=2, label=label)
    ax.plot([0, 1], [0, 1], color='gray', linestyle='--', linewidth=1, label='Chance')
    if selected_point is not None:
        ax.scatter([selected_point[0]], [selected_point[1]], color='black', s=60, zorder=3,
                   label='Selected threshold')

    ax.set_xlabel('False positive rate (1 - specificity)', fontsize=12)
    ax.set_ylabel('True positive rate (sensitivity)', fontsize=12)
    ax.set_title('ROC Curve (test split)', fontsize=14, fontweight='bold')
    ax.legend(loc='lower right')
    ax.grid(True, alpha=0.3)

    plt.tight_layout()
    _save(fig, output_path)
    return fig


def plot_confusion_matrix(
    counts: Dict[str, int],
    threshold: Optional[float] = None,
    output_path: Optional[Path] = None
) -> plt.Figure:
    """Annotated 2x2 confusion matrix (rows = actual, columns = predicted)."""
    matrix = np.array([
        [counts['tn'], counts['fp']],
        [counts['fn'], counts['tp']],
    ])
    labels = ['Not canceled', 'Canceled']

    fig, ax = plt.subplots(figsize=(7, 6))
    sns.heatmap(matrix, annot=True, fmt=',d', cmap='Blues', cbar=False,
                xticklabels=labels, yticklabels=labels, ax=ax)
    ax.set_xlabel('Predicted', fontsize=12)
    ax.set_ylabel('Actual', fontsize=12)
    title = 'Confusion Matrix (test split)'
    if threshold is not None:
        title += f'\nthreshold = {threshold:.2f}'
    ax.set_title(title, fontsize=14, fontweight='bold')

    plt.tight_layout()
    _save(fig, output_path)
    return fig


def plot_calibration(
    calibration: pd.DataFrame,
    output_path: Optional[Path] = None
) -> plt.Figure:
    """Observed cancellation rate against mean predicted probability per bin."""
    fig, ax = plt.subplots(figsize=(7, 7))

    ax.plot([0, 1], [0, 1], color='gray', linestyle='--', linewidth=1, label='Perfect calibration')
    ax.plot(calibration['mean_predicted'], calibration['observed_rate'],
            marker='o', color='#27ae60', linewidth=2, label='Model')
    for _, row in calibration.iterrows():
        ax.annotate(f"{int(row['n']):,}", (row['mean_predicted'], row['observed_rate']),
                    textcoords='offset points', xytext=(5, -10), fontsize=8)

    ax.set_xlim(0, 1)
    ax.set_ylim(0, 1)
    ax.set_xlabel('Mean predicted probability', fontsize=12)
    ax.set_ylabel('Observed cancellation rate', fontsize=12)
    ax.set_title('Calibration (test split)', fontsize=14, fontweight='bold')
    ax.legend(loc='upper left')
    ax.grid(True, alpha=0.3)

    plt.tight_layout()
    _save(fig, output_path)
    return fig
