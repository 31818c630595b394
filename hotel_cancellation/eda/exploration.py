"""
Exploration of the four predictors against the cancellation target.

Follows the calculate -> print pattern: calculate_exploration_stats()
collects every table/metric, print_exploration_summary() reports it.
Figures live in hotel_cancellation.visualization.plots.
"""

import numpy as np
import pandas as pd
from typing import Dict, Optional, Sequence, Tuple
from scipy import stats

from hotel_cancellation.config import (
    MODEL_PREDICTORS,
    NUMERIC_PREDICTORS,
    PREDICTOR_LABELS,
    RAW_PREDICTORS,
    TARGET,
)


# =============================================================================
# LEAD TIME BUCKET DEFINITIONS
# =============================================================================

# Lead time buckets with their day ranges (inclusive)
LEAD_TIME_BUCKETS = {
    'same_day': (0, 0),
    'very_short': (1, 7),
    'short': (8, 30),
    'medium': (31, 90),
    'advance': (91, 180),
    'far_advance': (181, 365),
    'over_a_year': (366, None),
}

# Special requests above this are pooled into one "N+" level
MAX_SPECIAL_REQUESTS_LEVEL = 3


def get_lead_time_bucket(lead_time_days: int) -> str:
    """
    Convert lead time in days to a bucket name.

    Args:
        lead_time_days: Number of days between booking and arrival

    Returns:
        Bucket name (e.g., 'same_day', 'short', 'advance')
    """
    if lead_time_days < 0:
        lead_time_days = 0

    for bucket, (min_days, max_days) in LEAD_TIME_BUCKETS.items():
        if lead_time_days >= min_days and (max_days is None or lead_time_days <= max_days):
            return bucket

    return 'over_a_year'


def bucket_special_requests(n_requests: int) -> str:
    """Map a request count to '0', '1', ..., 'N+'."""
    if n_requests >= MAX_SPECIAL_REQUESTS_LEVEL:
        return f'{MAX_SPECIAL_REQUESTS_LEVEL}+'
    return str(int(n_requests))


# =============================================================================
# STATISTICS
# =============================================================================

def calculate_target_balance(df: pd.DataFrame) -> Dict[str, float]:
    """Count bookings and cancellations."""
    n = len(df)
    n_canceled = int(df[TARGET].sum())
    return {
        'n_bookings': n,
        'n_canceled': n_canceled,
        'n_not_canceled': n - n_canceled,
        'cancellation_rate': n_canceled / n if n > 0 else float('nan'),
    }


def summarize_predictors(df: pd.DataFrame) -> pd.DataFrame:
    """
    One row per raw predictor with its basic distribution.

    Numeric predictors get mean/std/min/median/max; categorical ones
    get their number of levels and most common level.
    """
    rows = []
    for col in RAW_PREDICTORS:
        series = df[col]
        row = {
            'predictor': col,
            'label': PREDICTOR_LABELS.get(col, col),
            'count': int(series.notna().sum()),
            'missing': int(series.isna().sum()),
        }
        if col in NUMERIC_PREDICTORS:
            values = pd.to_numeric(series, errors='coerce')
            row.update({
                'kind': 'numeric',
                'mean': values.mean(),
                'std': values.std(),
                'min': values.min(),
                'median': values.median(),
                'max': values.max(),
                'n_levels': int(values.nunique()),
                'top_level': None,
            })
        else:
            counts = series.value_counts()
            row.update({
                'kind': 'categorical',
                'mean': np.nan, 'std': np.nan, 'min': np.nan,
                'median': np.nan, 'max': np.nan,
                'n_levels': int(series.nunique()),
                'top_level': counts.index[0] if len(counts) else None,
            })
        rows.append(row)
    return pd.DataFrame(rows)


def _level_column(df: pd.DataFrame, column: str) -> pd.Series:
    if column == 'lead_time':
        return df[column].apply(get_lead_time_bucket)
    if column == 'total_of_special_requests':
        return df[column].apply(bucket_special_requests)
    return df[column]


def _level_order(column: str, levels) -> list:
    if column == 'lead_time':
        return [b for b in LEAD_TIME_BUCKETS if b in set(levels)]
    if column == 'total_of_special_requests':
        return sorted(set(levels), key=lambda x: int(x.rstrip('+')))
    return sorted(set(levels))


def _binned_levels(df: pd.DataFrame, column: str, bins: Sequence[float]) -> Tuple[pd.Series, list]:
    if column not in NUMERIC_PREDICTORS:
        raise ValueError(f"Custom bins need a numeric predictor, got '{column}'")
    cut = pd.cut(df[column], bins=bins, include_lowest=True)
    labels = [str(interval) for interval in cut.cat.categories]
    levels = cut.cat.rename_categories(labels).astype(object)
    return levels, labels


def cancellation_rate_by(
    df: pd.DataFrame,
    column: str,
    bins: Optional[Sequence[float]] = None
) -> pd.DataFrame:
    """
    Cancellation rate per level of a predictor.

    Lead time is grouped into LEAD_TIME_BUCKETS and special requests
    are capped at MAX_SPECIAL_REQUESTS_LEVEL, unless bins gives explicit
    edges for a numeric predictor. Rows outside the edges are left out.

    Returns:
        DataFrame with level, n, n_canceled, rate and share (of counted rows)
    """
    if bins is None:
        levels = _level_column(df, column)
    else:
        levels, labels = _binned_levels(df, column, bins)
    grouped = df.groupby(levels)[TARGET].agg(['count', 'sum'])
    grouped.columns = ['n', 'n_canceled']
    if bins is None:
        order = _level_order(column, grouped.index)
    else:
        order = [label for label in labels if label in grouped.index]
    grouped = grouped.reindex(order)
    grouped['rate'] = grouped['n_canceled'] / grouped['n']
    grouped['share'] = grouped['n'] / grouped['n'].sum()
    grouped.index.name = 'level'
    return grouped.reset_index()


def calculate_predictor_correlations(recoded: pd.DataFrame) -> pd.DataFrame:
    """
    Point-biserial correlation of each recoded predictor with the target.

    Args:
        recoded: Output of features.recode_predictors
    """
    rows = []
    for col in MODEL_PREDICTORS:
        if recoded[col].nunique() < 2:
            r, p = np.nan, np.nan
        else:
            r, p = stats.pointbiserialr(recoded[TARGET], recoded[col])
        rows.append({'predictor': col, 'r': r, 'p_value': p})
    return pd.DataFrame(rows)


def calculate_exploration_stats(
    df: pd.DataFrame,
    recoded: Optional[pd.DataFrame] = None
) -> Dict:
    """
    Collect every exploration table.

    Args:
        df: Raw model frame (target + RAW_PREDICTORS)
        recoded: Recoded frame; correlations are skipped when omitted

    Returns:
        Dict with 'balance', 'summary', 'rates' (per predictor) and
        optionally 'correlations' / 'correlation_matrix'
    """
    results = {
        'balance': calculate_target_balance(df),
        'summary': summarize_predictors(df),
        'rates': {col: cancellation_rate_by(df, col) for col in RAW_PREDICTORS},
    }
    if recoded is not None:
        results['correlations'] = calculate_predictor_correlations(recoded)
        results['correlation_matrix'] = recoded[[TARGET] + MODEL_PREDICTORS].corr()
    return results


# =============================================================================
# REPORTING
# =============================================================================

def print_exploration_summary(results: Dict) -> None:
    """Print the exploration tables from calculate_exploration_stats."""
    balance = results['balance']

    print("\n" + "=" * 70)
    print("PREDICTOR EXPLORATION")
    print("=" * 70)

    print("\n1. TARGET BALANCE:")
    print(f"   Bookings: {balance['n_bookings']:,}")
    print(f"   Canceled: {balance['n_canceled']:,} ({balance['cancellation_rate']:.1%})")
    print(f"   Not canceled: {balance['n_not_canceled']:,}")

    print("\n2. PREDICTOR SUMMARY:")
    for _, row in results['summary'].iterrows():
        if row['kind'] == 'numeric':
            print(f"   {row['label']}: mean {row['mean']:.1f}, sd {row['std']:.1f}, "
                  f"median {row['median']:.0f}, range [{row['min']:.0f}, {row['max']:.0f}]")
        else:
            print(f"   {row['label']}: {row['n_levels']} levels, most common '{row['top_level']}'")

    print("\n3. CANCELLATION RATE BY PREDICTOR:")
    for col, table in results['rates'].items():
        print(f"\n   {PREDICTOR_LABELS.get(col, col)}:")
        for _, row in table.iterrows():
            print(f"     {str(row['level']):<14} n={int(row['n']):>7,}  rate={row['rate']:.1%}")

    if 'correlations' in results:
        print("\n4. CORRELATION WITH CANCELLATION (point-biserial):")
        for _, row in results['correlations'].iterrows():
            print(f"   {PREDICTOR_LABELS.get(row['predictor'], row['predictor']):<24} r = {row['r']:+.3f}")

    print("\n" + "=" * 70)
