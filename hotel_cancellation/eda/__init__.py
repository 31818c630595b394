"""Exploratory analysis of the cancellation predictors."""
from .exploration import (
    LEAD_TIME_BUCKETS,
    get_lead_time_bucket,
    bucket_special_requests,
    calculate_target_balance,
    summarize_predictors,
    cancellation_rate_by,
    calculate_predictor_correlations,
    calculate_exploration_stats,
    print_exploration_summary,
)
