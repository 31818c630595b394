"""
Feature engineering for the cancellation model.

Recodes the two categorical predictors into 0/1 indicators and
standardizes the count-valued predictors on the training split only.

Model predictors (coefficient order):
- lead_time: days between booking and arrival (standardized)
- total_of_special_requests: number of special requests (standardized)
- is_city_hotel: 1 = City Hotel, 0 = Resort Hotel
- is_non_refundable: 1 = 'Non Refund' deposit, 0 = 'No Deposit' / 'Refundable'
"""

import numpy as np
import pandas as pd
from typing import Optional, Tuple
from sklearn.preprocessing import StandardScaler

from hotel_cancellation.config import (
    DEPOSIT_TYPES,
    HOTEL_TYPES,
    MODEL_PREDICTORS,
    NUMERIC_PREDICTORS,
    TARGET,
)


# =============================================================================
# RECODING
# =============================================================================

HOTEL_CODES = {'City Hotel': 1, 'Resort Hotel': 0}
DEPOSIT_CODES = {'Non Refund': 1, 'No Deposit': 0, 'Refundable': 0}


def _check_levels(series: pd.Series, allowed: tuple, name: str) -> None:
    unknown = set(series.dropna().unique()) - set(allowed)
    if unknown:
        raise ValueError(f"Unknown {name} level(s): {sorted(unknown)}. Expected one of {list(allowed)}")
    if series.isna().any():
        raise ValueError(f"{name} has {series.isna().sum()} missing values")


def recode_predictors(df: pd.DataFrame) -> pd.DataFrame:
    """
    Turn the raw model frame into model-ready columns.

    Args:
        df: Frame with is_canceled, lead_time, total_of_special_requests,
            hotel and deposit_type

    Returns:
        Frame with TARGET + MODEL_PREDICTORS (same index)
    """
    _check_levels(df['hotel'], HOTEL_TYPES, 'hotel')
    _check_levels(df['deposit_type'], DEPOSIT_TYPES, 'deposit_type')

    out = pd.DataFrame(index=df.index)
    out[TARGET] = df[TARGET].astype(int)
    for col in NUMERIC_PREDICTORS:
        out[col] = pd.to_numeric(df[col], errors='raise').astype(float)
    out['is_city_hotel'] = df['hotel'].map(HOTEL_CODES).astype(int)
    out['is_non_refundable'] = df['deposit_type'].map(DEPOSIT_CODES).astype(int)

    return out[[TARGET] + MODEL_PREDICTORS]


# =============================================================================
# SCALING
# =============================================================================

class PredictorScaler:
    """
    Standardizes the numeric predictors using training statistics.

    Binary indicators pass through untouched so their coefficients keep
    the "switch from 0 to 1" interpretation.
    """

    def __init__(self, columns: Optional[list] = None):
        self.columns = list(columns or NUMERIC_PREDICTORS)
        self.scaler = StandardScaler()
        self.is_fitted = False

    def fit(self, df: pd.DataFrame) -> 'PredictorScaler':
        self.scaler.fit(df[self.columns].to_numpy(dtype=float))
        self.is_fitted = True
        return self

    def transform(self, df: pd.DataFrame) -> pd.DataFrame:
        if not self.is_fitted:
            raise ValueError("Scaler not fitted. Call fit() first.")
        out = df.copy()
        out[self.columns] = self.scaler.transform(df[self.columns].to_numpy(dtype=float))
        return out

    def fit_transform(self, df: pd.DataFrame) -> pd.DataFrame:
        return self.fit(df).transform(df)

    def inverse_transform(self, df: pd.DataFrame) -> pd.DataFrame:
        out = df.copy()
        out[self.columns] = self.scaler.inverse_transform(df[self.columns].to_numpy(dtype=float))
        return out

    @property
    def means(self) -> pd.Series:
        return pd.Series(self.scaler.mean_, index=self.columns)

    @property
    def scales(self) -> pd.Series:
        return pd.Series(self.scaler.scale_, index=self.columns)


def build_design_matrix(
    df: pd.DataFrame,
    scaler: PredictorScaler,
    fit: bool = False
) -> Tuple[pd.DataFrame, np.ndarray]:
    """
    Build X (MODEL_PREDICTORS order, numeric columns standardized) and y.

    Args:
        df: Recoded frame from recode_predictors
        scaler: PredictorScaler; fitted here when fit=True (training split only)
        fit: Whether to fit the scaler on df

    Returns:
        X: Design matrix without intercept column
        y: Integer target array
    """
    X = df[MODEL_PREDICTORS].astype(float)
    X = scaler.fit_transform(X) if fit else scaler.transform(X)

    if X.isna().any().any():
        bad_cols = X.columns[X.isna().any()].tolist()
        raise ValueError(f"Missing values in design matrix columns {bad_cols}")

    y = df[TARGET].to_numpy(dtype=np.int64)
    return X, y


def describe_coding() -> pd.DataFrame:
    """Table describing how each model predictor is coded."""
    rows = []
    for col in NUMERIC_PREDICTORS:
        rows.append({'predictor': col, 'type': 'numeric', 'coding': 'standardized (train mean / sd)'})
    rows.append({'predictor': 'is_city_hotel', 'type': 'binary', 'coding': "hotel == 'City Hotel'"})
    rows.append({'predictor': 'is_non_refundable', 'type': 'binary', 'coding': "deposit_type == 'Non Refund'"})
    return pd.DataFrame(rows)
