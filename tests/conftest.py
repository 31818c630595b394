"""
Shared pytest fixtures for the cancellation analysis tests.
"""

import pytest
import numpy as np
import pandas as pd
import arviz as az
from pathlib import Path

from hotel_cancellation.config import MODEL_PREDICTORS, TARGET
from hotel_cancellation.data import load_bookings_frame

# True coefficients of the synthetic bookings (standardized numeric predictors)
TRUE_ALPHA = -0.8
TRUE_BETA = {
    'lead_time': 0.9,
    'total_of_special_requests': -0.7,
    'is_city_hotel': 0.4,
    'is_non_refundable': 2.0,
}


@pytest.fixture
def sample_bookings():
    """
    Raw bookings with one violation per row-selection rule.

    Rows 0, 1, 12 and 13 are valid; row 12 duplicates row 0 exactly.
    """
    return pd.DataFrame({
        'hotel': ['City Hotel', 'Resort Hotel', 'City Hotel', 'City Hotel', 'City Hotel', 'Resort Hotel',
                  'City Hotel', 'Motel', 'City Hotel', 'Resort Hotel', 'City Hotel', 'City Hotel',
                  'City Hotel', 'Resort Hotel'],
        'is_canceled': ['0', '1', 'NULL', '2', '0', '0', '1', '0', '1', '0', '0', '0', '0', '1'],
        'lead_time': ['10', '200', '5', '5', 'NA', '-3', '30', '30', '30', '30', '30', '30', '10', '120'],
        'adults': ['2', '2', '2', '2', '2', '2', '2', '2', '2', '0', '2', '2', '2', '1'],
        'children': ['0', '0', '0', '0', '0', '0', '0', '0', '0', '0', 'NA', '0', '0', '0'],
        'babies': ['0', '0', '0', '0', '0', '0', '0', '0', '0', '0', '0', '0', '0', '0'],
        'deposit_type': ['No Deposit', 'Non Refund', 'No Deposit', 'No Deposit', 'No Deposit', 'No Deposit',
                         'Refundable', 'No Deposit', 'Cash', 'No Deposit', 'No Deposit', 'No Deposit',
                         'No Deposit', 'Non Refund'],
        'adr': ['100.0', '80.0', '90.0', '90.0', '90.0', '90.0', '90.0', '90.0', '90.0', '0.0', '-6.38',
                '5400.0', '100.0', '60.0'],
        'total_of_special_requests': ['1', '0', '0', '0', '0', '0', '-1', '0', '0', '0', '0', '0', '1', '2'],
    })


@pytest.fixture
def test_db(sample_bookings):
    """Typed bookings table built from sample_bookings (no rules applied)."""
    con = load_bookings_frame(sample_bookings)
    yield con
    con.close()


def make_synthetic_bookings(n: int = 600, seed: int = 7) -> pd.DataFrame:
    """
    Raw bookings (string columns, as read from the CSV) whose cancellations
    follow a logistic model with TRUE_ALPHA / TRUE_BETA.
    """
    rng = np.random.default_rng(seed)
    lead_time = rng.gamma(shape=1.2, scale=90, size=n).round().astype(int)
    special = rng.poisson(0.6, size=n)
    city = rng.random(n) < 0.65
    non_refund = rng.random(n) < 0.15
    deposit = np.where(non_refund, 'Non Refund', rng.choice(['No Deposit', 'Refundable'], size=n, p=[0.97, 0.03]))

    z_lead = (lead_time - lead_time.mean()) / lead_time.std()
    z_special = (special - special.mean()) / special.std()
    logit = (TRUE_ALPHA
             + TRUE_BETA['lead_time'] * z_lead
             + TRUE_BETA['total_of_special_requests'] * z_special
             + TRUE_BETA['is_city_hotel'] * city
             + TRUE_BETA['is_non_refundable'] * non_refund)
    canceled = (rng.random(n) < 1 / (1 + np.exp(-logit))).astype(int)

    return pd.DataFrame({
        'hotel': np.where(city, 'City Hotel', 'Resort Hotel'),
        'is_canceled': canceled.astype(str),
        'lead_time': lead_time.astype(str),
        'adults': rng.choice(['1', '2', '3'], size=n, p=[0.2, 0.7, 0.1]),
        'children': '0',
        'babies': '0',
        'deposit_type': deposit,
        'adr': rng.uniform(40, 250, size=n).round(2).astype(str),
        'total_of_special_requests': special.astype(str),
    })


@pytest.fixture
def synthetic_bookings():
    """600 raw bookings generated from a known logistic model."""
    return make_synthetic_bookings()


@pytest.fixture
def synthetic_db(synthetic_bookings):
    """Typed bookings table of the synthetic bookings."""
    con = load_bookings_frame(synthetic_bookings)
    yield con
    con.close()


@pytest.fixture
def synthetic_csv(tmp_path, synthetic_bookings) -> Path:
    """Synthetic bookings written as a CSV file."""
    path = tmp_path / 'hotel_bookings.csv'
    synthetic_bookings.to_csv(path, index=False)
    return path


@pytest.fixture
def model_frame():
    """Model frame (target + raw predictors) as returned by load_model_data."""
    return pd.DataFrame({
        TARGET: [0, 1, 0, 1, 1, 0, 0, 1, 0, 1, 0, 0],
        'lead_time': [0, 250, 3, 120, 400, 15, 45, 90, 7, 180, 60, 30],
        'total_of_special_requests': [2, 0, 1, 0, 0, 3, 1, 0, 5, 0, 1, 2],
        'hotel': ['City Hotel', 'City Hotel', 'Resort Hotel', 'City Hotel', 'Resort Hotel', 'Resort Hotel',
                  'City Hotel', 'City Hotel', 'Resort Hotel', 'City Hotel', 'Resort Hotel', 'City Hotel'],
        'deposit_type': ['No Deposit', 'Non Refund', 'No Deposit', 'No Deposit', 'Non Refund', 'Refundable',
                         'No Deposit', 'Non Refund', 'No Deposit', 'No Deposit', 'Refundable', 'No Deposit'],
    }, index=pd.Index(range(1, 13), name='booking_id'))


def make_posterior(
    alpha_mean: float = -0.5,
    beta_mean=(1.0, -0.5, 0.3, 2.0),
    sd: float = 0.05,
    chains: int = 4,
    draws: int = 500,
    chain_offsets=None,
    n_divergent: int = 0,
    predictors=None,
    seed: int = 11
) -> az.InferenceData:
    """
    Synthetic posterior of (alpha, beta[predictor]) built with az.from_dict.

    chain_offsets shifts each chain's draws to simulate non-mixing chains.
    """
    rng = np.random.default_rng(seed)
    alpha = rng.normal(alpha_mean, sd, size=(chains, draws))
    beta = rng.normal(np.asarray(beta_mean), sd, size=(chains, draws, len(beta_mean)))
    if chain_offsets is not None:
        offsets = np.asarray(chain_offsets, dtype=float)
        alpha = alpha + offsets[:, None]
        beta = beta + offsets[:, None, None]

    diverging = np.zeros((chains, draws), dtype=bool)
    diverging.flat[:n_divergent] = True

    return az.from_dict(
        posterior={'alpha': alpha, 'beta': beta},
        sample_stats={'diverging': diverging},
        coords={'predictor': list(predictors or MODEL_PREDICTORS)},
        dims={'beta': ['predictor']},
    )


@pytest.fixture
def fake_idata():
    """Well-mixed synthetic posterior: 4 chains x 500 draws."""
    return make_posterior()
