"""
Bayesian logistic regression for booking cancellations.

Model:
    is_canceled_i ~ Bernoulli(p_i)
    logit(p_i)    = alpha + X_i @ beta

    alpha   ~ Normal(0, 2.5)
    beta_j  ~ Normal(0, 2.5)   (one per predictor, standardized scale)

Sampling is delegated to PyMC's NUTS sampler; posterior summaries to ArviZ.
Predictions average expit(alpha + X @ beta) over the posterior draws.
"""

import logging
import numpy as np
import pandas as pd
import pymc as pm
import arviz as az
from typing import Iterator, Optional, Tuple
from scipy.special import expit

from hotel_cancellation.config import (
    COEF_PRIOR_SIGMA,
    HDI_PROB,
    INTERCEPT_PRIOR_SIGMA,
    MODEL_PREDICTORS,
    SamplerConfig,
)

logger = logging.getLogger(__name__)

COEF_VARS = ['alpha', 'beta']


class BayesianLogisticModel:
    """
    Logistic regression fitted by MCMC.

    Usage:
        model = BayesianLogisticModel()
        model.fit(X_train, y_train)
        proba = model.predict_proba(X_test)
        labels = model.predict(X_test, threshold=0.42)
    """

    def __init__(
        self,
        sampler: Optional[SamplerConfig] = None,
        intercept_sigma: float = INTERCEPT_PRIOR_SIGMA,
        coef_sigma: float = COEF_PRIOR_SIGMA,
        predictors: Optional[list] = None
    ):
        """
        Initialize the model.

        Args:
            sampler: NUTS settings (default SamplerConfig())
            intercept_sigma: Prior sd of the intercept
            coef_sigma: Prior sd of each slope
            predictors: Column order of X (default MODEL_PREDICTORS)
        """
        self.sampler = sampler or SamplerConfig()
        self.intercept_sigma = intercept_sigma
        self.coef_sigma = coef_sigma
        self.predictors = list(predictors or MODEL_PREDICTORS)
        self.model = None
        self.idata = None
        self.is_fitted = False
        self._draws = None

    # ------------------------------------------------------------------
    # Fitting
    # ------------------------------------------------------------------

    def _validate_inputs(self, X: pd.DataFrame, y: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        missing = [c for c in self.predictors if c not in X.columns]
        if missing:
            raise ValueError(f"Missing predictor columns: {missing}")

        X_arr = X[self.predictors].to_numpy(dtype=np.float64)
        y_arr = np.asarray(y)

        if len(X_arr) != len(y_arr):
            raise ValueError(f"X has {len(X_arr)} rows but y has {len(y_arr)}")
        if len(y_arr) == 0:
            raise ValueError("Cannot fit on an empty training set")
        if np.isnan(X_arr).any():
            raise ValueError("X contains missing values")
        if not np.isin(y_arr, [0, 1]).all():
            raise ValueError("y must be binary (0/1)")

        return X_arr, y_arr.astype(np.int64)

    def build_model(self, X: pd.DataFrame, y: np.ndarray) -> pm.Model:
        """Build (but do not sample) the PyMC model."""
        X_arr, y_arr = self._validate_inputs(X, y)

        coords = {
            'obs': np.arange(len(y_arr)),
            'predictor': self.predictors,
        }
        with pm.Model(coords=coords) as model:
            X_data = pm.Data('X', X_arr, dims=('obs', 'predictor'))

            alpha = pm.Normal('alpha', mu=0.0, sigma=self.intercept_sigma)
            beta = pm.Normal('beta', mu=0.0, sigma=self.coef_sigma, dims='predictor')

            logit_p = alpha + pm.math.dot(X_data, beta)
            pm.Bernoulli('y_obs', logit_p=logit_p, observed=y_arr, dims='obs')

        return model

    def fit(self, X: pd.DataFrame, y: np.ndarray) -> 'BayesianLogisticModel':
        """
        Sample the posterior.

        Args:
            X: Design matrix with self.predictors columns
            y: Binary target

        Returns:
            self
        """
        self.model = self.build_model(X, y)
        cfg = self.sampler

        logger.info(
            f"Sampling BayesianLogisticModel on {len(y):,} bookings "
            f"({cfg.chains} chains x {cfg.draws} draws, {cfg.tune} tuning)..."
        )
        with self.model:
            self.idata = pm.sample(
                draws=cfg.draws,
                tune=cfg.tune,
                chains=cfg.chains,
                cores=cfg.cores,
                target_accept=cfg.target_accept,
                random_seed=cfg.random_seed,
                progressbar=cfg.progressbar,
            )

        self._draws = None
        self.is_fitted = True
        return self

    @classmethod
    def from_inference_data(
        cls,
        idata: az.InferenceData,
        predictors: Optional[list] = None
    ) -> 'BayesianLogisticModel':
        """Wrap an existing posterior (alpha, beta[predictor]) for prediction."""
        posterior = idata.posterior
        for var in COEF_VARS:
            if var not in posterior:
                raise ValueError(f"Posterior has no '{var}' variable")

        if predictors is None and 'predictor' in posterior['beta'].dims:
            predictors = [str(p) for p in posterior['beta'].coords['predictor'].values]

        obj = cls(predictors=predictors)
        obj.idata = idata
        obj.is_fitted = True
        return obj

    def _check_fitted(self) -> None:
        if not self.is_fitted:
            raise ValueError("Model not fitted. Call fit() first.")

    # ------------------------------------------------------------------
    # Posterior draws
    # ------------------------------------------------------------------

    def coefficient_draws(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        Posterior draws flattened over chains.

        Returns:
            alpha: shape (n_samples,)
            beta: shape (n_samples, n_predictors), columns in self.predictors order
        """
        self._check_fitted()
        if self._draws is None:
            posterior = self.idata.posterior
            alpha = posterior['alpha'].values.reshape(-1)
            beta = posterior['beta']
            if 'predictor' in beta.dims:
                beta = beta.sel(predictor=self.predictors).transpose('chain', 'draw', 'predictor')
            beta = beta.values.reshape(-1, len(self.predictors))
            self._draws = (alpha, beta)
        return self._draws

    def _probability_batches(
        self,
        X: pd.DataFrame,
        batch_size: int
    ) -> Iterator[np.ndarray]:
        """Yield (n_samples, batch) matrices of p for consecutive row batches."""
        alpha, beta = self.coefficient_draws()
        X_arr = X[self.predictors].to_numpy(dtype=np.float64)
        for start in range(0, len(X_arr), batch_size):
            batch = X_arr[start:start + batch_size]
            yield expit(alpha[:, None] + beta @ batch.T)

    # ------------------------------------------------------------------
    # Prediction
    # ------------------------------------------------------------------

    def predict_proba(
        self,
        X: pd.DataFrame,
        summary: str = 'mean',
        batch_size: int = 2000
    ) -> np.ndarray:
        """
        Posterior predicted cancellation probability per booking.

        Args:
            X: Design matrix (same coding/scaling as training)
            summary: 'mean' or 'median' of p over posterior draws
            batch_size: Rows per vectorized batch

        Returns:
            Array of probabilities (0-1)
        """
        self._check_fitted()
        if summary not in ('mean', 'median'):
            raise ValueError(f"Unknown summary: {summary}. Choose 'mean' or 'median'")
        if len(X) == 0:
            return np.empty(0)

        reduce = np.mean if summary == 'mean' else np.median
        parts = [reduce(p, axis=0) for p in self._probability_batches(X, batch_size)]
        return np.concatenate(parts)

    def predict_proba_interval(
        self,
        X: pd.DataFrame,
        prob: float = HDI_PROB,
        batch_size: int = 2000
    ) -> pd.DataFrame:
        """
        Equal-tailed credible interval of p per booking.

        Returns:
            DataFrame with mean, lower, upper (index aligned with X)
        """
        self._check_fitted()
        tail = (1 - prob) / 2
        means, lowers, uppers = [], [], []
        for p in self._probability_batches(X, batch_size):
            means.append(p.mean(axis=0))
            lowers.append(np.quantile(p, tail, axis=0))
            uppers.append(np.quantile(p, 1 - tail, axis=0))

        if not means:
            return pd.DataFrame(columns=['mean', 'lower', 'upper'], index=X.index)
        return pd.DataFrame({
            'mean': np.concatenate(means),
            'lower': np.concatenate(lowers),
            'upper': np.concatenate(uppers),
        }, index=X.index)

    def predict(self, X: pd.DataFrame, threshold: float = 0.5) -> np.ndarray:
        """Classify as canceled (1) when the predicted probability >= threshold."""
        if not 0 <= threshold <= 1:
            raise ValueError(f"threshold must be in [0, 1], got {threshold}")
        return (self.predict_proba(X) >= threshold).astype(int)

    def sample_posterior_predictive(self, max_draws: Optional[int] = None) -> az.InferenceData:
        """
        Extend idata with posterior predictive draws of y_obs (training data).

        Args:
            max_draws: Only replicate from the first max_draws draws of each
                chain; the replicated outcomes hold n_obs x chains x draws values

        Returns:
            self.idata with a posterior_predictive group
        """
        self._check_fitted()
        if self.model is None:
            raise ValueError("Posterior predictive needs the PyMC model; fit() this instance first.")

        posterior = self.idata.posterior
        if max_draws is not None:
            posterior = posterior.isel(draw=slice(0, max_draws))

        with self.model:
            ppc = pm.sample_posterior_predictive(
                posterior,
                random_seed=self.sampler.random_seed,
                progressbar=self.sampler.progressbar,
            )
        self.idata.extend(ppc)
        return self.idata

    # ------------------------------------------------------------------
    # Summaries
    # ------------------------------------------------------------------

    def summary(self, hdi_prob: float = HDI_PROB) -> pd.DataFrame:
        """ArviZ summary (mean, sd, HDI, MCSE, ESS, R-hat) of alpha and beta."""
        self._check_fitted()
        return az.summary(self.idata, var_names=COEF_VARS, hdi_prob=hdi_prob)

    def odds_ratios(self, hdi_prob: float = HDI_PROB) -> pd.DataFrame:
        """
        Coefficients on the odds scale.

        For standardized predictors the odds ratio is per 1 sd increase;
        for the 0/1 indicators it compares 1 against 0.

        Returns:
            DataFrame indexed by term with coef_mean, odds_ratio (exp of the
            posterior mean coefficient), HDI bounds and P(coef > 0)
        """
        alpha, beta = self.coefficient_draws()
        terms = ['intercept'] + self.predictors
        draws = np.column_stack([alpha, beta])

        rows = []
        for term, coef in zip(terms, draws.T):
            odds = np.exp(coef)
            low, high = az.hdi(odds, hdi_prob=hdi_prob)
            rows.append({
                'term': term,
                'coef_mean': coef.mean(),
                'coef_sd': coef.std(ddof=1),
                'odds_ratio': np.exp(coef.mean()),
                'or_hdi_low': low,
                'or_hdi_high': high,
                'prob_positive': (coef > 0).mean(),
            })
        return pd.DataFrame(rows).set_index('term')

    def get_metrics(self) -> Optional[dict]:
        """Sampling metadata of the fitted posterior."""
        if not self.is_fitted:
            return None
        posterior = self.idata.posterior
        return {
            'n_chains': posterior.sizes['chain'],
            'n_draws': posterior.sizes['draw'],
            'n_predictors': len(self.predictors),
        }
