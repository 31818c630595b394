"""Smoke tests for the report figures."""

import pytest
import arviz as az
import numpy as np
import matplotlib.pyplot as plt

from hotel_cancellation.eda import calculate_exploration_stats
from hotel_cancellation.evaluation import calibration_table, confusion_counts, roc_table, sweep_thresholds
from hotel_cancellation.features import recode_predictors
from hotel_cancellation.visualization import plots


@pytest.fixture(autouse=True)
def close_figures():
    yield
    plt.close('all')


@pytest.fixture
def exploration(model_frame):
    return calculate_exploration_stats(model_frame, recode_predictors(model_frame))


@pytest.fixture
def scores():
    rng = np.random.default_rng(1)
    y = rng.integers(0, 2, size=200)
    proba = np.clip(0.4 * y + rng.uniform(0, 0.6, size=200), 0, 1)
    return y, proba


class TestExplorationPlots:
    """Exploration figures."""

    def test_predictor_distributions_saved(self, model_frame, tmp_path):
        """Figures are written to nested output paths."""
        path = tmp_path / 'nested' / 'dist.png'
        fig = plots.plot_predictor_distributions(model_frame, output_path=path)
        assert isinstance(fig, plt.Figure)
        assert path.exists()

    def test_cancellation_rates(self, exploration):
        fig = plots.plot_cancellation_rates(exploration['rates'], exploration['balance']['cancellation_rate'])
        visible = [ax for ax in fig.axes if ax.get_visible()]
        assert len(visible) == 4

    def test_correlation_matrix(self, exploration):
        fig = plots.plot_correlation_matrix(exploration['correlation_matrix'])
        assert isinstance(fig, plt.Figure)


class TestPosteriorPlots:
    """ArviZ-based figures from a synthetic posterior."""

    @pytest.mark.parametrize("name", ['plot_trace', 'plot_autocorrelation', 'plot_rank',
                                      'plot_posterior', 'plot_forest'])
    def test_posterior_figure(self, fake_idata, tmp_path, name):
        path = tmp_path / f'{name}.png'
        fig = getattr(plots, name)(fake_idata, output_path=path)
        assert isinstance(fig, plt.Figure)
        assert path.exists()

    def test_posterior_predictive_requires_group(self, fake_idata):
        with pytest.raises(ValueError, match='posterior_predictive'):
            plots.plot_posterior_predictive(fake_idata)

    def test_posterior_predictive_with_few_samples(self, tmp_path):
        """Two short chains give fewer replicates than the overlay maximum."""
        rng = np.random.default_rng(3)
        y = rng.integers(0, 2, size=40)
        idata = az.from_dict(
            posterior={'alpha': rng.normal(size=(2, 10))},
            posterior_predictive={'y_obs': rng.integers(0, 2, size=(2, 10, 40))},
            observed_data={'y_obs': y},
            dims={'y_obs': ['obs_id']},
        )
        path = tmp_path / 'ppc.png'
        fig = plots.plot_posterior_predictive(idata, output_path=path)
        assert isinstance(fig, plt.Figure)
        assert path.exists()


class TestEvaluationPlots:
    """Threshold and test-set figures."""

    def test_threshold_sweep(self, scores):
        sweep = sweep_thresholds(*scores)
        fig = plots.plot_threshold_sweep(sweep, selected=0.45)
        assert len(fig.axes[0].lines) == 6

    def test_roc_curve(self, scores, tmp_path):
        path = tmp_path / 'roc.png'
        fig = plots.plot_roc_curve(roc_table(*scores), auc=0.8, selected_point=(0.2, 0.7), output_path=path)
        assert isinstance(fig, plt.Figure)
        assert path.exists()

    def test_confusion_matrix(self, scores):
        y, proba = scores
        counts = confusion_counts(y, (proba >= 0.5).astype(int))
        fig = plots.plot_confusion_matrix(counts, threshold=0.5)
        assert '0.50' in fig.axes[0].get_title()

    def test_calibration(self, scores):
        fig = plots.plot_calibration(calibration_table(*scores))
        assert isinstance(fig, plt.Figure)
