"""
End-to-end cancellation analysis.

Runs the report in a fixed order:
    load -> explore -> prepare -> fit -> diagnose -> select_threshold -> evaluate

Usage:
    pipeline = AnalysisPipeline(AnalysisConfig(sample_size=5000))
    result = pipeline.run()
    print(result.evaluation)
"""

import logging
import matplotlib.pyplot as plt
import pandas as pd
import duckdb
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

from hotel_cancellation.config import AnalysisConfig, PREDICTOR_LABELS, TARGET
from hotel_cancellation.data import CleaningConfig, DataCleaner, get_clean_connection, load_model_data
from hotel_cancellation.eda import calculate_exploration_stats, print_exploration_summary
from hotel_cancellation.evaluation import (
    EvaluationResult,
    ThresholdResult,
    calibration_table,
    evaluate_predictions,
    roc_table,
    select_threshold,
)
from hotel_cancellation.features import (
    PredictorScaler,
    build_design_matrix,
    recode_predictors,
    sample_rows,
    split_train_test,
)
from hotel_cancellation.models import (
    BayesianLogisticModel,
    ConvergenceReport,
    compute_diagnostics,
    print_convergence_report,
)
from hotel_cancellation.visualization import plots

logger = logging.getLogger(__name__)


@dataclass
class AnalysisResult:
    """Everything the report produced."""
    n_bookings: int
    n_train: int
    n_test: int
    exploration: Dict
    posterior_summary: pd.DataFrame
    odds_ratios: pd.DataFrame
    convergence: ConvergenceReport
    threshold: ThresholdResult
    evaluation: EvaluationResult
    output_dir: Path
    tables: Dict[str, Path] = field(default_factory=dict)
    figures: Dict[str, Path] = field(default_factory=dict)


class AnalysisPipeline:
    """
    Orchestrates the cancellation report.

    Each step stores its output on the instance; calling a step before
    the one it depends on raises ValueError.
    """

    def __init__(
        self,
        config: Optional[AnalysisConfig] = None,
        cleaning: Optional[CleaningConfig] = None,
        con: Optional[duckdb.DuckDBPyConnection] = None
    ):
        """
        Args:
            config: Run configuration (default AnalysisConfig())
            cleaning: Row-selection rules (default CleaningConfig())
            con: Connection with a typed `bookings` table; skips reading
                the CSV (rules are still applied)
        """
        self.config = config or AnalysisConfig()
        self.cleaning = cleaning or CleaningConfig()
        self._con = con

        self.data = None
        self.exploration = None
        self.train = None
        self.test = None
        self.scaler = None
        self.X_train = None
        self.y_train = None
        self.X_test = None
        self.y_test = None
        self.model = None
        self.convergence = None
        self.threshold = None
        self.evaluation = None
        self.test_proba = None

        self.tables: Dict[str, Path] = {}
        self.figures: Dict[str, Path] = {}

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require(self, attr: str, step: str) -> None:
        if getattr(self, attr) is None:
            raise ValueError(f"Pipeline step '{step}' has not run yet. Call {step}() first.")

    def _say(self, message: str) -> None:
        if self.config.verbose:
            print(message)

    @property
    def output_dir(self) -> Path:
        return Path(self.config.output_dir)

    def _write_table(self, name: str, df: pd.DataFrame, index: bool = False) -> Path:
        path = self.output_dir / f"{name}.csv"
        path.parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(path, index=index)
        self.tables[name] = path
        return path

    def _save_figure(self, name: str, draw, *args, **kwargs) -> Optional[Path]:
        if not self.config.save_figures:
            return None
        path = self.output_dir / 'figures' / f"{name}.png"
        fig = draw(*args, output_path=path, **kwargs)
        plt.close(fig)
        self.figures[name] = path
        return path

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def load(self) -> pd.DataFrame:
        """Load bookings, apply the row-selection rules and pull the model frame."""
        if self._con is None:
            con = get_clean_connection(self.config.data_path, self.cleaning)
        else:
            con = DataCleaner(self.cleaning).clean(self._con)

        data = load_model_data(con)
        if len(data) == 0:
            raise ValueError("No bookings left after applying the row-selection rules")

        data = sample_rows(data, self.config.sample_size, self.config.random_state)
        self.data = data
        self._say(f"   Model frame: {len(data):,} bookings "
                  f"({data[TARGET].mean():.1%} canceled)")
        return data

    def explore(self) -> Dict:
        """Descriptive statistics of the four predictors."""
        self._require('data', 'load')
        recoded = recode_predictors(self.data)
        self.exploration = calculate_exploration_stats(self.data, recoded)
        if self.config.verbose:
            print_exploration_summary(self.exploration)
        return self.exploration

    def prepare(self) -> None:
        """Recode, split and standardize (scaler fitted on the training split)."""
        self._require('data', 'load')
        recoded = recode_predictors(self.data)
        self.train, self.test = split_train_test(
            recoded,
            test_size=self.config.test_size,
            random_state=self.config.random_state,
        )

        self.scaler = PredictorScaler()
        self.X_train, self.y_train = build_design_matrix(self.train, self.scaler, fit=True)
        self.X_test, self.y_test = build_design_matrix(self.test, self.scaler)

        self._say(f"   Train: {len(self.train):,} ({self.y_train.mean():.1%} canceled)")
        self._say(f"   Test: {len(self.test):,} ({self.y_test.mean():.1%} canceled)")

    def fit(self) -> BayesianLogisticModel:
        """Sample the posterior on the training split."""
        self._require('X_train', 'prepare')
        self.model = BayesianLogisticModel(sampler=self.config.sampler)
        self.model.fit(self.X_train, self.y_train)
        return self.model

    def diagnose(self) -> ConvergenceReport:
        """R-hat, ESS, MCSE and divergences of the fitted posterior."""
        self._require('model', 'fit')
        self.convergence = compute_diagnostics(self.model.idata)
        if self.config.verbose:
            print_convergence_report(self.convergence)
        if not self.convergence.converged:
            logger.warning("Sampler did not converge; treat the estimates with caution: "
                           + "; ".join(self.convergence.problems))
        return self.convergence

    def select_threshold(self) -> ThresholdResult:
        """Choose the classification cutoff on the training split."""
        self._require('model', 'fit')
        train_proba = self.model.predict_proba(self.X_train)
        self.threshold = select_threshold(
            self.y_train,
            train_proba,
            criterion=self.config.threshold_criterion,
        )
        self._say(f"   Selected threshold: {self.threshold.threshold:.2f} "
                  f"({self.threshold.criterion} = {self.threshold.score:.3f} on train)")
        return self.threshold

    def evaluate(self) -> EvaluationResult:
        """Apply the selected threshold to the held-out test split."""
        self._require('threshold', 'select_threshold')
        self.test_proba = self.model.predict_proba(self.X_test)
        self.evaluation = evaluate_predictions(self.y_test, self.test_proba, self.threshold.threshold)
        self._say(repr(self.evaluation))
        return self.evaluation

    # ------------------------------------------------------------------
    # Outputs
    # ------------------------------------------------------------------

    def save_exploration(self) -> None:
        """Write exploration tables and figures."""
        self._require('exploration', 'explore')
        stats = self.exploration

        self._write_table('predictor_summary', stats['summary'])
        for column, table in stats['rates'].items():
            self._write_table(f'cancellation_rates_{column}', table)
        if 'correlations' in stats:
            self._write_table('predictor_correlations', stats['correlations'])

        self._save_figure('predictor_distributions', plots.plot_predictor_distributions, self.data)
        self._save_figure('cancellation_rates', plots.plot_cancellation_rates,
                          stats['rates'], stats['balance']['cancellation_rate'])
        if 'correlation_matrix' in stats:
            self._save_figure('correlation_matrix', plots.plot_correlation_matrix,
                              stats['correlation_matrix'])

    def save_model_outputs(self) -> None:
        """Write posterior, diagnostic, threshold and test-set tables and figures."""
        self._require('evaluation', 'evaluate')
        self._require('convergence', 'diagnose')
        idata = self.model.idata

        self._write_table('posterior_summary', self.model.summary(), index=True)
        self._write_table('odds_ratios', self.model.odds_ratios(), index=True)
        convergence = self.convergence.table.copy()
        convergence.index.name = 'parameter'
        self._write_table('convergence', convergence, index=True)
        self._write_table('threshold_sweep', self.threshold.sweep)
        self._write_table('test_metrics', self.evaluation.to_frame())

        roc = roc_table(self.y_test, self.test_proba)
        calibration = calibration_table(self.y_test, self.test_proba)
        self._write_table('roc_curve', roc)
        self._write_table('calibration', calibration)

        intervals = self.model.predict_proba_interval(self.X_test)
        predictions = pd.DataFrame({
            TARGET: self.y_test,
            'proba': self.test_proba,
            'proba_lower': intervals['lower'].to_numpy(),
            'proba_upper': intervals['upper'].to_numpy(),
            'predicted': (self.test_proba >= self.threshold.threshold).astype(int),
        }, index=self.X_test.index)
        self._write_table('test_predictions', predictions, index=True)

        if not self.config.save_figures:
            return

        self._save_figure('trace', plots.plot_trace, idata)
        self._save_figure('autocorrelation', plots.plot_autocorrelation, idata)
        self._save_figure('rank', plots.plot_rank, idata)
        self._save_figure('posterior', plots.plot_posterior, idata)
        self._save_figure('forest', plots.plot_forest, idata)

        if self.config.ppc_draws and self.model.model is not None:
            self.model.sample_posterior_predictive(max_draws=self.config.ppc_draws)
            self._save_figure('posterior_predictive', plots.plot_posterior_predictive, idata)

        self._save_figure('threshold_sweep', plots.plot_threshold_sweep,
                          self.threshold.sweep, self.threshold.threshold)
        selected = (1 - self.evaluation.classification['specificity'],
                    self.evaluation.classification['sensitivity'])
        self._save_figure('roc_curve', plots.plot_roc_curve, roc,
                          self.evaluation.probability['roc_auc'], selected)
        self._save_figure('confusion_matrix', plots.plot_confusion_matrix,
                          self.evaluation.counts, self.threshold.threshold)
        self._save_figure('calibration', plots.plot_calibration, calibration)

    def run_exploration(self) -> Dict:
        """Load and explore only (no sampling)."""
        self._say("=" * 70)
        self._say("HOTEL CANCELLATION - PREDICTOR EXPLORATION")
        self._say("=" * 70)

        self._say("\n1. Loading data...")
        self.load()
        self._say("\n2. Exploring predictors...")
        self.explore()
        self.save_exploration()

        self._say(f"\nOutputs written to: {self.output_dir}")
        return self.exploration

    def run(self) -> AnalysisResult:
        """Run every step and write all tables and figures."""
        cfg = self.config

        self._say("=" * 70)
        self._say("HOTEL CANCELLATION - BAYESIAN LOGISTIC REGRESSION")
        self._say("=" * 70)

        self._say("\n1. Loading data...")
        self.load()

        self._say("\n2. Exploring predictors...")
        self.explore()
        self.save_exploration()

        self._say("\n3. Preparing train/test split...")
        self.prepare()

        self._say(f"\n4. Sampling posterior ({cfg.sampler.chains} chains x {cfg.sampler.draws} draws)...")
        self.fit()

        self._say("\n5. Checking convergence...")
        self.diagnose()

        self._say(f"\n6. Selecting threshold ({cfg.threshold_criterion})...")
        self.select_threshold()

        self._say("\n7. Evaluating on test split...")
        self.evaluate()

        self._say("\n8. Writing outputs...")
        self.save_model_outputs()

        odds = self.model.odds_ratios()
        result = AnalysisResult(
            n_bookings=len(self.data),
            n_train=len(self.train),
            n_test=len(self.test),
            exploration=self.exploration,
            posterior_summary=self.model.summary(),
            odds_ratios=odds,
            convergence=self.convergence,
            threshold=self.threshold,
            evaluation=self.evaluation,
            output_dir=self.output_dir,
            tables=dict(self.tables),
            figures=dict(self.figures),
        )

        self._say("\n" + "=" * 70)
        self._say("ANALYSIS COMPLETE")
        self._say("=" * 70)
        self._say("\nOdds ratios (exp of posterior mean, per sd for numeric predictors):")
        for term, row in odds.iterrows():
            label = PREDICTOR_LABELS.get(term, term)
            self._say(f"  {label:<24} {row['odds_ratio']:.3f} "
                      f"[{row['or_hdi_low']:.3f}, {row['or_hdi_high']:.3f}]")
        self._say(f"\nTables: {len(self.tables)}, figures: {len(self.figures)}")
        self._say(f"Outputs written to: {self.output_dir}")

        return result
