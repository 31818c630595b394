"""
Convergence diagnostics for the MCMC fit.

Checks R-hat, bulk/tail effective sample size, Monte Carlo standard
error relative to posterior sd, and divergent transitions.
"""

from dataclasses import dataclass, field
from typing import List, Optional

import arviz as az
import numpy as np
import pandas as pd

from hotel_cancellation.config import MAX_MCSE_RATIO, MIN_ESS, RHAT_THRESHOLD
from hotel_cancellation.models.bayesian_logit import COEF_VARS


@dataclass
class ConvergenceReport:
    """Convergence diagnostics for one posterior."""
    max_rhat: float
    min_ess_bulk: float
    min_ess_tail: float
    max_mcse_ratio: float
    n_divergences: int
    n_chains: int
    n_draws: int
    converged: bool
    problems: List[str] = field(default_factory=list)
    table: Optional[pd.DataFrame] = None

    def __repr__(self) -> str:
        status = "CONVERGED" if self.converged else "NOT CONVERGED"
        return f"""
ConvergenceReport ({status}):
  Chains x draws: {self.n_chains} x {self.n_draws}
  Max R-hat: {self.max_rhat:.4f}
  Min ESS (bulk / tail): {self.min_ess_bulk:,.0f} / {self.min_ess_tail:,.0f}
  Max MCSE / sd: {self.max_mcse_ratio:.3f}
  Divergences: {self.n_divergences}
"""


def count_divergences(idata: az.InferenceData) -> int:
    """Number of divergent transitions (0 when sample_stats are absent)."""
    if 'sample_stats' not in idata.groups():
        return 0
    stats = idata.sample_stats
    if 'diverging' not in stats:
        return 0
    return int(stats['diverging'].values.sum())


def compute_diagnostics(
    idata: az.InferenceData,
    var_names: Optional[list] = None,
    rhat_threshold: float = RHAT_THRESHOLD,
    min_ess: float = MIN_ESS,
    max_mcse_ratio: float = MAX_MCSE_RATIO
) -> ConvergenceReport:
    """
    Diagnose the posterior and flag every threshold violation.

    Args:
        idata: InferenceData with a posterior group
        var_names: Variables to check (default alpha, beta)
        rhat_threshold: Largest acceptable R-hat
        min_ess: Smallest acceptable bulk and tail ESS
        max_mcse_ratio: Largest acceptable mcse_mean / sd

    Returns:
        ConvergenceReport; `table` holds the per-parameter diagnostics
    """
    var_names = var_names or COEF_VARS
    table = az.summary(idata, var_names=var_names, kind='diagnostics')

    # az.summary only reports the SD in kind='stats'; recompute for the ratio
    stats_table = az.summary(idata, var_names=var_names, kind='stats')
    table['sd'] = stats_table['sd']
    table['mcse_ratio'] = table['mcse_mean'] / table['sd'].replace(0, np.nan)

    posterior = idata.posterior
    n_chains = int(posterior.sizes['chain'])
    n_draws = int(posterior.sizes['draw'])
    n_divergences = count_divergences(idata)

    problems = []
    if n_chains < 2:
        # R-hat is undefined with a single chain
        problems.append("Only one chain: R-hat cannot be assessed")

    bad_rhat = table.index[table['r_hat'] > rhat_threshold].tolist()
    if bad_rhat:
        problems.append(f"R-hat > {rhat_threshold} for {bad_rhat}")

    low_bulk = table.index[table['ess_bulk'] < min_ess].tolist()
    if low_bulk:
        problems.append(f"Bulk ESS < {min_ess} for {low_bulk}")

    low_tail = table.index[table['ess_tail'] < min_ess].tolist()
    if low_tail:
        problems.append(f"Tail ESS < {min_ess} for {low_tail}")

    high_mcse = table.index[table['mcse_ratio'] > max_mcse_ratio].tolist()
    if high_mcse:
        problems.append(f"MCSE / sd > {max_mcse_ratio} for {high_mcse}")

    if n_divergences > 0:
        problems.append(f"{n_divergences} divergent transitions")

    return ConvergenceReport(
        max_rhat=float(table['r_hat'].max()),
        min_ess_bulk=float(table['ess_bulk'].min()),
        min_ess_tail=float(table['ess_tail'].min()),
        max_mcse_ratio=float(table['mcse_ratio'].max()),
        n_divergences=n_divergences,
        n_chains=n_chains,
        n_draws=n_draws,
        converged=len(problems) == 0,
        problems=problems,
        table=table,
    )


def print_convergence_report(report: ConvergenceReport) -> None:
    """Print the diagnostics table and any problems."""
    print("\n" + "=" * 70)
    print("CONVERGENCE DIAGNOSTICS")
    print("=" * 70)
    print(report)

    if report.table is not None:
        cols = ['r_hat', 'ess_bulk', 'ess_tail', 'mcse_mean', 'mcse_ratio']
        print(report.table[cols].round(4).to_string())

    if report.converged:
        print("\n✓ All chains converged")
    else:
        print("\n✗ Convergence problems:")
        for problem in report.problems:
            print(f"  - {problem}")
