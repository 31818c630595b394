"""Tests for MCMC convergence diagnostics."""

import pytest
import numpy as np
import arviz as az

from hotel_cancellation.models import compute_diagnostics, count_divergences, print_convergence_report

from conftest import make_posterior


class TestCountDivergences:
    """Test divergence counting."""

    def test_counts_flags(self):
        assert count_divergences(make_posterior(n_divergent=7)) == 7

    def test_no_sample_stats(self):
        """Posteriors without sample_stats report zero divergences."""
        idata = az.from_dict(posterior={'alpha': np.zeros((2, 50))})
        assert count_divergences(idata) == 0


class TestComputeDiagnostics:
    """Test the convergence report."""

    def test_well_mixed_posterior_converges(self, fake_idata):
        """Independent draws from 4 chains pass every check."""
        report = compute_diagnostics(fake_idata)
        assert report.converged, report.problems
        assert report.problems == []
        assert report.max_rhat < 1.01
        assert report.min_ess_bulk > 400
        assert report.n_chains == 4
        assert report.n_draws == 500
        assert report.n_divergences == 0

    def test_table_has_one_row_per_parameter(self, fake_idata):
        report = compute_diagnostics(fake_idata)
        assert len(report.table) == 5
        assert {'r_hat', 'ess_bulk', 'ess_tail', 'mcse_mean', 'sd', 'mcse_ratio'} <= set(report.table.columns)

    def test_non_mixing_chains_flag_rhat(self):
        """A chain stuck elsewhere inflates R-hat."""
        report = compute_diagnostics(make_posterior(chain_offsets=[0, 0, 0, 3]))
        assert not report.converged
        assert report.max_rhat > 1.01
        assert any('R-hat' in p for p in report.problems)

    def test_divergences_flagged(self):
        report = compute_diagnostics(make_posterior(n_divergent=3))
        assert not report.converged
        assert report.n_divergences == 3
        assert any('divergent' in p for p in report.problems)

    def test_low_ess_flagged(self):
        """Too few draws give bulk ESS below the minimum."""
        report = compute_diagnostics(make_posterior(chains=2, draws=100))
        assert not report.converged
        assert report.min_ess_bulk < 400
        assert any('Bulk ESS' in p for p in report.problems)

    def test_single_chain_flagged(self):
        """R-hat cannot be judged from one chain."""
        report = compute_diagnostics(make_posterior(chains=1, draws=1000))
        assert not report.converged
        assert any('one chain' in p for p in report.problems)

    def test_custom_thresholds(self, fake_idata):
        """Stricter limits turn a passing posterior into a failing one."""
        report = compute_diagnostics(fake_idata, min_ess=10_000, max_mcse_ratio=0.001)
        assert not report.converged
        assert any('MCSE' in p for p in report.problems)
        assert any('Tail ESS' in p for p in report.problems)

    def test_var_names_subset(self, fake_idata):
        report = compute_diagnostics(fake_idata, var_names=['alpha'])
        assert report.table.index.tolist() == ['alpha']

    def test_print_report(self, fake_idata, capsys):
        print_convergence_report(compute_diagnostics(fake_idata))
        out = capsys.readouterr().out
        assert 'CONVERGENCE DIAGNOSTICS' in out
        assert 'All chains converged' in out

    def test_print_report_lists_problems(self, capsys):
        print_convergence_report(compute_diagnostics(make_posterior(n_divergent=2)))
        out = capsys.readouterr().out
        assert 'Convergence problems' in out
        assert '2 divergent transitions' in out
