#!/usr/bin/env python
"""
Run the hotel cancellation analysis.

Usage:
    python entrypoint/run_analysis.py explore             # Predictor exploration only
    python entrypoint/run_analysis.py analyze             # Full Bayesian analysis
    python entrypoint/run_analysis.py analyze --quick     # Short chains on a 5,000-row sample
    python entrypoint/run_analysis.py --help              # Show help
"""

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import argparse

from hotel_cancellation.config import (
    AnalysisConfig,
    OUTPUT_DIR,
    THRESHOLD_CRITERIA,
    DEFAULT_THRESHOLD_CRITERION,
    get_sampler_config,
)
from hotel_cancellation.pipeline import AnalysisPipeline

QUICK_SAMPLE_SIZE = 5000


def build_config(args: argparse.Namespace) -> AnalysisConfig:
    """Translate CLI flags into an AnalysisConfig."""
    sampler = get_sampler_config('quick' if args.quick else 'default')
    if args.draws is not None:
        sampler.draws = args.draws
        sampler.tune = args.draws
    if args.chains is not None:
        sampler.chains = args.chains
    if args.seed is not None:
        sampler.random_seed = args.seed

    sample_size = args.sample
    if args.quick and sample_size is None:
        sample_size = QUICK_SAMPLE_SIZE

    config = AnalysisConfig(
        data_path=Path(args.data) if args.data else None,
        output_dir=Path(args.output_dir),
        sample_size=sample_size,
        threshold_criterion=args.criterion,
        sampler=sampler,
        save_figures=not args.no_figures,
    )
    if args.seed is not None:
        config.random_state = args.seed
    return config


def main():
    parser = argparse.ArgumentParser(
        description='Hotel booking cancellation: Bayesian logistic regression report',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python entrypoint/run_analysis.py explore
  python entrypoint/run_analysis.py analyze --criterion f1
  python entrypoint/run_analysis.py analyze --sample 20000 --draws 500 --chains 2
        """
    )
    parser.add_argument('command', choices=['explore', 'analyze'], help='Command to run')
    parser.add_argument('--data', type=str, default=None,
                        help='Path to hotel_bookings.csv (default: data/hotel_bookings.csv)')
    parser.add_argument('--output-dir', type=str, default=OUTPUT_DIR,
                        help='Directory for tables and figures')
    parser.add_argument('--quick', action='store_true',
                        help=f'Quick sampler preset on a {QUICK_SAMPLE_SIZE:,}-row sample')
    parser.add_argument('--sample', type=int, default=None,
                        help='Down-sample to this many bookings before splitting')
    parser.add_argument('--draws', type=int, default=None,
                        help='Posterior draws (and tuning steps) per chain')
    parser.add_argument('--chains', type=int, default=None, help='Number of MCMC chains')
    parser.add_argument('--seed', type=int, default=None, help='Seed for the split and sampler')
    parser.add_argument('--criterion', choices=list(THRESHOLD_CRITERIA),
                        default=DEFAULT_THRESHOLD_CRITERION,
                        help='Metric maximized when choosing the threshold')
    parser.add_argument('--no-figures', action='store_true', help='Write tables only')
    args = parser.parse_args()

    config = build_config(args)
    pipeline = AnalysisPipeline(config)

    try:
        if args.command == 'explore':
            pipeline.run_exploration()
        else:
            pipeline.run()
    except FileNotFoundError as e:
        print(f"\n⚠️ {e}")
        print("   Pass --data /path/to/hotel_bookings.csv or place the file in data/")
        return 1
    return 0


if __name__ == "__main__":
    if len(sys.argv) == 1:
        # Default: show help
        print(__doc__)
        print("\nRun with --help for usage information.")
    else:
        sys.exit(main())
