"""
Configuration for the booking cancellation analysis.

Contains the predictor set, prior scales, sampler presets and the
diagnostic / threshold-selection settings used throughout the report.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional


# =============================================================================
# VARIABLES
# =============================================================================

TARGET = 'is_canceled'

# Columns pulled from the raw bookings table
RAW_PREDICTORS = ['lead_time', 'total_of_special_requests', 'hotel', 'deposit_type']

# Coefficient order of the fitted model
MODEL_PREDICTORS = ['lead_time', 'total_of_special_requests', 'is_city_hotel', 'is_non_refundable']

NUMERIC_PREDICTORS = ['lead_time', 'total_of_special_requests']  # standardized
BINARY_PREDICTORS = ['is_city_hotel', 'is_non_refundable']       # kept as 0/1

HOTEL_TYPES = ('City Hotel', 'Resort Hotel')
DEPOSIT_TYPES = ('No Deposit', 'Non Refund', 'Refundable')

PREDICTOR_LABELS = {
    'lead_time': 'Lead time (days)',
    'total_of_special_requests': 'Special requests',
    'hotel': 'Hotel type',
    'deposit_type': 'Deposit type',
    'is_city_hotel': 'City hotel',
    'is_non_refundable': 'Non-refundable deposit',
}


# =============================================================================
# SPLIT AND PRIORS
# =============================================================================

TEST_SIZE = 0.2
RANDOM_STATE = 42

# Weakly informative priors on the standardized scale
INTERCEPT_PRIOR_SIGMA = 2.5
COEF_PRIOR_SIGMA = 2.5


# =============================================================================
# SAMPLER
# =============================================================================

@dataclass
class SamplerConfig:
    """NUTS settings passed straight to pm.sample."""
    draws: int = 1000
    tune: int = 1000
    chains: int = 4
    target_accept: float = 0.9
    random_seed: int = RANDOM_STATE
    cores: Optional[int] = None  # None lets PyMC decide
    progressbar: bool = True


SAMPLER_PRESETS = {
    'default': SamplerConfig(),
    'quick': SamplerConfig(draws=300, tune=300, chains=2),
}


# =============================================================================
# DIAGNOSTICS AND THRESHOLD SELECTION
# =============================================================================

RHAT_THRESHOLD = 1.01
MIN_ESS = 400
MAX_MCSE_RATIO = 0.1  # mcse_mean / sd
HDI_PROB = 0.94

# (start, stop, step) for the probability cutoffs, stop inclusive
THRESHOLD_GRID = (0.05, 0.95, 0.01)
THRESHOLD_CRITERIA = ('youden', 'accuracy', 'f1', 'balanced_accuracy')
DEFAULT_THRESHOLD_CRITERION = 'youden'


# =============================================================================
# FILE PATHS
# =============================================================================

DATA_DIR = 'data'
DATA_FILENAME = 'hotel_bookings.csv'
OUTPUT_DIR = 'outputs/analysis'


@dataclass
class AnalysisConfig:
    """Configuration for one end-to-end run of the report."""
    data_path: Optional[Path] = None          # None -> data/hotel_bookings.csv
    output_dir: Path = Path(OUTPUT_DIR)
    test_size: float = TEST_SIZE
    random_state: int = RANDOM_STATE
    sample_size: Optional[int] = None         # Down-sample before splitting (quick runs)
    threshold_criterion: str = DEFAULT_THRESHOLD_CRITERION
    sampler: SamplerConfig = field(default_factory=SamplerConfig)
    ppc_draws: int = 50                       # Draws per chain for the posterior predictive check
    save_figures: bool = True
    verbose: bool = True


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def get_project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent


def get_data_path() -> Path:
    """Default location of the bookings CSV."""
    return get_project_root() / DATA_DIR / DATA_FILENAME


def get_sampler_config(name: str) -> SamplerConfig:
    """
    Returns a copy of a named sampler preset.

    Args:
        name: One of 'default', 'quick'

    Returns:
        SamplerConfig dataclass
    """
    if name not in SAMPLER_PRESETS:
        raise ValueError(f"Unknown sampler preset: {name}. Choose from: {list(SAMPLER_PRESETS.keys())}")
    preset = SAMPLER_PRESETS[name]
    return SamplerConfig(**preset.__dict__)


def get_threshold_grid(grid: tuple = THRESHOLD_GRID) -> Dict[str, float]:
    """Unpack a (start, stop, step) threshold grid into named values."""
    start, stop, step = grid
    return {'start': start, 'stop': stop, 'step': step}
