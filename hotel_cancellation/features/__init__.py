"""Variable recoding, scaling and splitting for the cancellation model."""
from .engineering import (
    HOTEL_CODES,
    DEPOSIT_CODES,
    recode_predictors,
    PredictorScaler,
    build_design_matrix,
    describe_coding,
)
from .split import split_train_test, sample_rows
