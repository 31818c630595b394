"""
Integration tests on the real hotel_bookings.csv.

Skipped when data/hotel_bookings.csv is not present.
"""

import pytest

from hotel_cancellation.config import RAW_PREDICTORS, TARGET, get_data_path
from hotel_cancellation.data import (
    CleaningConfig,
    DataCleaner,
    check_data_quality,
    init_db,
    load_model_data,
)
from hotel_cancellation.eda import calculate_exploration_stats
from hotel_cancellation.features import recode_predictors

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(not get_data_path().exists(), reason='data/hotel_bookings.csv not available'),
]


class TestRealData:
    """Load, clean and explore the full dataset."""

    @pytest.fixture(scope='class')
    def clean_frame(self):
        con = DataCleaner(CleaningConfig()).clean(init_db())
        return load_model_data(con)

    def test_raw_file_loads(self):
        """The public dataset has 119,390 bookings."""
        con = init_db()
        assert con.execute("SELECT COUNT(*) FROM bookings").fetchone()[0] == 119390

    def test_quality_report(self):
        report = check_data_quality(init_db())
        assert report['total_bookings'] == 119390
        assert report['NULL Target'] == 0
        assert report['Zero Guests'] > 0

    def test_cleaning_keeps_most_rows(self, clean_frame):
        assert 115_000 < len(clean_frame) < 119_390
        assert clean_frame[RAW_PREDICTORS].notna().all().all()

    def test_cancellation_rate(self, clean_frame):
        """Roughly 37% of bookings are canceled."""
        assert 0.33 < clean_frame[TARGET].mean() < 0.40

    def test_known_associations(self, clean_frame):
        """Longer lead time and non-refundable deposits go with cancellation."""
        stats = calculate_exploration_stats(clean_frame, recode_predictors(clean_frame))
        corr = stats['correlations'].set_index('predictor')['r']
        assert corr['lead_time'] > 0
        assert corr['is_non_refundable'] > 0
        assert corr['total_of_special_requests'] < 0
