"""
Tests for individual row-selection rules in hotel_cancellation/data/validator.py.

Each test verifies that a specific rule works correctly in isolation.
"""

import pytest
from dataclasses import fields

from hotel_cancellation.data import CleaningConfig, DataCleaner, Rule, check_data_quality


def only(rule_field: str) -> CleaningConfig:
    """Config with every rule disabled except rule_field."""
    flags = {
        f.name: False for f in fields(CleaningConfig)
        if f.name.startswith('remove_')
    }
    flags[rule_field] = True
    return CleaningConfig(**flags)


def count(con, where: str) -> int:
    return con.execute(f"SELECT COUNT(*) FROM bookings WHERE {where}").fetchone()[0]


class TestRule:
    """Test Rule dataclass."""

    def test_rule_defaults_to_enabled(self):
        """Rules are enabled unless stated otherwise."""
        rule = Rule("Test Rule", "SELECT 1", "SELECT 1")
        assert rule.enabled is True

    def test_disabled_rule_is_skipped(self, test_db):
        """A disabled rule neither runs nor records stats."""
        cleaner = DataCleaner(only('remove_null_target'))
        cleaner.rules[0].enabled = False
        cleaner.clean(test_db)
        assert cleaner.stats == {}
        assert count(test_db, "is_canceled IS NULL") == 1


class TestIndividualRules:
    """One violation per rule in the sample bookings."""

    @pytest.mark.parametrize("rule_field,rule_name,violation", [
        ('remove_null_target', 'NULL Target', "is_canceled IS NULL"),
        ('remove_invalid_target', 'Invalid Target', "is_canceled NOT IN (0, 1)"),
        ('remove_null_predictors', 'NULL Predictors', "lead_time IS NULL"),
        ('remove_negative_lead_time', 'Negative Lead Time', "lead_time < 0"),
        ('remove_negative_special_requests', 'Negative Special Requests', "total_of_special_requests < 0"),
        ('remove_unknown_hotel_type', 'Unknown Hotel Type', "hotel = 'Motel'"),
        ('remove_unknown_deposit_type', 'Unknown Deposit Type', "deposit_type = 'Cash'"),
        ('remove_zero_guests', 'Zero Guests', "adults = 0"),
        ('remove_negative_adr', 'Negative ADR', "adr < 0"),
        ('remove_extreme_adr', 'Extreme ADR (>5,000)', "adr > 5000"),
    ])
    def test_rule_removes_its_violation(self, test_db, rule_field, rule_name, violation):
        """The rule removes exactly the violating row and records it."""
        before_total = count(test_db, "TRUE")
        assert count(test_db, violation) == 1, "Test data should contain the violation"

        cleaner = DataCleaner(only(rule_field))
        cleaner.clean(test_db)

        assert count(test_db, violation) == 0
        assert count(test_db, "TRUE") == before_total - 1
        assert cleaner.stats == {rule_name: 1}

    def test_missing_children_count_as_zero(self, test_db):
        """NULL children do not make a booking look guestless."""
        DataCleaner(only('remove_zero_guests')).clean(test_db)
        assert count(test_db, "children IS NULL") == 1

    def test_extreme_adr_threshold_configurable(self, test_db):
        """max_adr moves the cut-off."""
        config = only('remove_extreme_adr')
        config.max_adr = 95.0
        cleaner = DataCleaner(config)
        cleaner.clean(test_db)

        assert count(test_db, "adr > 95") == 0
        assert cleaner.stats == {'Extreme ADR (>95)': 3}

    def test_duplicates_off_by_default(self):
        """Exact duplicates are kept unless requested."""
        assert CleaningConfig().remove_duplicates is False

    def test_remove_duplicates(self, test_db):
        """Only the later copy of a duplicated row is removed."""
        cleaner = DataCleaner(only('remove_duplicates'))
        cleaner.clean(test_db)

        assert cleaner.stats == {'Duplicate Rows': 1}
        ids = [r[0] for r in test_db.execute(
            "SELECT booking_id FROM bookings WHERE hotel = 'City Hotel' AND lead_time = 10 ORDER BY booking_id"
        ).fetchall()]
        assert ids == [1]


class TestFullCleaning:
    """All default rules together."""

    def test_default_rules_leave_valid_rows(self, test_db):
        """Only the four valid rows remain."""
        cleaner = DataCleaner(CleaningConfig())
        cleaner.clean(test_db)

        remaining = [r[0] for r in test_db.execute(
            "SELECT booking_id FROM bookings ORDER BY booking_id"
        ).fetchall()]
        assert remaining == [1, 2, 13, 14]
        assert cleaner.total_removed == 10

    def test_post_conditions(self, test_db):
        """Every remaining row has a 0/1 target and valid predictors."""
        DataCleaner(CleaningConfig()).clean(test_db)

        assert count(test_db, "is_canceled IS NULL OR is_canceled NOT IN (0, 1)") == 0
        assert count(test_db, "lead_time IS NULL OR lead_time < 0") == 0
        assert count(test_db, "total_of_special_requests IS NULL OR total_of_special_requests < 0") == 0
        assert count(test_db, "hotel NOT IN ('City Hotel', 'Resort Hotel')") == 0
        assert count(test_db, "deposit_type NOT IN ('No Deposit', 'Non Refund', 'Refundable')") == 0

    def test_clean_returns_same_connection(self, test_db):
        """clean() modifies the connection in place and returns it."""
        assert DataCleaner(CleaningConfig()).clean(test_db) is test_db

    def test_verbose_logs_each_rule(self, test_db, caplog):
        """Verbose mode logs every rule and the final count."""
        caplog.set_level('INFO')
        DataCleaner(CleaningConfig(verbose=True)).clean(test_db)
        assert 'NULL Target' in caplog.text
        assert 'Final: 4 bookings' in caplog.text


class TestCheckDataQuality:
    """Test the read-only quality report."""

    def test_counts_without_modifying(self, test_db):
        """Reports one violation per rule and leaves the table untouched."""
        report = check_data_quality(test_db)

        assert report['total_bookings'] == 14
        assert report['NULL Target'] == 1
        assert report['Unknown Hotel Type'] == 1
        assert report['Duplicate Rows'] == 1
        assert count(test_db, "TRUE") == 14
