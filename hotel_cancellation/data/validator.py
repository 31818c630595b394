"""
Row selection for the cancellation model using a rule-based architecture.

Every selection step is a Rule with a check_query (how many rows are
affected?) and an action_query (remove them). Rules are toggled through
CleaningConfig so the kept sample is documented by the config itself.
"""

import duckdb
import logging
from dataclasses import dataclass

logging.basicConfig(level=logging.INFO, format='%(message)s')
logger = logging.getLogger(__name__)

from hotel_cancellation.config import DEPOSIT_TYPES, HOTEL_TYPES
from .schema import BOOKING_COLUMNS


def _sql_list(values) -> str:
    return ", ".join(f"'{v}'" for v in values)


# ============================================================================
# 1. RULE DATACLASS
# ============================================================================

@dataclass
class Rule:
    """
    Single row-selection rule.

    1. Check query: How many rows are affected?
    2. Action query: Remove them
    """
    name: str
    check_query: str
    action_query: str
    enabled: bool = True

# ============================================================================
# 2. CLEANING CONFIG
# ============================================================================

@dataclass
class CleaningConfig:
    """
    Configuration for the row-selection pipeline.

    Each field enables/disables one rule; field names describe what they do.
    """
    # Target
    remove_null_target: bool = True
    remove_invalid_target: bool = True          # anything other than 0/1

    # Predictors
    remove_null_predictors: bool = True
    remove_negative_lead_time: bool = True
    remove_negative_special_requests: bool = True
    remove_unknown_hotel_type: bool = True
    remove_unknown_deposit_type: bool = True

    # Implausible bookings
    remove_zero_guests: bool = True             # adults + children + babies = 0
    remove_negative_adr: bool = True
    remove_extreme_adr: bool = True
    max_adr: float = 5000.0
    remove_duplicates: bool = False             # exact duplicate rows

    # Logging
    verbose: bool = False

# ============================================================================
# 3. DATA CLEANER CLASS
# ============================================================================

class DataCleaner:
    """
    Applies row-selection rules based on configuration.

    Usage:
        cleaner = DataCleaner(CleaningConfig(remove_duplicates=True, verbose=True))
        clean_con = cleaner.clean(init_db())
        cleaner.stats   # rows removed per rule
    """

    def __init__(self, config: CleaningConfig):
        self.config = config
        self.rules = self._build_rules()
        self.stats = {}

    def _build_rules(self) -> list[Rule]:
        """Build list of rules based on config."""
        rules = []

        # ===== TARGET =====
        if self.config.remove_null_target:
            rules.append(Rule(
                "NULL Target",
                "SELECT COUNT(*) FROM bookings WHERE is_canceled IS NULL",
                "DELETE FROM bookings WHERE is_canceled IS NULL"
            ))

        if self.config.remove_invalid_target:
            rules.append(Rule(
                "Invalid Target",
                "SELECT COUNT(*) FROM bookings WHERE is_canceled NOT IN (0, 1)",
                "DELETE FROM bookings WHERE is_canceled NOT IN (0, 1)"
            ))

        # ===== PREDICTORS =====
        if self.config.remove_null_predictors:
            null_check = """lead_time IS NULL
                OR total_of_special_requests IS NULL
                OR hotel IS NULL
                OR deposit_type IS NULL"""
            rules.append(Rule(
                "NULL Predictors",
                f"SELECT COUNT(*) FROM bookings WHERE {null_check}",
                f"DELETE FROM bookings WHERE {null_check}"
            ))

        if self.config.remove_negative_lead_time:
            rules.append(Rule(
                "Negative Lead Time",
                "SELECT COUNT(*) FROM bookings WHERE lead_time < 0",
                "DELETE FROM bookings WHERE lead_time < 0"
            ))

        if self.config.remove_negative_special_requests:
            rules.append(Rule(
                "Negative Special Requests",
                "SELECT COUNT(*) FROM bookings WHERE total_of_special_requests < 0",
                "DELETE FROM bookings WHERE total_of_special_requests < 0"
            ))

        if self.config.remove_unknown_hotel_type:
            rules.append(Rule(
                "Unknown Hotel Type",
                f"SELECT COUNT(*) FROM bookings WHERE hotel NOT IN ({_sql_list(HOTEL_TYPES)})",
                f"DELETE FROM bookings WHERE hotel NOT IN ({_sql_list(HOTEL_TYPES)})"
            ))

        if self.config.remove_unknown_deposit_type:
            rules.append(Rule(
                "Unknown Deposit Type",
                f"SELECT COUNT(*) FROM bookings WHERE deposit_type NOT IN ({_sql_list(DEPOSIT_TYPES)})",
                f"DELETE FROM bookings WHERE deposit_type NOT IN ({_sql_list(DEPOSIT_TYPES)})"
            ))

        # ===== IMPLAUSIBLE BOOKINGS =====
        if self.config.remove_zero_guests:
            guests = "COALESCE(adults, 0) + COALESCE(children, 0) + COALESCE(babies, 0)"
            rules.append(Rule(
                "Zero Guests",
                f"SELECT COUNT(*) FROM bookings WHERE {guests} = 0",
                f"DELETE FROM bookings WHERE {guests} = 0"
            ))

        if self.config.remove_negative_adr:
            rules.append(Rule(
                "Negative ADR",
                "SELECT COUNT(*) FROM bookings WHERE adr < 0",
                "DELETE FROM bookings WHERE adr < 0"
            ))

        if self.config.remove_extreme_adr:
            rules.append(Rule(
                f"Extreme ADR (>{self.config.max_adr:,.0f})",
                f"SELECT COUNT(*) FROM bookings WHERE adr > {float(self.config.max_adr)}",
                f"DELETE FROM bookings WHERE adr > {float(self.config.max_adr)}"
            ))

        if self.config.remove_duplicates:
            # booking_id is a row number, so duplicates are judged on every other column
            partition = ", ".join(BOOKING_COLUMNS)
            rules.append(Rule(
                "Duplicate Rows",
                f"""SELECT COUNT(*) FROM (
                       SELECT booking_id, ROW_NUMBER() OVER (
                           PARTITION BY {partition} ORDER BY booking_id
                       ) AS rn
                       FROM bookings
                   ) WHERE rn > 1""",
                f"""DELETE FROM bookings WHERE booking_id IN (
                       SELECT booking_id FROM (
                           SELECT booking_id, ROW_NUMBER() OVER (
                               PARTITION BY {partition} ORDER BY booking_id
                           ) AS rn
                           FROM bookings
                       ) WHERE rn > 1
                   )"""
            ))

        return rules

    def clean(self, con: duckdb.DuckDBPyConnection) -> duckdb.DuckDBPyConnection:
        """
        Apply all enabled rules in order.

        Returns the same connection with rows removed in place.
        """
        if self.config.verbose:
            logger.info(f"Applying {len(self.rules)} row-selection rules...")

        for rule in self.rules:
            if not rule.enabled:
                continue

            affected = con.execute(rule.check_query).fetchone()[0]

            if affected > 0:
                con.execute(rule.action_query)
                self.stats[rule.name] = affected

                if self.config.verbose:
                    logger.info(f"  ✓ {rule.name}: {affected:,} rows")
            elif self.config.verbose:
                logger.info(f"  - {rule.name}: 0 rows")

        if self.config.verbose:
            remaining = con.execute("SELECT COUNT(*) FROM bookings").fetchone()[0]
            logger.info(f"\nFinal: {remaining:,} bookings")

        return con

    @property
    def total_removed(self) -> int:
        return sum(self.stats.values())


def check_data_quality(con: duckdb.DuckDBPyConnection) -> dict:
    """
    Count each data problem without modifying the table.

    Returns:
        Dict of rule name -> affected rows (all standard rules, duplicates included)
    """
    cleaner = DataCleaner(CleaningConfig(remove_duplicates=True))
    report = {'total_bookings': con.execute("SELECT COUNT(*) FROM bookings").fetchone()[0]}
    for rule in cleaner.rules:
        report[rule.name] = con.execute(rule.check_query).fetchone()[0]
    return report
