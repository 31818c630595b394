"""
Data loading utilities for the cancellation analysis.

Loads the bookings CSV into DuckDB with typed columns so row selection
can be written as SQL rules, then pulls the model frame back into pandas.
"""

import logging
from pathlib import Path
from typing import Optional, Union

import duckdb
import pandas as pd

from hotel_cancellation.config import RAW_PREDICTORS, TARGET, get_data_path
from .schema import BOOKING_COLUMN_TYPES
from .validator import CleaningConfig, DataCleaner

logger = logging.getLogger(__name__)


def _typed_select(con: duckdb.DuckDBPyConnection, source: str) -> str:
    """
    Build the SELECT that casts a raw all-varchar table into typed columns.

    Columns missing from the source are added as typed NULLs so every
    downstream query sees the same schema.
    """
    present = {row[0] for row in con.execute(f"DESCRIBE {source}").fetchall()}

    columns = ["ROW_NUMBER() OVER () AS booking_id"]
    for col, sql_type in BOOKING_COLUMN_TYPES.items():
        if col not in present:
            columns.append(f"CAST(NULL AS {sql_type}) AS {col}")
        elif sql_type == 'VARCHAR':
            columns.append(f"NULLIF(NULLIF(TRIM({col}), 'NULL'), 'NA') AS {col}")
        else:
            columns.append(
                f"TRY_CAST(NULLIF(NULLIF(TRIM({col}), 'NULL'), 'NA') AS {sql_type}) AS {col}"
            )

    return "SELECT\n    " + ",\n    ".join(columns) + f"\nFROM {source}"


def _create_bookings_table(con: duckdb.DuckDBPyConnection) -> None:
    """Cast temp_bookings into the typed bookings table and drop the temp."""
    con.execute(f"CREATE TABLE bookings AS {_typed_select(con, 'temp_bookings')}")
    con.execute("DROP TABLE temp_bookings")


def init_db(
    csv_path: Optional[Union[str, Path]] = None,
    db_path: str = ":memory:"
) -> duckdb.DuckDBPyConnection:
    """
    Load the raw bookings CSV into DuckDB.

    Returns a connection with a typed `bookings` table.
    """
    file_path = Path(csv_path) if csv_path is not None else get_data_path()
    if not file_path.exists():
        raise FileNotFoundError(
            f"Bookings data not found at {file_path}. "
            f"Download hotel_bookings.csv into the data/ directory."
        )

    con = duckdb.connect(database=db_path, read_only=False)
    escaped = str(file_path).replace("'", "''")
    con.execute(f"""
        CREATE TEMP TABLE temp_bookings AS
        SELECT * FROM read_csv_auto('{escaped}', all_varchar=True, nullstr='NA')
    """)
    _create_bookings_table(con)

    n_rows = con.execute("SELECT COUNT(*) FROM bookings").fetchone()[0]
    logger.info(f"Loaded {file_path.name} into table 'bookings' ({n_rows:,} rows)")
    return con


def load_bookings_frame(
    df: pd.DataFrame,
    db_path: str = ":memory:"
) -> duckdb.DuckDBPyConnection:
    """
    Build the typed `bookings` table from a DataFrame already in memory.

    Values go through the same casts as the CSV path, so strings such as
    'NULL' or 'NA' become SQL NULLs.
    """
    con = duckdb.connect(database=db_path, read_only=False)
    raw = df.astype('string')
    con.register('raw_bookings_view', raw)
    con.execute("CREATE TEMP TABLE temp_bookings AS SELECT * FROM raw_bookings_view")
    con.unregister('raw_bookings_view')
    _create_bookings_table(con)
    return con


def get_clean_connection(
    csv_path: Optional[Union[str, Path]] = None,
    config: Optional[CleaningConfig] = None
) -> duckdb.DuckDBPyConnection:
    """
    Load the CSV and apply the row-selection rules.

    Args:
        csv_path: Bookings CSV (default data/hotel_bookings.csv)
        config: Cleaning configuration (default: all standard rules)

    Returns:
        Connection whose `bookings` table holds only modelable rows
    """
    con = init_db(csv_path)
    cleaner = DataCleaner(config or CleaningConfig())
    return cleaner.clean(con)


def load_model_data(con: duckdb.DuckDBPyConnection) -> pd.DataFrame:
    """
    Pull the model frame: target plus the four raw predictors.

    Rows keep file order and are indexed by booking_id.
    """
    columns = ", ".join([TARGET] + RAW_PREDICTORS)
    df = con.execute(f"""
        SELECT booking_id, {columns}
        FROM bookings
        ORDER BY booking_id
    """).fetchdf()
    return df.set_index('booking_id')
