"""Data loading and row selection utilities."""
from .loader import init_db, load_bookings_frame, get_clean_connection, load_model_data
from .validator import Rule, CleaningConfig, DataCleaner, check_data_quality
