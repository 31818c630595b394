"""Column types of the hotel bookings table."""

# Column -> DuckDB type, in file order
BOOKING_COLUMN_TYPES = {
    'hotel': 'VARCHAR',
    'is_canceled': 'INTEGER',
    'lead_time': 'INTEGER',
    'arrival_date_year': 'INTEGER',
    'arrival_date_month': 'VARCHAR',
    'arrival_date_week_number': 'INTEGER',
    'arrival_date_day_of_month': 'INTEGER',
    'stays_in_weekend_nights': 'INTEGER',
    'stays_in_week_nights': 'INTEGER',
    'adults': 'INTEGER',
    'children': 'INTEGER',
    'babies': 'INTEGER',
    'meal': 'VARCHAR',
    'country': 'VARCHAR',
    'market_segment': 'VARCHAR',
    'distribution_channel': 'VARCHAR',
    'is_repeated_guest': 'INTEGER',
    'previous_cancellations': 'INTEGER',
    'previous_bookings_not_canceled': 'INTEGER',
    'reserved_room_type': 'VARCHAR',
    'assigned_room_type': 'VARCHAR',
    'booking_changes': 'INTEGER',
    'deposit_type': 'VARCHAR',
    'agent': 'VARCHAR',
    'company': 'VARCHAR',
    'days_in_waiting_list': 'INTEGER',
    'customer_type': 'VARCHAR',
    'adr': 'DOUBLE',
    'required_car_parking_spaces': 'INTEGER',
    'total_of_special_requests': 'INTEGER',
    'reservation_status': 'VARCHAR',
    'reservation_status_date': 'DATE',
}

BOOKING_COLUMNS = list(BOOKING_COLUMN_TYPES)
