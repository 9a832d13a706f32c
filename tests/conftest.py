"""
Pytest fixtures for the UPI analytics tests.

Provides:
- make_frame: build a small transactions table from per-row overrides
- empty_frame: the same table with no rows
- generated: a seeded synthetic dataset, cleaned and with derived time fields
"""

from __future__ import annotations

import pandas as pd
import pytest

from data_cleaning import add_features, clean_data
from data_generator import generate_transactions

BASE_ROW = {
    'timestamp': '2024-01-01 10:00:00',  # a Monday
    'transaction_type': 'P2P',
    'merchant_category': 'Grocery',
    'amount': 100.0,
    'transaction_status': 'SUCCESS',
    'sender_age_group': '18-25',
    'receiver_age_group': '26-35',
    'sender_state': 'Delhi',
    'sender_bank': 'SBI',
    'receiver_bank': 'HDFC',
    'device_type': 'Android',
    'network_type': '4G',
    'fraud_flag': 0,
}
COLUMNS = ['transaction_id'] + list(BASE_ROW)


def _build(rows):
    records = []
    for i, overrides in enumerate(rows):
        row = dict(BASE_ROW, transaction_id=f"T{i:05d}")
        row.update(overrides)
        records.append(row)
    df = pd.DataFrame(records, columns=COLUMNS)
    df['timestamp'] = pd.to_datetime(df['timestamp'])
    df['amount'] = df['amount'].astype(float)
    df['fraud_flag'] = df['fraud_flag'].astype(int)
    df['hour_of_day'] = df['timestamp'].dt.hour.astype(int)
    df['day_of_week'] = df['timestamp'].dt.day_name()
    df['is_weekend'] = df['day_of_week'].isin(['Saturday', 'Sunday']).astype(int)
    return df


@pytest.fixture
def make_frame():
    """
    Factory fixture: make_frame([{...}, {...}]) returns a transactions table.

    Each dict overrides BASE_ROW for one row; `n` copies can be produced with
    list multiplication, e.g. [{'amount': 5}] * 3.
    """
    return _build


@pytest.fixture
def empty_frame() -> pd.DataFrame:
    return _build([])


@pytest.fixture(scope="session")
def generated() -> pd.DataFrame:
    """
    5,000 synthetic rows, cleaned and featurized the same way the pipeline does.
    """
    df = generate_transactions(num_transactions=5_000, seed=7, verbose=False)
    df = clean_data(df)
    return add_features(df)
