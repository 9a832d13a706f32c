"""
cleans the raw data, derives the time columns the reports group by,
and checks the table invariants before anything gets reported on.

rows missing a timestamp, amount or fraud label are dropped rather than
guessed, so an unlabeled row never counts as clean in the fraud rates.
"""

import pandas as pd
import numpy as np
import os

REQUIRED_COLUMNS = [
    'transaction_id', 'timestamp', 'transaction_type', 'merchant_category', 'amount',
    'transaction_status', 'sender_age_group', 'receiver_age_group', 'sender_state',
    'sender_bank', 'receiver_bank', 'device_type', 'network_type', 'fraud_flag',
]
DERIVED_COLUMNS = ['hour_of_day', 'day_of_week', 'is_weekend']

CATEGORICAL_COLUMNS = [
    'transaction_type', 'merchant_category', 'transaction_status',
    'sender_age_group', 'receiver_age_group', 'sender_state',
    'sender_bank', 'receiver_bank', 'device_type', 'network_type',
]

WEEKEND_DAYS = ['Saturday', 'Sunday']


class InvalidTransactionData(ValueError):
    """the table breaks one or more of its invariants"""

    def __init__(self, problems):
        self.problems = list(problems)
        super().__init__("invalid transaction data: " + "; ".join(self.problems))


def load_raw_data(filepath):
    print(f"loading {filepath}...")
    df = pd.read_csv(filepath, parse_dates=['timestamp'])
    print(f"{len(df):,} rows, {len(df.columns)} columns")
    return df


def check_data_quality(df):
    print("\n--- data quality ---")
    print(f"rows: {len(df):,}")
    print(f"duplicate IDs: {df['transaction_id'].duplicated().sum()}")

    missing = df.isnull().sum()
    for col in missing[missing > 0].index:
        pct = missing[col] / len(df) * 100
        print(f"  {col}: {missing[col]:,} missing ({pct:.2f}%)")

    print(f"negative amounts: {(df['amount'] < 0).sum()}")
    print(f"zero amounts: {(df['amount'] == 0).sum()}")
    if len(df):
        print(f"range: {df['amount'].min():.2f} to {df['amount'].max():.2f}")


def clean_data(df):
    original_count = len(df)

    df = df.drop_duplicates(subset='transaction_id', keep='first')
    df = df.dropna(subset=['timestamp', 'amount', 'fraud_flag'])
    df = df[df['amount'] >= 0].copy()

    df['timestamp'] = pd.to_datetime(df['timestamp'])

    # a missing label is still a row worth counting, it just goes under Unknown
    for col in CATEGORICAL_COLUMNS:
        df[col] = df[col].fillna('Unknown').astype(str).str.strip()

    df['transaction_status'] = df['transaction_status'].str.upper()
    df['fraud_flag'] = df['fraud_flag'].astype(int)

    print(f"cleaned: {len(df):,} rows (dropped {original_count - len(df):,})")
    return df


def add_features(df):
    """derives hour / weekday / weekend from the timestamp so they always agree"""
    print("adding features...")
    df = df.copy()
    stamps = pd.to_datetime(df['timestamp'])
    df['hour_of_day'] = stamps.dt.hour.astype(int)
    df['day_of_week'] = stamps.dt.day_name()
    df['is_weekend'] = df['day_of_week'].isin(WEEKEND_DAYS).astype(int)
    df['txn_month'] = stamps.dt.strftime('%Y-%m')
    return df


def validate_transactions(df):
    """
    raises InvalidTransactionData listing every broken invariant.
    returns the frame untouched so it can sit in a pipeline.
    """
    missing = [c for c in REQUIRED_COLUMNS + DERIVED_COLUMNS if c not in df.columns]
    if missing:
        raise InvalidTransactionData([f"missing columns: {', '.join(missing)}"])

    problems = []
    if df['transaction_id'].duplicated().any():
        problems.append(f"{df['transaction_id'].duplicated().sum()} duplicate transaction_id values")

    negative = (df['amount'] < 0) | df['amount'].isna()
    if negative.any():
        problems.append(f"{negative.sum()} rows with a negative or missing amount")

    bad_flag = ~df['fraud_flag'].isin([0, 1])
    if bad_flag.any():
        problems.append(f"{bad_flag.sum()} rows with fraud_flag outside 0/1")

    bad_hour = ~df['hour_of_day'].isin(range(24))
    if bad_hour.any():
        problems.append(f"{bad_hour.sum()} rows with hour_of_day outside 0-23")

    expected_weekend = df['day_of_week'].isin(WEEKEND_DAYS).astype(int)
    inconsistent = expected_weekend.values != np.asarray(df['is_weekend'])
    if inconsistent.any():
        problems.append(f"{inconsistent.sum()} rows where is_weekend disagrees with day_of_week")

    if problems:
        raise InvalidTransactionData(problems)
    return df


def save_processed(df, output_dir):
    os.makedirs(output_dir, exist_ok=True)
    filepath = os.path.join(output_dir, 'upi_transactions_processed.csv')
    df.to_csv(filepath, index=False)
    print(f"saved: {filepath} ({os.path.getsize(filepath) / (1024*1024):.1f} MB)")
    return filepath


if __name__ == '__main__':
    base_dir = os.path.dirname(os.path.dirname(__file__))
    raw_path = os.path.join(base_dir, 'data', 'raw', 'upi_transactions_raw.csv')
    processed_dir = os.path.join(base_dir, 'data', 'processed')

    if not os.path.exists(raw_path):
        print("raw data not found, run data_generator.py first.")
    else:
        df = load_raw_data(raw_path)
        check_data_quality(df)
        df = clean_data(df)
        df = add_features(df)
        validate_transactions(df)
        check_data_quality(df)
        save_processed(df, processed_dir)
        print("\ndone.")
