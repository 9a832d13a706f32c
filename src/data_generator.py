"""
generates synthetic UPI transactions in the shape of the `upi` reporting table.

the shares below are rough NPCI-style numbers (android-heavy, SBI leading,
P2M overtaking P2P). fraud is injected on top of the clean base using a few
patterns that show up in RBI reports so the fraud reports have something
to find: big transfers late at night, amounts parked just under Rs 10K,
and low spenders suddenly sending a lot.
"""

import pandas as pd
import numpy as np
from datetime import datetime
import os
import json


# -- config --
# 250k is enough for every report to be populated; push it up if you want
NUM_TRANSACTIONS = 250_000
FRAUD_RATE = 0.02
START_DATE = datetime(2024, 1, 1)
END_DATE = datetime(2024, 12, 31)

TXN_TYPES = ['P2P', 'P2M', 'Bill Payment', 'Recharge']
TXN_TYPE_WEIGHTS = [0.45, 0.35, 0.12, 0.08]

STATUSES = ['SUCCESS', 'FAILED']
STATUS_WEIGHTS = [0.95, 0.05]

AGE_GROUPS = ['18-25', '26-35', '36-45', '46-55', '56+']
SENDER_AGE_WEIGHTS = [0.25, 0.35, 0.22, 0.12, 0.06]
RECEIVER_AGE_WEIGHTS = [0.22, 0.33, 0.24, 0.13, 0.08]

STATES = [
    'Maharashtra', 'Uttar Pradesh', 'Karnataka', 'Tamil Nadu', 'Delhi',
    'Telangana', 'Gujarat', 'Andhra Pradesh', 'Rajasthan', 'West Bengal'
]
STATE_WEIGHTS = [0.15, 0.12, 0.12, 0.11, 0.10, 0.09, 0.09, 0.08, 0.07, 0.07]

BANKS = ['SBI', 'HDFC', 'ICICI', 'Axis', 'PNB', 'Kotak', 'IndusInd', 'Yes Bank']
BANK_WEIGHTS = [0.25, 0.15, 0.15, 0.12, 0.10, 0.10, 0.07, 0.06]

# india is mostly android, a sliver still pays from a browser
DEVICES = ['Android', 'iOS', 'Web']
DEVICE_WEIGHTS = [0.75, 0.20, 0.05]

NETWORKS = ['4G', '5G', 'WiFi', '3G']
NETWORK_WEIGHTS = [0.60, 0.15, 0.20, 0.05]

MERCHANT_CATEGORIES = [
    'Grocery', 'Food', 'Shopping', 'Fuel', 'Entertainment',
    'Utilities', 'Transport', 'Healthcare', 'Education', 'Other'
]

# peaks around 11am and 7-8pm, almost nothing at 3am
HOUR_WEIGHTS = [
    0.005, 0.003, 0.002, 0.002, 0.003, 0.008,  # 0-5 am
    0.015, 0.030, 0.045, 0.065, 0.080, 0.085,  # 6-11 am
    0.075, 0.060, 0.050, 0.045, 0.050, 0.060,  # 12-5 pm
    0.075, 0.085, 0.080, 0.055, 0.035, 0.015   # 6-11 pm
]

# (mean, sigma, cap) of the log-normal per type; recharges are fixed plans
AMOUNT_PROFILES = {
    'P2P': (6.0, 1.2, 100000),
    'P2M': (5.5, 1.0, 50000),
    'Bill Payment': (7.0, 0.8, 100000),
}
RECHARGE_AMOUNTS = [49, 79, 99, 149, 199, 249, 299, 399, 499, 599, 699, 799, 999]


def _weights(weights):
    # normalize so it always sums to exactly 1 (floating point can be annoying)
    weights = np.asarray(weights, dtype=float)
    return weights / weights.sum()


def generate_timestamps(n, rng, start=START_DATE, end=END_DATE):
    """random days in the range, hours drawn from the daily usage curve"""
    days = rng.integers(0, (end - start).days + 1, size=n)
    hours = rng.choice(24, size=n, p=_weights(HOUR_WEIGHTS))
    seconds = rng.integers(0, 3600, size=n)
    return (pd.Timestamp(start)
            + pd.to_timedelta(days, unit='D')
            + pd.to_timedelta(hours, unit='h')
            + pd.to_timedelta(seconds, unit='s'))


def generate_amounts(txn_types, rng):
    """
    amount depends on what kind of transaction it is.
    log-normal because real spending is right-skewed: tons of small
    payments, a few big ones.
    """
    amounts = np.empty(len(txn_types), dtype=float)
    for txn_type, (mean, sigma, cap) in AMOUNT_PROFILES.items():
        mask = txn_types == txn_type
        amounts[mask] = np.minimum(rng.lognormal(mean=mean, sigma=sigma, size=mask.sum()), cap)
    recharge = txn_types == 'Recharge'
    amounts[recharge] = rng.choice(RECHARGE_AMOUNTS, size=recharge.sum())
    return np.round(np.maximum(amounts, 1), 2)


def inject_fraud_patterns(df, fraud_rate, rng):
    """
    flags a fraction of rows as fraud and bends them into a known pattern:
      1. late night large - 15k-95k between 1 and 4 am
      2. structuring - 9,000-9,999 to stay under the Rs 10K reporting threshold
      3. behavior change - someone who normally sends small amounts does 40k+
    """
    num_fraud = int(len(df) * fraud_rate)
    if num_fraud == 0:
        return df

    fraud_idx = rng.choice(df.index.values, size=num_fraud, replace=False)
    late_night, structuring, behavior = np.array_split(fraud_idx, 3)

    df.loc[fraud_idx, 'fraud_flag'] = 1

    new_hours = pd.Series(rng.integers(1, 5, size=len(late_night)), index=late_night)
    stamps = df.loc[late_night, 'timestamp']
    df.loc[late_night, 'timestamp'] = stamps.dt.normalize() + pd.to_timedelta(new_hours, unit='h')
    df.loc[late_night, 'amount'] = np.round(rng.uniform(15000, 95000, size=len(late_night)), 2)

    df.loc[structuring, 'amount'] = np.round(rng.uniform(9000, 9999, size=len(structuring)), 2)

    df.loc[behavior, 'amount'] = np.round(rng.uniform(40000, 95000, size=len(behavior)), 2)

    return df


def generate_transactions(num_transactions=NUM_TRANSACTIONS, fraud_rate=FRAUD_RATE, seed=42, verbose=True):
    """builds the full dataset, sorted by time with sequential IDs"""
    rng = np.random.default_rng(seed)
    n = num_transactions

    if verbose:
        print(f"generating {n:,} transactions...")
        print(f"target fraud rate: {fraud_rate*100}%")
        print("-" * 50)

    txn_types = rng.choice(TXN_TYPES, size=n, p=_weights(TXN_TYPE_WEIGHTS))
    merchant = rng.choice(MERCHANT_CATEGORIES, size=n)
    # person to person payments don't have a merchant
    merchant = np.where(txn_types == 'P2P', 'Other', merchant)

    df = pd.DataFrame({
        'timestamp': generate_timestamps(n, rng),
        'transaction_type': txn_types,
        'merchant_category': merchant,
        'amount': generate_amounts(txn_types, rng),
        'transaction_status': rng.choice(STATUSES, size=n, p=_weights(STATUS_WEIGHTS)),
        'sender_age_group': rng.choice(AGE_GROUPS, size=n, p=_weights(SENDER_AGE_WEIGHTS)),
        'receiver_age_group': rng.choice(AGE_GROUPS, size=n, p=_weights(RECEIVER_AGE_WEIGHTS)),
        'sender_state': rng.choice(STATES, size=n, p=_weights(STATE_WEIGHTS)),
        'sender_bank': rng.choice(BANKS, size=n, p=_weights(BANK_WEIGHTS)),
        'receiver_bank': rng.choice(BANKS, size=n, p=_weights(BANK_WEIGHTS)),
        'device_type': rng.choice(DEVICES, size=n, p=_weights(DEVICE_WEIGHTS)),
        'network_type': rng.choice(NETWORKS, size=n, p=_weights(NETWORK_WEIGHTS)),
        'fraud_flag': 0,
    })

    df = inject_fraud_patterns(df, fraud_rate, rng)

    df = df.sort_values('timestamp', kind='stable').reset_index(drop=True)
    df.insert(0, 'transaction_id', [f"TXN{i:010d}" for i in range(len(df))])

    if verbose:
        print(f"final dataset: {len(df):,} transactions")
        print(f"fraud count: {df['fraud_flag'].sum():,} ({df['fraud_flag'].mean()*100:.2f}%)")
        print(f"date range: {df['timestamp'].min()} to {df['timestamp'].max()}")

    return df


def add_missing_values(df, missing_rate=0.01, seed=42):
    """
    deliberately adding some nulls because real data is never 100% clean.
    this gives the cleaning step something to actually do.
    """
    rng = np.random.default_rng(seed)
    df = df.copy()
    num_missing = int(len(df) * missing_rate)

    for col, share in [('device_type', 3), ('network_type', 3), ('sender_state', 5)]:
        null_idx = rng.choice(df.index.values, size=num_missing // share, replace=False)
        df.loc[null_idx, col] = None

    return df


def save_data(df, output_dir):
    """saves the CSV and writes a quick summary JSON"""
    os.makedirs(output_dir, exist_ok=True)
    filepath = os.path.join(output_dir, 'upi_transactions_raw.csv')
    df.to_csv(filepath, index=False)
    print(f"\nsaved: {filepath}")
    print(f"size: {os.path.getsize(filepath) / (1024*1024):.1f} MB")

    stats = {
        'total_transactions': len(df),
        'total_fraud': int(df['fraud_flag'].sum()),
        'fraud_rate': round(df['fraud_flag'].mean() * 100, 2),
        'date_range': f"{df['timestamp'].min()} to {df['timestamp'].max()}",
        'avg_amount': round(df['amount'].mean(), 2),
        'median_amount': round(df['amount'].median(), 2),
        'total_value': round(df['amount'].sum(), 2),
        'generated_at': datetime.now().strftime('%Y-%m-%d %H:%M:%S')
    }

    stats_path = os.path.join(output_dir, 'data_summary.json')
    with open(stats_path, 'w') as f:
        json.dump(stats, f, indent=2, default=str)
    print(f"summary: {stats_path}")

    return filepath


if __name__ == '__main__':
    df = generate_transactions()
    df = add_missing_values(df)

    output_dir = os.path.join(os.path.dirname(os.path.dirname(__file__)), 'data', 'raw')
    save_data(df, output_dir)

    print("\ndone! run data_cleaning.py next.")
