from __future__ import annotations

import pandas as pd
import pytest

from data_cleaning import (
    InvalidTransactionData,
    add_features,
    clean_data,
    load_raw_data,
    validate_transactions,
)


def test_clean_data_drops_bad_rows_and_fills_labels(make_frame):
    df = make_frame([
        {'amount': 10},
        {'amount': -5},
        {'amount': 0, 'sender_state': None},
        {'device_type': None, 'transaction_status': ' success '},
        {'amount': 999},
    ])
    df.loc[4, 'transaction_id'] = 'T00000'  # same id as the first row

    cleaned = clean_data(df)

    assert list(cleaned['transaction_id']) == ['T00000', 'T00002', 'T00003']
    # zero is a legal amount, only negatives go
    assert list(cleaned['amount']) == [10.0, 0.0, 100.0]
    assert cleaned.loc[cleaned['transaction_id'] == 'T00003', 'device_type'].item() == 'Unknown'
    assert cleaned.loc[cleaned['transaction_id'] == 'T00003', 'transaction_status'].item() == 'SUCCESS'
    assert cleaned.loc[cleaned['transaction_id'] == 'T00002', 'sender_state'].item() == 'Unknown'


def test_clean_data_drops_unlabeled_rows(make_frame):
    df = make_frame([{'fraud_flag': 1}, {}, {}])
    df['fraud_flag'] = df['fraud_flag'].astype(float)
    df.loc[1, 'fraud_flag'] = None

    cleaned = clean_data(df)

    assert list(cleaned['transaction_id']) == ['T00000', 'T00002']
    assert list(cleaned['fraud_flag']) == [1, 0]
    assert cleaned['fraud_flag'].dtype.kind == 'i'


def test_clean_data_leaves_input_alone(make_frame):
    df = make_frame([{'amount': -1}, {'device_type': None}])
    before = df.copy()
    clean_data(df)
    pd.testing.assert_frame_equal(df, before)


def test_add_features_derives_time_fields(make_frame):
    df = make_frame([
        {'timestamp': '2024-01-06 23:15:00'},  # saturday
        {'timestamp': '2024-01-08 04:00:00'},  # monday
    ]).drop(columns=['hour_of_day', 'day_of_week', 'is_weekend'])

    featured = add_features(df)

    assert list(featured['hour_of_day']) == [23, 4]
    assert list(featured['day_of_week']) == ['Saturday', 'Monday']
    assert list(featured['is_weekend']) == [1, 0]
    assert list(featured['txn_month']) == ['2024-01', '2024-01']
    assert 'hour_of_day' not in df.columns


def test_validate_accepts_good_data(make_frame):
    df = make_frame([{}, {'timestamp': '2024-01-07 12:00:00'}])
    assert validate_transactions(df) is df


def test_validate_reports_every_problem(make_frame):
    df = make_frame([{}, {}, {}, {}])
    df.loc[0, 'amount'] = -1
    df.loc[1, 'fraud_flag'] = 2
    df.loc[2, 'hour_of_day'] = 24
    df.loc[3, 'is_weekend'] = 1  # a monday

    with pytest.raises(InvalidTransactionData) as excinfo:
        validate_transactions(df)

    problems = excinfo.value.problems
    assert len(problems) == 4
    message = str(excinfo.value)
    assert 'negative' in message
    assert 'fraud_flag' in message
    assert 'hour_of_day' in message
    assert 'is_weekend' in message


def test_validate_missing_columns(make_frame):
    df = make_frame([{}]).drop(columns=['is_weekend', 'amount'])
    with pytest.raises(InvalidTransactionData, match="missing columns"):
        validate_transactions(df)


def test_invalid_data_is_a_value_error():
    assert issubclass(InvalidTransactionData, ValueError)


def test_load_raw_data_parses_timestamps(make_frame, tmp_path):
    path = tmp_path / "raw.csv"
    make_frame([{}, {}]).to_csv(path, index=False)

    df = load_raw_data(path)

    assert len(df) == 2
    assert pd.api.types.is_datetime64_any_dtype(df['timestamp'])


def test_pipeline_output_passes_validation(generated):
    validate_transactions(generated)
