"""
the 17 descriptive reports over the upi transaction table.

every report takes the full transactions DataFrame and returns a new one.
nothing here writes back into the input, so the same snapshot can be shared
between callers. almost everything is one of two shapes:
  - top-k within a group (RANK / DENSE_RANK over an aggregate)
  - a rate of some condition inside a group, as a percentage
"""

import numpy as np
import pandas as pd


DAY_ORDER = ['Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday', 'Sunday']
TIME_OF_DAY_ORDER = ['Morning', 'Afternoon', 'Evening', 'Night']

# inclusive bands; amounts in the gaps (10000.50) are not counted anywhere
AMOUNT_BANDS = [
    ('1000–10000', 1000, 10000),
    ('10001–20000', 10001, 20000),
    ('20001–30000', 20001, 30000),
    ('30001+', 30001, np.inf),
]

HIGH_RISK_RATE = 5
MEDIUM_RISK_RATE = 1


class UnknownReportError(LookupError):
    """raised when a report is requested by a name we don't have"""

    def __init__(self, name, available):
        self.name = name
        self.available = list(available)
        super().__init__(f"unknown report '{name}'. available: {', '.join(self.available)}")


# ---- HELPERS ----

def to_paise(amounts):
    """rupee amounts as whole paise (amounts never carry more than two decimals)"""
    return np.rint(np.asarray(amounts, dtype=float) * 100).astype('int64')


def rounded_ratio(numerator, denominator, decimals=0):
    """
    numerator / denominator, rounded half away from zero like SQL ROUND on a
    DECIMAL. worked out on the integers: 201 * 100 / 20000 is exactly 1.005,
    but as a float it is 1.00499999... and would round down to 1.00.
    both sides must be non-negative whole numbers; zero denominators give NaN.
    """
    scale = 10 ** decimals
    num = np.asarray(numerator, dtype='int64')
    den = np.asarray(denominator, dtype='int64')
    safe = np.where(den > 0, den, 1)
    steps = (2 * scale * num + safe) // (2 * safe)
    return np.where(den > 0, steps / scale, np.nan)


def percentage(numerator, denominator, decimals=2):
    """numerator / denominator * 100, rounded. zero denominators come back as NaN"""
    return rounded_ratio(np.asarray(numerator, dtype='int64') * 100, denominator, decimals)


def rank_within_group(frame, group_cols, value_col, method='min'):
    """
    ranks value_col descending inside each group.
    method='min' is SQL RANK (1, 1, 3), method='dense' is DENSE_RANK (1, 1, 2).
    """
    if frame.empty:
        return pd.Series([], index=frame.index, dtype='int64')
    if group_cols:
        ranks = frame.groupby(group_cols)[value_col].rank(method=method, ascending=False)
    else:
        ranks = frame[value_col].rank(method=method, ascending=False)
    return ranks.astype('int64')


def top_k_within_group(frame, group_col, sub_col, value_col, k, method='min', rank_col='rank'):
    """keeps the top k sub-keys per group, ordered by group, rank, then sub-key"""
    ranked = frame.assign(**{rank_col: rank_within_group(frame, [group_col], value_col, method)})
    ranked = ranked[ranked[rank_col] <= k]
    return ranked.sort_values([group_col, rank_col, sub_col]).reset_index(drop=True)


def _empty(columns):
    return pd.DataFrame(columns=columns)


def _is_fraud(df):
    return df['fraud_flag'] == 1


def _months(df):
    return pd.to_datetime(df['timestamp']).dt.strftime('%Y-%m')


def _time_of_day(hours):
    hours = np.asarray(hours)
    conditions = [
        (hours >= 5) & (hours <= 10),
        (hours >= 11) & (hours <= 15),
        (hours >= 16) & (hours <= 20),
        ((hours >= 21) & (hours <= 23)) | ((hours >= 0) & (hours <= 4)),
    ]
    return np.select(conditions, TIME_OF_DAY_ORDER, default=None)


def _paise_totals(df, group_cols):
    """per group amount in whole paise and row count; sums of integers are exact"""
    return (df.assign(paise=to_paise(df['amount']))
              .groupby(group_cols)
              .agg(paise=('paise', 'sum'), txns=('paise', 'size'))
              .reset_index())


def _sort_desc(frame, value_col, key_cols):
    """sort by value descending, ties broken by the key columns ascending"""
    return frame.sort_values([value_col] + key_cols,
                             ascending=[False] + [True] * len(key_cols)).reset_index(drop=True)


def _rate_by_group(df, group_col, condition, total_col, hit_col, rate_col):
    """per group total, count of rows meeting condition, and the rate"""
    grouped = (df.assign(_hit=condition.astype(int))
                 .groupby(group_col)
                 .agg(**{total_col: ('_hit', 'size'), hit_col: ('_hit', 'sum')})
                 .reset_index())
    grouped[rate_col] = percentage(grouped[hit_col], grouped[total_col])
    return _sort_desc(grouped, rate_col, [group_col])


# ---- A) TOP MERCHANT & BANK PATTERNS ----

def top_merchants_by_state(df, k=3):
    """top 3 merchant categories by total revenue in each sender state"""
    columns = ['rank', 'sender_state', 'merchant_category', 'revenue']
    if df.empty:
        return _empty(columns)
    revenue = _paise_totals(df, ['sender_state', 'merchant_category'])
    revenue['revenue'] = revenue['paise'] / 100
    top = top_k_within_group(revenue, 'sender_state', 'merchant_category', 'revenue', k)
    return top[columns]


def top_merchants_by_age_group(df, k=3):
    """top 3 merchant categories by average spend per age group"""
    columns = ['rank', 'sender_age_group', 'merchant_category', 'avg_spent']
    if df.empty:
        return _empty(columns)
    # rank on the raw average, display the rounded one
    avg = _paise_totals(df, ['sender_age_group', 'merchant_category'])
    avg['avg_raw'] = avg['paise'] / avg['txns']
    top = top_k_within_group(avg, 'sender_age_group', 'merchant_category', 'avg_raw', k)
    top['avg_spent'] = rounded_ratio(top['paise'], top['txns'] * 100, 2)
    return top[columns]


def preferred_devices_by_age_group(df, k=2):
    columns = ['sender_age_group', 'device_type', 'txn_count', 'device_tag']
    if df.empty:
        return _empty(columns)
    counts = df.groupby(['sender_age_group', 'device_type']).size().reset_index(name='txn_count')
    top = top_k_within_group(counts, 'sender_age_group', 'device_type', 'txn_count', k,
                             rank_col='device_rank')
    top['device_tag'] = np.where(top['device_rank'] == 1, 'Preferred Device', 'Secondary')
    return top[columns]


# ---- B) FRAUD & RISK ----

def top_fraud_bank_pairs(df, limit=10):
    """(sender bank, receiver bank) pairs with the most fraud, globally"""
    columns = ['sender_bank', 'receiver_bank', 'frauds']
    fraud = df[_is_fraud(df)] if not df.empty else df
    if fraud.empty:
        return _empty(columns)
    pairs = fraud.groupby(['sender_bank', 'receiver_bank']).size().reset_index(name='frauds')
    return _sort_desc(pairs, 'frauds', ['sender_bank', 'receiver_bank']).head(limit)[columns]


def fraud_rate_by_state(df):
    columns = ['sender_state', 'fraud_percentage']
    if df.empty:
        return _empty(columns)
    rates = _rate_by_group(df, 'sender_state', _is_fraud(df),
                           'total_txns', 'fraud_txns', 'fraud_percentage')
    return rates[columns]


def bank_risk_categories(df):
    """
    fraud rate per sender bank, bucketed:
    above 5% is high risk, above 1% medium, the rest low.
    """
    columns = ['fraud_rank', 'sender_bank', 'total_txns', 'fraud_txns', 'fraud_rate', 'risk_category']
    if df.empty:
        return _empty(columns)
    banks = _rate_by_group(df, 'sender_bank', _is_fraud(df), 'total_txns', 'fraud_txns', 'fraud_rate')
    banks['fraud_rank'] = rank_within_group(banks, [], 'fraud_rate')
    banks['risk_category'] = np.select(
        [banks['fraud_rate'] > HIGH_RISK_RATE, banks['fraud_rate'] > MEDIUM_RISK_RATE],
        ['High Risk', 'Medium Risk'], default='Low Risk')
    return banks.sort_values(['fraud_rank', 'sender_bank']).reset_index(drop=True)[columns]


def fraud_by_time_of_day(df):
    """
    weekday vs weekend fraud split into four time-of-day buckets.
    a bucket with no weekday (or weekend) traffic gets a NaN percentage.
    """
    columns = ['time_of_day', 'total_weekday_txns', 'fraud_weekday_txns', 'fraud_weekday_percent',
               'total_weekend_txns', 'fraud_weekend_txns', 'fraud_weekend_percent']
    if df.empty:
        return _empty(columns)
    weekend = df['is_weekend'] == 1
    fraud = _is_fraud(df)
    flags = pd.DataFrame({
        'time_of_day': _time_of_day(df['hour_of_day']),
        'total_weekday_txns': (~weekend).astype(int).values,
        'total_weekend_txns': weekend.astype(int).values,
        'fraud_weekday_txns': (~weekend & fraud).astype(int).values,
        'fraud_weekend_txns': (weekend & fraud).astype(int).values,
    })
    buckets = flags.groupby('time_of_day').sum().reset_index()
    buckets['fraud_weekday_percent'] = percentage(buckets['fraud_weekday_txns'], buckets['total_weekday_txns'])
    buckets['fraud_weekend_percent'] = percentage(buckets['fraud_weekend_txns'], buckets['total_weekend_txns'])
    buckets['_order'] = buckets['time_of_day'].map({name: i for i, name in enumerate(TIME_OF_DAY_ORDER)})
    return buckets.sort_values('_order').reset_index(drop=True)[columns]


def fraud_by_amount_band(df):
    columns = ['sender_age_group'] + [band for band, _, _ in AMOUNT_BANDS]
    fraud = df[_is_fraud(df)] if not df.empty else df
    if fraud.empty:
        return _empty(columns)
    bands = pd.DataFrame({'sender_age_group': fraud['sender_age_group'].values})
    for band, low, high in AMOUNT_BANDS:
        bands[band] = fraud['amount'].between(low, high).astype(int).values
    return bands.groupby('sender_age_group').sum().reset_index()[columns]


# ---- C) DEVICE & NETWORK ----

def device_network_success(df):
    """non-fraud transaction counts for every device / network combination"""
    columns = ['device_type', 'network_type', 'success']
    clean = df[~_is_fraud(df)] if not df.empty else df
    if clean.empty:
        return _empty(columns)
    counts = clean.groupby(['device_type', 'network_type']).size().reset_index(name='success')
    return (counts.sort_values(['device_type', 'success', 'network_type'],
                               ascending=[True, False, True])
                  .reset_index(drop=True)[columns])


def top_merchants_by_device(df, k=3):
    columns = ['device_type', 'rank', 'merchant_category', 'txn_count', 'total_spent']
    if df.empty:
        return _empty(columns)
    spend = _paise_totals(df, ['device_type', 'merchant_category'])
    spend['txn_count'] = spend['txns']
    spend['total_spent'] = spend['paise'] / 100
    top = top_k_within_group(spend, 'device_type', 'merchant_category', 'total_spent', k)
    return top[columns]


# ---- D) BEHAVIOUR & TIME ----

def peak_hours_by_day(df, k=3):
    """
    busiest hours per weekday. dense ranking, so a day with ties can return
    more than 3 hours. rank 1 is the peak hour, the others are active hours.
    """
    columns = ['day_of_week', 'hour_of_day', 'txn_count', 'hour_label']
    if df.empty:
        return _empty(columns)
    counts = df.groupby(['day_of_week', 'hour_of_day']).size().reset_index(name='txn_count')
    counts['rn'] = rank_within_group(counts, ['day_of_week'], 'txn_count', method='dense')
    counts = counts[counts['rn'] <= k].copy()
    counts['hour_label'] = np.where(counts['rn'] == 1, 'Peak Hour', 'Active Hour')
    counts['_order'] = counts['day_of_week'].map({day: i for i, day in enumerate(DAY_ORDER)})
    counts = counts.sort_values(['_order', 'rn', 'hour_of_day']).reset_index(drop=True)
    return counts[columns]


def age_group_affinity(df):
    """share of all transactions for each sender / receiver age group pair"""
    columns = ['sender_age_group', 'receiver_age_group', 'percent_of_total_txn', 'category']
    if df.empty:
        return _empty(columns)
    pairs = df.groupby(['sender_age_group', 'receiver_age_group']).size().reset_index(name='cnt')
    pairs['percent_of_total_txn'] = percentage(pairs['cnt'], pairs['cnt'].sum())
    pct = pairs['percent_of_total_txn']
    # 7.5% is "Low Value" here; the mid band really is 4..7 inclusive
    pairs['category'] = np.select([pct >= 8, pct.between(4, 7)],
                                  ['High Value', 'Mid Value'], default='Low Value')
    pairs = _sort_desc(pairs, 'percent_of_total_txn', ['sender_age_group', 'receiver_age_group'])
    return pairs[columns]


# ---- E) TIME SERIES ----

def _monthly_spend(df):
    monthly = _paise_totals(df.assign(txn_month=_months(df)), ['sender_age_group', 'txn_month'])
    monthly['monthly_spend'] = monthly['paise'] / 100
    return monthly.sort_values(['sender_age_group', 'txn_month']).reset_index(drop=True)


def monthly_spend_moving_avg(df, window=3):
    """average of this month and up to `window` months before it, per age group"""
    columns = ['sender_age_group', 'txn_month', 'monthly_spend', 'moving_avg']
    if df.empty:
        return _empty(columns)
    monthly = _monthly_spend(df)
    by_age = monthly.groupby('sender_age_group')['paise']
    window_paise = by_age.transform(lambda s: s.rolling(window + 1, min_periods=1).sum())
    window_months = by_age.transform(lambda s: s.rolling(window + 1, min_periods=1).count())
    monthly['moving_avg'] = rounded_ratio(window_paise, window_months * 100, 0)
    return monthly[columns]


def monthly_spend_cumulative(df):
    columns = ['sender_age_group', 'txn_month', 'monthly_spend', 'cumulative_spend']
    if df.empty:
        return _empty(columns)
    monthly = _monthly_spend(df)
    monthly['cumulative_spend'] = monthly.groupby('sender_age_group')['paise'].cumsum() / 100
    return monthly[columns]


# ---- F) TRANSACTION TYPE & STATUS ----

def success_rate_by_type(df):
    columns = ['transaction_type', 'total_txns', 'successful_txns', 'success_rate']
    if df.empty:
        return _empty(columns)
    rates = _rate_by_group(df, 'transaction_type', df['transaction_status'] == 'SUCCESS',
                           'total_txns', 'successful_txns', 'success_rate')
    return rates[columns]


def fraud_rate_by_status(df):
    columns = ['transaction_status', 'total_txns', 'fraud_txns', 'fraud_percent']
    if df.empty:
        return _empty(columns)
    rates = _rate_by_group(df, 'transaction_status', _is_fraud(df),
                           'total_txns', 'fraud_txns', 'fraud_percent')
    return rates[columns]


def top_spender_by_type(df):
    """which age group spends the most on average for each transaction type"""
    columns = ['transaction_type', 'spender_tag', 'sender_age_group', 'avg_spend']
    if df.empty:
        return _empty(columns)
    avg = _paise_totals(df, ['sender_age_group', 'transaction_type'])
    # rounded before ranking, so 100.004 and 100.001 tie
    avg['avg_spend'] = rounded_ratio(avg['paise'], avg['txns'] * 100, 2)
    avg['rn'] = rank_within_group(avg, ['transaction_type'], 'avg_spend')
    avg['spender_tag'] = np.where(avg['rn'] == 1, 'Top Spender', '—')
    avg = avg.sort_values(['transaction_type', 'rn', 'sender_age_group']).reset_index(drop=True)
    return avg[columns]


# ---- REGISTRY ----

REPORTS = {
    'top_merchants_by_state': {
        'section': 'Top Merchant & Bank Patterns',
        'title': 'Top Merchants by State',
        'func': top_merchants_by_state,
    },
    'top_merchants_by_age_group': {
        'section': 'Top Merchant & Bank Patterns',
        'title': 'Top Merchants by Age Group',
        'func': top_merchants_by_age_group,
    },
    'preferred_devices_by_age_group': {
        'section': 'Top Merchant & Bank Patterns',
        'title': 'Preferred Devices by Age Group',
        'func': preferred_devices_by_age_group,
    },
    'top_fraud_bank_pairs': {
        'section': 'Fraud & Risk Analysis',
        'title': 'Top Fraud Bank Pairs',
        'func': top_fraud_bank_pairs,
    },
    'fraud_rate_by_state': {
        'section': 'Fraud & Risk Analysis',
        'title': 'Fraud % by State',
        'func': fraud_rate_by_state,
    },
    'bank_risk_categories': {
        'section': 'Fraud & Risk Analysis',
        'title': 'Bank Risk Categories',
        'func': bank_risk_categories,
    },
    'fraud_by_time_of_day': {
        'section': 'Fraud & Risk Analysis',
        'title': 'Fraud by Time of Day',
        'func': fraud_by_time_of_day,
    },
    'fraud_by_amount_band': {
        'section': 'Fraud & Risk Analysis',
        'title': 'Fraud by Age Group and Amount',
        'func': fraud_by_amount_band,
    },
    'device_network_success': {
        'section': 'Device & Network Usage',
        'title': 'Device vs Network Success',
        'func': device_network_success,
    },
    'top_merchants_by_device': {
        'section': 'Device & Network Usage',
        'title': 'Top Merchants by Device',
        'func': top_merchants_by_device,
    },
    'peak_hours_by_day': {
        'section': 'Behavioral & Time-Based',
        'title': 'Peak Hours by Day',
        'func': peak_hours_by_day,
    },
    'age_group_affinity': {
        'section': 'Behavioral & Time-Based',
        'title': 'Age Group Affinity',
        'func': age_group_affinity,
    },
    'monthly_spend_moving_avg': {
        'section': 'Time Series & Trend',
        'title': 'Monthly Spend Moving Avg',
        'func': monthly_spend_moving_avg,
    },
    'monthly_spend_cumulative': {
        'section': 'Time Series & Trend',
        'title': 'Cumulative Monthly Spend',
        'func': monthly_spend_cumulative,
    },
    'success_rate_by_type': {
        'section': 'Transaction Type & Status',
        'title': 'Success Rate by Type',
        'func': success_rate_by_type,
    },
    'fraud_rate_by_status': {
        'section': 'Transaction Type & Status',
        'title': 'Fraud Rate by Status',
        'func': fraud_rate_by_status,
    },
    'top_spender_by_type': {
        'section': 'Transaction Type & Status',
        'title': 'Top Spender by Type',
        'func': top_spender_by_type,
    },
}


def available_reports():
    return list(REPORTS)


def run_report(name, df):
    if name not in REPORTS:
        raise UnknownReportError(name, REPORTS)
    return REPORTS[name]['func'](df)


def run_all_reports(df, names=None):
    """runs the named reports (all of them by default), in registry order"""
    names = available_reports() if names is None else list(names)
    for name in names:
        if name not in REPORTS:
            raise UnknownReportError(name, REPORTS)
    return {name: run_report(name, df) for name in names}
