"""
loads the UPI transactions into SQLite and runs the same 17 reports as SQL.
the pandas versions in analytics.py are what the pipeline uses; these are here
because most data teams would just query the table, and the two are kept
column-for-column identical so either can feed the Excel report.
"""

import sqlite3
import pandas as pd
import os

from analytics import UnknownReportError, to_paise

DB_PATH = os.path.join(os.path.dirname(os.path.dirname(__file__)), 'database', 'upi_transactions.db')
TABLE = 'upi'

COLUMNS = [
    'transaction_id', 'timestamp', 'transaction_type', 'merchant_category', 'amount',
    'transaction_status', 'sender_age_group', 'receiver_age_group', 'sender_state',
    'sender_bank', 'receiver_bank', 'device_type', 'network_type', 'fraud_flag',
    'hour_of_day', 'day_of_week', 'is_weekend',
]


def create_database(source, db_path=None):
    """source is either a CSV path or an already-cleaned DataFrame"""
    if db_path is None:
        db_path = DB_PATH

    if isinstance(source, pd.DataFrame):
        df = source
    else:
        print(f"loading data from {source}...")
        df = pd.read_csv(source, parse_dates=['timestamp'])
    df = df[COLUMNS].copy()
    df['timestamp'] = pd.to_datetime(df['timestamp']).dt.strftime('%Y-%m-%d %H:%M:%S')
    # money is summed in whole paise so totals and averages are exact
    df['amount_paise'] = to_paise(df['amount'])

    db_dir = os.path.dirname(db_path)
    if db_dir:
        os.makedirs(db_dir, exist_ok=True)

    conn = sqlite3.connect(db_path)
    cursor = conn.cursor()

    cursor.execute(f"DROP TABLE IF EXISTS {TABLE}")
    cursor.execute(f"""
        CREATE TABLE {TABLE} (
            transaction_id TEXT PRIMARY KEY,
            timestamp DATETIME,
            transaction_type TEXT,
            merchant_category TEXT,
            amount REAL,
            transaction_status TEXT,
            sender_age_group TEXT,
            receiver_age_group TEXT,
            sender_state TEXT,
            sender_bank TEXT,
            receiver_bank TEXT,
            device_type TEXT,
            network_type TEXT,
            fraud_flag INTEGER,
            hour_of_day INTEGER,
            day_of_week TEXT,
            is_weekend INTEGER,
            amount_paise INTEGER
        )
    """)

    # append, so the table keeps the primary key we just declared
    df.to_sql(TABLE, conn, if_exists='append', index=False)

    # index the columns the reports group by most
    cursor.execute(f"CREATE INDEX idx_state ON {TABLE}(sender_state)")
    cursor.execute(f"CREATE INDEX idx_age ON {TABLE}(sender_age_group)")
    cursor.execute(f"CREATE INDEX idx_bank ON {TABLE}(sender_bank)")
    cursor.execute(f"CREATE INDEX idx_fraud ON {TABLE}(fraud_flag)")
    cursor.execute(f"CREATE INDEX idx_timestamp ON {TABLE}(timestamp)")

    conn.commit()
    count = cursor.execute(f"SELECT COUNT(*) FROM {TABLE}").fetchone()[0]
    print(f"loaded {count:,} rows into {db_path}")
    conn.close()
    return db_path


def run_query(query, db_path=None):
    if db_path is None:
        db_path = DB_PATH
    conn = sqlite3.connect(db_path)
    try:
        result = pd.read_sql_query(query, conn)
    finally:
        conn.close()
    return result


def get_connection(db_path=None):
    if db_path is None:
        db_path = DB_PATH
    return sqlite3.connect(db_path)


def _rounded(num, den, decimals=2):
    """
    SQL text for num / den rounded half away from zero.
    sqlite has no DECIMAL and its ROUND works on doubles, which can sit either
    side of an exact half, so this stays in integers until the final division:
    floor((2 * scale * num + den) / (2 * den)) / scale. a zero den gives NULL.
    """
    scale = 10 ** decimals
    return f"((2 * {scale} * ({num}) + ({den})) / NULLIF(2 * ({den}), 0)) / {scale}.0"


def _pct(hits, total, decimals=2):
    return _rounded(f"100 * ({hits})", total, decimals)


# same names, columns and ordering as analytics.REPORTS.
# sqlite has no FIELD(), so fixed orderings go through a CASE.
QUERIES = {

    "top_merchants_by_state": """
        WITH revenue AS (
            SELECT sender_state, merchant_category, SUM(amount_paise) / 100.0 AS revenue
            FROM upi
            GROUP BY sender_state, merchant_category
        ), ranked AS (
            SELECT *, RANK() OVER (PARTITION BY sender_state ORDER BY revenue DESC) AS rn
            FROM revenue
        )
        SELECT rn AS "rank", sender_state, merchant_category, revenue
        FROM ranked
        WHERE rn <= 3
        ORDER BY sender_state, rn, merchant_category
    """,

    "top_merchants_by_age_group": f"""
        WITH spend AS (
            SELECT sender_age_group, merchant_category,
                   SUM(amount_paise) AS paise, COUNT(*) AS txns
            FROM upi
            GROUP BY sender_age_group, merchant_category
        ), ranked AS (
            SELECT *, RANK() OVER (PARTITION BY sender_age_group ORDER BY 1.0 * paise / txns DESC) AS rn
            FROM spend
        )
        SELECT rn AS "rank", sender_age_group, merchant_category,
               {_rounded('paise', '100 * txns')} AS avg_spent
        FROM ranked
        WHERE rn <= 3
        ORDER BY sender_age_group, rn, merchant_category
    """,

    "preferred_devices_by_age_group": """
        WITH counts AS (
            SELECT sender_age_group, device_type, COUNT(*) AS txn_count
            FROM upi
            GROUP BY sender_age_group, device_type
        ), ranked AS (
            SELECT *, RANK() OVER (PARTITION BY sender_age_group ORDER BY txn_count DESC) AS device_rank
            FROM counts
        )
        SELECT sender_age_group, device_type, txn_count,
               CASE WHEN device_rank = 1 THEN 'Preferred Device' ELSE 'Secondary' END AS device_tag
        FROM ranked
        WHERE device_rank <= 2
        ORDER BY sender_age_group, device_rank, device_type
    """,

    "top_fraud_bank_pairs": """
        SELECT sender_bank, receiver_bank, COUNT(*) AS frauds
        FROM upi
        WHERE fraud_flag = 1
        GROUP BY sender_bank, receiver_bank
        ORDER BY frauds DESC, sender_bank, receiver_bank
        LIMIT 10
    """,

    "fraud_rate_by_state": f"""
        WITH states AS (
            SELECT sender_state,
                   COUNT(*) AS total_txns,
                   SUM(CASE WHEN fraud_flag = 1 THEN 1 ELSE 0 END) AS fraud_txns
            FROM upi
            GROUP BY sender_state
        )
        SELECT sender_state, {_pct('fraud_txns', 'total_txns')} AS fraud_percentage
        FROM states
        ORDER BY fraud_percentage DESC, sender_state
    """,

    "bank_risk_categories": f"""
        WITH counts AS (
            SELECT sender_bank,
                   COUNT(*) AS total_txns,
                   SUM(CASE WHEN fraud_flag = 1 THEN 1 ELSE 0 END) AS fraud_txns
            FROM upi
            GROUP BY sender_bank
        ), banks AS (
            SELECT *, {_pct('fraud_txns', 'total_txns')} AS fraud_rate
            FROM counts
        )
        SELECT RANK() OVER (ORDER BY fraud_rate DESC) AS fraud_rank,
               sender_bank, total_txns, fraud_txns, fraud_rate,
               CASE
                   WHEN fraud_rate > 5 THEN 'High Risk'
                   WHEN fraud_rate > 1 THEN 'Medium Risk'
                   ELSE 'Low Risk'
               END AS risk_category
        FROM banks
        ORDER BY fraud_rank, sender_bank
    """,

    "fraud_by_time_of_day": f"""
        WITH buckets AS (
            SELECT
                CASE
                    WHEN hour_of_day BETWEEN 5 AND 10 THEN 'Morning'
                    WHEN hour_of_day BETWEEN 11 AND 15 THEN 'Afternoon'
                    WHEN hour_of_day BETWEEN 16 AND 20 THEN 'Evening'
                    WHEN hour_of_day BETWEEN 21 AND 23 OR hour_of_day BETWEEN 0 AND 4 THEN 'Night'
                END AS time_of_day,
                SUM(CASE WHEN is_weekend = 0 THEN 1 ELSE 0 END) AS total_weekday_txns,
                SUM(CASE WHEN is_weekend = 1 THEN 1 ELSE 0 END) AS total_weekend_txns,
                SUM(CASE WHEN is_weekend = 0 AND fraud_flag = 1 THEN 1 ELSE 0 END) AS fraud_weekday_txns,
                SUM(CASE WHEN is_weekend = 1 AND fraud_flag = 1 THEN 1 ELSE 0 END) AS fraud_weekend_txns
            FROM upi
            GROUP BY time_of_day
        )
        SELECT time_of_day,
               total_weekday_txns,
               fraud_weekday_txns,
               {_pct('fraud_weekday_txns', 'total_weekday_txns')} AS fraud_weekday_percent,
               total_weekend_txns,
               fraud_weekend_txns,
               {_pct('fraud_weekend_txns', 'total_weekend_txns')} AS fraud_weekend_percent
        FROM buckets
        WHERE time_of_day IS NOT NULL
        ORDER BY CASE time_of_day
                     WHEN 'Morning' THEN 1 WHEN 'Afternoon' THEN 2
                     WHEN 'Evening' THEN 3 WHEN 'Night' THEN 4
                 END
    """,

    "fraud_by_amount_band": """
        SELECT sender_age_group,
               SUM(CASE WHEN amount BETWEEN 1000 AND 10000 THEN 1 ELSE 0 END) AS "1000–10000",
               SUM(CASE WHEN amount BETWEEN 10001 AND 20000 THEN 1 ELSE 0 END) AS "10001–20000",
               SUM(CASE WHEN amount BETWEEN 20001 AND 30000 THEN 1 ELSE 0 END) AS "20001–30000",
               SUM(CASE WHEN amount >= 30001 THEN 1 ELSE 0 END) AS "30001+"
        FROM upi
        WHERE fraud_flag = 1
        GROUP BY sender_age_group
        ORDER BY sender_age_group
    """,

    "device_network_success": """
        SELECT device_type, network_type, COUNT(*) AS success
        FROM upi
        WHERE fraud_flag = 0
        GROUP BY device_type, network_type
        ORDER BY device_type, success DESC, network_type
    """,

    "top_merchants_by_device": """
        WITH spend AS (
            SELECT device_type, merchant_category, COUNT(*) AS txn_count,
                   SUM(amount_paise) / 100.0 AS total_spent
            FROM upi
            GROUP BY device_type, merchant_category
        ), ranked AS (
            SELECT *, RANK() OVER (PARTITION BY device_type ORDER BY total_spent DESC) AS rn
            FROM spend
        )
        SELECT device_type, rn AS "rank", merchant_category, txn_count, total_spent
        FROM ranked
        WHERE rn <= 3
        ORDER BY device_type, rn, merchant_category
    """,

    "peak_hours_by_day": """
        WITH counts AS (
            SELECT day_of_week, hour_of_day, COUNT(*) AS txn_count
            FROM upi
            GROUP BY day_of_week, hour_of_day
        ), ranked AS (
            SELECT *, DENSE_RANK() OVER (PARTITION BY day_of_week ORDER BY txn_count DESC) AS rn
            FROM counts
        )
        SELECT day_of_week, hour_of_day, txn_count,
               CASE WHEN rn = 1 THEN 'Peak Hour' ELSE 'Active Hour' END AS hour_label
        FROM ranked
        WHERE rn <= 3
        ORDER BY CASE day_of_week
                     WHEN 'Monday' THEN 1 WHEN 'Tuesday' THEN 2 WHEN 'Wednesday' THEN 3
                     WHEN 'Thursday' THEN 4 WHEN 'Friday' THEN 5 WHEN 'Saturday' THEN 6
                     WHEN 'Sunday' THEN 7
                 END, rn, hour_of_day
    """,

    "age_group_affinity": f"""
        WITH pairs AS (
            SELECT sender_age_group, receiver_age_group, COUNT(*) AS cnt
            FROM upi
            GROUP BY sender_age_group, receiver_age_group
        ), shares AS (
            SELECT *, {_pct('cnt', 'SUM(cnt) OVER ()')} AS percent_of_total_txn
            FROM pairs
        )
        SELECT sender_age_group, receiver_age_group, percent_of_total_txn,
               CASE
                   WHEN percent_of_total_txn >= 8 THEN 'High Value'
                   WHEN percent_of_total_txn BETWEEN 4 AND 7 THEN 'Mid Value'
                   ELSE 'Low Value'
               END AS category
        FROM shares
        ORDER BY percent_of_total_txn DESC, sender_age_group, receiver_age_group
    """,

    "monthly_spend_moving_avg": f"""
        WITH monthly AS (
            SELECT sender_age_group, strftime('%Y-%m', timestamp) AS txn_month, SUM(amount_paise) AS paise
            FROM upi
            GROUP BY sender_age_group, txn_month
        ), windows AS (
            SELECT *,
                   SUM(paise) OVER w AS window_paise,
                   COUNT(*) OVER w AS window_months
            FROM monthly
            WINDOW w AS (PARTITION BY sender_age_group ORDER BY txn_month
                         ROWS BETWEEN 3 PRECEDING AND CURRENT ROW)
        )
        SELECT sender_age_group, txn_month, paise / 100.0 AS monthly_spend,
               {_rounded('window_paise', '100 * window_months', 0)} AS moving_avg
        FROM windows
        ORDER BY sender_age_group, txn_month
    """,

    "monthly_spend_cumulative": """
        WITH monthly AS (
            SELECT sender_age_group, strftime('%Y-%m', timestamp) AS txn_month, SUM(amount_paise) AS paise
            FROM upi
            GROUP BY sender_age_group, txn_month
        )
        SELECT sender_age_group, txn_month, paise / 100.0 AS monthly_spend,
               SUM(paise) OVER (PARTITION BY sender_age_group ORDER BY txn_month) / 100.0 AS cumulative_spend
        FROM monthly
        ORDER BY sender_age_group, txn_month
    """,

    "success_rate_by_type": f"""
        WITH types AS (
            SELECT transaction_type,
                   COUNT(*) AS total_txns,
                   SUM(CASE WHEN transaction_status = 'SUCCESS' THEN 1 ELSE 0 END) AS successful_txns
            FROM upi
            GROUP BY transaction_type
        )
        SELECT transaction_type, total_txns, successful_txns,
               {_pct('successful_txns', 'total_txns')} AS success_rate
        FROM types
        ORDER BY success_rate DESC, transaction_type
    """,

    "fraud_rate_by_status": f"""
        WITH statuses AS (
            SELECT transaction_status,
                   COUNT(*) AS total_txns,
                   SUM(CASE WHEN fraud_flag = 1 THEN 1 ELSE 0 END) AS fraud_txns
            FROM upi
            GROUP BY transaction_status
        )
        SELECT transaction_status, total_txns, fraud_txns,
               {_pct('fraud_txns', 'total_txns')} AS fraud_percent
        FROM statuses
        ORDER BY fraud_percent DESC, transaction_status
    """,

    "top_spender_by_type": f"""
        WITH spend AS (
            SELECT sender_age_group, transaction_type,
                   {_rounded('SUM(amount_paise)', '100 * COUNT(*)')} AS avg_spend
            FROM upi
            GROUP BY sender_age_group, transaction_type
        ), ranked AS (
            SELECT *, RANK() OVER (PARTITION BY transaction_type ORDER BY avg_spend DESC) AS rn
            FROM spend
        )
        SELECT transaction_type,
               CASE WHEN rn = 1 THEN 'Top Spender' ELSE '—' END AS spender_tag,
               sender_age_group, avg_spend
        FROM ranked
        ORDER BY transaction_type, rn, sender_age_group
    """,
}


def run_sql_report(name, db_path=None):
    if name not in QUERIES:
        raise UnknownReportError(name, QUERIES)
    return run_query(QUERIES[name], db_path)


def run_all_queries(db_path=None):
    results = {}
    for name in QUERIES:
        try:
            results[name] = run_sql_report(name, db_path)
            print(f"  {name}: {len(results[name])} rows")
        except (sqlite3.Error, pd.errors.DatabaseError) as e:
            print(f"  {name}: ERROR - {e}")
    return results


if __name__ == '__main__':
    processed_csv = os.path.join(os.path.dirname(os.path.dirname(__file__)),
                                 'data', 'processed', 'upi_transactions_processed.csv')
    if os.path.exists(processed_csv):
        create_database(processed_csv)
        print("\nrunning queries...")
        results = run_all_queries()
        print(f"\n{len(results)} queries done.")
    else:
        print(f"processed CSV not found at {processed_csv}")
        print("run data_cleaning.py first.")
