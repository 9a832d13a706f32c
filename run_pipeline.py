"""
runs the full pipeline in order. just execute this and it handles everything.

    python run_pipeline.py                       # every report
    python run_pipeline.py fraud_rate_by_state   # only the named ones
"""

import os
import sys
import time

# put src on the path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'src'))

from data_generator import generate_transactions, add_missing_values, save_data
from data_cleaning import load_raw_data, check_data_quality, clean_data, add_features, validate_transactions, save_processed
from db_utils import create_database, run_all_queries
from analytics import REPORTS, run_all_reports, UnknownReportError
from report_generator import create_excel_report


def main(report_names=None):
    base_dir = os.path.dirname(os.path.abspath(__file__))
    raw_dir = os.path.join(base_dir, 'data', 'raw')
    processed_dir = os.path.join(base_dir, 'data', 'processed')
    db_path = os.path.join(base_dir, 'database', 'upi_transactions.db')
    report_path = os.path.join(base_dir, 'reports', 'upi_analytics_report.xlsx')

    # fail on a typo before spending minutes generating data
    for name in report_names or []:
        if name not in REPORTS:
            raise UnknownReportError(name, REPORTS)

    start = time.time()

    # Step 1: Generate data
    print("\n" + "="*60)
    print("STEP 1: GENERATING SYNTHETIC DATA")
    print("="*60)
    df = generate_transactions()
    df = add_missing_values(df)
    raw_csv = save_data(df, raw_dir)

    # Step 2: Clean, derive time fields, validate
    print("\n" + "="*60)
    print("STEP 2: DATA CLEANING & VALIDATION")
    print("="*60)
    df = load_raw_data(raw_csv)
    check_data_quality(df)
    df = clean_data(df)
    df = add_features(df)
    validate_transactions(df)
    processed_csv = save_processed(df, processed_dir)

    # Step 3: Load into SQL
    print("\n" + "="*60)
    print("STEP 3: CREATING SQL DATABASE")
    print("="*60)
    create_database(df, db_path)
    print("\nRunning SQL queries...")
    sql_results = run_all_queries(db_path)
    print(f"Executed {len(sql_results)} queries successfully")

    # Step 4: Reports
    print("\n" + "="*60)
    print("STEP 4: RUNNING REPORTS")
    print("="*60)
    results = run_all_reports(df, report_names)
    for name, frame in results.items():
        print(f"  {name}: {len(frame)} rows")

    # Step 5: Excel
    print("\n" + "="*60)
    print("STEP 5: GENERATING EXCEL REPORT")
    print("="*60)
    create_excel_report(results, report_path, df)

    elapsed = time.time() - start
    print("\n" + "="*60)
    print(f"ALL DONE. Total time: {elapsed:.1f} seconds")
    print("="*60)
    print(f"\nOutput files:")
    print(f"  Raw data:      {raw_csv}")
    print(f"  Processed:     {processed_csv}")
    print(f"  Database:      {db_path}")
    print(f"  Excel report:  {report_path}")
    print(f"\nTo launch the dashboard:")
    print(f"  streamlit run dashboard/app.py")


if __name__ == '__main__':
    try:
        main(sys.argv[1:] or None)
    except UnknownReportError as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(2)
