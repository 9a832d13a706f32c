"""
writes every analytics report into a styled Excel workbook for people who
don't want to open a notebook. one summary sheet, then one sheet per report
in registry order.
"""

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill, Alignment, Border, Side
from openpyxl.utils.dataframe import dataframe_to_rows
import os

from analytics import REPORTS

MAX_SHEET_TITLE = 31  # excel limit


def style_header(ws, row=1, cols=10):
    header_fill = PatternFill(start_color='1F4E79', end_color='1F4E79', fill_type='solid')
    header_font = Font(color='FFFFFF', bold=True, size=11)
    thin_border = Border(left=Side(style='thin'), right=Side(style='thin'),
                         top=Side(style='thin'), bottom=Side(style='thin'))
    for col in range(1, cols + 1):
        cell = ws.cell(row=row, column=col)
        cell.fill = header_fill
        cell.font = header_font
        cell.alignment = Alignment(horizontal='center')
        cell.border = thin_border


def sheet_title(name, title=None):
    text = title or name
    for ch in '[]:*?/\\':
        text = text.replace(ch, ' ')
    return text[:MAX_SHEET_TITLE].strip()


def summary_kpis(df):
    """headline numbers for the first sheet"""
    if df is None or len(df) == 0:
        return [('Total Transactions', '0')]
    fraud = df[df['fraud_flag'] == 1]
    stamps = pd.to_datetime(df['timestamp'])
    return [
        ('Total Transactions', f"{len(df):,}"),
        ('Total Transaction Value', f"Rs {df['amount'].sum():,.0f}"),
        ('Average Transaction Value', f"Rs {df['amount'].mean():,.2f}"),
        ('Fraud Transactions', f"{len(fraud):,}"),
        ('Fraud Rate', f"{len(fraud) / len(df) * 100:.2f}%"),
        ('Fraud Value', f"Rs {fraud['amount'].sum():,.0f}"),
        ('Success Rate', f"{(df['transaction_status'] == 'SUCCESS').mean() * 100:.2f}%"),
        ('Date Range', f"{stamps.min().strftime('%Y-%m-%d')} to {stamps.max().strftime('%Y-%m-%d')}"),
    ]


def write_frame(ws, frame, start_row=1):
    for r_idx, row in enumerate(dataframe_to_rows(frame, index=False, header=True), start_row):
        for c_idx, value in enumerate(row, 1):
            # NaN rates (no rows in the denominator) go in as blank cells
            if isinstance(value, float) and value != value:
                value = None
            ws.cell(row=r_idx, column=c_idx, value=value)
    style_header(ws, row=start_row, cols=len(frame.columns))
    for c_idx, col in enumerate(frame.columns, 1):
        ws.column_dimensions[ws.cell(row=start_row, column=c_idx).column_letter].width = max(14, len(str(col)) + 4)


def create_excel_report(results, output_path, df=None):
    """
    results is {report name: DataFrame}, as returned by analytics.run_all_reports
    or db_utils.run_all_queries. df is optional and only feeds the summary sheet.
    """
    wb = Workbook()

    ws = wb.active
    ws.title = 'Summary'
    ws['A1'] = 'UPI Transaction Analytics Report'
    ws['A1'].font = Font(size=16, bold=True, color='1F4E79')
    ws['A3'] = 'Report Generated:'
    ws['B3'] = pd.Timestamp.now().strftime('%Y-%m-%d %H:%M')

    for i, (label, value) in enumerate(summary_kpis(df)):
        ws.cell(row=5+i, column=1, value=label).font = Font(bold=True)
        ws.cell(row=5+i, column=2, value=value)

    # table of contents, one line per report with its section
    row = 6 + len(summary_kpis(df))
    ws.cell(row=row, column=1, value='Reports').font = Font(size=14, bold=True, color='1F4E79')
    for name in results:
        row += 1
        meta = REPORTS.get(name, {})
        ws.cell(row=row, column=1, value=meta.get('section', ''))
        ws.cell(row=row, column=2, value=sheet_title(name, meta.get('title')))
        ws.cell(row=row, column=3, value=len(results[name]))
    ws.column_dimensions['A'].width = 32
    ws.column_dimensions['B'].width = 40

    for name, frame in results.items():
        meta = REPORTS.get(name, {})
        sheet = wb.create_sheet(sheet_title(name, meta.get('title')))
        write_frame(sheet, frame)

    out_dir = os.path.dirname(output_path)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)
    wb.save(output_path)
    print(f"report saved: {output_path}")
    return output_path


if __name__ == '__main__':
    from analytics import run_all_reports

    base_dir = os.path.dirname(os.path.dirname(__file__))
    processed_path = os.path.join(base_dir, 'data', 'processed', 'upi_transactions_processed.csv')

    if os.path.exists(processed_path):
        df = pd.read_csv(processed_path, parse_dates=['timestamp'])
        results = run_all_reports(df)
        output_path = os.path.join(base_dir, 'reports', 'upi_analytics_report.xlsx')
        create_excel_report(results, output_path, df)
    else:
        print("processed data not found. run data_cleaning.py first.")
