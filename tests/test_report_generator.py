from __future__ import annotations

from openpyxl import load_workbook

from analytics import REPORTS, fraud_by_time_of_day, run_all_reports
from report_generator import create_excel_report, sheet_title, summary_kpis


def test_sheet_title_is_excel_safe():
    assert sheet_title('x', 'Fraud: a/b [c]') == 'Fraud  a b  c'
    assert len(sheet_title('x', 'y' * 40)) == 31
    assert sheet_title('fraud_rate_by_state') == 'fraud_rate_by_state'


def test_summary_kpis_without_data():
    assert summary_kpis(None) == [('Total Transactions', '0')]


def test_workbook_has_one_sheet_per_report(generated, tmp_path):
    results = run_all_reports(generated)
    path = create_excel_report(results, str(tmp_path / 'out' / 'report.xlsx'), generated)

    wb = load_workbook(path)
    assert wb.sheetnames[0] == 'Summary'
    assert wb.sheetnames[1:] == [REPORTS[name]['title'] for name in REPORTS]

    ws = wb[REPORTS['fraud_rate_by_state']['title']]
    assert [c.value for c in ws[1]] == ['sender_state', 'fraud_percentage']
    assert ws.max_row == len(results['fraud_rate_by_state']) + 1

    summary = wb['Summary']
    assert summary['A5'].value == 'Total Transactions'
    assert summary['B5'].value == f"{len(generated):,}"


def test_missing_rates_are_blank_cells(make_frame, tmp_path):
    df = make_frame([{'timestamp': '2024-01-01 08:00:00', 'fraud_flag': 1}])
    results = {'fraud_by_time_of_day': fraud_by_time_of_day(df)}
    path = create_excel_report(results, str(tmp_path / 'report.xlsx'), df)

    ws = load_workbook(path)[REPORTS['fraud_by_time_of_day']['title']]
    header = [c.value for c in ws[1]]
    row = dict(zip(header, [c.value for c in ws[2]]))
    assert row['time_of_day'] == 'Morning'
    assert row['fraud_weekday_percent'] == 100
    assert row['fraud_weekend_percent'] is None
