"""내보내기 유틸리티 테스트 — CSV 이스케이프, 셀 변환, 엑셀 생성."""

from datetime import date, datetime
from io import BytesIO

from openpyxl import load_workbook

from app.utils.export import build_csv, build_xlsx, cell, format_money


class TestCell:
    def test_none_is_empty(self):
        assert cell(None) == ""

    def test_bool_is_yes_no(self):
        assert cell(True) == "Yes"
        assert cell(False) == "No"

    def test_dates(self):
        assert cell(date(2026, 3, 1)) == "2026-03-01"
        assert cell(datetime(2026, 3, 1, 9, 5, 0)) == "2026-03-01 09:05:00"


class TestBuildCsv:
    def test_plain_values_are_not_quoted(self):
        assert build_csv(["Name", "Age"], [["Ava", 8]]) == "Name,Age\r\nAva,8\r\n"

    def test_special_characters_are_quoted(self):
        text = build_csv(["Note"], [["Smith, Jane"], ['Say "hi"'], ["line one\nline two"]])
        lines = text.split("\r\n")
        assert lines[1] == '"Smith, Jane"'
        assert lines[2] == '"Say ""hi"""'
        assert lines[3] == '"line one\nline two"'

    def test_empty_rows(self):
        assert build_csv(["A", "B"], []) == "A,B\r\n"


def test_format_money():
    assert format_money(123456) == "$1234.56"
    assert format_money(None) == "$0.00"


def test_build_xlsx_sheets():
    data = build_xlsx([
        ("Students", ["Name", "Active"], [["Ava", True]]),
        ("Classes", ["Name", "Capacity"], [["Ballet I", 12]]),
    ])
    wb = load_workbook(BytesIO(data))
    assert wb.sheetnames == ["Students", "Classes"]
    assert wb["Students"]["B2"].value == "Yes"
    assert wb["Classes"]["B2"].value == 12
