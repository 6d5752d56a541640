from decimal import Decimal

import pytest

from calcomp.constants import UNREADABLE_TITLE
from calcomp.loaders import load_mapping, load_year, load_years, parse_academic, read_raw_csv


@pytest.fixture()
def year_csv(tmp_path):
    path = tmp_path / "uc_2015.csv"
    path.write_text(
        "Employee Name,Job Title,Base Pay,Total Pay,Total Pay & Benefits,Agency\n"
        'Maria Lopez,PROF-AY,"145,200.00","152,400.00","190,500.00",University of California\n'
        'Thomas Reed,DEAN,"200,000.00",,"248,000.00",University of California\n'
        'Ann Lee,POLICE OFCR,"80,000.00","90,000.00","120,000.00",City of Oakland\n',
        encoding="utf-8",
    )
    return path


def test_load_year_normalizes_rows(year_csv):
    records = load_year(year_csv, 2015)

    assert [r.title for r in records] == ["PROF AY", "DEAN", "POLICE OFCR"]
    assert records[0].name == "LOPEZ, MARIA"
    assert records[0].total_pay == Decimal("152400.00")
    assert all(r.year == 2015 for r in records)


def test_blank_amount_stays_as_degraded_record(year_csv):
    dean = load_year(year_csv, 2015)[1]

    assert dean.total_pay == Decimal(0)
    assert "total_pay" in dean.degraded_fields


def test_agency_filter(year_csv):
    records = load_year(year_csv, 2015, agency="university of california")

    assert len(records) == 2
    assert {r.agency for r in records} == {"University of California"}


def test_load_years_is_keyed_by_year(year_csv):
    loaded = load_years({2016: year_csv, 2015: year_csv})

    assert list(loaded) == [2015, 2016]
    assert loaded[2016][0].year == 2016


def test_missing_required_column(tmp_path):
    path = tmp_path / "bad.csv"
    path.write_text("Name,Salary\nJane Doe,100\n", encoding="utf-8")

    with pytest.raises(ValueError, match="Title"):
        load_year(path, 2015)


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_raw_csv(tmp_path / "nope.csv")


def test_undecodable_bytes_become_unreadable_title(tmp_path):
    path = tmp_path / "latin.csv"
    path.write_bytes(b"Name,Title,TotalPay\nJane Doe,PROF\xff AY,100\n")

    (record,) = load_year(path, 2015)

    assert record.title == UNREADABLE_TITLE
    assert record.total_pay == Decimal(100)


def test_semicolon_separator(tmp_path):
    path = tmp_path / "semi.csv"
    path.write_text("Name;Title;TotalPay\nJane Doe;Dean;1000\n", encoding="utf-8")

    (record,) = load_year(path, 2015, sep=";")

    assert record.title == "DEAN"


def test_load_mapping(tmp_path):
    path = tmp_path / "mapping.csv"
    path.write_text(
        "Title,Category,Academic\n"
        "PROF-AY,Professor,yes\n"
        "DEAN,Dean,no\n"
        ",,\n"
        "prof ay,Professor,TRUE\n",
        encoding="utf-8",
    )
    table = load_mapping(path)

    assert len(table) == 2
    assert table["PROF AY"].academic is True
    assert table["DEAN"].academic is False


def test_mapping_requires_academic_column(tmp_path):
    path = tmp_path / "mapping.csv"
    path.write_text("Title,Category\nDEAN,Dean\n", encoding="utf-8")

    with pytest.raises(ValueError, match="academic"):
        load_mapping(path)


@pytest.mark.parametrize("value, expected", [("Y", True), ("academic", True), ("0", False), ("Non-academic", False)])
def test_parse_academic(value, expected):
    assert parse_academic(value) is expected


def test_parse_academic_rejects_unknown_values():
    with pytest.raises(ValueError):
        parse_academic("maybe")
