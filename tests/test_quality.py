from calcomp.classifier import classify_all
from calcomp.constants import UNREADABLE_TITLE
from calcomp.models import CategoryAggregate
from calcomp.normalizer import normalize
from calcomp.quality import IssueKind, degraded_field_counts, record_issues, summarize_issues
from calcomp.trends import trend


def test_clean_record_has_no_issues(make_record):
    record = make_record("DEAN", total_pay=100, base_pay=100, total_pay_benefits=120)

    assert record_issues(record) == []


def test_ordering_violation_is_reported_not_enforced(make_record):
    record = make_record("DEAN", total_pay=100, base_pay=200, total_pay_benefits=50)

    assert record.ordering_violations() == ["total_pay_benefits < total_pay", "total_pay < base_pay"]
    assert IssueKind.ORDERING_VIOLATION in record_issues(record)
    assert record.total_pay == 100


def test_summarize_issues(mapping, make_record):
    degraded = normalize({"Name": "Jane Doe", "Title": "DEAN", "BasePay": "1", "TotalPay": "x",
                          "OvertimePay": "0", "Benefits": "0", "TotalPayBenefits": "1"}, year=2014)
    records = classify_all([
        degraded,
        make_record("SPACE COWBOY", year=2014),
        make_record(UNREADABLE_TITLE, year=2016),
    ], mapping)
    table = trend([[CategoryAggregate("Dean", 2014, 1, 1.0)], [CategoryAggregate("Dean", 2016, 1, 1.0)]])

    summary = summarize_issues(records, table)
    counts = {(row.year, row.issue): row.n for row in summary.itertuples(index=False)}

    assert counts[(2014, IssueKind.MALFORMED_ROW.value)] == 1
    assert counts[(2014, IssueKind.UNCLASSIFIABLE_TITLE.value)] == 1
    assert counts[(2016, IssueKind.UNREADABLE_TITLE.value)] == 1
    assert counts[(2015, IssueKind.MISSING_YEAR_DATA.value)] == 1
    assert list(summary.columns) == ["year", "issue", "n", "detail"]


def test_degraded_field_counts():
    records = [
        normalize({"Name": "A B", "Title": "DEAN", "TotalPay": ""}, year=2015),
        normalize({"Name": "C D", "Title": "DEAN", "TotalPay": "N/A", "BasePay": "1"}, year=2015),
    ]
    counts = degraded_field_counts(records).set_index("field")["n"]

    assert counts["total_pay"] == 2
    assert counts["base_pay"] == 1
