import pytest

from calcomp.aggregator import aggregate, aggregates_frame, apply_filters, records_frame
from calcomp.classifier import classify_all
from calcomp.constants import ACADEMIC_LABEL, NON_ACADEMIC_LABEL
from calcomp.models import AggregateFilters


@pytest.fixture()
def classified(mapping, make_record):
    records = [
        make_record("PROF", total_pay=100_000, name="A, A"),
        make_record("PROF AY", total_pay=200_000, name="B, B"),
        make_record("DEAN", total_pay=250_000, name="C, C"),
        make_record("CUSTODIAN", total_pay=40_000, name="D, D"),
        make_record("CUSTODIAN", total_pay=50_000, name="E, E"),
        make_record("CUSTODIAN", total_pay=60_000, name="F, F"),
        make_record("SPACE COWBOY", total_pay=1, name="G, G"),
    ]
    return classify_all(records, mapping)


def test_counts_sum_to_input_size(classified):
    aggregates = aggregate(classified)

    assert sum(a.count for a in aggregates) == len(classified)


def test_mean_per_category(classified):
    by_category = {a.category: a for a in aggregate(classified)}

    assert by_category["Professor"].count == 2
    assert by_category["Professor"].mean == pytest.approx(150_000)
    assert by_category["Facilities"].mean == pytest.approx(50_000)
    assert by_category["Unclassified"].count == 1


def test_group_by_academic_flag(classified):
    by_label = {a.category: a.count for a in aggregate(classified, group_key="academic")}

    assert by_label == {ACADEMIC_LABEL: 2, NON_ACADEMIC_LABEL: 5}


def test_filters_return_a_new_list(classified):
    full = aggregate(classified)
    snapshot = list(full)
    filtered = apply_filters(full, AggregateFilters(min_count=2))

    assert full == snapshot
    assert {a.category for a in filtered} == {"Professor", "Facilities"}
    assert all(a in full for a in filtered)


def test_min_mean_filter_omits_groups(classified):
    filtered = aggregate(classified, filters=AggregateFilters(min_mean=100_000))

    assert {a.category for a in filtered} == {"Professor", "Dean"}


def test_value_field_excluding_benefits(mapping, make_record):
    record = make_record("DEAN", total_pay=100, total_pay_benefits=120, benefits=20)
    (agg,) = aggregate(classify_all([record], mapping), value_field="pay_excluding_benefits")

    assert agg.mean == pytest.approx(100)
    assert agg.value_field == "pay_excluding_benefits"


def test_invalid_group_key_or_value_field(classified):
    with pytest.raises(ValueError):
        aggregate(classified, group_key="title")
    with pytest.raises(ValueError):
        aggregate(classified, value_field="salary")


def test_empty_input():
    assert aggregate([]) == []
    assert aggregates_frame([]).empty


def test_records_frame_has_float_amounts(classified):
    df = records_frame(classified)

    assert len(df) == len(classified)
    assert df["total_pay"].dtype == float
    assert df["pay_excluding_benefits"].notna().all()
