import random

import pytest

from calcomp.classifier import (
    FallbackRules,
    MappingConflictError,
    MappingTable,
    classify,
    classify_all,
    match_rule_counts,
    match_title,
    strip_department_suffixes,
    strip_rank_modifiers,
    unmatched_titles,
)
from calcomp.constants import (
    RULE_DEPARTMENT_SUFFIX,
    RULE_EXACT,
    RULE_RANK_MODIFIER,
    RULE_UNMATCHED,
    RULE_UNREADABLE,
    UNCLASSIFIED_CATEGORY,
    UNREADABLE_CATEGORY,
    UNREADABLE_TITLE,
)
from calcomp.models import TitleMapping


@pytest.mark.parametrize(
    "title, category, rule",
    [
        ("PROF HCOMP", "Professor", RULE_EXACT),
        ("DEAN", "Dean", RULE_EXACT),
        ("INTERIM DEAN", "Dean", RULE_RANK_MODIFIER),
        ("CUSTODIAN II", "Facilities", RULE_RANK_MODIFIER),
        ("PROF AY", "Professor", RULE_DEPARTMENT_SUFFIX),
        ("ASSOC PROF AY B/E/E", "Associate Professor", RULE_DEPARTMENT_SUFFIX),
        ("ACT ASSOC PROF AY", "Associate Professor", RULE_DEPARTMENT_SUFFIX),
    ],
)
def test_fallback_passes(mapping, make_record, title, category, rule):
    classified = classify(make_record(title), mapping)

    assert classified.category == category
    assert classified.match_rule == rule


def test_exact_match_wins_over_suffix_stripping(mapping):
    entry, rule = match_title("PROF HCOMP", mapping)

    assert entry.title == "PROF HCOMP"
    assert rule == RULE_EXACT


def test_unmatched_title_is_unclassified(mapping, make_record):
    classified = classify(make_record("SPACE COWBOY"), mapping)

    assert classified.category == UNCLASSIFIED_CATEGORY
    assert classified.academic is False
    assert classified.match_rule == RULE_UNMATCHED


def test_unreadable_title_keeps_its_own_category(mapping, make_record):
    classified = classify(make_record(UNREADABLE_TITLE, total_pay=1000), mapping)

    assert classified.category == UNREADABLE_CATEGORY
    assert classified.match_rule == RULE_UNREADABLE
    assert classified.academic is False


def test_suffixes_are_stripped_one_at_a_time():
    assert strip_department_suffixes("ASSOC PROF AY B/E/E") == ["ASSOC PROF AY", "ASSOC PROF"]
    assert strip_department_suffixes("AY") == []


def test_rank_modifiers_yield_intermediate_titles():
    assert strip_rank_modifiers("ACT DEAN II") == ["DEAN II", "DEAN"]
    assert strip_rank_modifiers("CUSTODIAN II") == ["CUSTODIAN"]
    assert strip_rank_modifiers("DEAN") == []


def test_modifier_keeps_a_graded_mapping_entry_reachable():
    graded = MappingTable.from_dict({"DEAN II": ("Dean", False)})

    assert match_title("DEAN II", graded)[1] == RULE_EXACT
    entry, rule = match_title("ACT DEAN II", graded)
    assert entry.title == "DEAN II"
    assert rule == RULE_RANK_MODIFIER


def test_classification_is_order_independent(mapping, make_record):
    titles = ["PROF HCOMP", "PROF AY", "DEAN", "INTERIM DEAN", "SPACE COWBOY", "LIBRARIAN", "CUSTODIAN II"]
    records = [make_record(t, name=f"EMPLOYEE, {i}") for i, t in enumerate(titles * 3)]
    shuffled = list(records)
    random.Random(7).shuffle(shuffled)

    def by_name(classified):
        return {r.name: (r.category, r.academic, r.match_rule) for r in classified}

    assert by_name(classify_all(records, mapping)) == by_name(classify_all(shuffled, mapping))
    assert by_name(classify_all(records, mapping)) == by_name(classify(r, mapping) for r in records)


def test_conflicting_mapping_entries_raise():
    with pytest.raises(MappingConflictError):
        MappingTable([
            TitleMapping("PROF-AY", "Professor", True),
            TitleMapping("prof ay", "Lecturer", True),
        ])


def test_agreeing_duplicates_are_merged():
    table = MappingTable([
        TitleMapping("PROF-AY", "Professor", True),
        TitleMapping("prof ay", "Professor", True),
    ])

    assert len(table) == 1
    assert table["PROF AY"].category == "Professor"
    assert table.categories == ["Professor"]


def test_custom_rules(mapping, make_record):
    rules = FallbackRules.from_lists(rank_modifiers=["senior"], department_suffixes=[], grade_levels=[])

    assert classify(make_record("SENIOR CUSTODIAN"), mapping, rules).category == "Facilities"
    assert classify(make_record("SENIOR CUSTODIAN"), mapping).category == UNCLASSIFIED_CATEGORY
    assert classify(make_record("PROF AY"), mapping, rules).category == UNCLASSIFIED_CATEGORY


def test_unmatched_titles_report(mapping, make_record):
    records = [
        make_record("SPACE COWBOY", year=2014),
        make_record("SPACE COWBOY", year=2015),
        make_record("ZOOKEEPER", year=2015),
        make_record("DEAN", year=2015),
    ]
    report = unmatched_titles(classify_all(records, mapping))

    assert report["title"].tolist() == ["SPACE COWBOY", "ZOOKEEPER"]
    assert report["n"].tolist() == [2, 1]
    assert report.loc[0, "years"] == "2014, 2015"


def test_unmatched_titles_report_is_empty_when_everything_matches(mapping, make_record):
    report = unmatched_titles(classify_all([make_record("DEAN")], mapping))

    assert report.empty
    assert list(report.columns) == ["title", "n", "years", "example_raw_title"]


def test_match_rule_counts(mapping, make_record):
    records = [make_record("DEAN"), make_record("INTERIM DEAN"), make_record("DEAN")]
    counts = match_rule_counts(classify_all(records, mapping))

    assert dict(zip(counts["match_rule"], counts["n"])) == {RULE_EXACT: 2, RULE_RANK_MODIFIER: 1}
