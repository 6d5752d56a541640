import json
import os
from pathlib import Path

import pytest

from analyses.uc_compensation import build_report_tables, run_analysis
from calcomp.constants import DEFAULT_CONFIG_PATH
from calcomp.settings import ProjectConfig, ReportSettings, load_project_config
from utils.primary_analyzer import perform_primary_analysis


@pytest.fixture()
def records_by_year(make_record):
    def year_of(year, dean_pay):
        return [
            make_record("PROF AY", year=year, total_pay=150_000, name="LOPEZ, MARIA"),
            make_record("PROF HCOMP", year=year, total_pay=300_000, name="CHEN, DAVID"),
            make_record("DEAN", year=year, total_pay=dean_pay, name="REED, THOMAS"),
            make_record("CUSTODIAN", year=year, total_pay=40_000, name="DIAZ, PAULA"),
            make_record("SPACE COWBOY", year=year, total_pay=10_000, name="DOE, JANE"),
        ]
    return {2014: year_of(2014, 200_000), 2015: year_of(2015, 250_000)}


def test_build_report_tables(records_by_year, mapping):
    config = ProjectConfig(mapping_file=Path("unused.csv"), min_count=2, enrollment={2014: 50, 2015: 60})
    tables = build_report_tables(records_by_year, mapping, config)

    assert len(tables["classified_records"]) == 10
    assert set(tables["avg_pay_by_category"]["category"]) == {"Professor"}
    assert len(tables["all_category_aggregates"]) == 8
    assert tables["all_category_aggregates"]["count"].sum() == 10

    changes = tables["category_trend_changes"].set_index("category")
    assert changes.loc["Dean", "mean_pct_change"] == pytest.approx(0.25)

    shares = tables["spend_shares"]
    assert ((shares["academic_share"] + shares["non_academic_share"]) - 1.0).abs().max() < 1e-9
    assert tables["unmatched_titles"]["title"].tolist() == ["SPACE COWBOY"]
    assert tables["headcount_vs_enrollment"].set_index("year").loc[2015, "enrollment"] == 60


def test_group_key_drives_reported_view_and_trend(records_by_year, mapping):
    config = ProjectConfig(mapping_file=Path("unused.csv"), group_key="academic", min_count=2)
    tables = build_report_tables(records_by_year, mapping, config)

    assert set(tables["avg_pay_by_category"]["category"]) == {"Academic", "Non-academic"}
    assert tables["all_category_aggregates"]["count"].sum() == 10

    changes = tables["category_trend_changes"].set_index("category")
    assert changes.loc["Academic", "mean_pct_change"] == pytest.approx(0.0)
    assert changes.loc["Non-academic", "mean_pct_change"] == pytest.approx(0.2)


def test_run_analysis_on_shipped_sample(tmp_path):
    config = load_project_config("uc_compensation", DEFAULT_CONFIG_PATH)
    tables = run_analysis(config, ReportSettings(output_base_dir=tmp_path))

    csv_dir = tmp_path / config.output_dir / "csv_reports"
    assert sorted(os.listdir(csv_dir)) == sorted(f"{name}.csv" for name in tables)
    assert (tmp_path / config.output_dir / "charts" / "spend_shares.png").exists()

    records = tables["classified_records"]
    assert len(records) == 47
    assert set(records.loc[records["raw_title"].str.upper().str.contains("HCOMP"), "category"]) == {"Professor"}


def test_primary_analysis_on_shipped_sample(tmp_path, monkeypatch):
    monkeypatch.setenv("CALCOMP_OUTPUT_BASE_DIR", str(tmp_path))
    config = load_project_config("uc_compensation", DEFAULT_CONFIG_PATH)
    summaries = perform_primary_analysis(config, "uc_compensation")

    assert sorted(summaries) == [2014, 2015, 2016]
    report_path = tmp_path / config.output_dir / "primary_analysis" / "uc_compensation_2016_summary_report.json"
    with open(report_path, encoding="utf-8") as f:
        report = json.load(f)
    assert report["amount_analysis"]["BasePay"]["malformed_values"] == 1
    assert summaries[2015]["amount_analysis"]["TotalPay"]["malformed_values"] == 1
