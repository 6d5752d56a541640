import os

import pandas as pd
import pytest
from loguru import logger

from calcomp.aggregator import records_frame
from calcomp.classifier import classify_all
from utils.data_io import export_dataframe
from utils.plotting import chart_filename
from visualizers.compensation_visualizer import generate_visualizations


@pytest.fixture()
def records_df(mapping, make_record):
    records = []
    for year in (2014, 2015):
        for i in range(6):
            records.append(make_record("PROF", year=year, total_pay=100_000 + 5_000 * i, name=f"P, {i}"))
            records.append(make_record("CUSTODIAN", year=year, total_pay=40_000 + 2_000 * i, name=f"C, {i}"))
    return records_frame(classify_all(records, mapping))


def test_export_dataframe_writes_csv_and_excel(tmp_path):
    df = pd.DataFrame({"year": [2015], "mean": [1.5]})
    written = export_dataframe(df, "averages", str(tmp_path / "csv"), str(tmp_path / "xlsx"), {"mean": "Mean"})

    assert len(written) == 2
    assert pd.read_csv(written[0]).columns.tolist() == ["year", "Mean"]
    assert os.path.exists(tmp_path / "xlsx" / "averages.xlsx")


def test_chart_filename():
    assert chart_filename("density", 2016, "Non-academic") == "density_2016_non_academic"


def test_spend_shares_chart(tmp_path):
    df = pd.DataFrame({
        "year": [2014, 2015],
        "academic_spend": [60.0, 70.0],
        "non_academic_spend": [40.0, 30.0],
        "total_spend": [100.0, 100.0],
        "academic_share": [0.6, 0.7],
        "non_academic_share": [0.4, 0.3],
    })
    path = generate_visualizations("spend_shares", df, str(tmp_path), logger)

    assert os.path.exists(path)


def test_pay_density_chart_per_year(tmp_path, records_df):
    paths = generate_visualizations("classified_records", records_df, str(tmp_path), logger)

    assert [os.path.basename(p) for p in paths] == ["classified_records_2014.png", "classified_records_2015.png"]


def test_unknown_report_has_no_chart(tmp_path):
    assert generate_visualizations("match_rules", pd.DataFrame(), str(tmp_path), logger) is None
