import sys
sys.stdout.reconfigure(encoding='utf-8')

import os
import json
import warnings
import matplotlib
import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns
from loguru import logger
from tqdm import tqdm
from rich.console import Console
from rich.table import Table

from calcomp.constants import AMOUNT_FIELDS, UNREADABLE_TITLE
from calcomp.loaders import check_columns, read_raw_csv
from calcomp.normalizer import canonical_title, parse_amount, resolve_columns
from calcomp.settings import ProjectConfig, ReportSettings
from utils.plotting import chart_filename, format_currency_axis

# --- Configuration ---
# Use 'Agg' backend for matplotlib to prevent GUI windows from appearing on servers.
matplotlib.use('Agg')
warnings.filterwarnings("ignore", category=UserWarning)

# Configure Loguru for clear and informative console output.
logger.remove()
logger.add(
    sys.stderr,
    format=(
        "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
        "<level>{message}</level>"
    )
)


def display_dataframe_as_rich_table(df_to_display: pd.DataFrame, title: str):
    """
    Displays a Pandas DataFrame as a formatted table in the console using Rich.

    Args:
        df_to_display (pd.DataFrame): The DataFrame to display.
        title (str): The title for the table.
    """
    console = Console()
    table = Table(
        show_header=True,
        header_style="bold magenta",
        title=title,
        title_style="bold green"
    )

    for column in df_to_display.columns:
        table.add_column(str(column))

    for _, row in df_to_display.iterrows():
        table.add_row(*[str(item) for item in row])

    console.print(table)


def blank_value_report(df_source: pd.DataFrame) -> pd.DataFrame:
    """
    Counts blank cells per column. Raw files are read as text, so a missing
    value shows up as an empty string rather than NaN.
    """
    blanks = df_source.apply(lambda s: s.astype(str).str.strip().eq('').sum())
    report = pd.DataFrame({
        'missing_count': blanks,
        'missing_percent': (blanks / max(len(df_source), 1)) * 100,
    })
    return report[report['missing_count'] > 0].sort_values(by='missing_percent', ascending=False)


def parsed_amounts(df_source: pd.DataFrame) -> pd.DataFrame:
    """
    Parses every compensation column found in the file.

    Returns one float column per amount plus a `<column>_malformed` flag for
    values the normalizer would recover as zero.
    """
    columns = resolve_columns({c: c for c in df_source.columns})
    out = {}
    for raw_column in AMOUNT_FIELDS:
        if raw_column not in columns:
            continue
        parsed = [parse_amount(v) for v in df_source[columns[raw_column]]]
        out[raw_column] = [float(amount) for amount, _ in parsed]
        out[f"{raw_column}_malformed"] = [not ok for _, ok in parsed]
    return pd.DataFrame(out, index=df_source.index)


def title_report(df_source: pd.DataFrame) -> dict:
    """Distinct raw titles, distinct canonical titles and unreadable titles."""
    columns = resolve_columns({c: c for c in df_source.columns})
    raw_titles = df_source[columns['Title']]
    canonical = raw_titles.map(canonical_title)
    return {
        'raw_titles': int(raw_titles.nunique()),
        'canonical_titles': int(canonical.nunique()),
        'unreadable_titles': int((canonical == UNREADABLE_TITLE).sum()),
        'top_10_titles': {str(k): int(v) for k, v in canonical.value_counts().head(10).items()},
    }


def create_json_summary_report(df_source: pd.DataFrame, df_amounts: pd.DataFrame, output_directory: str, report_name: str):
    """
    Creates and saves a lightweight JSON report with key data metrics.

    Args:
        df_source (pd.DataFrame): The raw yearly file, as text.
        df_amounts (pd.DataFrame): Output of `parsed_amounts`.
        output_directory (str): The directory to save the report in.
        report_name (str): Prefix of the JSON file.

    Returns:
        dict: The summary report as a Python dictionary.
    """
    logger.info("Creating lightweight JSON summary report...")

    report_summary = {
        "project_info": {
            "report_name": report_name,
            "source_file": df_source.attrs.get('name', 'N/A'),
            "report_date": pd.Timestamp.now().isoformat()
        },
        "table_summary": {
            "rows": len(df_source),
            "columns": len(df_source.columns),
            "total_cells": int(df_source.size),
            "blank_cells": int(df_source.apply(lambda s: s.astype(str).str.strip().eq('').sum()).sum()),
            "duplicate_rows": int(df_source.duplicated().sum()),
        },
        "titles": title_report(df_source),
        "amount_analysis": {}
    }

    for raw_column in AMOUNT_FIELDS:
        if raw_column not in df_amounts.columns:
            continue
        values = df_amounts[raw_column]
        stats = values.describe()
        report_summary["amount_analysis"][raw_column] = {
            'malformed_values': int(df_amounts[f"{raw_column}_malformed"].sum()),
            'zero_values': int((values == 0).sum()),
            'stats': {
                'mean': round(float(stats.get('mean', 0)), 2),
                'std': round(float(stats.get('std', 0)), 2) if len(values) > 1 else 0.0,
                'min': round(float(stats.get('min', 0)), 2),
                'q25': round(float(stats.get('25%', 0)), 2),
                'median': round(float(stats.get('50%', 0)), 2),
                'q75': round(float(stats.get('75%', 0)), 2),
                'max': round(float(stats.get('max', 0)), 2)
            }
        }

    report_path = os.path.join(output_directory, f"{report_name}_summary_report.json")
    with open(report_path, 'w', encoding='utf-8') as f:
        json.dump(report_summary, f, ensure_ascii=False, indent=4)

    logger.success(f"JSON report saved successfully: {report_path}")
    return report_summary


def profile_year(input_file, year: int, config: ProjectConfig, output_directory: str) -> dict:
    """
    Profiles one raw yearly file: preview, blank cells, duplicates, amount
    histograms and a JSON summary. Nothing is normalized or written back.
    """
    logger.info(f"Loading data from file: {input_file}")
    df_source = read_raw_csv(input_file, sep=config.csv.sep, encoding=config.csv.encoding,
                             encoding_errors=config.csv.encoding_errors)
    check_columns(df_source, str(input_file))
    logger.success("Data loaded successfully.")

    rows, columns = df_source.shape
    logger.info(f"{year}: {rows} rows, {columns} columns.")
    display_dataframe_as_rich_table(df_source.head(), f"{year}: first 5 rows (df.head())")

    df_missing_report = blank_value_report(df_source)
    if not df_missing_report.empty:
        logger.warning("Blank values found. See details below:")
        display_dataframe_as_rich_table(df_missing_report.reset_index(names='column').round(2), f"{year}: blank values")
    else:
        logger.success("No blank values found.")

    num_duplicates = df_source.duplicated().sum()
    if num_duplicates > 0:
        logger.warning(f"Found {num_duplicates} fully duplicated rows.")
    else:
        logger.success("No duplicate rows found.")

    cardinality = df_source.nunique()
    constant_columns = cardinality[cardinality == 1].index.tolist()
    if constant_columns:
        logger.warning(f"Found constant-value columns (unhelpful for analysis): {constant_columns}")

    df_amounts = parsed_amounts(df_source)
    plots_directory = os.path.join(output_directory, 'plots')
    os.makedirs(plots_directory, exist_ok=True)

    logger.info("Creating and saving histograms for compensation columns...")
    amount_columns = [c for c in AMOUNT_FIELDS if c in df_amounts.columns]
    for col in tqdm(amount_columns, desc=f"Generating Histograms {year}"):
        fig, ax = plt.subplots(figsize=(10, 6))
        sns.histplot(df_amounts.loc[df_amounts[col] > 0, col], kde=True, color='skyblue', ax=ax)
        ax.set_title(f'Distribution of {col} ({year}, non-zero values)')
        ax.set_xlabel(col)
        ax.set_ylabel('Frequency')
        format_currency_axis(ax, axis='x')
        fig.savefig(os.path.join(plots_directory, f"{chart_filename('hist', year, col)}.png"))
        plt.close(fig)
    logger.success(f"Histograms saved to: {plots_directory}")

    if len(amount_columns) > 1:
        logger.info("Creating correlation heatmap...")
        fig, ax = plt.subplots(figsize=(10, 8))
        sns.heatmap(df_amounts[amount_columns].corr(), annot=True, cmap='viridis', fmt='.2f', ax=ax)
        ax.set_title(f'Correlation of Compensation Columns ({year})')
        fig.savefig(os.path.join(plots_directory, f"{chart_filename('correlation_heatmap', year)}.png"))
        plt.close(fig)
        logger.success(f"Heatmap saved to: {plots_directory}")

    return create_json_summary_report(df_source, df_amounts, output_directory, f"{config.output_dir}_{year}")


def perform_primary_analysis(project_config: ProjectConfig, project_key: str):
    """
    Profiles every raw yearly file of a project.

    Args:
        project_config (ProjectConfig): The validated project block.
        project_key (str): The unique identifier for the project.
    """
    logger.info(f"Starting primary analysis for project: '{project_key}'")
    logger.info(f"Description: {project_config.description}")

    output_directory = os.path.join(str(ReportSettings().output_base_dir), project_config.output_dir, "primary_analysis")
    os.makedirs(output_directory, exist_ok=True)
    logger.info(f"All artifacts will be saved to: {output_directory}")

    summaries = {}
    for year in project_config.years:
        input_file = project_config.input_files[year]
        try:
            summaries[year] = profile_year(input_file, year, project_config, output_directory)
        except FileNotFoundError:
            logger.error(f"File not found: {input_file}. Please check the path in config.yaml.")
        except ValueError as e:
            logger.error(f"Could not profile {input_file}: {e}")

    logger.info(f"Primary analysis for project '{project_key}' has completed ({len(summaries)} of {len(project_config.years)} files).")
    return summaries
