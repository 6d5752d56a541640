# -*- coding: utf-8 -*-
"""
University of California Compensation Report
Builds the yearly compensation report for one public employer out of the
state payroll exports: every row is normalized, its job title classified
through the curated mapping, and headcount / mean pay tracked per category
and per academic flag across years.

Reports produced:
- Average pay per category and year (noise filters applied as a view)
- Academic vs non-academic averages and share of total spend
- Cross-year category trend and year-over-year percent change
- Category shares of headcount and spend
- Headcount vs student enrollment
- Residual mismatch report (titles no mapping entry or fallback resolved)
- Match-rule breakdown, data-quality issues and degraded fields

Notes:
- No row is dropped on content grounds: malformed amounts become zero and
  the record is flagged, unreadable titles get their own category.
- Percent change against a missing year is left empty, never zero.
"""

# --------------------------------------------------------------------------------------
# Pretty console setup (Rich + Loguru)
# --------------------------------------------------------------------------------------

import os
import time
import warnings
from typing import Dict, List

import pandas as pd

from rich.console import Console
from rich.theme import Theme
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.tree import Tree
from rich.progress import Progress, SpinnerColumn, BarColumn, TextColumn, TimeElapsedColumn
from rich.traceback import install as rich_traceback_install

from loguru import logger

from calcomp.aggregator import aggregate, aggregates_frame, apply_filters, records_frame
from calcomp.classifier import MappingTable, classify_all, match_rule_counts, unmatched_titles
from calcomp.loaders import load_mapping, load_year
from calcomp.models import CompensationRecord
from calcomp.quality import degraded_field_counts, summarize_issues
from calcomp.settings import ProjectConfig, ReportSettings
from calcomp.trends import category_shares, headcount_vs_enrollment, spend_shares, trend

from utils.data_io import export_dataframe

from visualizers.compensation_visualizer import generate_visualizations

# Custom Rich theme for consistent styling throughout the console output
_custom_theme = Theme(
    {
        "phase": "bold bright_cyan",
        "question": "bold cyan",
        "good": "bold green",
        "warn": "bold yellow",
        "error": "bold red",
        "info": "cyan",
        "muted": "dim",
    }
)

console = Console(theme=_custom_theme, highlight=False)
rich_traceback_install(show_locals=False, width=120, extra_lines=2, word_wrap=True)

# Configure Loguru to write via Rich console with a neat format
logger.remove()
logger.add(
    console.print,
    level=ReportSettings().log_level,
    colorize=True,
    format="<dim>{time:YYYY-MM-DD HH:mm:ss}</dim> | <level>{level: <8}</level> | "
           "<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
)

# --- Column Names for Exported Files ---
EXPORT_COLUMN_NAMES = {
    'name': 'Name',
    'title': 'Title',
    'raw_title': 'Title (as reported)',
    'year': 'Year',
    'agency': 'Agency',
    'category': 'Category',
    'academic': 'Academic',
    'match_rule': 'Match Rule',
    'degraded': 'Degraded',
    'base_pay': 'Base Pay',
    'overtime_pay': 'Overtime Pay',
    'benefits': 'Benefits',
    'total_pay': 'Total Pay',
    'total_pay_benefits': 'Total Pay & Benefits',
    'pay_excluding_benefits': 'Pay Excluding Benefits',

    # Aggregates and trends
    'count': 'Headcount',
    'mean': 'Mean',
    'value_field': 'Value Field',
    'prior_mean': 'Prior Year Mean',
    'mean_pct_change': 'Mean Change (%)',
    'prior_count': 'Prior Year Headcount',
    'count_pct_change': 'Headcount Change (%)',
    'status': 'Status',
    'spend': 'Spend',
    'headcount_share': 'Headcount Share',
    'spend_share': 'Spend Share',
    'academic_spend': 'Academic Spend',
    'non_academic_spend': 'Non-academic Spend',
    'total_spend': 'Total Spend',
    'academic_share': 'Academic Share',
    'non_academic_share': 'Non-academic Share',
    'headcount': 'Headcount',
    'academic_headcount': 'Academic Headcount',
    'enrollment': 'Enrollment',
    'students_per_employee': 'Students per Employee',
    'students_per_academic': 'Students per Academic Employee',
    'headcount_pct_change': 'Headcount Change (%)',
    'enrollment_pct_change': 'Enrollment Change (%)',

    # Diagnostics
    'n': 'Count',
    'years': 'Years',
    'example_raw_title': 'Example Title (as reported)',
    'issue': 'Issue',
    'detail': 'Detail',
    'field': 'Field',
}

REPORT_DESCRIPTIONS = {
    'avg_pay_by_category': 'Average pay per category and year (filtered view)',
    'all_category_aggregates': 'Average pay per category and year (unfiltered)',
    'avg_pay_by_academic': 'Average pay, academic vs non-academic',
    'category_trend': 'Cross-year category trend',
    'category_trend_changes': 'Year-over-year change per category',
    'category_shares': 'Category shares of headcount and spend',
    'spend_shares': 'Academic share of total spend',
    'headcount_vs_enrollment': 'Headcount vs enrollment',
    'unmatched_titles': 'Residual mismatch report',
    'match_rules': 'Records resolved per match rule',
    'data_quality': 'Recovered data-quality issues',
    'degraded_fields': 'Fields recovered by default substitution',
    'classified_records': 'Every classified record',
}


# --------------------------------------------------------------------------------------
# Utility helpers for nice console output
# --------------------------------------------------------------------------------------

def _human_readable_bytes(num_bytes: int) -> str:
    """Return human-readable memory size string."""
    units = ["B", "KB", "MB", "GB", "TB"]
    size = float(num_bytes)
    for unit in units:
        if size < 1024:
            return f"{size:.2f} {unit}"
        size /= 1024
    return f"{size:.2f} PB"


def _show_dataset_snapshot(df: pd.DataFrame, title: str = "Dataset overview"):
    """Show a compact metadata snapshot of DataFrame."""
    mem = df.memory_usage(deep=True).sum()
    table = Table(title=title, show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("Metric", style="muted")
    table.add_column("Value", style="bold")
    table.add_row("Rows", f"{df.shape[0]:,}")
    table.add_row("Columns", f"{df.shape[1]:,}")
    if 'year' in df.columns and not df.empty:
        table.add_row("Years", ", ".join(str(y) for y in sorted(df['year'].unique())))
    if 'degraded' in df.columns:
        table.add_row("Degraded rows", f"{int(df['degraded'].sum()):,}")
    table.add_row("Memory", _human_readable_bytes(mem))
    console.print(table)


def _show_frame_preview(df: pd.DataFrame, title: str, max_rows: int = 10):
    """Prints the first rows of a report table."""
    table = Table(title=title, show_header=True, header_style="bold")
    for col in df.columns:
        table.add_column(EXPORT_COLUMN_NAMES.get(col, col))
    for row in df.head(max_rows).itertuples(index=False, name=None):
        table.add_row(*[f"{v:,.4g}" if isinstance(v, float) else str(v) for v in row])
    if len(df) > max_rows:
        table.caption = f"... and {len(df) - max_rows} more rows"
    console.print(table)


def _show_output_tree(output_root: str, csv_dir: str, excel_dir: str, charts_dir: str, title: str = "Saved outputs"):
    """Show a tree preview of the output directories and up to 10 files in each."""
    tree = Tree(f"[bold]Output[/] -> {output_root}", guide_style="bright_blue")
    for sub in [csv_dir, excel_dir, charts_dir]:
        node = tree.add(f"[bold]{os.path.basename(sub)}/[/] ({len(os.listdir(sub)) if os.path.exists(sub) else 0} files)")
        if os.path.exists(sub):
            files = sorted(os.listdir(sub))
            preview = files[:10]
            for f in preview:
                node.add(f"{f}")
            if len(files) > len(preview):
                node.add(f"... and {len(files) - len(preview)} more")
        else:
            node.add("[muted]Directory not found[/]")
    console.print(Panel.fit(tree, title=title, border_style="bright_blue"))


# --------------------------------------------------------------------------------------
# Report tables (pure, no console output)
# --------------------------------------------------------------------------------------

def build_report_tables(
    records_by_year: Dict[int, List[CompensationRecord]],
    mapping: MappingTable,
    config: ProjectConfig,
) -> Dict[str, pd.DataFrame]:
    """
    Classifies the normalized records and computes every report table.

    Args:
        records_by_year: Normalized records keyed by year.
        mapping: Curated title mapping.
        config: Project block; supplies the group key, value field, filters, enrollment
            and fallback rules.

    Returns:
        Report name -> DataFrame, in export order.
    """
    rules = config.classification.to_rules()
    classified_by_year = {
        year: classify_all(records_by_year[year], mapping, rules)
        for year in sorted(records_by_year)
    }
    classified = [r for year in sorted(classified_by_year) for r in classified_by_year[year]]

    full_sets = [
        aggregate(classified_by_year[year], group_key=config.group_key, value_field=config.value_field)
        for year in sorted(classified_by_year)
    ]
    # Filters only shape what is reported; the full aggregates stay untouched.
    filtered_sets = [apply_filters(full, config.filters) for full in full_sets]
    academic_sets = [
        aggregate(classified_by_year[year], group_key="academic", value_field=config.value_field)
        for year in sorted(classified_by_year)
    ]

    trend_table = trend(full_sets)

    return {
        'avg_pay_by_category': aggregates_frame(a for s in filtered_sets for a in s),
        'all_category_aggregates': aggregates_frame(a for s in full_sets for a in s),
        'avg_pay_by_academic': aggregates_frame(a for s in academic_sets for a in s),
        'category_trend': trend_table.long,
        'category_trend_changes': trend_table.changes,
        'category_shares': category_shares(full_sets),
        'spend_shares': spend_shares(classified),
        'headcount_vs_enrollment': headcount_vs_enrollment(classified, config.enrollment),
        'unmatched_titles': unmatched_titles(classified),
        'match_rules': match_rule_counts(classified),
        'data_quality': summarize_issues(classified, trend_table),
        'degraded_fields': degraded_field_counts(classified),
        'classified_records': records_frame(classified),
    }


# --------------------------------------------------------------------------------------
# Main analysis function
# --------------------------------------------------------------------------------------

def run_analysis(config: ProjectConfig, settings: ReportSettings = None):
    """
    Main execution function for the compensation report.

    Config keys (see calcomp.settings.ProjectConfig):
        input_files: {year: csv path} -> one payroll export per year
        mapping_file: str -> curated {Title, Category, Academic} CSV
        output_dir: str -> subfolder for outputs
        agency: str -> keep only rows of this employer when the file has an Agency column
        value_field: str -> compensation field to average (default total_pay)
        min_count / min_mean: optional noise filters for the reported aggregates
        enrollment: {year: students} -> for headcount vs enrollment
        classification: fallback rule lists (rank modifiers, department suffixes)
    """
    settings = settings or ReportSettings()

    # ==============================================================================
    # CONFIGURATION & CONSTANTS
    # ==============================================================================
    PROJECT_NAME = config.output_dir
    warnings.filterwarnings("ignore", category=FutureWarning)

    # --- Output Directories ---
    OUTPUT_BASE_DIR = str(settings.output_base_dir)
    OUTPUT_CSV_DIR = os.path.join(OUTPUT_BASE_DIR, PROJECT_NAME, 'csv_reports')
    OUTPUT_EXCEL_DIR = os.path.join(OUTPUT_BASE_DIR, PROJECT_NAME, 'excel_reports')
    OUTPUT_CHARTS_DIR = os.path.join(OUTPUT_BASE_DIR, PROJECT_NAME, 'charts')
    os.makedirs(OUTPUT_CSV_DIR, exist_ok=True)
    os.makedirs(OUTPUT_EXCEL_DIR, exist_ok=True)
    os.makedirs(OUTPUT_CHARTS_DIR, exist_ok=True)

    # Dictionary to store all calculated DataFrames for later visualization
    calculated_dfs = {}

    def _export_df(df_to_export: pd.DataFrame, base_filename: str):
        export_dataframe(df_to_export, base_filename, OUTPUT_CSV_DIR, OUTPUT_EXCEL_DIR, EXPORT_COLUMN_NAMES)
        logger.debug(f"Exported DataFrame -> base='{base_filename}' into CSV/Excel directories.")

        if not df_to_export.empty:
            calculated_dfs[base_filename] = df_to_export

    console.print(
        Panel.fit(
            f"[phase]Compensation Report[/phase]\n"
            f"[muted]{config.description or PROJECT_NAME}[/muted]\n"
            f"[muted]Years:[/muted] [bold]{', '.join(str(y) for y in config.years)}[/bold]\n"
            f"[muted]Project folder:[/muted] [bold]{os.path.join(OUTPUT_BASE_DIR, PROJECT_NAME)}[/bold]",
            border_style="bright_cyan",
            title="Initialization",
            subtitle="Ready to analyze",
        )
    )

    timings = {}
    t_start = time.perf_counter()

    # ==============================================================================
    # PHASE 1: DATA LOADING AND NORMALIZATION
    # ==============================================================================
    console.print(Rule(title="[phase]Phase 1: Loading & Normalization[/phase]", style="bright_cyan"))
    t_phase1 = time.perf_counter()

    mapping = load_mapping(config.mapping_file, encoding=config.csv.encoding)
    records_by_year = {}

    with Progress(
        SpinnerColumn(spinner_name="simpleDots", style="bright_magenta"),
        TextColumn("[progress.description]{task.description}", style="bright_magenta"),
        BarColumn(bar_width=None, style="blue", complete_style="cyan", finished_style="green"),
        TextColumn("{task.completed}/{task.total} • "),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    ) as prep_progress:
        prep_task = prep_progress.add_task("[bold magenta]Loading yearly files[/]", total=len(config.years))
        for year in config.years:
            try:
                records_by_year[year] = load_year(
                    config.input_files[year],
                    year,
                    agency=config.agency,
                    sep=config.csv.sep,
                    encoding=config.csv.encoding,
                    encoding_errors=config.csv.encoding_errors,
                )
            except (FileNotFoundError, ValueError) as e:
                console.print(
                    Panel.fit(
                        f"[error]{e}[/error]",
                        border_style="red",
                        title=f"Input error ({year})",
                    )
                )
                raise
            prep_progress.advance(prep_task)

    n_records = sum(len(v) for v in records_by_year.values())
    n_degraded = sum(1 for v in records_by_year.values() for r in v if r.degraded)
    console.print(
        Panel.fit(
            f"[good]{n_records:,} records normalized[/good]\n"
            f"[muted]Degraded rows:[/muted] {n_degraded:,}\n"
            f"[muted]Mapping:[/muted] {len(mapping):,} titles in {len(mapping.categories)} categories",
            title="Data prepared",
            border_style="green",
        )
    )
    timings["phase_1_load"] = time.perf_counter() - t_phase1
    logger.success(f"Phase 1 completed in {timings['phase_1_load']:.2f}s")

    # ==============================================================================
    # PHASE 2: CLASSIFICATION, AGGREGATION & TRENDS
    # ==============================================================================
    console.print(Rule(title="[phase]Phase 2: Classification & Aggregation[/phase]", style="bright_cyan"))
    t_phase2 = time.perf_counter()

    tables = build_report_tables(records_by_year, mapping, config)
    df_records = tables['classified_records']
    _show_dataset_snapshot(df_records, title="Classified records")

    console.print(Panel.fit("[question]-> Records resolved per match rule[/question]", border_style="cyan"))
    _show_frame_preview(tables['match_rules'], title="Match rules", max_rows=20)
    console.print(Rule(style="bright_black"))

    console.print(Panel.fit("[question]-> Academic share of total spend[/question]", border_style="cyan"))
    _show_frame_preview(tables['spend_shares'], title="Spend shares")
    console.print(Rule(style="bright_black"))

    console.print(Panel.fit("[question]-> Largest year-over-year changes[/question]", border_style="cyan"))
    df_changes = tables['category_trend_changes']
    if not df_changes.empty:
        top_changes = df_changes.dropna(subset=['mean_pct_change'])
        top_changes = top_changes.reindex(top_changes['mean_pct_change'].abs().sort_values(ascending=False).index)
        _show_frame_preview(top_changes, title="Mean pay change vs prior year")
    else:
        console.print("[muted]Only one year loaded, no year-over-year change to report.[/muted]")
    console.print(Rule(style="bright_black"))

    df_unmatched = tables['unmatched_titles']
    if not df_unmatched.empty:
        console.print(
            Panel.fit(
                f"[warn]{len(df_unmatched):,} titles ({int(df_unmatched['n'].sum()):,} records) are Unclassified.[/warn]\n"
                "Add them to the mapping file to refine the report.",
                title="Residual mismatches",
                border_style="yellow",
            )
        )
        _show_frame_preview(df_unmatched, title="Most frequent unmatched titles")

    timings["phase_2_report"] = time.perf_counter() - t_phase2
    logger.success(f"Phase 2 completed in {timings['phase_2_report']:.2f}s")

    # ==============================================================================
    # PHASE 3: EXPORT
    # ==============================================================================
    console.print(Rule(title="[phase]Phase 3: Exporting Reports[/phase]", style="bright_cyan"))
    t_phase3 = time.perf_counter()

    with Progress(
        SpinnerColumn(spinner_name="simpleDots", style="yellow"),
        TextColumn("[progress.description]{task.description}", style="bright_magenta"),
        BarColumn(bar_width=None, style="blue", complete_style="cyan", finished_style="green"),
        TextColumn("{task.completed}/{task.total} • "),
        TimeElapsedColumn(),
        console=console,
        transient=False,
    ) as export_progress:
        export_task = export_progress.add_task("[bold yellow]Report tables[/]", total=len(tables))
        for base_filename, df_table in tables.items():
            export_progress.update(export_task, description=f"[bold yellow]{REPORT_DESCRIPTIONS.get(base_filename, base_filename)}[/]")
            _export_df(df_table, base_filename)
            export_progress.advance(export_task)

    timings["phase_3_export"] = time.perf_counter() - t_phase3
    logger.success(f"Phase 3 completed in {timings['phase_3_export']:.2f}s")

    # ==============================================================================
    # PHASE 4: VISUALIZATION
    # ==============================================================================
    console.print(Rule(title="[phase]Phase 4: Generating Visualizations[/phase]", style="bright_cyan"))
    t_phase4 = time.perf_counter()

    for filename, df_data in calculated_dfs.items():
        generate_visualizations(filename, df_data, OUTPUT_CHARTS_DIR, logger)

    timings["phase_4_charts"] = time.perf_counter() - t_phase4
    logger.success("All visualizations have been generated.")

    # ==============================================================================
    # WRAP-UP: EXECUTION STATS AND OUTPUT OVERVIEW
    # ==============================================================================
    total_elapsed = time.perf_counter() - t_start
    console.print(Rule(title="[phase]Execution summary[/phase]", style="bright_cyan"))

    table = Table(title="Execution timings", show_header=True, header_style="bold")
    table.add_column("Step", style="muted")
    table.add_column("Elapsed", style="bold")
    table.add_row("Phase 1: Loading & Normalization", f"{timings['phase_1_load']:.2f}s")
    table.add_row("Phase 2: Classification & Aggregation", f"{timings['phase_2_report']:.2f}s")
    table.add_row("Phase 3: Export", f"{timings['phase_3_export']:.2f}s")
    table.add_row("Phase 4: Charts", f"{timings['phase_4_charts']:.2f}s")
    table.add_row("Total runtime", f"{total_elapsed:.2f}s")
    console.print(table)

    if not tables['data_quality'].empty:
        _show_frame_preview(tables['data_quality'], title="Data-quality issues", max_rows=30)

    _show_output_tree(
        output_root=os.path.join(OUTPUT_BASE_DIR, PROJECT_NAME),
        csv_dir=OUTPUT_CSV_DIR,
        excel_dir=OUTPUT_EXCEL_DIR,
        charts_dir=OUTPUT_CHARTS_DIR,
        title="Saved reports"
    )

    console.print(
        Panel.fit(
            "Report complete. All tabular outputs are saved to CSV/Excel.\n"
            "Notes:\n"
            f"- Averages use '{config.value_field}'.\n"
            "- Degraded rows stay in every count with their unreadable amounts as zero.\n"
            "- Empty percent changes mean the prior year has no data for that category.",
            title="Notes",
            border_style="cyan",
        )
    )

    console.print(
        Panel.fit(
            f"[good]Completed[/good] • Results in: [bold]{os.path.join(OUTPUT_BASE_DIR, PROJECT_NAME)}[/bold]",
            border_style="green",
        )
    )
    logger.success("All done.")
    return tables
