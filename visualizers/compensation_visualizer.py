# -*- coding: utf-8 -*-
"""
Generates and saves charts from the compensation report tables.

Each plotting function takes one report DataFrame produced by
`analyses.uc_compensation` and writes one or more PNGs. The router at the
bottom maps report names to plotters, so the analysis only has to hand over
whatever tables it exported.
"""
import pandas as pd
import matplotlib.pyplot as plt
import seaborn as sns

from calcomp.constants import ACADEMIC_LABEL, NON_ACADEMIC_LABEL
from utils.plotting import chart_filename, format_currency_axis, format_percent_axis, save_matplotlib_figure

# --- Global Plotting Style Configuration ---
sns.set_theme(style="whitegrid")
plt.rcParams['figure.figsize'] = (12, 7)
plt.rcParams['axes.titlesize'] = 16
plt.rcParams['axes.labelsize'] = 12

ACADEMIC_PALETTE = {ACADEMIC_LABEL: "tab:blue", NON_ACADEMIC_LABEL: "tab:orange"}


def _get_plot_data(df_input: pd.DataFrame, sort_by_col: str, max_categories: int = 20) -> tuple[pd.DataFrame, bool]:
    """
    Keeps the `max_categories` largest categories by `sort_by_col` (summed over
    years) so bar charts stay readable. Returns the trimmed frame and whether
    anything was dropped.
    """
    if df_input['category'].nunique() <= max_categories:
        return df_input, False
    top = (
        df_input.groupby('category')[sort_by_col].sum()
        .sort_values(ascending=False)
        .head(max_categories)
        .index
    )
    return df_input[df_input['category'].isin(top)], True


def plot_average_pay_by_category(df_aggregates: pd.DataFrame, output_dir: str, filename: str):
    """Mean compensation per category, one bar per year."""
    df_plot, was_trimmed = _get_plot_data(df_aggregates, sort_by_col='count', max_categories=20)
    df_plot = df_plot.sort_values('mean', ascending=False).assign(year=lambda d: d['year'].astype(str))
    value_field = df_plot['value_field'].iloc[0] if 'value_field' in df_plot else 'total_pay'

    fig, ax = plt.subplots(figsize=(12, max(6, 0.45 * df_plot['category'].nunique() + 2)))
    sns.barplot(data=df_plot, y='category', x='mean', hue='year', palette='viridis', ax=ax, orient='h')

    title = f"Average {value_field.replace('_', ' ')} by Category"
    if was_trimmed:
        title += '\n(20 largest categories by headcount)'
    ax.set_title(title)
    ax.set_xlabel('Mean ($)')
    ax.set_ylabel('Category')
    format_currency_axis(ax, axis='x')

    return save_matplotlib_figure(fig, filename, output_dir)


def plot_spend_shares(df_shares: pd.DataFrame, output_dir: str, filename: str):
    """Stacked academic / non-academic share of total spend per year."""
    df_plot = df_shares.dropna(subset=['academic_share']).copy()
    if df_plot.empty:
        return None
    df_plot['year'] = df_plot['year'].astype(str)

    fig, ax = plt.subplots(figsize=(10, 6))
    ax.bar(df_plot['year'], df_plot['academic_share'], label=ACADEMIC_LABEL,
           color=ACADEMIC_PALETTE[ACADEMIC_LABEL])
    ax.bar(df_plot['year'], df_plot['non_academic_share'], bottom=df_plot['academic_share'],
           label=NON_ACADEMIC_LABEL, color=ACADEMIC_PALETTE[NON_ACADEMIC_LABEL])
    for x, share in zip(df_plot['year'], df_plot['academic_share']):
        ax.text(x, share / 2, f"{share:.1%}", ha='center', va='center', color='white', fontweight='bold')

    ax.set_title('Academic vs Non-academic Share of Total Pay')
    ax.set_xlabel('Year')
    ax.set_ylabel('Share of total pay')
    format_percent_axis(ax)
    ax.legend(loc='upper right')

    return save_matplotlib_figure(fig, filename, output_dir)


def plot_pay_density(df_records: pd.DataFrame, output_dir: str, filename: str):
    """Density of total pay for academic vs non-academic employees, one chart per year."""
    paths = []
    df_records = df_records.copy()
    df_records['group'] = df_records['academic'].map({True: ACADEMIC_LABEL, False: NON_ACADEMIC_LABEL})
    for year, df_year in df_records.groupby('year'):
        df_year = df_year[df_year['total_pay'] > 0]
        if len(df_year) < 2:
            continue
        fig, ax = plt.subplots(figsize=(11, 6))
        sns.kdeplot(data=df_year, x='total_pay', hue='group', palette=ACADEMIC_PALETTE,
                    common_norm=False, fill=True, alpha=0.3, warn_singular=False, ax=ax)
        ax.set_title(f'Distribution of Total Pay, {year}')
        ax.set_xlabel('Total pay ($)')
        ax.set_ylabel('Density')
        ax.set_xlim(left=0)
        format_currency_axis(ax, axis='x')
        paths.append(save_matplotlib_figure(fig, chart_filename(filename, year), output_dir))
    return paths


def plot_headcount_vs_enrollment(df_headcount: pd.DataFrame, output_dir: str, filename: str):
    """Headcount against student enrollment on twin axes."""
    df_plot = df_headcount.sort_values('year')
    fig, ax = plt.subplots(figsize=(10, 6))
    ax.plot(df_plot['year'], df_plot['headcount'], marker='o', label='Employees', color='tab:blue')
    ax.plot(df_plot['year'], df_plot['academic_headcount'], marker='s', linestyle='--',
            label='Academic employees', color='tab:cyan')
    ax.set_xlabel('Year')
    ax.set_ylabel('Headcount')
    ax.set_xticks(df_plot['year'])

    handles, labels = ax.get_legend_handles_labels()
    if df_plot['enrollment'].notna().any():
        ax2 = ax.twinx()
        ax2.plot(df_plot['year'], df_plot['enrollment'], marker='^', color='tab:red', label='Enrollment')
        ax2.set_ylabel('Students enrolled')
        ax2.grid(False)
        h2, l2 = ax2.get_legend_handles_labels()
        handles, labels = handles + h2, labels + l2
    ax.legend(handles, labels, loc='upper left')
    ax.set_title('Headcount vs Enrollment')

    return save_matplotlib_figure(fig, filename, output_dir)


def plot_mean_pct_change(df_changes: pd.DataFrame, output_dir: str, filename: str):
    """Year-over-year change of mean pay per category; transitions without prior data are skipped."""
    df_plot = df_changes.dropna(subset=['mean_pct_change']).copy()
    if df_plot.empty:
        return None
    df_plot, _ = _get_plot_data(df_plot, sort_by_col='count', max_categories=20)
    df_plot['year'] = df_plot['year'].astype(str)

    fig, ax = plt.subplots(figsize=(12, max(6, 0.45 * df_plot['category'].nunique() + 2)))
    sns.barplot(data=df_plot, y='category', x='mean_pct_change', hue='year', palette='rocket', ax=ax, orient='h')
    ax.axvline(0, color='k', linestyle='--')
    ax.set_title('Year-over-Year Change in Mean Pay by Category')
    ax.set_xlabel('Change vs prior year')
    ax.set_ylabel('Category')
    format_percent_axis(ax, axis='x')

    return save_matplotlib_figure(fig, filename, output_dir)


def plot_category_headcount_shares(df_shares: pd.DataFrame, output_dir: str, filename: str):
    """Stacked headcount share per category and year."""
    df_plot, _ = _get_plot_data(df_shares, sort_by_col='count', max_categories=12)
    pivot = df_plot.pivot_table(index='year', columns='category', values='headcount_share', aggfunc='sum').fillna(0)
    if pivot.empty:
        return None

    fig, ax = plt.subplots(figsize=(12, 7))
    pivot.plot(kind='bar', stacked=True, ax=ax, colormap='tab20', width=0.7)
    ax.set_title('Headcount Share by Category')
    ax.set_xlabel('Year')
    ax.set_ylabel('Share of headcount')
    format_percent_axis(ax)
    ax.legend(title='Category', bbox_to_anchor=(1.02, 1), loc='upper left')
    plt.xticks(rotation=0)

    return save_matplotlib_figure(fig, filename, output_dir)


def generate_visualizations(base_filename: str, df_current_report: pd.DataFrame, output_charts_dir: str, logger):
    """
    Acts as a router, calling the appropriate plotting function for the given report.

    Returns the written chart path(s), or None when the report has no chart.
    """
    PLOT_ROUTER = {
        'avg_pay_by_category': plot_average_pay_by_category,
        'spend_shares': plot_spend_shares,
        'classified_records': plot_pay_density,
        'headcount_vs_enrollment': plot_headcount_vs_enrollment,
        'category_trend_changes': plot_mean_pct_change,
        'category_shares': plot_category_headcount_shares,
    }

    if base_filename in PLOT_ROUTER:
        try:
            plot_function = PLOT_ROUTER[base_filename]
            return plot_function(df_current_report.copy(), output_charts_dir, base_filename)
        except Exception as e:
            logger.warning(f"Failed to generate chart for '{base_filename}'. Error: {e}")
    return None
