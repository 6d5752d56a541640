# -*- coding: utf-8 -*-
"""
Utility functions for data input/output operations.
"""
import os
import pandas as pd
from loguru import logger


def export_dataframe(df_to_export, base_filename, output_csv_dir, output_excel_dir, column_map):
    """
    Saves a report table to both CSV and Excel with reader-friendly column names.

    Returns the list of files actually written.
    """
    df_export_copy = df_to_export.rename(columns=column_map)

    os.makedirs(output_csv_dir, exist_ok=True)
    os.makedirs(output_excel_dir, exist_ok=True)

    csv_path = os.path.join(output_csv_dir, f"{base_filename}.csv")
    excel_path = os.path.join(output_excel_dir, f"{base_filename}.xlsx")

    df_export_copy.to_csv(csv_path, index=False, encoding='utf-8')
    written = [csv_path]

    # Excel sheet names are capped at 31 characters
    try:
        df_export_copy.to_excel(excel_path, index=False, sheet_name=base_filename[:31])
        written.append(excel_path)
    except (ImportError, ValueError, OSError) as e:
        logger.warning(f"Could not save Excel file for '{base_filename}'. Make sure 'openpyxl' is installed. Error: {e}")
    return written
