# main.py
# -*- coding: utf-8 -*-
"""
Main entry point for the compensation report.

This script orchestrates the execution of a report pipeline.

Usage:
    # Run the full report (normalize, classify, aggregate, trends, charts)
    python main.py uc_compensation

    # Run a primary, automated profile of the raw yearly files
    python main.py uc_compensation --primary

The config file defaults to ./config.yaml; set CALCOMP_CONFIG_PATH to use another one.
"""
import sys
import importlib
import argparse

from pydantic import ValidationError

from calcomp.settings import ReportSettings, load_project_config
from utils.primary_analyzer import perform_primary_analysis

sys.stdout.reconfigure(encoding='utf-8')

def main():
    """
    Orchestrates the execution of a specific report pipeline based on CLI arguments.
    """
    parser = argparse.ArgumentParser(
        description="Public Employee Compensation Report Runner",
        formatter_class=argparse.RawTextHelpFormatter
    )
    parser.add_argument(
        "project_key",
        type=str,
        help="The key of the project to run (e.g., 'uc_compensation')."
    )
    parser.add_argument(
        "-p", "--primary",
        action="store_true",
        help="If set, profiles the raw yearly files instead of building the report."
    )
    args = parser.parse_args()

    settings = ReportSettings()
    project_key = args.project_key
    try:
        project_config = load_project_config(project_key, settings.config_path)
    except FileNotFoundError:
        print(f"FATAL: {settings.config_path} not found. Run from the project root or set CALCOMP_CONFIG_PATH.")
        sys.exit(1)
    except KeyError as e:
        print(f"FATAL: {e.args[0]}")
        sys.exit(1)
    except ValidationError as e:
        print(f"FATAL: Invalid configuration for '{project_key}':\n{e}")
        sys.exit(1)

    if args.primary:
        print(f"--- Initializing PRIMARY EDA for: {project_key} ---")
        perform_primary_analysis(project_config, project_key)
        print(f"--- Primary EDA for '{project_key}' completed successfully! ---")

    else:
        print(f"--- Initializing compensation report for: {project_key} ---")
        print(f"Description: {project_config.description}")

        missing = [str(p) for p in project_config.input_files.values() if not p.exists()]
        if not project_config.mapping_file.exists():
            missing.append(str(project_config.mapping_file))
        if missing:
            print(f"FATAL: Input file(s) not found: {missing}. Check config.yaml.")
            sys.exit(1)

        try:
            analysis_module = importlib.import_module(project_config.analysis_module)
            print(f"Successfully imported module: {project_config.analysis_module}")
        except ImportError as e:
            print(f"FATAL: Could not import analysis module '{project_config.analysis_module}'. Error: {e}")
            sys.exit(1)

        try:
            analysis_module.run_analysis(project_config, settings)
            print(f"--- Report for '{project_key}' completed successfully! ---")
        except (ValueError, OSError) as e:
            print(f"FATAL: An error occurred during the analysis execution. Error: {e}")
            sys.exit(1)

if __name__ == '__main__':
    main()
