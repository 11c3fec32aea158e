#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Score a class score sheet and write ranked results plus PDF report cards.

Steps:

1. Reads the first worksheet of ``--input`` (two header rows + student rows).
2. Grades every subject under the selected mode (PRIMARY, JHS or SHS).
3. Ranks the whole class and each subject.
4. Writes ``report_results.xlsx``, CSV copies, a data-quality report and,
   unless ``--no-pdf`` is given, one report card page per student.

``--preview`` only prints the detected subjects and student row count.
"""
from __future__ import annotations

import argparse
import json
import os
from typing import Dict, Sequence

from grading import Mode
from report_cards import render_report_cards, report_cards_filename
from report_engine import preview_metadata, process_grid, summarize_issues
from report_io import read_grid, write_results

HERE = os.path.dirname(os.path.abspath(__file__))
DEFAULT_CONFIG = os.path.join(HERE, "config.json")
DEFAULT_MAX_WARNINGS = 10


def load_config(path: str) -> Dict:
    if not path or not os.path.isfile(path):
        return {}
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Compute grades, aggregates and positions from a class score sheet."
    )
    parser.add_argument("--input", required=True, help="Path to the score sheet (.xlsx or .csv)")
    parser.add_argument(
        "--mode",
        type=str.upper,
        choices=[m.value for m in Mode],
        default=None,
        help="School level; falls back to config.json, then PRIMARY",
    )
    parser.add_argument("--outdir", default=None, help="Directory for output files (default: outputs)")
    parser.add_argument("--config", default=DEFAULT_CONFIG, help="Path to the JSON configuration file")
    parser.add_argument("--school-name", default=None, help="School name printed on report cards")
    parser.add_argument("--class-name", default=None, help="Class name printed on report cards")
    parser.add_argument("--academic-year", default=None, help="Academic year printed on report cards")
    parser.add_argument("--logo", default=None, help="Image printed beside the school name on report cards")
    parser.add_argument("--no-pdf", action="store_true", help="Skip the report card PDF")
    parser.add_argument(
        "--preview",
        action="store_true",
        help="Only list detected subjects and the student row count",
    )
    return parser.parse_args(argv)


def print_issues(issues, limit: int) -> None:
    for message in summarize_issues(issues, limit):
        print(f"[WARN] {message}")


def run_preview(grid, mode: Mode, max_warnings: int) -> None:
    meta = preview_metadata(grid, mode)
    print(f"[INFO] Student rows: {meta.total_student_rows}")
    print(f"[INFO] Subjects detected: {len(meta.subjects)}")
    for subject in meta.subjects:
        tag = f" [{subject.category}]" if subject.category else ""
        print(f"         - {subject.name}{tag}")
    print_issues(meta.warnings, max_warnings)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    cfg = load_config(args.config)

    outdir = args.outdir or cfg.get("outdir", "outputs")
    school_name = args.school_name or cfg.get("school_name", "")
    class_name = args.class_name or cfg.get("class_name", "")
    academic_year = args.academic_year or cfg.get("academic_year", "")
    logo = args.logo or cfg.get("logo") or None
    max_warnings = int(cfg.get("max_warnings_displayed", DEFAULT_MAX_WARNINGS))
    write_pdf = cfg.get("write_pdf", True) and not args.no_pdf

    try:
        mode = Mode.parse(args.mode or cfg.get("mode", Mode.PRIMARY.value))
        if write_pdf and logo and not os.path.isfile(logo):
            raise FileNotFoundError(f"Logo not found: {logo}")
        grid = read_grid(args.input)
        print(f"[INFO] Read {len(grid)} rows from {args.input} (mode {mode.value})")

        if args.preview:
            run_preview(grid, mode, max_warnings)
            return 0

        def report_progress(done: int, total: int) -> None:
            if done == total or done % 50 == 0:
                print(f"[INFO] Scored {done}/{total} rows ({done / total:.0%})")

        result = process_grid(grid, mode, on_progress=report_progress)
    except (FileNotFoundError, ValueError) as exc:
        # ReportProcessingError is a ValueError, as is an unknown configured mode
        print(f"[ERROR] {exc}")
        return 1

    print(f"[INFO] {len(result.students)} students across {len(result.subjects)} subjects")
    print_issues(result.warnings, max_warnings)

    paths = write_results(result, outdir)
    for label, path in paths.items():
        print(f"[INFO] Wrote {label}: {path}")

    if write_pdf:
        pdf_path = os.path.join(outdir, report_cards_filename(class_name))
        render_report_cards(
            pdf_path,
            result,
            school_name=school_name,
            class_name=class_name,
            academic_year=academic_year,
            logo_path=logo,
        )
        print(f"[INFO] Wrote report cards: {pdf_path}")

    print("[SUCCESS] Report generation completed.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
