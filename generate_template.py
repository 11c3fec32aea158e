#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Write a blank score-sheet template (with sample rows and instructions)."""

from __future__ import annotations

import argparse
import os
from typing import Sequence

from grading import Mode
from template import SAMPLE_STUDENTS, template_filename, write_template


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--mode",
        type=str.upper,
        choices=[m.value for m in Mode],
        default=Mode.PRIMARY.value,
        help="School level the template is for (default: %(default)s)",
    )
    parser.add_argument(
        "--output",
        default=None,
        help="Destination .xlsx path (default: student_report_template_<mode>_<date>.xlsx)",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=len(SAMPLE_STUDENTS),
        help="Number of sample student rows (default: %(default)s)",
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed for sample scores")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    mode = Mode.parse(args.mode)
    output = args.output or os.path.join(os.getcwd(), template_filename(mode))

    if args.samples < 0:
        print("[ERROR] --samples must not be negative")
        return 1

    write_template(output, mode, sample_students=args.samples, seed=args.seed)
    print(f"[INFO] Wrote {mode.value} template to: {output}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
