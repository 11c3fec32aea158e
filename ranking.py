"""Roster-wide class and subject positions."""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable, List, Sequence

import pandas as pd

from records import StudentRecord, SubjectDescriptor

ORDINAL_SUFFIXES = {1: "st", 2: "nd", 3: "rd"}


def ordinal(n: int) -> str:
    """Return ``n`` with its English ordinal suffix (1st, 2nd, 11th, 21st...)."""

    n = int(n)
    if 10 <= n % 100 <= 20:
        return f"{n}th"
    return f"{n}{ORDINAL_SUFFIXES.get(n % 10, 'th')}"


def competition_ranks(values: Iterable[float]) -> List[int]:
    """Rank *values* highest first; ties share the best rank and the next
    distinct value takes its sorted position (1, 1, 3)."""

    series = pd.Series(list(values), dtype=float)
    if series.empty:
        return []
    return series.rank(method="min", ascending=False).astype(int).tolist()


def rank_students(
    students: Sequence[StudentRecord],
    subjects: Sequence[SubjectDescriptor],
) -> List[StudentRecord]:
    """Return copies of *students* with class and subject positions filled in.

    Needs the whole roster at once; the input records are left untouched.
    """

    students = list(students)
    if not students:
        return []

    subject_keys = [f"subject_{i}" for i in range(len(subjects))]
    totals = pd.DataFrame(
        [
            [student.overall_total] + [student.results[i].total for i in range(len(subjects))]
            for student in students
        ],
        columns=["overall_total"] + subject_keys,
    )
    ranks = totals.rank(method="min", ascending=False).astype(int)

    ranked: List[StudentRecord] = []
    for idx, student in enumerate(students):
        results = tuple(
            replace(result, position=ordinal(ranks.at[idx, subject_keys[i]]))
            for i, result in enumerate(student.results)
        )
        ranked.append(
            replace(
                student,
                results=results,
                class_position=ordinal(ranks.at[idx, "overall_total"]),
            )
        )
    return ranked
