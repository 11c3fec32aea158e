import pytest


def _build_grid(subjects, students, subheaders=None):
    """Return a score-sheet grid.

    *subjects* is a list of header names, *students* a list of
    ``(roll_number, name, [(class, exam), ...])`` tuples.
    """

    header = ["roll_number", "student_name"]
    sub = ["", ""]
    for idx, name in enumerate(subjects):
        header.extend([name, ""])
        labels = subheaders[idx] if subheaders and subheaders[idx] else ("class_score", "exam_score")
        sub.extend(labels)
    rows = [header, sub]
    for roll, name, scores in students:
        row = [roll, name]
        for class_score, exam_score in scores:
            row.extend([class_score, exam_score])
        rows.append(row)
    return rows


@pytest.fixture
def build_grid():
    return _build_grid


@pytest.fixture
def jhs_grid(build_grid):
    subjects = [
        "English (CORE)",
        "Mathematics (CORE)",
        "Science (CORE)",
        "Social Studies (CORE)",
        "RME (ELECTIVE)",
        "ICT (ELECTIVE)",
        "French (ELECTIVE)",
    ]
    students = [
        (1, "Ama Mensah", [(30, 50), (30, 50), (30, 50), (30, 50), (20, 50), (20, 40), (25, 50)]),
        (2, "Kofi Boateng", [(20, 40), (25, 45), (15, 30), (28, 60), (10, 20), (30, 70), (12, 33)]),
        (3, "Yaw Asante", [(30, 50), (30, 50), (30, 50), (30, 50), (20, 50), (20, 40), (25, 50)]),
    ]
    return build_grid(subjects, students)
