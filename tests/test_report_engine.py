import pandas as pd
import pytest

from grading import Mode
from records import ISSUE_NO_SUBJECTS, ISSUE_ROW_SKIP, ISSUE_SUBJECT_FORMAT
from report_engine import (
    EmptyResultError,
    NoSubjectsError,
    StructuralError,
    clean_subject_name,
    detect_core_flag,
    parse_header,
    preview_metadata,
    process_grid,
    summarize_issues,
    validate_identifier_columns,
)


def test_parse_header_reads_markers_and_columns():
    header = ["roll_number", "student_name", "English (CORE)", "", "ICT (elective)", "", "Art", ""]
    sub = ["", "", "class_score", "exam_score", "CLASS_SCORE", "Exam_Score", "class_score", "exam_score"]
    subjects, issues = parse_header(header, sub, Mode.JHS)

    assert issues == []
    assert [s.name for s in subjects] == ["English", "ICT", "Art"]
    assert [s.raw_name for s in subjects] == ["English (CORE)", "ICT (elective)", "Art"]
    assert [s.is_core for s in subjects] == [True, False, None]
    assert [(s.class_column, s.exam_column) for s in subjects] == [(2, 3), (4, 5), (6, 7)]


def test_primary_ignores_markers():
    subjects, _ = parse_header(
        ["roll_number", "student_name", "English (CORE)", ""],
        ["", "", "class_score", "exam_score"],
        Mode.PRIMARY,
    )
    assert subjects[0].is_core is None
    assert subjects[0].name == "English"


def test_core_marker_wins_and_all_markers_are_stripped():
    assert detect_core_flag("Maths (elective) (CORE)", Mode.SHS) is True
    assert clean_subject_name("Maths (elective) (CORE)") == "Maths"
    assert clean_subject_name("  Social Studies(CORE) ") == "Social Studies"


def test_bad_subheaders_skip_only_that_subject():
    header = ["roll_number", "student_name", "English", "", "Maths", "", "Science", ""]
    sub = ["", "", "class_score", "exam_score", "exam_score", "class_score", "class_score", ""]
    subjects, issues = parse_header(header, sub, Mode.PRIMARY)

    assert [s.name for s in subjects] == ["English"]
    assert [i.kind for i in issues] == [ISSUE_SUBJECT_FORMAT, ISSUE_SUBJECT_FORMAT]
    assert 'Subject "Maths" (column 5)' in issues[0].message
    assert '"exam_score" and "class_score"' in issues[0].message
    assert '"class_score" and "(empty)"' in issues[1].message
    assert issues[1].column == 7


def test_repeated_display_name_keeps_first_subject(build_grid):
    grid = build_grid(
        ["English (CORE)", "Maths", "english (ELECTIVE)"],
        [(1, "Ama", [(30, 70), (10, 10), (0, 0)])],
    )
    result = process_grid(grid, Mode.JHS)

    assert [s.raw_name for s in result.subjects] == ["English (CORE)", "Maths"]
    assert [i.kind for i in result.warnings] == [ISSUE_SUBJECT_FORMAT]
    assert result.warnings[0].column == 7
    assert "already appears" in result.warnings[0].message
    student = result.students[0]
    assert student.result_for("English").total == 100
    assert student.overall_total == 120


def test_no_subjects_adds_advisory_issue():
    subjects, issues = parse_header(["roll_number", "student_name", "", ""], ["", "", "", ""], Mode.SHS)
    assert subjects == []
    assert [i.kind for i in issues] == [ISSUE_NO_SUBJECTS]


@pytest.mark.parametrize(
    "header",
    [
        ["student_name", "roll_number"],
        ["roll_number"],
        ["Roll Number", "Student Name"],
    ],
)
def test_identifier_columns_are_checked(header):
    with pytest.raises(StructuralError) as excinfo:
        validate_identifier_columns(header)
    assert 'Row 1 must start with "roll_number" and "student_name"' in str(excinfo.value)


def test_identifier_columns_are_case_insensitive():
    validate_identifier_columns([" ROLL_NUMBER ", "Student_Name", "English"])


def test_grid_shorter_than_three_rows_is_structural(build_grid):
    grid = build_grid(["English"], [])
    with pytest.raises(StructuralError):
        preview_metadata(grid, Mode.PRIMARY)
    with pytest.raises(StructuralError):
        process_grid(grid, Mode.PRIMARY)


def test_preview_counts_rows_without_scoring(build_grid):
    grid = build_grid(
        ["English", "Maths"],
        [(1, "Ama", [(10, 10), (10, 10)]), (None, "", [("", ""), ("", "")]), (2, None, [(5, 5), (5, 5)])],
        subheaders=[None, ("class_score", "score")],
    )
    meta = preview_metadata(grid, "primary")
    assert meta.total_student_rows == 2
    assert [s.name for s in meta.subjects] == ["English"]
    assert [i.kind for i in meta.warnings] == [ISSUE_SUBJECT_FORMAT]


def test_preview_reports_missing_subjects_as_warning(build_grid):
    grid = build_grid(["English"], [(1, "Ama", [(1, 1)])], subheaders=[("a", "b")])
    meta = preview_metadata(grid, Mode.PRIMARY)
    assert meta.subjects == []
    assert ISSUE_NO_SUBJECTS in [i.kind for i in meta.warnings]


def test_processing_without_subjects_is_fatal(build_grid):
    grid = build_grid(["English"], [(1, "Ama", [(1, 1)])], subheaders=[("a", "b")])
    with pytest.raises(NoSubjectsError):
        process_grid(grid, Mode.PRIMARY)


def test_primary_english_scenario(build_grid):
    grid = build_grid(["English"], [(1, "Ama", [(25, 60)])])
    result = process_grid(grid, Mode.PRIMARY)
    english = result.students[0].result_for("English")

    assert (english.class_score, english.exam_score, english.total) == (25, 60, 85)
    assert (english.grade, english.remark) == (1, "Excellent")
    assert result.students[0].aggregate_score is None
    assert result.students[0].class_position == "1st"
    assert english.position == "1st"


def test_jhs_records(jhs_grid):
    result = process_grid(jhs_grid, Mode.JHS)
    by_name = {s.student_name: s for s in result.students}

    assert by_name["Ama Mensah"].aggregate_score == 9
    assert by_name["Kofi Boateng"].aggregate_score == 24
    assert by_name["Ama Mensah"].overall_total == 525
    assert by_name["Kofi Boateng"].overall_total == 438
    assert [s.class_position for s in result.students] == ["1st", "3rd", "1st"]
    assert by_name["Kofi Boateng"].result_for("ICT").position == "1st"
    assert result.warnings == []


def test_shs_grades_are_letter_codes(build_grid):
    grid = build_grid(
        ["English (CORE)", "Maths (CORE)", "Science (CORE)", "Biology (ELECTIVE)"],
        [(7, "Efua", [(30, 52), (20, 50), (14, 31), (0, 0)])],
    )
    student = process_grid(grid, Mode.SHS).students[0]
    assert [r.grade for r in student.results] == ["A1", "B3", "E8", "F9"]
    assert student.aggregate_score == 1 + 3 + 8 + 9


def test_jhs_without_enough_core_has_no_aggregate(build_grid):
    grid = build_grid(
        ["English (CORE)", "Maths (CORE)", "Science (CORE)", "ICT (ELECTIVE)", "RME"],
        [(1, "Ama", [(30, 70)] * 5)],
    )
    assert process_grid(grid, Mode.JHS).students[0].aggregate_score is None


def test_row_without_roll_number_is_skipped(build_grid):
    students = [
        (1, "Ama", [(25, 50)]),
        (None, "Kofi", [(30, 70)]),
        (3, "Yaw", [(20, 50)]),
        (4, "Esi", [(25, 50)]),
    ]
    result = process_grid(build_grid(["English"], students), Mode.PRIMARY)

    assert [s.student_name for s in result.students] == ["Ama", "Yaw", "Esi"]
    assert [s.class_position for s in result.students] == ["1st", "3rd", "1st"]
    assert len(result.warnings) == 1
    skip = result.warnings[0]
    assert skip.kind == ISSUE_ROW_SKIP
    assert skip.row == 4
    assert skip.message == "Row 4 (Kofi): missing roll number - skipped."


def test_row_without_name_is_skipped(build_grid):
    result = process_grid(
        build_grid(["English"], [(1, "  ", [(1, 1)]), (2, "Yaw", [(2, 2)])]),
        Mode.PRIMARY,
    )
    assert [s.student_name for s in result.students] == ["Yaw"]
    assert result.warning_messages == ["Row 3: missing student name - skipped."]


def test_blank_rows_are_ignored(build_grid):
    grid = build_grid(["English"], [(1, "Ama", [(10, 10)])])
    grid.insert(2, [None, "", float("nan"), "  "])
    grid.append([])
    result = process_grid(grid, Mode.PRIMARY)
    assert len(result.students) == 1
    assert result.students[0].source_row == 4
    assert result.warnings == []


def test_only_blank_rows_is_empty_result(build_grid):
    grid = build_grid(["English"], [])
    grid.append(["", "", "", ""])
    with pytest.raises(EmptyResultError):
        process_grid(grid, Mode.PRIMARY)


def test_all_rows_skipped_is_empty_result(build_grid):
    grid = build_grid(["English"], [(None, "Ama", [(10, 10)]), (2, "", [(10, 10)])])
    with pytest.raises(EmptyResultError):
        process_grid(grid, Mode.PRIMARY)


def test_invalid_scores_become_zero(build_grid):
    grid = build_grid(["English"], [(1, "Ama", [("abs", 95)])])
    english = process_grid(grid, Mode.PRIMARY).students[0].result_for("English")
    assert (english.class_score, english.exam_score, english.total) == (0, 70, 70)


def test_short_rows_are_padded(build_grid):
    grid = build_grid(["English", "Maths"], [])
    grid.append([1, "Ama", 20])
    student = process_grid(grid, Mode.PRIMARY).students[0]
    assert [r.total for r in student.results] == [20, 0]


def test_duplicate_roll_numbers_pass_through(build_grid):
    grid = build_grid(["English"], [(5, "Ama", [(1, 1)]), (5, "Kofi", [(2, 2)])])
    result = process_grid(grid, Mode.PRIMARY)
    assert [s.roll_number for s in result.students] == [5, 5]


def test_progress_reports_every_data_row(build_grid):
    grid = build_grid(
        ["English"],
        [(1, "Ama", [(1, 1)]), (None, "Kofi", [(1, 1)]), (3, "Yaw", [(1, 1)])],
    )
    calls = []
    process_grid(grid, Mode.PRIMARY, on_progress=lambda done, total: calls.append((done, total)))
    assert calls == [(1, 3), (2, 3), (3, 3)]


def test_dataframe_input_matches_list_input(jhs_grid):
    frame = pd.DataFrame(jhs_grid)
    frame.iloc[2, 0] = 1.0
    from_frame = process_grid(frame, Mode.JHS)
    from_list = process_grid(jhs_grid, Mode.JHS)

    assert from_frame.students[0].roll_number == 1
    assert [s.overall_total for s in from_frame.students] == [s.overall_total for s in from_list.students]
    assert [s.class_position for s in from_frame.students] == [s.class_position for s in from_list.students]


def test_subject_warnings_survive_alongside_results(build_grid):
    grid = build_grid(
        ["English", "Maths"],
        [(1, "Ama", [(10, 10), (10, 10)])],
        subheaders=[None, ("exam_score", "class_score")],
    )
    result = process_grid(grid, Mode.PRIMARY)
    assert [s.name for s in result.subjects] == ["English"]
    assert [i.kind for i in result.warnings] == [ISSUE_SUBJECT_FORMAT]


def test_summarize_issues_caps_output(build_grid):
    students = [(None, f"Student {i}", [(1, 1)]) for i in range(12)] + [(99, "Ama", [(1, 1)])]
    result = process_grid(build_grid(["English"], students), Mode.PRIMARY)

    assert len(result.warnings) == 12
    lines = summarize_issues(result.warnings, limit=5)
    assert len(lines) == 6
    assert lines[-1] == "... and 7 more issue(s)."
    assert summarize_issues(result.warnings, limit=20) == result.warning_messages
