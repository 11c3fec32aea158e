"""One-page-per-student PDF report cards."""

from __future__ import annotations

import datetime
import os
from typing import List, Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Image, PageBreak, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from grading import GRADE_BANDS, Mode
from records import StudentRecord, SubjectDescriptor
from report_engine import ProcessingResult

HEADER_FILL = colors.HexColor("#1F3864")
INFO_FILL = colors.HexColor("#F0F0F0")
LOGO_SIZE = 20 * mm
PAGE_MARGIN = 18 * mm
CONTENT_WIDTH = A4[0] - 2 * PAGE_MARGIN


def _info_value(value) -> str:
    return "N/A" if value is None or value == "" else str(value)


def _subject_label(subject: SubjectDescriptor) -> str:
    label = subject.name.upper()
    return f"{label} ({subject.category})" if subject.category else label


def _grading_key(mode: Mode) -> str:
    parts = [f"{grade}: {lower}+ {remark}" for lower, grade, remark, _ in GRADE_BANDS[mode]]
    return "Grading key - " + "; ".join(parts)


def _student_page(
    student: StudentRecord,
    result: ProcessingResult,
    styles,
    school_name: str,
    class_name: str,
    academic_year: str,
    logo_path: Optional[str] = None,
) -> List:
    mode = result.mode
    show_grade = mode is not Mode.PRIMARY
    elems: List = []

    title_style = ParagraphStyle("SchoolName", parent=styles["Title"], fontSize=18, spaceAfter=2)
    title = Paragraph(escape((school_name or "School Name").upper()), title_style)
    if logo_path:
        logo = Image(logo_path, width=LOGO_SIZE, height=LOGO_SIZE)
        header_tbl = Table([[logo, title]], colWidths=[LOGO_SIZE + 6 * mm, CONTENT_WIDTH - LOGO_SIZE - 6 * mm])
        header_tbl.setStyle(TableStyle([
            ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
            ('ALIGN', (0, 0), (0, 0), 'LEFT'),
        ]))
        elems.append(header_tbl)
    else:
        elems.append(title)
    elems.append(Paragraph("Academic Report Card", styles["Heading2"]))
    subtitle = " | ".join(p for p in [class_name or "Academic Year", academic_year] if p)
    elems.append(Paragraph(escape(subtitle), styles["Normal"]))
    elems.append(Spacer(1, 10))

    position = student.class_position
    info = [
        ["STUDENT NAME", _info_value(student.student_name), "ROLL NUMBER", _info_value(student.roll_number)],
        [
            "CLASS",
            class_name or "-",
            "CLASS POSITION",
            f"{position} of {len(result.students)}" if position else "N/A",
        ],
        ["OVERALL TOTAL", str(student.overall_total), "", ""],
    ]
    if show_grade:
        info[2][2:] = ["AGGREGATE", _info_value(student.aggregate_score)]
    info_tbl = Table(info, colWidths=[32 * mm, 55 * mm, 32 * mm, 55 * mm])
    info_tbl.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (0, -1), INFO_FILL),
        ('BACKGROUND', (2, 0), (2, -1), INFO_FILL),
        ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
        ('FONTNAME', (2, 0), (2, -1), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 8),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
        ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
    ]))
    elems.append(info_tbl)
    elems.append(Spacer(1, 12))

    header = ["SUBJECT", "CLASS", "EXAM", "TOTAL"]
    if show_grade:
        header.append("GRADE")
    header.extend(["REMARK", "POSITION"])
    data = [header]
    for subject, subject_result in zip(result.subjects, student.results):
        row = [
            Paragraph(escape(_subject_label(subject)), styles["Normal"]),
            subject_result.class_score,
            subject_result.exam_score,
            subject_result.total,
        ]
        if show_grade:
            row.append(subject_result.grade)
        row.extend([subject_result.remark, subject_result.position or "-"])
        data.append(row)

    tbl = Table(data, repeatRows=1)
    tbl.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), HEADER_FILL),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 8),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.black),
        ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
        ('ALIGN', (1, 0), (-1, -1), 'CENTER'),
        ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, INFO_FILL]),
    ]))
    elems.append(tbl)
    elems.append(Spacer(1, 16))

    boxes = Table(
        [["Class Teacher's Comment", ""], ["Class Teacher's Signature", "Headteacher's Signature"]],
        colWidths=[87 * mm, 87 * mm],
        rowHeights=[22 * mm, 18 * mm],
    )
    boxes.setStyle(TableStyle([
        ('SPAN', (0, 0), (1, 0)),
        ('BOX', (0, 0), (-1, -1), 0.5, colors.grey),
        ('INNERGRID', (0, 0), (-1, -1), 0.5, colors.grey),
        ('VALIGN', (0, 0), (-1, -1), 'TOP'),
        ('FONTSIZE', (0, 0), (-1, -1), 8),
    ]))
    elems.append(boxes)
    elems.append(Spacer(1, 10))
    elems.append(Paragraph(_grading_key(mode), styles["Italic"]))
    elems.append(Paragraph(f'Generated: {datetime.datetime.now().strftime("%Y-%m-%d %H:%M")}', styles["Normal"]))
    return elems


def render_report_cards(
    out,
    result: ProcessingResult,
    school_name: str = "",
    class_name: str = "",
    academic_year: str = "",
    logo_path: Optional[str] = None,
) -> None:
    """Build the report card PDF into *out* (a path or a binary file object).

    *logo_path*, when given, must point to an image file; it is printed
    beside the school name on every page.
    """

    if logo_path and not os.path.isfile(logo_path):
        raise FileNotFoundError(f"Logo not found: {logo_path}")
    if isinstance(out, str):
        os.makedirs(os.path.dirname(out) or '.', exist_ok=True)
    doc = SimpleDocTemplate(
        out,
        pagesize=A4,
        leftMargin=PAGE_MARGIN,
        rightMargin=PAGE_MARGIN,
        topMargin=16 * mm,
        bottomMargin=16 * mm,
        title=f"{class_name or 'Class'} Report Cards",
        author=school_name or "School",
    )
    styles = getSampleStyleSheet()
    elems: List = []

    if not result.students:
        elems.append(Paragraph('No student records to report.', styles['Normal']))

    for idx, student in enumerate(result.students):
        if idx:
            elems.append(PageBreak())
        elems.extend(
            _student_page(student, result, styles, school_name, class_name, academic_year, logo_path)
        )

    doc.build(elems)


def report_cards_filename(class_name: Optional[str] = None) -> str:
    stem = (class_name or "class").strip().replace(" ", "_").lower() or "class"
    return f"{stem}_report_cards.pdf"
