"""
Per-student folds over already scope-filtered records.

Pure and side-effect free. A record whose student reference did not resolve
is skipped.
"""

from typing import Dict, Iterable, List

from app.core.enums import AttendanceStatus

from .schemas import AttendanceSummaryItem, AverageSummaryItem, ReportStudent

DEFAULT_MAX_SCORE = 100


def grade_percentage(score: float, max_score: float) -> float:
    """Unrounded; rounding happens once per summary."""
    return score / (max_score or DEFAULT_MAX_SCORE) * 100


def summarize_attendance(records: Iterable) -> List[AttendanceSummaryItem]:
    summary: Dict[str, AttendanceSummaryItem] = {}
    for record in records:
        for entry in record.entries:
            student = entry.student
            if student is None:
                continue
            key = str(student.id)
            if key not in summary:
                summary[key] = AttendanceSummaryItem(student=ReportStudent.model_validate(student))
            item = summary[key]
            status = AttendanceStatus(entry.status).value
            setattr(item, status, getattr(item, status) + 1)
            item.total += 1
    return list(summary.values())


def _averages(pairs: Iterable) -> List[AverageSummaryItem]:
    totals: Dict[str, list] = {}
    for student, value in pairs:
        key = str(student.id)
        if key not in totals:
            totals[key] = [student, 0.0, 0]
        totals[key][1] += value
        totals[key][2] += 1
    return [
        AverageSummaryItem(
            student=ReportStudent.model_validate(student),
            average=round(total / count, 2) if count else 0,
            records=count,
        )
        for student, total, count in totals.values()
    ]


def summarize_grades(grades: Iterable) -> List[AverageSummaryItem]:
    return _averages(
        (g.student, grade_percentage(g.score, g.max_score))
        for g in grades
        if g.student is not None
    )


def summarize_participation(records: Iterable) -> List[AverageSummaryItem]:
    return _averages(
        (r.student, r.score or 0)
        for r in records
        if r.student is not None
    )
