# coachdesk/reports.py
"""Dashboard aggregations computed from repository reads."""
import math
from typing import Dict, Iterable, List

from coachdesk import schemas
from coachdesk.errors import ReferenceNotFoundError


def percentage(part: int, total: int) -> int:
    # half-up, so 12.5 reads as 13
    return math.floor(part / total * 100 + 0.5) if total else 0


def class_name(storage, class_id: int) -> str:
    found = storage.get_class(class_id)
    if found is None:
        raise ReferenceNotFoundError("Class", class_id)
    return found.name


def summarize_attendance(records: Iterable[schemas.Attendance]) -> schemas.AttendanceSummary:
    summary = schemas.AttendanceSummary()
    for record in records:
        setattr(summary, record.status, getattr(summary, record.status) + 1)
        summary.total += 1
    summary.rate = percentage(summary.present, summary.total)
    return summary


def attendance_summary(storage, day) -> List[schemas.ClassAttendanceSummary]:
    """Per-class present/absent/late counts for one calendar day."""
    by_class: Dict[int, List[schemas.Attendance]] = {}
    for record in storage.get_attendance_by_date(day):
        by_class.setdefault(record.class_id, []).append(record)

    rows = []
    for class_id, records in by_class.items():
        counts = summarize_attendance(records)
        rows.append(schemas.ClassAttendanceSummary(
            class_id=class_id,
            class_name=class_name(storage, class_id),
            date=records[0].date,
            **counts.model_dump(),
        ))
    return rows


def installment_breakdown(storage) -> schemas.InstallmentBreakdown:
    paid = storage.get_installments_by_status("paid")
    pending = storage.get_installments_by_status("pending")
    overdue = storage.get_installments_by_status("overdue")
    total = len(paid) + len(pending) + len(overdue)
    return schemas.InstallmentBreakdown(
        paid=len(paid),
        pending=len(pending),
        overdue=len(overdue),
        total=total,
        paid_percentage=percentage(len(paid), total),
        pending_percentage=percentage(len(pending), total),
        overdue_percentage=percentage(len(overdue), total),
        amount_collected=sum(i.amount for i in paid),
        amount_outstanding=sum(i.amount for i in pending + overdue),
    )


def inventory_stats(notes: Iterable[schemas.PublicationNote]) -> schemas.InventoryStats:
    notes = list(notes)
    total_available = sum(n.available_stock for n in notes)
    total_stock = sum(n.total_stock for n in notes)
    return schemas.InventoryStats(
        total=len(notes),
        total_available=total_available,
        total_distributed=total_stock - total_available,
        low_stock=sum(1 for n in notes if n.available_stock <= n.low_stock_threshold),
    )
