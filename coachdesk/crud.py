# coachdesk/crud.py
import logging
from datetime import date, datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from coachdesk import models

LOG = logging.getLogger(__name__)


# ---------- GENERIC HELPERS ----------
def get_row(db: Session, model, row_id: int):
    return db.get(model, row_id)

def list_rows(db: Session, model, **criteria) -> list:
    return db.query(model).filter_by(**criteria).order_by(model.id).all()

def first_row(db: Session, model, **criteria):
    return db.query(model).filter_by(**criteria).order_by(model.id).first()

def create_row(db: Session, model, values: dict):
    row = model(**values)
    db.add(row)
    db.flush()
    return row

def update_row(db: Session, model, row_id: int, updates: dict):
    row = db.get(model, row_id)
    if not row:
        return None
    for k, v in updates.items():
        setattr(row, k, v)
    db.flush()
    return row


# ---------- ATTENDANCE QUERIES ----------
def attendance_on_day(db: Session, day: date) -> List[models.Attendance]:
    return db.query(models.Attendance).filter(models.Attendance.date == day).order_by(models.Attendance.id).all()


# ---------- PUBLICATION NOTES ----------
def low_stock_notes(db: Session) -> List[models.PublicationNote]:
    return (db.query(models.PublicationNote)
            .filter(models.PublicationNote.available_stock <= models.PublicationNote.low_stock_threshold)
            .order_by(models.PublicationNote.id)
            .all())

def set_note_stock(db: Session, note_id: int, total_stock: int, available_stock: int) -> Optional[models.PublicationNote]:
    return update_row(db, models.PublicationNote, note_id, {
        "total_stock": total_stock,
        "available_stock": max(0, min(available_stock, total_stock)),
        "last_restocked": datetime.now(),
    })

def adjust_note_stock(db: Session, note_id: int, delta: int) -> bool:
    note = db.get(models.PublicationNote, note_id, with_for_update=True)
    if not note:
        LOG.warning("Publication note %s not found; stock left unchanged", note_id)
        return False
    note.available_stock = max(0, min(note.available_stock + delta, note.total_stock))
    db.flush()
    return True


# ---------- STUDENT NOTES ----------
def create_student_note(db: Session, values: dict) -> models.StudentNote:
    loan = create_row(db, models.StudentNote, values)
    if not loan.is_returned:
        adjust_note_stock(db, loan.note_id, -1)
    return loan

def update_student_note_status(db: Session, loan_id: int, is_returned: bool,
                               return_date: Optional[datetime] = None,
                               condition: Optional[str] = None) -> Optional[models.StudentNote]:
    loan = db.get(models.StudentNote, loan_id)
    if not loan:
        return None
    returning = is_returned and not loan.is_returned
    loan.is_returned = is_returned
    if return_date is not None:
        loan.return_date = return_date
    elif returning:
        loan.return_date = datetime.now()
    if condition is not None:
        loan.condition = condition
    db.flush()
    if returning:
        adjust_note_stock(db, loan.note_id, 1)
    return loan
