# coachdesk/storage.py
"""Repository contract and the in-memory reference backend.

Every backend implements :class:`Storage`. Single-record reads and updates
return ``None`` when the id does not exist; list reads always return a
(possibly empty) list. Failures to reach a backend raise
:class:`coachdesk.errors.BackendUnavailableError`.
"""
import itertools
import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional

from coachdesk import schemas
from coachdesk.schemas import calendar_day
from coachdesk.sessions import MemorySessionStore

LOG = logging.getLogger(__name__)


def coerce(schema_cls, data):
    """Accept either an insert-shape model or a plain mapping."""
    if isinstance(data, schema_cls):
        return data
    return schema_cls.model_validate(data)


def clamp_stock(available: int, total: int) -> int:
    return max(0, min(available, total))


# ---------- Server-assigned defaults (shared by every backend) ----------
def user_values(user: schemas.UserCreate) -> Dict[str, Any]:
    return {**user.model_dump(), "join_date": datetime.now()}


def publication_note_values(note: schemas.PublicationNoteCreate) -> Dict[str, Any]:
    values = note.model_dump()
    available = note.total_stock if note.available_stock is None else note.available_stock
    values["available_stock"] = clamp_stock(available, note.total_stock)
    if values["last_restocked"] is None:
        values["last_restocked"] = datetime.now()
    return values


def student_note_values(loan: schemas.StudentNoteCreate) -> Dict[str, Any]:
    values = loan.model_dump()
    if values["date_issued"] is None:
        values["date_issued"] = datetime.now()
    return values


class Storage(ABC):
    """The data-access contract used by the API layer."""

    session_store: MemorySessionStore

    # ---------- Users ----------
    @abstractmethod
    def get_user(self, user_id: int) -> Optional[schemas.User]: ...

    @abstractmethod
    def get_user_by_username(self, username: str) -> Optional[schemas.User]: ...

    @abstractmethod
    def create_user(self, user) -> schemas.User: ...

    @abstractmethod
    def get_users(self) -> List[schemas.User]: ...

    @abstractmethod
    def get_users_by_role(self, role: str) -> List[schemas.User]: ...

    # ---------- Students ----------
    @abstractmethod
    def get_student(self, student_id: int) -> Optional[schemas.Student]: ...

    @abstractmethod
    def get_student_by_user_id(self, user_id: int) -> Optional[schemas.Student]: ...

    @abstractmethod
    def create_student(self, student) -> schemas.Student: ...

    @abstractmethod
    def get_students(self) -> List[schemas.Student]: ...

    # ---------- Classes ----------
    @abstractmethod
    def get_class(self, class_id: int) -> Optional[schemas.SchoolClass]: ...

    @abstractmethod
    def get_classes(self) -> List[schemas.SchoolClass]: ...

    @abstractmethod
    def get_classes_by_teacher(self, teacher_id: int) -> List[schemas.SchoolClass]: ...

    @abstractmethod
    def create_class(self, class_data) -> schemas.SchoolClass: ...

    # ---------- Attendance ----------
    @abstractmethod
    def get_attendance(self, attendance_id: int) -> Optional[schemas.Attendance]: ...

    @abstractmethod
    def get_attendance_by_class(self, class_id: int) -> List[schemas.Attendance]: ...

    @abstractmethod
    def get_attendance_by_student(self, student_id: int) -> List[schemas.Attendance]: ...

    @abstractmethod
    def get_attendance_by_date(self, day) -> List[schemas.Attendance]:
        """Records on the same calendar day as ``day`` (date, datetime or ISO string)."""

    @abstractmethod
    def create_attendance(self, attendance) -> schemas.Attendance: ...

    @abstractmethod
    def update_attendance(self, attendance_id: int, status: str) -> Optional[schemas.Attendance]: ...

    # ---------- Test results ----------
    @abstractmethod
    def get_test_result(self, result_id: int) -> Optional[schemas.TestResult]: ...

    @abstractmethod
    def get_test_results_by_class(self, class_id: int) -> List[schemas.TestResult]: ...

    @abstractmethod
    def get_test_results_by_student(self, student_id: int) -> List[schemas.TestResult]: ...

    @abstractmethod
    def create_test_result(self, result) -> schemas.TestResult: ...

    @abstractmethod
    def update_test_result(self, result_id: int, score: float, status: str) -> Optional[schemas.TestResult]: ...

    # ---------- Installments ----------
    @abstractmethod
    def get_installment(self, installment_id: int) -> Optional[schemas.Installment]: ...

    @abstractmethod
    def get_installments_by_student(self, student_id: int) -> List[schemas.Installment]: ...

    @abstractmethod
    def get_installments_by_status(self, status: str) -> List[schemas.Installment]: ...

    @abstractmethod
    def create_installment(self, installment) -> schemas.Installment: ...

    @abstractmethod
    def update_installment(self, installment_id: int, status: str, payment_date=None) -> Optional[schemas.Installment]:
        """Set the status and replace the payment date (``None`` clears it)."""

    # ---------- Events ----------
    @abstractmethod
    def get_event(self, event_id: int) -> Optional[schemas.Event]: ...

    @abstractmethod
    def get_events(self) -> List[schemas.Event]: ...

    @abstractmethod
    def create_event(self, event) -> schemas.Event: ...

    # ---------- Teacher payments ----------
    @abstractmethod
    def get_teacher_payment(self, payment_id: int) -> Optional[schemas.TeacherPayment]: ...

    @abstractmethod
    def get_teacher_payments_by_teacher(self, teacher_id: int) -> List[schemas.TeacherPayment]: ...

    @abstractmethod
    def get_teacher_payments_by_month(self, month: str) -> List[schemas.TeacherPayment]: ...

    @abstractmethod
    def get_teacher_payments_by_status(self, status: str) -> List[schemas.TeacherPayment]: ...

    @abstractmethod
    def create_teacher_payment(self, payment) -> schemas.TeacherPayment: ...

    @abstractmethod
    def update_teacher_payment(self, payment_id: int, status: str, payment_date=None) -> Optional[schemas.TeacherPayment]: ...

    # ---------- Publication notes ----------
    @abstractmethod
    def get_publication_note(self, note_id: int) -> Optional[schemas.PublicationNote]: ...

    @abstractmethod
    def get_publication_notes(self) -> List[schemas.PublicationNote]: ...

    @abstractmethod
    def get_publication_notes_by_subject(self, subject: str) -> List[schemas.PublicationNote]: ...

    @abstractmethod
    def get_publication_notes_by_grade(self, grade: str) -> List[schemas.PublicationNote]: ...

    @abstractmethod
    def get_low_stock_publication_notes(self) -> List[schemas.PublicationNote]:
        """Notes whose available stock is at or below their threshold."""

    @abstractmethod
    def create_publication_note(self, note) -> schemas.PublicationNote: ...

    @abstractmethod
    def update_publication_note_stock(self, note_id: int, total_stock: int,
                                      available_stock: int) -> Optional[schemas.PublicationNote]: ...

    # ---------- Student notes ----------
    @abstractmethod
    def get_student_note(self, loan_id: int) -> Optional[schemas.StudentNote]: ...

    @abstractmethod
    def get_student_notes_by_student(self, student_id: int) -> List[schemas.StudentNote]: ...

    @abstractmethod
    def get_student_notes_by_note(self, note_id: int) -> List[schemas.StudentNote]: ...

    @abstractmethod
    def create_student_note(self, loan) -> schemas.StudentNote:
        """Record a loan; an unreturned loan takes one copy out of stock."""

    @abstractmethod
    def update_student_note_status(self, loan_id: int, is_returned: bool, return_date=None,
                                   condition: Optional[str] = None) -> Optional[schemas.StudentNote]:
        """Mark a loan returned (or not); a first return puts one copy back."""


class _Table:
    """Rows of one entity keyed by id, plus that entity's id sequence.

    Stored rows are never mutated; updates put a new row. Reads hand out
    copies so a caller editing a returned record does not touch the store.
    """

    def __init__(self, lock):
        self._lock = lock
        self.rows: Dict[int, Any] = {}
        self._ids = itertools.count(1)

    def next_id(self) -> int:
        with self._lock:
            return next(self._ids)

    def get(self, row_id):
        with self._lock:
            row = self.rows.get(row_id)
        return None if row is None else row.model_copy()

    def put(self, row):
        with self._lock:
            self.rows[row.id] = row
        return row.model_copy()

    def all(self) -> list:
        with self._lock:
            rows = list(self.rows.values())
        return [row.model_copy() for row in rows]

    def where(self, **criteria) -> list:
        with self._lock:
            matches = [row for row in self.rows.values()
                       if all(getattr(row, k) == v for k, v in criteria.items())]
        return [row.model_copy() for row in matches]

    def find(self, **criteria):
        matches = self.where(**criteria)
        return matches[0] if matches else None

    def __len__(self):
        with self._lock:
            return len(self.rows)


class MemStorage(Storage):
    """In-memory backend; the default and the behavioural reference."""

    def __init__(self, seed: bool = True, session_ttl: int = 86400):
        # one lock for every table, so multi-table operations stay atomic
        self._lock = threading.RLock()
        self.users = _Table(self._lock)
        self.students = _Table(self._lock)
        self.classes = _Table(self._lock)
        self.attendance = _Table(self._lock)
        self.test_results = _Table(self._lock)
        self.installments = _Table(self._lock)
        self.events = _Table(self._lock)
        self.teacher_payments = _Table(self._lock)
        self.publication_notes = _Table(self._lock)
        self.student_notes = _Table(self._lock)
        self.session_store = MemorySessionStore(ttl=session_ttl)

        if seed:
            from coachdesk.seed import load_sample_data
            try:
                load_sample_data(self)
            except Exception:
                LOG.exception("Failed to load sample data; continuing with a partial store")

    def _insert(self, table: _Table, entity_cls, values: Dict[str, Any]):
        with self._lock:
            return table.put(entity_cls(id=table.next_id(), **values))

    def _replace(self, table: _Table, row_id: int, **changes):
        with self._lock:
            current = table.get(row_id)
            if current is None:
                return None
            return table.put(current.model_copy(update=changes))

    # ---------- Users ----------
    def get_user(self, user_id):
        return self.users.get(user_id)

    def get_user_by_username(self, username):
        return self.users.find(username=username)

    def create_user(self, user):
        user = coerce(schemas.UserCreate, user)
        return self._insert(self.users, schemas.User, user_values(user))

    def get_users(self):
        return self.users.all()

    def get_users_by_role(self, role):
        return self.users.where(role=role)

    # ---------- Students ----------
    def get_student(self, student_id):
        return self.students.get(student_id)

    def get_student_by_user_id(self, user_id):
        return self.students.find(user_id=user_id)

    def create_student(self, student):
        student = coerce(schemas.StudentCreate, student)
        return self._insert(self.students, schemas.Student, student.model_dump())

    def get_students(self):
        return self.students.all()

    # ---------- Classes ----------
    def get_class(self, class_id):
        return self.classes.get(class_id)

    def get_classes(self):
        return self.classes.all()

    def get_classes_by_teacher(self, teacher_id):
        return self.classes.where(teacher_id=teacher_id)

    def create_class(self, class_data):
        class_data = coerce(schemas.ClassCreate, class_data)
        return self._insert(self.classes, schemas.SchoolClass, class_data.model_dump())

    # ---------- Attendance ----------
    def get_attendance(self, attendance_id):
        return self.attendance.get(attendance_id)

    def get_attendance_by_class(self, class_id):
        return self.attendance.where(class_id=class_id)

    def get_attendance_by_student(self, student_id):
        return self.attendance.where(student_id=student_id)

    def get_attendance_by_date(self, day):
        return self.attendance.where(date=calendar_day(day))

    def create_attendance(self, attendance):
        attendance = coerce(schemas.AttendanceCreate, attendance)
        return self._insert(self.attendance, schemas.Attendance, attendance.model_dump())

    def update_attendance(self, attendance_id, status):
        return self._replace(self.attendance, attendance_id, status=status)

    # ---------- Test results ----------
    def get_test_result(self, result_id):
        return self.test_results.get(result_id)

    def get_test_results_by_class(self, class_id):
        return self.test_results.where(class_id=class_id)

    def get_test_results_by_student(self, student_id):
        return self.test_results.where(student_id=student_id)

    def create_test_result(self, result):
        result = coerce(schemas.TestResultCreate, result)
        return self._insert(self.test_results, schemas.TestResult, result.model_dump())

    def update_test_result(self, result_id, score, status):
        return self._replace(self.test_results, result_id, score=score, status=status)

    # ---------- Installments ----------
    def get_installment(self, installment_id):
        return self.installments.get(installment_id)

    def get_installments_by_student(self, student_id):
        return self.installments.where(student_id=student_id)

    def get_installments_by_status(self, status):
        return self.installments.where(status=status)

    def create_installment(self, installment):
        installment = coerce(schemas.InstallmentCreate, installment)
        return self._insert(self.installments, schemas.Installment, installment.model_dump())

    def update_installment(self, installment_id, status, payment_date=None):
        return self._replace(self.installments, installment_id,
                             status=status, payment_date=calendar_day(payment_date))

    # ---------- Events ----------
    def get_event(self, event_id):
        return self.events.get(event_id)

    def get_events(self):
        return self.events.all()

    def create_event(self, event):
        event = coerce(schemas.EventCreate, event)
        return self._insert(self.events, schemas.Event, event.model_dump())

    # ---------- Teacher payments ----------
    def get_teacher_payment(self, payment_id):
        return self.teacher_payments.get(payment_id)

    def get_teacher_payments_by_teacher(self, teacher_id):
        return self.teacher_payments.where(teacher_id=teacher_id)

    def get_teacher_payments_by_month(self, month):
        return self.teacher_payments.where(month=month)

    def get_teacher_payments_by_status(self, status):
        return self.teacher_payments.where(status=status)

    def create_teacher_payment(self, payment):
        payment = coerce(schemas.TeacherPaymentCreate, payment)
        return self._insert(self.teacher_payments, schemas.TeacherPayment, payment.model_dump())

    def update_teacher_payment(self, payment_id, status, payment_date=None):
        return self._replace(self.teacher_payments, payment_id,
                             status=status, payment_date=calendar_day(payment_date))

    # ---------- Publication notes ----------
    def get_publication_note(self, note_id):
        return self.publication_notes.get(note_id)

    def get_publication_notes(self):
        return self.publication_notes.all()

    def get_publication_notes_by_subject(self, subject):
        return self.publication_notes.where(subject=subject)

    def get_publication_notes_by_grade(self, grade):
        return self.publication_notes.where(grade=grade)

    def get_low_stock_publication_notes(self):
        return [note for note in self.publication_notes.all()
                if note.available_stock <= note.low_stock_threshold]

    def create_publication_note(self, note):
        note = coerce(schemas.PublicationNoteCreate, note)
        return self._insert(self.publication_notes, schemas.PublicationNote, publication_note_values(note))

    def update_publication_note_stock(self, note_id, total_stock, available_stock):
        return self._replace(self.publication_notes, note_id,
                             total_stock=total_stock,
                             available_stock=clamp_stock(available_stock, total_stock),
                             last_restocked=datetime.now())

    def _adjust_stock(self, note_id: int, delta: int):
        with self._lock:
            note = self.publication_notes.get(note_id)
            if note is None:
                LOG.warning("Publication note %s not found; stock left unchanged", note_id)
                return
            self._replace(self.publication_notes, note_id,
                          available_stock=clamp_stock(note.available_stock + delta, note.total_stock))

    # ---------- Student notes ----------
    def get_student_note(self, loan_id):
        return self.student_notes.get(loan_id)

    def get_student_notes_by_student(self, student_id):
        return self.student_notes.where(student_id=student_id)

    def get_student_notes_by_note(self, note_id):
        return self.student_notes.where(note_id=note_id)

    def create_student_note(self, loan):
        loan = coerce(schemas.StudentNoteCreate, loan)
        with self._lock:
            created = self._insert(self.student_notes, schemas.StudentNote, student_note_values(loan))
            if not created.is_returned:
                self._adjust_stock(created.note_id, -1)
        return created

    def update_student_note_status(self, loan_id, is_returned, return_date=None, condition=None):
        with self._lock:
            return self._set_returned(loan_id, is_returned, return_date, condition)

    def _set_returned(self, loan_id, is_returned, return_date, condition):
        current = self.student_notes.get(loan_id)
        if current is None:
            return None
        returning = is_returned and not current.is_returned
        changes = {"is_returned": is_returned}
        if return_date is not None:
            changes["return_date"] = return_date
        elif returning:
            changes["return_date"] = datetime.now()
        if condition is not None:
            changes["condition"] = condition
        updated = self._replace(self.student_notes, loan_id, **changes)
        if returning:
            self._adjust_stock(updated.note_id, 1)
        return updated
