# coachdesk/sql_storage.py
import logging
from contextlib import contextmanager

from sqlalchemy.exc import DisconnectionError, InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from coachdesk import crud, models, schemas
from coachdesk.errors import BackendUnavailableError, StorageError
from coachdesk.schemas import calendar_day
from coachdesk.sessions import MemorySessionStore
from coachdesk.storage import (Storage, coerce, publication_note_values, student_note_values,
                               user_values)

LOG = logging.getLogger(__name__)

UNAVAILABLE_ERRORS = (OperationalError, InterfaceError, DisconnectionError, PoolTimeoutError)


class SqlStorage(Storage):
    """Remote backend over SQLAlchemy; rows are returned as schema models."""

    def __init__(self, session_factory, session_ttl: int = 86400):
        self._session_factory = session_factory
        self.session_store = MemorySessionStore(ttl=session_ttl)

    @contextmanager
    def _session(self):
        db_session = self._session_factory()
        try:
            yield db_session
            db_session.commit()
        except UNAVAILABLE_ERRORS as exc:
            db_session.rollback()
            LOG.error("Database unavailable: %s", exc)
            raise BackendUnavailableError(str(exc)) from exc
        except SQLAlchemyError as exc:
            db_session.rollback()
            raise StorageError(str(exc)) from exc
        finally:
            db_session.close()

    def _one(self, entity_cls, model, row_id):
        with self._session() as db:
            row = crud.get_row(db, model, row_id)
            return entity_cls.model_validate(row) if row else None

    def _first(self, entity_cls, model, **criteria):
        with self._session() as db:
            row = crud.first_row(db, model, **criteria)
            return entity_cls.model_validate(row) if row else None

    def _many(self, entity_cls, model, **criteria):
        with self._session() as db:
            return [entity_cls.model_validate(r) for r in crud.list_rows(db, model, **criteria)]

    def _create(self, entity_cls, model, values):
        with self._session() as db:
            return entity_cls.model_validate(crud.create_row(db, model, values))

    def _update(self, entity_cls, model, row_id, updates):
        with self._session() as db:
            row = crud.update_row(db, model, row_id, updates)
            return entity_cls.model_validate(row) if row else None

    # ---------- Users ----------
    def get_user(self, user_id):
        return self._one(schemas.User, models.User, user_id)

    def get_user_by_username(self, username):
        return self._first(schemas.User, models.User, username=username)

    def create_user(self, user):
        user = coerce(schemas.UserCreate, user)
        return self._create(schemas.User, models.User, user_values(user))

    def get_users(self):
        return self._many(schemas.User, models.User)

    def get_users_by_role(self, role):
        return self._many(schemas.User, models.User, role=role)

    # ---------- Students ----------
    def get_student(self, student_id):
        return self._one(schemas.Student, models.Student, student_id)

    def get_student_by_user_id(self, user_id):
        return self._first(schemas.Student, models.Student, user_id=user_id)

    def create_student(self, student):
        student = coerce(schemas.StudentCreate, student)
        return self._create(schemas.Student, models.Student, student.model_dump())

    def get_students(self):
        return self._many(schemas.Student, models.Student)

    # ---------- Classes ----------
    def get_class(self, class_id):
        return self._one(schemas.SchoolClass, models.SchoolClass, class_id)

    def get_classes(self):
        return self._many(schemas.SchoolClass, models.SchoolClass)

    def get_classes_by_teacher(self, teacher_id):
        return self._many(schemas.SchoolClass, models.SchoolClass, teacher_id=teacher_id)

    def create_class(self, class_data):
        class_data = coerce(schemas.ClassCreate, class_data)
        return self._create(schemas.SchoolClass, models.SchoolClass, class_data.model_dump())

    # ---------- Attendance ----------
    def get_attendance(self, attendance_id):
        return self._one(schemas.Attendance, models.Attendance, attendance_id)

    def get_attendance_by_class(self, class_id):
        return self._many(schemas.Attendance, models.Attendance, class_id=class_id)

    def get_attendance_by_student(self, student_id):
        return self._many(schemas.Attendance, models.Attendance, student_id=student_id)

    def get_attendance_by_date(self, day):
        with self._session() as db:
            return [schemas.Attendance.model_validate(r) for r in crud.attendance_on_day(db, calendar_day(day))]

    def create_attendance(self, attendance):
        attendance = coerce(schemas.AttendanceCreate, attendance)
        return self._create(schemas.Attendance, models.Attendance, attendance.model_dump())

    def update_attendance(self, attendance_id, status):
        return self._update(schemas.Attendance, models.Attendance, attendance_id, {"status": status})

    # ---------- Test results ----------
    def get_test_result(self, result_id):
        return self._one(schemas.TestResult, models.TestResult, result_id)

    def get_test_results_by_class(self, class_id):
        return self._many(schemas.TestResult, models.TestResult, class_id=class_id)

    def get_test_results_by_student(self, student_id):
        return self._many(schemas.TestResult, models.TestResult, student_id=student_id)

    def create_test_result(self, result):
        result = coerce(schemas.TestResultCreate, result)
        return self._create(schemas.TestResult, models.TestResult, result.model_dump())

    def update_test_result(self, result_id, score, status):
        return self._update(schemas.TestResult, models.TestResult, result_id,
                            {"score": score, "status": status})

    # ---------- Installments ----------
    def get_installment(self, installment_id):
        return self._one(schemas.Installment, models.Installment, installment_id)

    def get_installments_by_student(self, student_id):
        return self._many(schemas.Installment, models.Installment, student_id=student_id)

    def get_installments_by_status(self, status):
        return self._many(schemas.Installment, models.Installment, status=status)

    def create_installment(self, installment):
        installment = coerce(schemas.InstallmentCreate, installment)
        return self._create(schemas.Installment, models.Installment, installment.model_dump())

    def update_installment(self, installment_id, status, payment_date=None):
        return self._update(schemas.Installment, models.Installment, installment_id,
                            {"status": status, "payment_date": calendar_day(payment_date)})

    # ---------- Events ----------
    def get_event(self, event_id):
        return self._one(schemas.Event, models.Event, event_id)

    def get_events(self):
        return self._many(schemas.Event, models.Event)

    def create_event(self, event):
        event = coerce(schemas.EventCreate, event)
        return self._create(schemas.Event, models.Event, event.model_dump())

    # ---------- Teacher payments ----------
    def get_teacher_payment(self, payment_id):
        return self._one(schemas.TeacherPayment, models.TeacherPayment, payment_id)

    def get_teacher_payments_by_teacher(self, teacher_id):
        return self._many(schemas.TeacherPayment, models.TeacherPayment, teacher_id=teacher_id)

    def get_teacher_payments_by_month(self, month):
        return self._many(schemas.TeacherPayment, models.TeacherPayment, month=month)

    def get_teacher_payments_by_status(self, status):
        return self._many(schemas.TeacherPayment, models.TeacherPayment, status=status)

    def create_teacher_payment(self, payment):
        payment = coerce(schemas.TeacherPaymentCreate, payment)
        return self._create(schemas.TeacherPayment, models.TeacherPayment, payment.model_dump())

    def update_teacher_payment(self, payment_id, status, payment_date=None):
        return self._update(schemas.TeacherPayment, models.TeacherPayment, payment_id,
                            {"status": status, "payment_date": calendar_day(payment_date)})

    # ---------- Publication notes ----------
    def get_publication_note(self, note_id):
        return self._one(schemas.PublicationNote, models.PublicationNote, note_id)

    def get_publication_notes(self):
        return self._many(schemas.PublicationNote, models.PublicationNote)

    def get_publication_notes_by_subject(self, subject):
        return self._many(schemas.PublicationNote, models.PublicationNote, subject=subject)

    def get_publication_notes_by_grade(self, grade):
        return self._many(schemas.PublicationNote, models.PublicationNote, grade=grade)

    def get_low_stock_publication_notes(self):
        with self._session() as db:
            return [schemas.PublicationNote.model_validate(r) for r in crud.low_stock_notes(db)]

    def create_publication_note(self, note):
        note = coerce(schemas.PublicationNoteCreate, note)
        return self._create(schemas.PublicationNote, models.PublicationNote, publication_note_values(note))

    def update_publication_note_stock(self, note_id, total_stock, available_stock):
        with self._session() as db:
            row = crud.set_note_stock(db, note_id, total_stock, available_stock)
            return schemas.PublicationNote.model_validate(row) if row else None

    # ---------- Student notes ----------
    def get_student_note(self, loan_id):
        return self._one(schemas.StudentNote, models.StudentNote, loan_id)

    def get_student_notes_by_student(self, student_id):
        return self._many(schemas.StudentNote, models.StudentNote, student_id=student_id)

    def get_student_notes_by_note(self, note_id):
        return self._many(schemas.StudentNote, models.StudentNote, note_id=note_id)

    def create_student_note(self, loan):
        loan = coerce(schemas.StudentNoteCreate, loan)
        with self._session() as db:
            return schemas.StudentNote.model_validate(crud.create_student_note(db, student_note_values(loan)))

    def update_student_note_status(self, loan_id, is_returned, return_date=None, condition=None):
        with self._session() as db:
            row = crud.update_student_note_status(db, loan_id, is_returned, return_date, condition)
            return schemas.StudentNote.model_validate(row) if row else None
