# coachdesk/main.py
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from coachdesk import reports, schemas, ws_api
from coachdesk.auth import current_user, get_storage, require_roles
from coachdesk.auth import router as auth_router
from coachdesk.backend import ActiveStorage, init_storage
from coachdesk.config import Settings, configure_logging
from coachdesk.errors import BackendUnavailableError, ReferenceNotFoundError
from coachdesk.schemas import calendar_day
from coachdesk.storage import Storage

LOG = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

staff = require_roles("admin", "teacher")
admin_only = require_roles("admin")


def found(value, detail: str):
    if value is None:
        raise HTTPException(status_code=404, detail=detail)
    return value


def parse_day(value: str):
    try:
        return calendar_day(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid date '{value}'")


def missing_query():
    return HTTPException(status_code=400, detail="Missing query parameters")


# ---------- Health ----------
@router.get("/health")
def health(request: Request):
    return {"status": "ok", "backend": request.app.state.backend.value}


# ---------- User endpoints ----------
@router.get("/users", response_model=List[schemas.UserOut], dependencies=[Depends(admin_only)])
def list_users(storage: Storage = Depends(get_storage)):
    return storage.get_users()

@router.get("/users/{role}", response_model=List[schemas.UserOut], dependencies=[Depends(current_user)])
def users_by_role(role: schemas.Role, storage: Storage = Depends(get_storage)):
    return storage.get_users_by_role(role)


# ---------- Student endpoints ----------
@router.get("/students", response_model=List[schemas.Student], dependencies=[Depends(staff)])
def list_students(storage: Storage = Depends(get_storage)):
    return storage.get_students()

@router.get("/students/user/{user_id}", response_model=schemas.Student, dependencies=[Depends(current_user)])
def student_by_user(user_id: int, storage: Storage = Depends(get_storage)):
    return found(storage.get_student_by_user_id(user_id), "Student profile not found")

@router.get("/students/{student_id}", response_model=schemas.Student, dependencies=[Depends(current_user)])
def read_student(student_id: int, storage: Storage = Depends(get_storage)):
    return found(storage.get_student(student_id), "Student not found")

@router.post("/students", response_model=schemas.Student, status_code=201, dependencies=[Depends(admin_only)])
def create_student(student: schemas.StudentCreate, storage: Storage = Depends(get_storage)):
    if storage.get_user(student.user_id) is None:
        raise HTTPException(status_code=400, detail="Unknown user")
    if storage.get_student_by_user_id(student.user_id) is not None:
        raise HTTPException(status_code=400, detail="Student profile already exists")
    return storage.create_student(student)


# ---------- Class endpoints ----------
@router.get("/classes", response_model=List[schemas.SchoolClass], dependencies=[Depends(current_user)])
def list_classes(storage: Storage = Depends(get_storage)):
    return storage.get_classes()

@router.get("/classes/teacher/{teacher_id}", response_model=List[schemas.SchoolClass],
            dependencies=[Depends(current_user)])
def classes_by_teacher(teacher_id: int, storage: Storage = Depends(get_storage)):
    return storage.get_classes_by_teacher(teacher_id)

@router.get("/classes/{class_id}", response_model=schemas.SchoolClass, dependencies=[Depends(current_user)])
def read_class(class_id: int, storage: Storage = Depends(get_storage)):
    return found(storage.get_class(class_id), "Class not found")

@router.post("/classes", response_model=schemas.SchoolClass, status_code=201, dependencies=[Depends(admin_only)])
def create_class(class_data: schemas.ClassCreate, storage: Storage = Depends(get_storage)):
    return storage.create_class(class_data)


# ---------- Attendance endpoints ----------
@router.get("/attendance", response_model=List[schemas.Attendance], dependencies=[Depends(current_user)])
def list_attendance(class_id: Optional[int] = Query(None, alias="classId"),
                    student_id: Optional[int] = Query(None, alias="studentId"),
                    day: Optional[str] = Query(None, alias="date"),
                    storage: Storage = Depends(get_storage)):
    if class_id is not None:
        return storage.get_attendance_by_class(class_id)
    if student_id is not None:
        return storage.get_attendance_by_student(student_id)
    if day:
        return storage.get_attendance_by_date(parse_day(day))
    raise missing_query()

@router.post("/attendance", response_model=schemas.Attendance, status_code=201, dependencies=[Depends(staff)])
def create_attendance(attendance: schemas.AttendanceCreate, storage: Storage = Depends(get_storage)):
    return storage.create_attendance(attendance)

@router.patch("/attendance/{attendance_id}", response_model=schemas.Attendance, dependencies=[Depends(staff)])
def patch_attendance(attendance_id: int, update: schemas.AttendanceUpdate, storage: Storage = Depends(get_storage)):
    return found(storage.update_attendance(attendance_id, update.status), "Attendance record not found")


# ---------- Test result endpoints ----------
@router.get("/test-results", response_model=List[schemas.TestResult], dependencies=[Depends(current_user)])
def list_test_results(class_id: Optional[int] = Query(None, alias="classId"),
                      student_id: Optional[int] = Query(None, alias="studentId"),
                      storage: Storage = Depends(get_storage)):
    if class_id is not None:
        return storage.get_test_results_by_class(class_id)
    if student_id is not None:
        return storage.get_test_results_by_student(student_id)
    raise missing_query()

@router.post("/test-results", response_model=schemas.TestResult, status_code=201, dependencies=[Depends(staff)])
def create_test_result(result: schemas.TestResultCreate, storage: Storage = Depends(get_storage)):
    return storage.create_test_result(result)

@router.patch("/test-results/{result_id}", response_model=schemas.TestResult, dependencies=[Depends(staff)])
def patch_test_result(result_id: int, update: schemas.TestResultUpdate, storage: Storage = Depends(get_storage)):
    return found(storage.update_test_result(result_id, update.score, update.status), "Test result not found")


# ---------- Installment endpoints ----------
@router.get("/installments", response_model=List[schemas.Installment], dependencies=[Depends(current_user)])
def list_installments(student_id: Optional[int] = Query(None, alias="studentId"),
                      status: Optional[schemas.InstallmentStatus] = None,
                      storage: Storage = Depends(get_storage)):
    if student_id is not None:
        return storage.get_installments_by_student(student_id)
    if status:
        return storage.get_installments_by_status(status)
    raise missing_query()

@router.post("/installments", response_model=schemas.Installment, status_code=201, dependencies=[Depends(admin_only)])
def create_installment(installment: schemas.InstallmentCreate, storage: Storage = Depends(get_storage)):
    return storage.create_installment(installment)

@router.patch("/installments/{installment_id}", response_model=schemas.Installment, dependencies=[Depends(admin_only)])
def patch_installment(installment_id: int, update: schemas.InstallmentUpdate, storage: Storage = Depends(get_storage)):
    updated = storage.update_installment(installment_id, update.status, update.payment_date)
    return found(updated, "Installment not found")


# ---------- Event endpoints ----------
@router.get("/events", response_model=List[schemas.Event], dependencies=[Depends(current_user)])
def list_events(storage: Storage = Depends(get_storage)):
    return storage.get_events()

@router.get("/events/{event_id}", response_model=schemas.Event, dependencies=[Depends(current_user)])
def read_event(event_id: int, storage: Storage = Depends(get_storage)):
    return found(storage.get_event(event_id), "Event not found")

@router.post("/events", response_model=schemas.Event, status_code=201, dependencies=[Depends(admin_only)])
def create_event(event: schemas.EventCreate, storage: Storage = Depends(get_storage)):
    return storage.create_event(event)


# ---------- Teacher payment endpoints ----------
@router.get("/teacher-payments", response_model=List[schemas.TeacherPayment], dependencies=[Depends(admin_only)])
def list_teacher_payments(teacher_id: Optional[int] = Query(None, alias="teacherId"),
                          month: Optional[str] = None,
                          status: Optional[schemas.TeacherPaymentStatus] = None,
                          storage: Storage = Depends(get_storage)):
    if teacher_id is not None:
        return storage.get_teacher_payments_by_teacher(teacher_id)
    if month:
        return storage.get_teacher_payments_by_month(month)
    if status:
        return storage.get_teacher_payments_by_status(status)
    raise missing_query()

@router.post("/teacher-payments", response_model=schemas.TeacherPayment, status_code=201,
             dependencies=[Depends(admin_only)])
def create_teacher_payment(payment: schemas.TeacherPaymentCreate, storage: Storage = Depends(get_storage)):
    return storage.create_teacher_payment(payment)

@router.patch("/teacher-payments/{payment_id}", response_model=schemas.TeacherPayment,
              dependencies=[Depends(admin_only)])
def patch_teacher_payment(payment_id: int, update: schemas.TeacherPaymentUpdate,
                          storage: Storage = Depends(get_storage)):
    updated = storage.update_teacher_payment(payment_id, update.status, update.payment_date)
    return found(updated, "Teacher payment not found")


# ---------- Publication note endpoints ----------
@router.get("/publication-notes", response_model=List[schemas.PublicationNote], dependencies=[Depends(current_user)])
def list_publication_notes(subject: Optional[str] = None, grade: Optional[str] = None,
                           storage: Storage = Depends(get_storage)):
    if subject:
        return storage.get_publication_notes_by_subject(subject)
    if grade:
        return storage.get_publication_notes_by_grade(grade)
    return storage.get_publication_notes()

@router.get("/publication-notes/low-stock", response_model=List[schemas.PublicationNote],
            dependencies=[Depends(staff)])
def low_stock_notes(storage: Storage = Depends(get_storage)):
    return storage.get_low_stock_publication_notes()

@router.get("/publication-notes/{note_id}", response_model=schemas.PublicationNote,
            dependencies=[Depends(current_user)])
def read_publication_note(note_id: int, storage: Storage = Depends(get_storage)):
    return found(storage.get_publication_note(note_id), "Publication note not found")

@router.post("/publication-notes", response_model=schemas.PublicationNote, status_code=201,
             dependencies=[Depends(admin_only)])
def create_publication_note(note: schemas.PublicationNoteCreate, storage: Storage = Depends(get_storage)):
    return storage.create_publication_note(note)

@router.patch("/publication-notes/{note_id}/stock", response_model=schemas.PublicationNote,
              dependencies=[Depends(admin_only)])
def patch_publication_note_stock(note_id: int, update: schemas.PublicationNoteStockUpdate,
                                 storage: Storage = Depends(get_storage)):
    updated = storage.update_publication_note_stock(note_id, update.total_stock, update.available_stock)
    return found(updated, "Publication note not found")


# ---------- Student note (loan) endpoints ----------
@router.get("/student-notes", response_model=List[schemas.StudentNote], dependencies=[Depends(current_user)])
def list_student_notes(student_id: Optional[int] = Query(None, alias="studentId"),
                       note_id: Optional[int] = Query(None, alias="noteId"),
                       storage: Storage = Depends(get_storage)):
    if student_id is not None:
        return storage.get_student_notes_by_student(student_id)
    if note_id is not None:
        return storage.get_student_notes_by_note(note_id)
    raise missing_query()

@router.post("/student-notes", response_model=schemas.StudentNote, status_code=201, dependencies=[Depends(staff)])
def issue_student_note(loan: schemas.StudentNoteCreate, storage: Storage = Depends(get_storage)):
    if storage.get_publication_note(loan.note_id) is None:
        raise HTTPException(status_code=400, detail="Unknown publication note")
    return storage.create_student_note(loan)

@router.patch("/student-notes/{loan_id}", response_model=schemas.StudentNote, dependencies=[Depends(staff)])
def patch_student_note(loan_id: int, update: schemas.StudentNoteUpdate, storage: Storage = Depends(get_storage)):
    updated = storage.update_student_note_status(loan_id, update.is_returned, update.return_date, update.condition)
    return found(updated, "Student note not found")


# ---------- Report endpoints ----------
@router.get("/reports/attendance", response_model=List[schemas.ClassAttendanceSummary],
            dependencies=[Depends(staff)])
def attendance_report(day: str = Query(..., alias="date"), storage: Storage = Depends(get_storage)):
    return reports.attendance_summary(storage, parse_day(day))

@router.get("/reports/installments", response_model=schemas.InstallmentBreakdown, dependencies=[Depends(admin_only)])
def installment_report(storage: Storage = Depends(get_storage)):
    return reports.installment_breakdown(storage)

@router.get("/reports/inventory", response_model=schemas.InventoryStats, dependencies=[Depends(staff)])
def inventory_report(storage: Storage = Depends(get_storage)):
    return reports.inventory_stats(storage.get_publication_notes())


# ---------- Application ----------
def create_app(settings: Settings = None, active: ActiveStorage = None) -> FastAPI:
    settings = settings or Settings.from_env()
    if active is None:
        configure_logging(settings.log_level)
        active = init_storage(settings)

    app = FastAPI(title="Coaching Center API")
    app.state.settings = settings
    app.state.backend = active.backend
    app.state.storage = active.storage

    app.include_router(auth_router)
    app.include_router(router)
    app.include_router(ws_api.router)

    @app.exception_handler(BackendUnavailableError)
    def backend_unavailable(request: Request, exc: BackendUnavailableError):
        return JSONResponse(status_code=503, content={"detail": "Storage backend unavailable"})

    @app.exception_handler(ReferenceNotFoundError)
    def reference_not_found(request: Request, exc: ReferenceNotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    LOG.info("Application ready (backend=%s)", active.backend.value)
    return app


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(create_app(), host="0.0.0.0", port=8000)
