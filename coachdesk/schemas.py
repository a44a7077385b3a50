# coachdesk/schemas.py
from datetime import date, datetime, timezone
from typing import Annotated, Literal, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

Role = Literal["admin", "teacher", "student"]
AttendanceStatus = Literal["present", "absent", "late"]
TestStatus = Literal["pending", "graded"]
InstallmentStatus = Literal["paid", "pending", "overdue"]
TeacherPaymentStatus = Literal["paid", "pending", "cancelled"]
NoteCondition = Literal["excellent", "good", "fair", "poor"]


def calendar_day(value):
    """Normalize a date, datetime or ISO string to a calendar ``date``.

    Aware datetimes are converted to UTC first; the time of day is dropped.
    ``None`` passes through.
    """
    if value is None or type(value) is date:
        return value
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, str):
        text = value.strip()
        if len(text) == 10:
            return date.fromisoformat(text)
        return calendar_day(datetime.fromisoformat(text.replace("Z", "+00:00")))
    raise ValueError(f"Cannot interpret {value!r} as a calendar date")


Day = Annotated[date, BeforeValidator(calendar_day)]


class CamelModel(BaseModel):
    # attributes are snake_case, JSON is camelCase
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# ---------- Users ----------
class UserBase(CamelModel):
    username: str
    full_name: str
    email: EmailStr
    role: Role = "student"
    grade: Optional[str] = None

class UserCreate(UserBase):
    password: str

class User(UserBase):
    id: int
    password: str
    join_date: datetime

class UserOut(UserBase):
    id: int
    join_date: datetime


# ---------- Students ----------
class StudentCreate(CamelModel):
    user_id: int
    parent_name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    date_of_birth: Optional[Day] = None

class Student(StudentCreate):
    id: int


# ---------- Classes ----------
class ClassCreate(CamelModel):
    name: str
    grade: str
    teacher_id: int
    schedule: Optional[str] = None

class SchoolClass(ClassCreate):
    id: int


# ---------- Attendance ----------
class AttendanceCreate(CamelModel):
    student_id: int
    class_id: int
    date: Day
    status: AttendanceStatus = "present"

class Attendance(AttendanceCreate):
    id: int

class AttendanceUpdate(CamelModel):
    status: AttendanceStatus


# ---------- Test results ----------
class TestResultCreate(CamelModel):
    name: str
    student_id: int
    class_id: int
    date: Day
    score: float
    max_score: float = 100
    status: TestStatus = "pending"

class TestResult(TestResultCreate):
    id: int

class TestResultUpdate(CamelModel):
    score: float
    status: TestStatus


# ---------- Installments ----------
class InstallmentCreate(CamelModel):
    student_id: int
    amount: float
    due_date: Day
    payment_date: Optional[Day] = None
    status: InstallmentStatus = "pending"

class Installment(InstallmentCreate):
    id: int

class InstallmentUpdate(CamelModel):
    status: InstallmentStatus
    payment_date: Optional[Day] = None


# ---------- Events ----------
class EventCreate(CamelModel):
    title: str
    description: Optional[str] = None
    date: Day
    time: Optional[str] = None
    target_grades: Optional[str] = None

class Event(EventCreate):
    id: int


# ---------- Teacher payments ----------
class TeacherPaymentCreate(CamelModel):
    teacher_id: int
    amount: float
    month: str = Field(pattern=r"^\d{4}-\d{2}$")
    description: Optional[str] = None
    payment_date: Optional[Day] = None
    status: TeacherPaymentStatus = "pending"

class TeacherPayment(TeacherPaymentCreate):
    id: int

class TeacherPaymentUpdate(CamelModel):
    status: TeacherPaymentStatus
    payment_date: Optional[Day] = None


# ---------- Publication notes ----------
class PublicationNoteCreate(CamelModel):
    title: str
    subject: str
    grade: str
    total_stock: int = Field(ge=0)
    available_stock: Optional[int] = None
    low_stock_threshold: int = 5
    last_restocked: Optional[datetime] = None
    description: Optional[str] = None

class PublicationNote(CamelModel):
    id: int
    title: str
    subject: str
    grade: str
    total_stock: int
    available_stock: int
    low_stock_threshold: int = 5
    last_restocked: Optional[datetime] = None
    description: Optional[str] = None

class PublicationNoteStockUpdate(CamelModel):
    total_stock: int = Field(ge=0)
    available_stock: int


# ---------- Student notes (loans) ----------
class StudentNoteCreate(CamelModel):
    student_id: int
    note_id: int
    date_issued: Optional[datetime] = None
    is_returned: bool = False
    return_date: Optional[datetime] = None
    condition: NoteCondition = "good"
    notes: Optional[str] = None

class StudentNote(StudentNoteCreate):
    id: int
    date_issued: datetime

class StudentNoteUpdate(CamelModel):
    is_returned: bool
    return_date: Optional[datetime] = None
    condition: Optional[NoteCondition] = None


# ---------- Auth ----------
class LoginRequest(BaseModel):
    username: str
    password: str


# ---------- Reports ----------
class AttendanceSummary(CamelModel):
    present: int = 0
    absent: int = 0
    late: int = 0
    total: int = 0
    rate: int = 0

class ClassAttendanceSummary(AttendanceSummary):
    class_id: int
    class_name: str
    date: Day

class InstallmentBreakdown(CamelModel):
    paid: int
    pending: int
    overdue: int
    total: int
    paid_percentage: int
    pending_percentage: int
    overdue_percentage: int
    amount_collected: float
    amount_outstanding: float

class InventoryStats(CamelModel):
    total: int
    total_available: int
    total_distributed: int
    low_stock: int
