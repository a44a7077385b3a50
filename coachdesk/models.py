# coachdesk/models.py
# Reference columns are plain indexed integers; relationships are checked by callers, not the database.
from sqlalchemy import Boolean, Column, Date, DateTime, Float, Integer, String, Text

from coachdesk.db import Base


class User(Base):
    __tablename__ = 'users'
    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, nullable=False, index=True)
    password = Column(String, nullable=False)
    full_name = Column(String, nullable=False)
    email = Column(String, nullable=False)
    role = Column(String, nullable=False, default='student', index=True)
    grade = Column(String, nullable=True)
    join_date = Column(DateTime, nullable=False)


class Student(Base):
    __tablename__ = 'students'
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False, unique=True, index=True)
    parent_name = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    address = Column(String, nullable=True)
    date_of_birth = Column(Date, nullable=True)


class SchoolClass(Base):
    __tablename__ = 'classes'
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    grade = Column(String, nullable=False)
    teacher_id = Column(Integer, nullable=False, index=True)
    schedule = Column(String, nullable=True)


class Attendance(Base):
    __tablename__ = 'attendance'
    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, nullable=False, index=True)
    class_id = Column(Integer, nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    status = Column(String, nullable=False, default='present')


class TestResult(Base):
    __tablename__ = 'test_results'
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    student_id = Column(Integer, nullable=False, index=True)
    class_id = Column(Integer, nullable=False, index=True)
    date = Column(Date, nullable=False)
    score = Column(Float, nullable=False)
    max_score = Column(Float, nullable=False, default=100)
    status = Column(String, nullable=False, default='pending')


class Installment(Base):
    __tablename__ = 'installments'
    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, nullable=False, index=True)
    amount = Column(Float, nullable=False)
    due_date = Column(Date, nullable=False)
    payment_date = Column(Date, nullable=True)
    status = Column(String, nullable=False, default='pending', index=True)


class Event(Base):
    __tablename__ = 'events'
    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    date = Column(Date, nullable=False)
    time = Column(String, nullable=True)
    target_grades = Column(String, nullable=True)


class TeacherPayment(Base):
    __tablename__ = 'teacher_payments'
    id = Column(Integer, primary_key=True, index=True)
    teacher_id = Column(Integer, nullable=False, index=True)
    amount = Column(Float, nullable=False)
    month = Column(String, nullable=False, index=True)  # YYYY-MM
    description = Column(Text, nullable=True)
    payment_date = Column(Date, nullable=True)
    status = Column(String, nullable=False, default='pending')


class PublicationNote(Base):
    __tablename__ = 'publication_notes'
    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    subject = Column(String, nullable=False, index=True)
    grade = Column(String, nullable=False, index=True)
    total_stock = Column(Integer, nullable=False, default=0)
    available_stock = Column(Integer, nullable=False, default=0)
    low_stock_threshold = Column(Integer, nullable=False, default=5)
    last_restocked = Column(DateTime, nullable=True)
    description = Column(Text, nullable=True)


class StudentNote(Base):
    __tablename__ = 'student_notes'
    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, nullable=False, index=True)
    note_id = Column(Integer, nullable=False, index=True)
    date_issued = Column(DateTime, nullable=False)
    is_returned = Column(Boolean, nullable=False, default=False, index=True)
    return_date = Column(DateTime, nullable=True)
    condition = Column(String, nullable=False, default='good')
    notes = Column(Text, nullable=True)
