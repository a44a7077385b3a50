# coachdesk/seed.py
"""Deterministic demo data for local runs.

Covers every entity, every status value and every relationship. Names of
the extra students come from Faker with a fixed seed, and all dates are
relative to ``today``.
"""
import logging
from datetime import date, datetime, timedelta
from functools import lru_cache

from faker import Faker
from werkzeug.security import generate_password_hash

LOG = logging.getLogger(__name__)

FAKER_SEED = 2024
DEMO_PASSWORD = "admin123"
NUM_EXTRA_STUDENTS = 4


@lru_cache(maxsize=1)
def demo_password_hash() -> str:
    return generate_password_hash(DEMO_PASSWORD)


def _month(day: date) -> str:
    return day.strftime("%Y-%m")


def load_sample_data(storage, today: date = None):
    """Populate ``storage`` through its public create/update operations."""
    today = today or date.today()
    yesterday = today - timedelta(days=1)
    last_week = today - timedelta(days=7)
    last_month = today - timedelta(days=30)
    next_month = today + timedelta(days=30)
    previous_month = today.replace(day=1) - timedelta(days=1)
    password = demo_password_hash()

    fake = Faker("en_IN")
    fake.seed_instance(FAKER_SEED)

    # users
    storage.create_user({"username": "admin", "password": password, "full_name": "Administrator",
                         "email": "admin@vyawahare.edu", "role": "admin"})
    teacher1 = storage.create_user({"username": "teacher1", "password": password,
                                    "full_name": "Rahul Vyawahare", "email": "rahul@vyawahare.edu",
                                    "role": "teacher"})
    teacher2 = storage.create_user({"username": "teacher2", "password": password,
                                    "full_name": "Sneha Kulkarni", "email": "sneha@vyawahare.edu",
                                    "role": "teacher"})

    student1 = storage.create_user({"username": "student1", "password": password, "full_name": "Raj Patel",
                                    "email": "raj@vyawahare.edu", "role": "student", "grade": "8th"})
    storage.create_student({"user_id": student1.id, "parent_name": "Suresh Patel", "phone": "9876543210",
                            "address": "123 Main Street, Pune", "date_of_birth": date(2010, 5, 15)})
    student2 = storage.create_user({"username": "student2", "password": password, "full_name": "Priya Sharma",
                                    "email": "priya@vyawahare.edu", "role": "student", "grade": "10th"})
    storage.create_student({"user_id": student2.id, "parent_name": "Anita Sharma", "phone": "9876543211",
                            "address": "456 Park Avenue, Pune", "date_of_birth": date(2008, 7, 20)})

    extra = []
    for i in range(NUM_EXTRA_STUDENTS):
        grade = "8th" if i % 2 == 0 else "10th"
        user = storage.create_user({"username": f"student{i + 3}", "password": password,
                                    "full_name": fake.name(), "email": f"student{i + 3}@vyawahare.edu",
                                    "role": "student", "grade": grade})
        storage.create_student({"user_id": user.id, "parent_name": fake.name(), "phone": fake.msisdn()[:10],
                                "address": fake.address().replace("\n", ", "),
                                "date_of_birth": fake.date_of_birth(minimum_age=12, maximum_age=16)})
        extra.append(user)

    # classes
    math8 = storage.create_class({"name": "Math Class 8th", "grade": "8th", "teacher_id": teacher1.id,
                                  "schedule": "Monday, Wednesday, Friday 9:00 AM - 10:30 AM"})
    science10 = storage.create_class({"name": "Science Class 10th", "grade": "10th", "teacher_id": teacher1.id,
                                      "schedule": "Tuesday, Thursday 10:30 AM - 12:00 PM"})
    english8 = storage.create_class({"name": "English Class 8th", "grade": "8th", "teacher_id": teacher2.id})

    # attendance
    storage.create_attendance({"student_id": student1.id, "class_id": math8.id, "date": yesterday,
                               "status": "present"})
    storage.create_attendance({"student_id": student1.id, "class_id": math8.id, "date": last_week,
                               "status": "absent"})
    storage.create_attendance({"student_id": student2.id, "class_id": science10.id, "date": yesterday,
                               "status": "present"})
    storage.create_attendance({"student_id": extra[0].id, "class_id": english8.id, "date": yesterday,
                               "status": "late"})
    storage.create_attendance({"student_id": extra[1].id, "class_id": science10.id, "date": yesterday,
                               "status": "absent"})

    # test results
    storage.create_test_result({"name": "Midterm Math Exam", "student_id": student1.id, "class_id": math8.id,
                                "date": last_week, "score": 85, "max_score": 100, "status": "graded"})
    storage.create_test_result({"name": "Science Quiz", "student_id": student2.id, "class_id": science10.id,
                                "date": yesterday, "score": 75, "max_score": 100, "status": "graded"})
    storage.create_test_result({"name": "Grammar Unit Test", "student_id": extra[0].id, "class_id": english8.id,
                                "date": today, "score": 0, "max_score": 50})

    # installments
    storage.create_installment({"student_id": student1.id, "amount": 5000, "due_date": last_month,
                                "payment_date": last_month, "status": "paid"})
    storage.create_installment({"student_id": student1.id, "amount": 5000, "due_date": next_month})
    storage.create_installment({"student_id": student2.id, "amount": 7500, "due_date": last_month,
                                "status": "overdue"})
    storage.create_installment({"student_id": student2.id, "amount": 7500, "due_date": next_month})

    # events
    storage.create_event({"title": "Parent-Teacher Meeting", "description": "Quarterly progress review",
                          "date": today + timedelta(days=7), "time": "10:00 AM", "target_grades": "8th,10th"})
    storage.create_event({"title": "Science Exhibition", "date": today + timedelta(days=14),
                          "time": "9:00 AM", "target_grades": "10th"})
    storage.create_event({"title": "Annual Day", "description": "Cultural programme and prize distribution",
                          "date": next_month})

    # teacher payments
    storage.create_teacher_payment({"teacher_id": teacher1.id, "amount": 25000, "month": _month(previous_month),
                                    "description": "Monthly salary", "payment_date": previous_month,
                                    "status": "paid"})
    storage.create_teacher_payment({"teacher_id": teacher1.id, "amount": 25000, "month": _month(today),
                                    "description": "Monthly salary"})
    storage.create_teacher_payment({"teacher_id": teacher2.id, "amount": 3000, "month": _month(today),
                                    "description": "Workshop honorarium", "status": "cancelled"})

    # publication notes
    now = datetime.combine(today, datetime.min.time())
    math_notes = storage.create_publication_note({
        "title": "Mathematics for 10th Standard", "subject": "Mathematics", "grade": "10th",
        "total_stock": 50, "available_stock": 35, "low_stock_threshold": 10, "last_restocked": now,
        "description": "Comprehensive math workbook covering algebra, geometry, and trigonometry"})
    science_notes = storage.create_publication_note({
        "title": "Science Fundamentals Grade 8", "subject": "Science", "grade": "8th",
        "total_stock": 40, "available_stock": 8, "low_stock_threshold": 10, "last_restocked": now,
        "description": "Covers basic physics, chemistry and biology concepts"})
    english_notes = storage.create_publication_note({
        "title": "English Grammar & Composition", "subject": "English", "grade": "9th",
        "total_stock": 60, "available_stock": 12, "low_stock_threshold": 15, "last_restocked": now,
        "description": "Grammar rules, essay writing and literary analysis"})
    storage.create_publication_note({
        "title": "History of Modern India", "subject": "History", "grade": "11th",
        "total_stock": 30, "available_stock": 2, "low_stock_threshold": 5, "last_restocked": now,
        "description": "Comprehensive coverage of Indian independence movement"})

    # note loans
    issued = datetime.combine(last_week, datetime.min.time())
    storage.create_student_note({"student_id": student1.id, "note_id": science_notes.id,
                                 "date_issued": issued, "condition": "excellent"})
    storage.create_student_note({"student_id": student2.id, "note_id": math_notes.id, "date_issued": issued})
    returned = storage.create_student_note({"student_id": extra[0].id, "note_id": english_notes.id,
                                            "date_issued": issued, "notes": "Cover slightly torn"})
    storage.update_student_note_status(returned.id, True, condition="fair")

    LOG.info("Loaded sample data: %d users, %d classes, %d publication notes",
             len(storage.get_users()), len(storage.get_classes()), len(storage.get_publication_notes()))
