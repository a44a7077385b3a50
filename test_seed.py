import logging
from datetime import date

from coachdesk import reports
from coachdesk.seed import load_sample_data
from coachdesk.storage import MemStorage

TODAY = date(2024, 6, 10)


def test_seed_covers_every_status(seeded_store):
    statuses = {a.status for c in seeded_store.get_classes() for a in seeded_store.get_attendance_by_class(c.id)}
    assert statuses == {"present", "absent", "late"}
    for status in ("paid", "pending", "overdue"):
        assert seeded_store.get_installments_by_status(status)
    for status in ("paid", "pending", "cancelled"):
        assert seeded_store.get_teacher_payments_by_status(status)
    assert {u.role for u in seeded_store.get_users()} == {"admin", "teacher", "student"}


def test_seed_relationships_resolve(seeded_store):
    for student in seeded_store.get_students():
        assert seeded_store.get_user(student.user_id).role == "student"
    for cls in seeded_store.get_classes():
        assert seeded_store.get_user(cls.teacher_id).role == "teacher"
        for result in seeded_store.get_test_results_by_class(cls.id):
            assert seeded_store.get_user(result.student_id) is not None


def test_seed_loans_adjust_stock(seeded_store):
    loans = [loan for note in seeded_store.get_publication_notes()
             for loan in seeded_store.get_student_notes_by_note(note.id)]
    assert any(loan.is_returned for loan in loans)
    assert any(not loan.is_returned for loan in loans)
    science = seeded_store.get_publication_notes_by_subject("Science")[0]
    assert science.available_stock == 7
    english = seeded_store.get_publication_notes_by_subject("English")[0]
    assert english.available_stock == 12
    assert reports.inventory_stats(seeded_store.get_publication_notes()).low_stock == 3


def test_seed_is_deterministic():
    first, second = MemStorage(seed=False), MemStorage(seed=False)
    load_sample_data(first, today=TODAY)
    load_sample_data(second, today=TODAY)
    names = lambda s: [(u.username, u.full_name, u.grade) for u in s.get_users()]
    assert names(first) == names(second)
    assert [s.address for s in first.get_students()] == [s.address for s in second.get_students()]
    assert first.get_events()[0].date == date(2024, 6, 17)


def test_seed_failure_is_logged_and_store_stays_usable(monkeypatch, caplog):
    def broken(self, class_data):
        raise RuntimeError("boom")

    monkeypatch.setattr(MemStorage, "create_class", broken)
    with caplog.at_level(logging.ERROR, logger="coachdesk.storage"):
        store = MemStorage(seed=True)

    assert "Failed to load sample data" in caplog.text
    assert store.get_user_by_username("admin") is not None
    assert store.get_classes() == []
    assert store.create_event({"title": "Still works", "date": TODAY}).id == 1


def test_seed_runs_against_sql_backend(sql_store):
    load_sample_data(sql_store, today=TODAY)
    assert len(sql_store.get_users_by_role("teacher")) == 2
    assert len(sql_store.get_low_stock_publication_notes()) == 3
    assert len(sql_store.get_attendance_by_date(date(2024, 6, 9))) == 4
