from datetime import date, timedelta

import pytest


def test_requires_login(client):
    assert client.get("/api/classes").status_code == 401
    assert client.get("/api/user").status_code == 401


def test_login_logout_roundtrip(client, login_as):
    user = login_as("teacher1")
    assert user["fullName"] == "Rahul Vyawahare"
    assert "password" not in user
    assert client.get("/api/user").json()["username"] == "teacher1"
    assert client.post("/api/logout").json() == {"ok": True}
    assert client.get("/api/user").status_code == 401


def test_bad_credentials(client):
    r = client.post("/api/login", json={"username": "admin", "password": "nope"})
    assert r.status_code == 401


def test_register_hashes_password_and_starts_session(client, seeded_store):
    payload = {"username": "newkid", "password": "s3cret", "fullName": "New Kid",
               "email": "newkid@vyawahare.edu", "grade": "8th"}
    r = client.post("/api/register", json=payload)
    assert r.status_code == 201
    assert r.json()["role"] == "student"
    assert seeded_store.get_user_by_username("newkid").password != "s3cret"
    assert client.get("/api/user").json()["username"] == "newkid"
    assert client.post("/api/register", json=payload).status_code == 400


def test_role_checks(client, login_as):
    login_as("student1")
    assert client.get("/api/users").status_code == 403
    assert client.post("/api/events", json={"title": "x", "date": "2024-01-01"}).status_code == 403
    assert client.get("/api/users/teacher").status_code == 200


def test_users_endpoints(admin_client):
    users = admin_client.get("/api/users").json()
    assert {"admin", "teacher1", "student1"} <= {u["username"] for u in users}
    assert all("password" not in u for u in users)
    teachers = admin_client.get("/api/users/teacher").json()
    assert {t["username"] for t in teachers} == {"teacher1", "teacher2"}
    assert admin_client.get("/api/users/janitor").status_code == 422


def test_classes(admin_client):
    teacher = admin_client.get("/api/users/teacher").json()[0]
    r = admin_client.post("/api/classes", json={"name": "Physics 9th", "grade": "9th", "teacherId": teacher["id"]})
    assert r.status_code == 201
    created = r.json()
    assert created["schedule"] is None
    assert admin_client.get(f"/api/classes/{created['id']}").json() == created
    mine = admin_client.get(f"/api/classes/teacher/{teacher['id']}").json()
    assert created["id"] in [c["id"] for c in mine]
    assert admin_client.get("/api/classes/999").status_code == 404


def test_attendance_flow(teacher_client):
    today = date.today().isoformat()
    r = teacher_client.post("/api/attendance", json={"studentId": 4, "classId": 1, "date": today})
    assert r.status_code == 201
    record = r.json()
    assert record["status"] == "present"

    on_day = teacher_client.get("/api/attendance", params={"date": today + "T17:30:00"}).json()
    assert [a["id"] for a in on_day] == [record["id"]]

    r = teacher_client.patch(f"/api/attendance/{record['id']}", json={"status": "late"})
    assert r.json()["status"] == "late"
    assert teacher_client.patch(f"/api/attendance/{record['id']}", json={"status": "asleep"}).status_code == 422
    assert teacher_client.patch("/api/attendance/9999", json={"status": "late"}).status_code == 404

    by_class = teacher_client.get("/api/attendance", params={"classId": 1}).json()
    assert record["id"] in [a["id"] for a in by_class]
    assert teacher_client.get("/api/attendance").status_code == 400
    assert teacher_client.get("/api/attendance", params={"date": "not-a-date"}).status_code == 400


def test_test_results_flow(teacher_client):
    r = teacher_client.post("/api/test-results", json={"name": "Surprise Quiz", "studentId": 4, "classId": 1,
                                                       "date": "2024-03-15", "score": 0})
    created = r.json()
    assert (created["maxScore"], created["status"]) == (100, "pending")
    graded = teacher_client.patch(f"/api/test-results/{created['id']}", json={"score": 88, "status": "graded"}).json()
    assert (graded["score"], graded["status"]) == (88, "graded")
    assert teacher_client.get("/api/test-results", params={"studentId": 4}).json()[-1]["id"] == created["id"]
    assert teacher_client.get("/api/test-results").status_code == 400


def test_installments_flow(admin_client):
    r = admin_client.post("/api/installments", json={"studentId": 1, "amount": 5000, "dueDate": "2024-04-01",
                                                     "status": "pending"})
    inst = r.json()
    paid = admin_client.patch(f"/api/installments/{inst['id']}",
                              json={"status": "paid", "paymentDate": "2024-03-28"}).json()
    assert paid["status"] == "paid"
    assert paid["paymentDate"] == "2024-03-28"
    assert paid["amount"] == 5000
    overdue = admin_client.get("/api/installments", params={"status": "overdue"}).json()
    assert overdue and all(i["status"] == "overdue" for i in overdue)
    assert admin_client.get("/api/installments", params={"status": "lost"}).status_code == 422


def test_events(admin_client):
    r = admin_client.post("/api/events", json={"title": "Board Exam Briefing", "date": "2024-05-01",
                                               "targetGrades": "10th"})
    assert r.status_code == 201
    event = r.json()
    assert event["targetGrades"] == "10th"
    assert event in admin_client.get("/api/events").json()


def test_teacher_payments(admin_client):
    month = date.today().strftime("%Y-%m")
    this_month = admin_client.get("/api/teacher-payments", params={"month": month}).json()
    assert len(this_month) == 2
    pending = next(p for p in this_month if p["status"] == "pending")
    paid = admin_client.patch(f"/api/teacher-payments/{pending['id']}",
                              json={"status": "paid", "paymentDate": date.today().isoformat()}).json()
    assert paid["status"] == "paid"
    r = admin_client.post("/api/teacher-payments", json={"teacherId": 2, "amount": 100, "month": "March"})
    assert r.status_code == 422


def test_note_lending_updates_stock(admin_client):
    note = admin_client.post("/api/publication-notes", json={
        "title": "Chemistry Primer", "subject": "Chemistry", "grade": "9th",
        "totalStock": 10, "availableStock": 10, "lowStockThreshold": 5}).json()
    loans = [admin_client.post("/api/student-notes", json={"studentId": 4, "noteId": note["id"]}).json()
             for _ in range(6)]
    assert admin_client.get(f"/api/publication-notes/{note['id']}").json()["availableStock"] == 4
    low = admin_client.get("/api/publication-notes/low-stock").json()
    assert note["id"] in [n["id"] for n in low]

    for loan in loans[:2]:
        r = admin_client.patch(f"/api/student-notes/{loan['id']}", json={"isReturned": True, "condition": "fair"})
        assert r.json()["returnDate"] is not None
    assert admin_client.get(f"/api/publication-notes/{note['id']}").json()["availableStock"] == 6
    low = admin_client.get("/api/publication-notes/low-stock").json()
    assert note["id"] not in [n["id"] for n in low]

    by_note = admin_client.get("/api/student-notes", params={"noteId": note["id"]}).json()
    assert len(by_note) == 6
    assert admin_client.post("/api/student-notes", json={"studentId": 4, "noteId": 999}).status_code == 400


def test_restock(admin_client):
    note = admin_client.get("/api/publication-notes", params={"subject": "History"}).json()[0]
    restocked = admin_client.patch(f"/api/publication-notes/{note['id']}/stock",
                                   json={"totalStock": 40, "availableStock": 45}).json()
    assert (restocked["totalStock"], restocked["availableStock"]) == (40, 40)
    assert admin_client.patch("/api/publication-notes/999/stock",
                              json={"totalStock": 1, "availableStock": 1}).status_code == 404


def test_students(admin_client):
    students = admin_client.get("/api/students").json()
    profile = admin_client.get(f"/api/students/user/{students[0]['userId']}").json()
    assert profile == students[0]
    admin = admin_client.get("/api/user").json()
    r = admin_client.post("/api/students", json={"userId": admin["id"], "phone": "9000000000"})
    assert r.status_code == 201
    assert admin_client.post("/api/students", json={"userId": admin["id"]}).status_code == 400
    assert admin_client.post("/api/students", json={"userId": 999}).status_code == 400


def test_attendance_report(admin_client):
    today = date.today()
    a = admin_client.post("/api/classes", json={"name": "Report Class", "grade": "8th", "teacherId": 2}).json()
    for status in ("present", "present", "absent"):
        admin_client.post("/api/attendance", json={"studentId": 4, "classId": a["id"],
                                                   "date": today.isoformat(), "status": status})
    rows = admin_client.get("/api/reports/attendance", params={"date": today.isoformat()}).json()
    [row] = [r for r in rows if r["classId"] == a["id"]]
    assert (row["present"], row["absent"], row["rate"]) == (2, 1, 67)
    assert row["className"] == "Report Class"

    yesterday = (today - timedelta(days=1)).isoformat()
    names = {r["className"] for r in admin_client.get("/api/reports/attendance", params={"date": yesterday}).json()}
    assert names == {"Math Class 8th", "Science Class 10th", "English Class 8th"}


def test_attendance_report_unknown_class_is_404(admin_client):
    admin_client.post("/api/attendance", json={"studentId": 4, "classId": 555, "date": "2024-01-02"})
    r = admin_client.get("/api/reports/attendance", params={"date": "2024-01-02"})
    assert r.status_code == 404
    assert "555" in r.json()["detail"]


@pytest.mark.parametrize("path", ["/api/reports/installments", "/api/reports/inventory"])
def test_summary_reports(admin_client, path):
    r = admin_client.get(path)
    assert r.status_code == 200
    assert r.json()["total"] > 0
