import json

import pytest

from coachdesk import ws_api


def rpc(ws, method, params=None, msg_id=1):
    ws.send_text(json.dumps({"id": msg_id, "method": method, "params": params or {}}))
    resp = json.loads(ws.receive_text())
    assert resp["id"] == msg_id
    return resp


@pytest.fixture
def ws(client):
    with client.websocket_connect("/ws") as conn:
        yield conn


def test_list_and_get(ws):
    users = rpc(ws, "users.by_role", {"role": "teacher"})["result"]
    assert {u["username"] for u in users} == {"teacher1", "teacher2"}
    assert all("password" not in u for u in users)

    cls = rpc(ws, "classes.get", {"class_id": 1})["result"]
    assert cls["name"] == "Math Class 8th"
    assert cls["teacherId"] == users[0]["id"]


def test_create_and_update_attendance(ws):
    created = rpc(ws, "attendance.create", {"studentId": 4, "classId": 2, "date": "2024-03-15"})["result"]
    assert created["status"] == "present"
    updated = rpc(ws, "attendance.update", {"attendance_id": created["id"], "updates": {"status": "absent"}})
    assert updated["result"]["status"] == "absent"
    on_day = rpc(ws, "attendance.by_date", {"date": "2024-03-15T10:00:00"})["result"]
    assert [a["id"] for a in on_day] == [created["id"]]


def test_note_loan_and_return(ws):
    note = rpc(ws, "publication_notes.create", {"title": "Biology Basics", "subject": "Biology",
                                                "grade": "9th", "totalStock": 3})["result"]
    loan = rpc(ws, "student_notes.create", {"studentId": 4, "noteId": note["id"]})["result"]
    assert rpc(ws, "publication_notes.get", {"note_id": note["id"]})["result"]["availableStock"] == 2
    rpc(ws, "student_notes.update", {"loan_id": loan["id"], "updates": {"isReturned": True}})
    assert rpc(ws, "publication_notes.get", {"note_id": note["id"]})["result"]["availableStock"] == 3


def test_installment_update_with_payment_date(ws):
    inst = rpc(ws, "installments.create", {"studentId": 4, "amount": 5000, "dueDate": "2024-04-01"})["result"]
    paid = rpc(ws, "installments.update", {"installment_id": inst["id"],
                                           "updates": {"status": "paid", "paymentDate": "2024-03-30"}})["result"]
    assert (paid["status"], paid["paymentDate"], paid["amount"]) == ("paid", "2024-03-30", 5000)


def test_errors(ws):
    assert rpc(ws, "students.get", {"student_id": 9999})["error"]["message"] == "students record not found"
    assert "Missing 'student_id'" in rpc(ws, "students.get")["error"]["message"]
    assert "Unknown method" in rpc(ws, "unknown.method", {"x": 1})["error"]["message"]
    assert "Invalid method" in rpc(ws, "nodot")["error"]["message"]
    bad = rpc(ws, "attendance.update", {"attendance_id": 1, "updates": {"status": "asleep"}})
    assert "error" in bad
    assert "error" in rpc(ws, "attendance.by_date", {"date": "yesterday"})


def test_invalid_json(ws):
    ws.send_text("{not json")
    assert json.loads(ws.receive_text())["error"]["message"] == "Invalid JSON"


@pytest.mark.parametrize("raw", ["[1]", '"x"', "42", "null"])
def test_non_object_message_keeps_session_open(ws, raw):
    ws.send_text(raw)
    assert json.loads(ws.receive_text())["error"]["message"] == "Invalid request"
    assert rpc(ws, "classes.get", {"class_id": 1})["result"]["id"] == 1


def test_non_object_params_rejected(ws):
    assert rpc(ws, "classes.get", [1])["error"]["message"] == "Invalid params"


class RecordingStorage:
    def __init__(self):
        self.calls = []

    def update_student_note_status(self, *args, **kwargs):
        self.calls.append((args, kwargs))
        return "ok"


def test_update_fields_passed_by_name():
    storage = RecordingStorage()
    _, ids, schema_cls = ws_api.ENTITY_MAP["student_notes"]["update"]
    ws_api.call(storage, "update_student_note_status", ids, schema_cls,
                {"loan_id": 7, "updates": {"condition": "fair", "isReturned": True}})
    assert storage.calls == [((7,), {"is_returned": True, "return_date": None, "condition": "fair"})]
