# coachdesk/ws_api.py
import json
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import BaseModel, ValidationError

from coachdesk import schemas
from coachdesk.errors import StorageError

LOG = logging.getLogger(__name__)

router = APIRouter()

# ---------------- JSON-RPC Helpers ----------------------
def rpc_result(msg_id, result):
    return json.dumps({"id": msg_id, "result": result})

def rpc_error(msg_id, error):
    return json.dumps({"id": msg_id, "error": {"message": error}})

# ---------------- Serialization Helpers ----------------------
def serialize(value):
    if isinstance(value, list):
        return [serialize(v) for v in value]
    if isinstance(value, schemas.User):
        value = schemas.UserOut.model_validate(value)
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    return value

# ---------------- Method Mappings ----------------------
# action -> (storage method, positional params, insert/update schema)
# With a schema, create methods receive the validated params as the record and
# update methods receive the record id plus the schema's fields as keywords.
ENTITY_MAP = {
    "users": {
        "get": ("get_user", ["user_id"], None),
        "by_username": ("get_user_by_username", ["username"], None),
        "list": ("get_users", [], None),
        "by_role": ("get_users_by_role", ["role"], None),
    },
    "students": {
        "get": ("get_student", ["student_id"], None),
        "by_user": ("get_student_by_user_id", ["user_id"], None),
        "list": ("get_students", [], None),
        "create": ("create_student", [], schemas.StudentCreate),
    },
    "classes": {
        "get": ("get_class", ["class_id"], None),
        "list": ("get_classes", [], None),
        "by_teacher": ("get_classes_by_teacher", ["teacher_id"], None),
        "create": ("create_class", [], schemas.ClassCreate),
    },
    "attendance": {
        "get": ("get_attendance", ["attendance_id"], None),
        "by_class": ("get_attendance_by_class", ["class_id"], None),
        "by_student": ("get_attendance_by_student", ["student_id"], None),
        "by_date": ("get_attendance_by_date", ["date"], None),
        "create": ("create_attendance", [], schemas.AttendanceCreate),
        "update": ("update_attendance", ["attendance_id"], schemas.AttendanceUpdate),
    },
    "test_results": {
        "get": ("get_test_result", ["result_id"], None),
        "by_class": ("get_test_results_by_class", ["class_id"], None),
        "by_student": ("get_test_results_by_student", ["student_id"], None),
        "create": ("create_test_result", [], schemas.TestResultCreate),
        "update": ("update_test_result", ["result_id"], schemas.TestResultUpdate),
    },
    "installments": {
        "get": ("get_installment", ["installment_id"], None),
        "by_student": ("get_installments_by_student", ["student_id"], None),
        "by_status": ("get_installments_by_status", ["status"], None),
        "create": ("create_installment", [], schemas.InstallmentCreate),
        "update": ("update_installment", ["installment_id"], schemas.InstallmentUpdate),
    },
    "events": {
        "get": ("get_event", ["event_id"], None),
        "list": ("get_events", [], None),
        "create": ("create_event", [], schemas.EventCreate),
    },
    "teacher_payments": {
        "get": ("get_teacher_payment", ["payment_id"], None),
        "by_teacher": ("get_teacher_payments_by_teacher", ["teacher_id"], None),
        "by_month": ("get_teacher_payments_by_month", ["month"], None),
        "by_status": ("get_teacher_payments_by_status", ["status"], None),
        "create": ("create_teacher_payment", [], schemas.TeacherPaymentCreate),
        "update": ("update_teacher_payment", ["payment_id"], schemas.TeacherPaymentUpdate),
    },
    "publication_notes": {
        "get": ("get_publication_note", ["note_id"], None),
        "list": ("get_publication_notes", [], None),
        "by_subject": ("get_publication_notes_by_subject", ["subject"], None),
        "by_grade": ("get_publication_notes_by_grade", ["grade"], None),
        "low_stock": ("get_low_stock_publication_notes", [], None),
        "create": ("create_publication_note", [], schemas.PublicationNoteCreate),
        "update_stock": ("update_publication_note_stock", ["note_id"], schemas.PublicationNoteStockUpdate),
    },
    "student_notes": {
        "get": ("get_student_note", ["loan_id"], None),
        "by_student": ("get_student_notes_by_student", ["student_id"], None),
        "by_note": ("get_student_notes_by_note", ["note_id"], None),
        "create": ("create_student_note", [], schemas.StudentNoteCreate),
        "update": ("update_student_note_status", ["loan_id"], schemas.StudentNoteUpdate),
    },
}


class MissingParam(Exception):
    pass


def call(storage, method: str, param_names, schema_cls, params: dict):
    func = getattr(storage, method)
    args = []
    for name in param_names:
        if params.get(name) is None:
            raise MissingParam(name)
        args.append(params[name])
    if schema_cls is None:
        return func(*args)
    if not param_names:
        return func(schema_cls.model_validate(params))
    updates = schema_cls.model_validate(params.get("updates", {}))
    return func(*args, **updates.model_dump())


# ---------------- WebSocket Endpoint ----------------------
@router.websocket("/ws")
async def websocket_handler(ws: WebSocket):
    await ws.accept()
    storage = ws.app.state.storage
    try:
        while True:
            raw = await ws.receive_text()
            try:
                message = json.loads(raw)
            except json.JSONDecodeError:
                await ws.send_text(rpc_error(None, "Invalid JSON"))
                continue
            if not isinstance(message, dict):
                await ws.send_text(rpc_error(None, "Invalid request"))
                continue
            msg_id = message.get("id")
            method = message.get("method") or ""
            params = message.get("params") or {}
            if not isinstance(params, dict):
                await ws.send_text(rpc_error(msg_id, "Invalid params"))
                continue

            if not isinstance(method, str) or "." not in method:
                await ws.send_text(rpc_error(msg_id, f"Invalid method '{method}'"))
                continue

            entity_name, action = method.split(".", 1)
            entity = ENTITY_MAP.get(entity_name)
            if not entity or action not in entity:
                await ws.send_text(rpc_error(msg_id, f"Unknown method '{method}'"))
                continue

            try:
                result = call(storage, *entity[action], params)
            except MissingParam as e:
                await ws.send_text(rpc_error(msg_id, f"Missing '{e}'"))
                continue
            except (ValidationError, ValueError, TypeError, StorageError) as e:
                await ws.send_text(rpc_error(msg_id, str(e)))
                continue

            if result is None:
                await ws.send_text(rpc_error(msg_id, f"{entity_name} record not found"))
            else:
                await ws.send_text(rpc_result(msg_id, serialize(result)))

    except WebSocketDisconnect:
        LOG.info("WebSocket client disconnected")
