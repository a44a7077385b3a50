# coachdesk/auth.py
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from werkzeug.security import check_password_hash, generate_password_hash

from coachdesk import schemas
from coachdesk.storage import Storage

LOG = logging.getLogger(__name__)

SESSION_COOKIE = "coachdesk.sid"

router = APIRouter(prefix="/api", tags=["auth"])


def get_storage(request: Request) -> Storage:
    return request.app.state.storage


def _start_session(response: Response, storage: Storage, user: schemas.User):
    sid = storage.session_store.create({"user_id": user.id})
    response.set_cookie(SESSION_COOKIE, sid, max_age=storage.session_store.ttl,
                        httponly=True, samesite="lax")


def current_user(request: Request, storage: Storage = Depends(get_storage)) -> schemas.User:
    sid = request.cookies.get(SESSION_COOKIE)
    session = storage.session_store.get(sid) if sid else None
    user = storage.get_user(session["user_id"]) if session else None
    if not user:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user


def require_roles(*roles: str):
    def dependency(user: schemas.User = Depends(current_user)) -> schemas.User:
        if user.role not in roles:
            raise HTTPException(status_code=403, detail="Unauthorized")
        return user
    return dependency


# ---------- Auth endpoints ----------
@router.post("/register", response_model=schemas.UserOut, status_code=201)
def register(payload: schemas.UserCreate, response: Response, storage: Storage = Depends(get_storage)):
    if storage.get_user_by_username(payload.username):
        raise HTTPException(status_code=400, detail="Username already exists")
    hashed = payload.model_copy(update={"password": generate_password_hash(payload.password)})
    user = storage.create_user(hashed)
    _start_session(response, storage, user)
    return user

@router.post("/login", response_model=schemas.UserOut)
def login(payload: schemas.LoginRequest, response: Response, storage: Storage = Depends(get_storage)):
    user = storage.get_user_by_username(payload.username)
    if not user or not check_password_hash(user.password, payload.password):
        LOG.warning("Login failed for %s", payload.username)
        raise HTTPException(status_code=401, detail="Invalid credentials")
    _start_session(response, storage, user)
    return user

@router.post("/logout")
def logout(request: Request, response: Response, storage: Storage = Depends(get_storage)):
    sid = request.cookies.get(SESSION_COOKIE)
    if sid:
        storage.session_store.destroy(sid)
    response.delete_cookie(SESSION_COOKIE)
    return {"ok": True}

@router.get("/user", response_model=schemas.UserOut)
def read_current_user(user: schemas.User = Depends(current_user)):
    return user
