# coachdesk/backend.py
import logging
from enum import Enum
from typing import NamedTuple

from sqlalchemy.exc import SQLAlchemyError

from coachdesk import db
from coachdesk.config import Settings
from coachdesk.sql_storage import SqlStorage
from coachdesk.storage import MemStorage, Storage

LOG = logging.getLogger(__name__)


class Backend(str, Enum):
    MEMORY = "memory"
    REMOTE = "remote"


class ActiveStorage(NamedTuple):
    backend: Backend
    storage: Storage


def memory_storage(settings: Settings) -> ActiveStorage:
    return ActiveStorage(Backend.MEMORY, MemStorage(seed=settings.seed_sample_data,
                                                    session_ttl=settings.session_ttl))


def init_storage(settings: Settings) -> ActiveStorage:
    """Pick the backend once at start-up.

    The remote backend is used only when requested and reachable; otherwise
    the in-memory store is returned and the fallback is logged.
    """
    if not settings.use_remote_db:
        LOG.info("Using in-memory storage")
        return memory_storage(settings)

    try:
        engine = db.make_engine(settings.database_url, settings.db_timeout)
    except (SQLAlchemyError, ImportError) as exc:
        LOG.warning("Cannot configure remote database (%s); falling back to in-memory storage", exc)
        return memory_storage(settings)

    if not db.check_connection(engine):
        LOG.warning("Remote database unreachable; falling back to in-memory storage")
        engine.dispose()
        return memory_storage(settings)

    try:
        db.init_db(engine)
    except SQLAlchemyError as exc:
        LOG.warning("Cannot create remote tables (%s); falling back to in-memory storage", exc)
        engine.dispose()
        return memory_storage(settings)

    LOG.info("Using remote database storage")
    return ActiveStorage(Backend.REMOTE, SqlStorage(db.make_sessionmaker(engine),
                                                    session_ttl=settings.session_ttl))
