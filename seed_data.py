# Run: python seed_data.py (recreates the tables at DATABASE_URL and fills them with demo data)
import logging

from coachdesk import db
from coachdesk.config import Settings, configure_logging
from coachdesk.seed import load_sample_data
from coachdesk.sql_storage import SqlStorage

LOG = logging.getLogger("seed_data")


def seed(settings: Settings = None):
    settings = settings or Settings.from_env()
    engine = db.make_engine(settings.database_url, settings.db_timeout)
    db.init_db(engine)
    # clear existing
    db.Base.metadata.drop_all(bind=engine)
    db.Base.metadata.create_all(bind=engine)

    storage = SqlStorage(db.make_sessionmaker(engine))
    load_sample_data(storage)
    LOG.info("Seeded %s with %d users and %d classes",
             settings.database_url, len(storage.get_users()), len(storage.get_classes()))
    return storage


if __name__ == '__main__':
    configure_logging()
    seed()
