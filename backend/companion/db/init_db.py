"""Create all tables. Run on app startup."""
import logging

from companion.db.base import Base
from companion.db.session import engine
from companion.models import conversation_state, crisis_log  # noqa: F401 - register models

logger = logging.getLogger(__name__)


def init_db(bind=None):
    target = bind if bind is not None else engine
    Base.metadata.create_all(bind=target)
    logger.info(f"[DB] Tables ensured: {sorted(Base.metadata.tables)}")
