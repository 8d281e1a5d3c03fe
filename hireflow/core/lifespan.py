from contextlib import asynccontextmanager
import logging

from hireflow.storage.db import init_db
from hireflow.storage.files import ensure_storage_root

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app):
    init_db()
    root = ensure_storage_root()
    logger.info("startup_complete storage_root=%s", root)
    yield
