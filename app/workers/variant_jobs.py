"""RQ worker jobs: derive image variants outside the request cycle."""
import logging
from contextlib import contextmanager
from app import create_app
from flask import current_app, has_app_context
from app import extensions
from app.services import batch_service
from app.services.storage_service import get_storage

logger = logging.getLogger(__name__)

_worker_app = None

LOCK_TIMEOUT = 600


def _get_app():
    """Return an app instance for worker execution.

    Reuse the current app when already inside an app context (tests/CLI),
    otherwise lazily create the worker app once.
    """
    global _worker_app
    if has_app_context():
        return current_app._get_current_object()
    if _worker_app is None:
        _worker_app = create_app()
    return _worker_app


@contextmanager
def variant_lock(base_identifier):
    """Distributed lock keyed by base identifier; yields whether it was acquired.

    Without Redis there is nothing to coordinate with, so the lock is
    always granted.
    """
    redis_client = extensions.redis_client
    if redis_client is None:
        yield True
        return

    lock = redis_client.lock(f"variants:{base_identifier}", timeout=LOCK_TIMEOUT)
    if not lock.acquire(blocking=False):
        yield False
        return
    try:
        yield True
    finally:
        try:
            lock.release()
        except Exception:
            logger.warning("Lock for %s expired before release", base_identifier)


def optimize_directories(directories=None):
    """Generate missing variants for every source image in ``directories``.

    Defaults to IMAGE_DIRECTORIES. Returns the batch report as a dict so
    RQ can store it as the job result.
    """
    app = _get_app()
    with app.app_context():
        directories = directories or app.config["IMAGE_DIRECTORIES"]
        report = batch_service.process_all(
            directories, get_storage(), lock_for=variant_lock
        )
        for line in report.summary_lines():
            logger.info(line)
        return report.to_dict()


def generate_variants_for(source_key):
    """Generate missing variants for one stored source image."""
    app = _get_app()
    with app.app_context():
        report = batch_service.BatchReport()
        batch_service.process_file(
            source_key, get_storage(), report, lock_for=variant_lock
        )
        return report.to_dict()
