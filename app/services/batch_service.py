"""Derive variants for images already sitting in storage directories."""
import logging

from botocore.exceptions import BotoCoreError, ClientError

from app.services import variant_service
from app.services.image_service import MissingDirectory, SUPPORTED_EXTENSIONS
from app.services.naming import (
    SIZE_NAMES,
    base_identifier,
    extension,
    is_tagged,
    variant_filename,
)
from app.services.storage_service import join_key

logger = logging.getLogger(__name__)


class BatchReport:
    def __init__(self):
        self.processed_count = 0
        self.skipped_count = 0  # already-optimized variants
        self.unsupported_count = 0
        self.failed_count = 0
        self.locked_count = 0
        self.variants_written = 0
        self.variants_skipped = 0
        self.failures = []  # (key, message)
        self.missing_directories = []
        self.directory_errors = []  # (directory, message)

    def to_dict(self):
        return {
            "processed_count": self.processed_count,
            "skipped_count": self.skipped_count,
            "unsupported_count": self.unsupported_count,
            "failed_count": self.failed_count,
            "locked_count": self.locked_count,
            "variants_written": self.variants_written,
            "variants_skipped": self.variants_skipped,
            "failures": [
                {"key": key, "error": message} for key, message in self.failures
            ],
            "missing_directories": list(self.missing_directories),
            "directory_errors": [
                {"directory": directory, "error": message}
                for directory, message in self.directory_errors
            ],
        }

    def summary_lines(self):
        lines = [
            f"Processed: {self.processed_count}",
            f"Skipped (already optimized): {self.skipped_count}",
            f"Skipped (unsupported): {self.unsupported_count}",
            f"Failed: {self.failed_count}",
            f"Variants written: {self.variants_written}"
            f" (existing: {self.variants_skipped})",
        ]
        if self.locked_count:
            lines.append(f"Locked by another worker: {self.locked_count}")
        for directory in self.missing_directories:
            lines.append(f"Missing directory: {directory}")
        for directory, message in self.directory_errors:
            lines.append(f"Unreadable directory: {directory}: {message}")
        for key, message in self.failures:
            lines.append(f"  FAILED {key}: {message}")
        return lines


def _candidates(directory, storage, report):
    """Source file names in ``directory``, counting the ones skipped."""
    names = []
    for name in storage.list_files(directory):
        # Never derive variants from variants
        if is_tagged(name):
            report.skipped_count += 1
            continue
        if extension(name) not in SUPPORTED_EXTENSIONS:
            report.unsupported_count += 1
            continue
        names.append(name)
    return names


def process_file(key, storage, report, lock_for=None):
    """Generate variants for one source key, recording the outcome."""
    base = base_identifier(key)
    directory = key.rsplit("/", 1)[0] if "/" in key else ""

    if lock_for is not None:
        with lock_for(base) as acquired:
            if not acquired:
                logger.info("Lock held for %s, skipping", base)
                report.locked_count += 1
                return
            _generate_into(key, base, directory, storage, report)
    else:
        _generate_into(key, base, directory, storage, report)


def _generate_into(key, base, directory, storage, report):
    logger.info("Processing %s", key)
    try:
        result = variant_service.generate(storage.read(key), base, directory, storage)
    except Exception as e:
        # One bad file must never halt the batch
        logger.exception("Failed processing %s", key)
        report.failed_count += 1
        report.failures.append((key, str(e)))
        return

    report.variants_written += len(result.variants)
    report.variants_skipped += len(result.skipped)
    if result.errors:
        report.failed_count += 1
        message = "; ".join(f"{size}: {err}" for size, err in result.errors.items())
        report.failures.append((key, message))
    else:
        report.processed_count += 1


def process_all(directories, storage, lock_for=None):
    """Generate missing variants for every source image in ``directories``.

    Directories are scanned non-recursively. Missing directories and
    per-file failures are logged and counted, never raised.

    ``lock_for(base_identifier)`` may return a context manager yielding
    whether a per-image lock was acquired.
    """
    report = BatchReport()

    for directory in directories:
        try:
            names = _candidates(directory, storage, report)
        except MissingDirectory:
            logger.warning("Directory does not exist, skipping: %s", directory)
            report.missing_directories.append(directory)
            continue
        except (OSError, ValueError, BotoCoreError, ClientError) as e:
            # Listing errors skip the directory, never the whole batch
            logger.exception("Failed listing directory %s", directory)
            report.directory_errors.append((directory, str(e)))
            continue

        logger.info("Processing directory %s (%d candidates)", directory, len(names))
        for name in names:
            process_file(join_key(directory, name), storage, report, lock_for=lock_for)

    logger.info(
        "Batch done: %d processed, %d already optimized, %d unsupported, %d failed",
        report.processed_count,
        report.skipped_count,
        report.unsupported_count,
        report.failed_count,
    )
    return report


def find_incomplete(directories, storage):
    """Map each source key lacking a full variant set to its missing sizes."""
    incomplete = {}
    for directory in directories:
        try:
            names = storage.list_files(directory)
        except MissingDirectory:
            continue
        present = set(names)
        for name in names:
            if is_tagged(name) or extension(name) not in SUPPORTED_EXTENSIONS:
                continue
            base = base_identifier(name)
            missing = [
                size
                for size in SIZE_NAMES
                if variant_filename(base, size) not in present
            ]
            if missing:
                incomplete[join_key(directory, name)] = missing
    return incomplete
