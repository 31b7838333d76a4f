"""
Backup executor - orchestrates the complete backup workflow.

Workflow:
1. Read the receipt handle of the triggering queue message
2. Derive export path, archive path and S3 key from one timestamp
3. Export the Contentful space to a local JSON file
4. Compress the export into a zip archive
5. Read the archive into memory and delete it from disk
6. Upload to S3
7. Delete the queue message (only after a successful upload)

Each step returns Success or Failure; the first Failure ends the run and
leaves the message on the queue for redelivery.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Optional

from space_backup.config import BackupConfig
from .models import (
    BackupPaths,
    BackupResult,
    EventError,
    Failure,
    StepOutcome,
    Success,
    receipt_handle_from_event,
)
from .export import ContentfulExporter, ExportError
from .compression import create_archive, read_and_remove, get_archive_size, CompressionError
from .storage import S3Storage
from .queue import SQSQueue


logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BackupExecutor:
    """
    Orchestrates the complete backup workflow for one triggering event.
    """

    def __init__(
        self,
        config: BackupConfig,
        exporter: Optional[ContentfulExporter] = None,
        storage: Optional[S3Storage] = None,
        queue: Optional[SQSQueue] = None,
        clock: Callable[[], datetime] = _utcnow
    ):
        """
        Initialize backup executor.

        Args:
            config: Backup configuration
            exporter: Export handler (default: built from config)
            storage: S3 handler (default: built from config)
            queue: SQS handler (default: built from config)
            clock: Returns the invocation timestamp
        """
        self.config = config
        self.exporter = exporter or ContentfulExporter.from_config(config)
        self.storage = storage or S3Storage(
            bucket_name=config.s3_bucket_name,
            storage_class=config.s3_storage_class,
            region=config.aws_region
        )
        self.queue = queue or SQSQueue(config.sqs_queue_url, region=config.aws_region)
        self.clock = clock
        self.paths = None
        self.logs = []

    def execute(self, event: Mapping[str, Any]) -> BackupResult:
        """
        Run one backup for a triggering event.

        Args:
            event: Lambda SQS event

        Returns:
            BackupResult (200 on full success, 500 otherwise)
        """
        self.logs = []
        self.paths = None

        try:
            receipt_handle = receipt_handle_from_event(event)
        except EventError as e:
            return self._failed(Failure('event', str(e)), str(e))

        # One timestamp for every name in this run
        self.paths = BackupPaths.from_timestamp(self.clock(), self.config.local_backup_path)
        self._log(f"Starting backup: {self.paths.upload_key}")

        outcome = self._export()
        if isinstance(outcome, Failure):
            return self._failed(outcome, outcome.reason)

        outcome = self._compress()
        if isinstance(outcome, Failure):
            return self._failed(outcome, outcome.reason)

        staged = self._stage()
        if isinstance(staged, Failure):
            return self._failed(staged, staged.reason)

        outcome = self._upload(staged)
        if isinstance(outcome, Failure):
            return self._failed(outcome, f"Failed to upload backup to S3: {outcome.reason}")

        outcome = self._delete_message(receipt_handle)
        if isinstance(outcome, Failure):
            return self._failed(outcome, f"Failed to delete message from the backup queue: {outcome.reason}")

        self._log("Backup completed successfully")
        return BackupResult(
            status_code=200,
            body=f"Backup successful: {self.paths.archive_path}",
            upload_key=self.paths.upload_key,
            logs=list(self.logs)
        )

    def _export(self) -> StepOutcome:
        self._log(f"Exporting space {self.config.space_id} ({self.config.environment_id})")
        try:
            export_path = self.exporter.export(self.paths.export_dir, self.paths.export_filename)
        except ExportError as e:
            return Failure('export', str(e))
        except Exception as e:
            logger.exception("Unexpected export error")
            return Failure('export', str(e))
        return Success(export_path)

    def _compress(self) -> StepOutcome:
        self._log("Compressing backup")
        try:
            archive_path = create_archive(self.paths.export_path, self.paths.archive_path)
            file_size = get_archive_size(archive_path)
        except CompressionError as e:
            return Failure('compress', str(e))
        except Exception as e:
            logger.exception("Unexpected compression error")
            return Failure('compress', str(e))
        self._log(f"Archive created: {archive_path} ({file_size / 1024 / 1024:.2f} MB)")
        return Success(archive_path)

    def _stage(self):
        """
        Read the archive into memory; the local file is gone afterwards.

        Returns:
            Archive bytes, or Failure
        """
        self._log("Preparing file for AWS S3")
        try:
            return read_and_remove(self.paths.archive_path)
        except CompressionError as e:
            return Failure('stage', str(e))
        except Exception as e:
            logger.exception("Unexpected staging error")
            return Failure('stage', str(e))

    def _upload(self, data: bytes) -> StepOutcome:
        self._log(f"Uploading to S3: {self.config.s3_bucket_name}/{self.paths.upload_key}")
        try:
            return self.storage.upload_bytes(data, self.paths.upload_key)
        except Exception as e:
            logger.exception("Unexpected upload error")
            return Failure('upload', str(e))

    def _delete_message(self, receipt_handle: str) -> StepOutcome:
        self._log("Deleting message from the backup queue")
        try:
            return self.queue.delete_message(receipt_handle)
        except Exception as e:
            logger.exception("Unexpected queue error")
            return Failure('delete', str(e))

    def _failed(self, failure: Failure, body: str) -> BackupResult:
        self._log(f"Backup failed at {failure.step}: {failure.reason}", level=logging.ERROR)
        return BackupResult(
            status_code=500,
            body=body,
            failed_step=failure.step,
            upload_key=self.paths.upload_key if self.paths else None,
            logs=list(self.logs)
        )

    def _log(self, message: str, level: int = logging.INFO):
        """
        Add a log message with timestamp.

        Args:
            message: Log message
            level: Logging level for the module logger
        """
        timestamp = _utcnow().strftime('%Y-%m-%d %H:%M:%S UTC')
        self.logs.append(f"[{timestamp}] {message}")
        logger.log(level, message)


def execute_backup(
    event: Mapping[str, Any],
    config: BackupConfig,
    queue: Optional[SQSQueue] = None
) -> BackupResult:
    """
    Execute one backup with collaborators built from config.

    Args:
        event: Lambda SQS event
        config: Backup configuration
        queue: SQS handler to reuse (default: built from config)

    Returns:
        BackupResult
    """
    executor = BackupExecutor(config, queue=queue)
    return executor.execute(event)
