"""
Data structures passed between the backup steps.

- Success / Failure: outcome of a single step (upload, delete, ...)
- BackupPaths: local paths and S3 key derived from one timestamp
- BackupResult: terminal outcome of an invocation
"""

import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Union


class EventError(Exception):
    """Raised when the triggering event has no usable queue record."""
    pass


@dataclass(frozen=True)
class Success:
    """Step completed."""

    detail: str = ''


@dataclass(frozen=True)
class Failure:
    """
    Step failed.

    Attributes:
        step: Name of the failed step ('event', 'export', 'compress', 'stage', 'upload', 'delete')
        reason: Human readable description of the failure
    """

    step: str
    reason: str


StepOutcome = Union[Success, Failure]


# Upload key layout: YYYY/MM/DD/HH-MM-SS.zip
KEY_DATE_FORMAT = '%Y/%m/%d'
FILENAME_TIME_FORMAT = '%H-%M-%S'


@dataclass(frozen=True)
class BackupPaths:
    """
    Every name used by one backup run.

    All fields derive from the same timestamp so the export file, the archive
    and the S3 key of a run always match.
    """

    timestamp: datetime
    export_dir: str
    export_filename: str
    export_path: str
    archive_filename: str
    archive_path: str
    upload_key: str

    @classmethod
    def from_timestamp(cls, timestamp: datetime, export_dir: str = '/tmp') -> 'BackupPaths':
        """
        Derive paths and key from a timestamp.

        Args:
            timestamp: Invocation start time (naive values are taken as UTC)
            export_dir: Local directory for the export and the archive

        Returns:
            BackupPaths instance
        """
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=timezone.utc)
        else:
            timestamp = timestamp.astimezone(timezone.utc)

        filename_base = timestamp.strftime(FILENAME_TIME_FORMAT)
        export_filename = f"{filename_base}.json"
        archive_filename = f"{filename_base}.zip"

        return cls(
            timestamp=timestamp,
            export_dir=export_dir,
            export_filename=export_filename,
            export_path=os.path.join(export_dir, export_filename),
            archive_filename=archive_filename,
            archive_path=os.path.join(export_dir, archive_filename),
            upload_key=f"{timestamp.strftime(KEY_DATE_FORMAT)}/{archive_filename}"
        )


def parse_upload_key(key: str) -> datetime:
    """
    Recover the backup timestamp from an upload key.

    Args:
        key: S3 key in the form YYYY/MM/DD/HH-MM-SS.zip

    Returns:
        UTC datetime (second precision)

    Raises:
        ValueError: If the key does not follow the layout
    """
    if not key.endswith('.zip'):
        raise ValueError(f"Not a backup key: {key}")

    return datetime.strptime(key[:-4], f"{KEY_DATE_FORMAT}/{FILENAME_TIME_FORMAT}").replace(
        tzinfo=timezone.utc
    )


def receipt_handle_from_event(event: Mapping[str, Any]) -> str:
    """
    Extract the receipt handle of the first queue record.

    Args:
        event: Lambda SQS event ({'Records': [{'receiptHandle': ...}, ...]})

    Returns:
        Receipt handle string

    Raises:
        EventError: If the event carries no record or no receipt handle
    """
    try:
        receipt_handle = event['Records'][0]['receiptHandle']
    except (KeyError, IndexError, TypeError):
        raise EventError("Event does not contain a queue record with a receipt handle")

    if not receipt_handle:
        raise EventError("Queue record has an empty receipt handle")

    return receipt_handle


@dataclass
class BackupResult:
    """Outcome of one backup invocation."""

    status_code: int
    body: str
    failed_step: Optional[str] = None
    upload_key: Optional[str] = None
    logs: List[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.status_code == 200

    def to_response(self) -> Dict[str, Any]:
        """Lambda return value."""
        return {
            'statusCode': self.status_code,
            'body': self.body
        }
