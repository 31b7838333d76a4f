"""
Backup module for space_backup.

This module handles the core backup functionality including:
- Contentful space export
- Compression
- Upload to S3
- Acknowledging the trigger message on SQS
- Execution orchestration
"""

from .executor import BackupExecutor, execute_backup
from .export import ContentfulExporter
from .compression import create_archive
from .storage import S3Storage
from .queue import SQSQueue
from .models import BackupPaths, BackupResult, Success, Failure

__all__ = [
    'BackupExecutor',
    'execute_backup',
    'ContentfulExporter',
    'create_archive',
    'S3Storage',
    'SQSQueue',
    'BackupPaths',
    'BackupResult',
    'Success',
    'Failure'
]
