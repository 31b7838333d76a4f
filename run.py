#!/usr/bin/env python3
"""Queue poller runner (runs backups outside Lambda)"""
import atexit

from space_backup import configure_logging
from space_backup.config import BackupConfig
from space_backup.backup.storage import S3Storage
from space_backup.scheduler import init_scheduler, start_scheduler, stop_scheduler

if __name__ == '__main__':
    config = BackupConfig.from_env()
    configure_logging(config.log_level, config.log_dir)

    # Fail fast on a wrong bucket or missing permissions
    S3Storage(config.s3_bucket_name, config.s3_storage_class, region=config.aws_region).test_connection()

    init_scheduler(config, blocking=True)
    atexit.register(stop_scheduler)
    try:
        start_scheduler()
    except (KeyboardInterrupt, SystemExit):
        pass
