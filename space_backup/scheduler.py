"""
APScheduler-driven queue poller for running backups outside Lambda.

An interval job long-polls the backup queue for one message and runs the
same executor the Lambda handler uses. Only one poll runs at a time.
"""

import logging
from typing import Any, Dict, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.interval import IntervalTrigger

from space_backup.config import BackupConfig
from space_backup.backup.executor import execute_backup
from space_backup.backup.models import BackupResult
from space_backup.backup.queue import SQSQueue, QueueError
from space_backup.backup.storage import StorageError


logger = logging.getLogger(__name__)

POLL_JOB_ID = 'backup_queue_poll'

# Global scheduler instance and configuration
scheduler = None
backup_config = None


def init_scheduler(config: BackupConfig, blocking: bool = False):
    """
    Initialize and configure APScheduler.

    Args:
        config: Backup configuration
        blocking: Use a BlockingScheduler (foreground process) instead of a background one

    Returns:
        The scheduler instance
    """
    global scheduler, backup_config

    if scheduler is not None:
        return scheduler

    backup_config = config

    job_defaults = {
        'coalesce': True,  # Combine multiple pending instances into one
        'max_instances': 1,  # Never run two backups at once
        'misfire_grace_time': 300  # 5 minutes grace period for misfires
    }

    scheduler_class = BlockingScheduler if blocking else BackgroundScheduler
    scheduler = scheduler_class(job_defaults=job_defaults, timezone='UTC')

    scheduler.add_job(
        func=poll_backup_queue,
        trigger=IntervalTrigger(seconds=config.poll_interval),
        id=POLL_JOB_ID,
        name='Backup Queue Poll',
        replace_existing=True
    )

    return scheduler


def start_scheduler():
    """
    Start the APScheduler.

    Blocks when the scheduler was initialized with blocking=True.
    """
    global scheduler

    if scheduler is None:
        raise RuntimeError("Scheduler not initialized. Call init_scheduler() first.")

    if not scheduler.running:
        logger.info(f"Polling backup queue every {backup_config.poll_interval}s")
        scheduler.start()
    else:
        logger.info(f"Scheduler already running (state={scheduler.state})")


def stop_scheduler():
    """Stop the APScheduler."""
    global scheduler

    if scheduler and scheduler.running:
        scheduler.shutdown()
        logger.info("APScheduler stopped")


def sqs_message_to_event(message: Dict[str, Any]) -> Dict[str, Any]:
    """
    Wrap a received SQS message in a Lambda-shaped SQS event.

    Args:
        message: Message dict from receive_message

    Returns:
        {'Records': [{'messageId', 'receiptHandle', 'body'}]}
    """
    return {
        'Records': [{
            'messageId': message.get('MessageId'),
            'receiptHandle': message['ReceiptHandle'],
            'body': message.get('Body', ''),
            'eventSource': 'aws:sqs'
        }]
    }


def poll_backup_queue(queue: Optional[SQSQueue] = None) -> Optional[BackupResult]:
    """
    Receive one backup request and run it.

    Args:
        queue: SQS handler (default: built from the scheduler configuration)

    Returns:
        BackupResult, or None if nothing was run
    """
    global backup_config

    if backup_config is None:
        raise RuntimeError("Scheduler not initialized")

    try:
        if queue is None:
            queue = SQSQueue(backup_config.sqs_queue_url, region=backup_config.aws_region)
        message = queue.receive_message(
            wait_seconds=backup_config.poll_wait_seconds,
            visibility_timeout=backup_config.visibility_timeout
        )
    except QueueError as e:
        logger.error(f"Backup queue poll failed: {e}")
        return None

    if message is None:
        logger.debug("Backup queue empty")
        return None

    logger.info(f"Received backup request: {message.get('MessageId')}")
    try:
        result = execute_backup(sqs_message_to_event(message), backup_config, queue=queue)
    except (StorageError, QueueError) as e:
        logger.error(f"Backup could not start: {e}")
        return None

    logger.info(f"Backup finished with status {result.status_code}: {result.body}")
    return result
