"""
AWS Lambda entry point.

The function is subscribed to the backup SQS queue with a batch size of 1;
the configuration is read once per execution environment and reused by warm
invocations.
"""

import logging
from typing import Any, Dict, Mapping, Optional

from space_backup import configure_logging
from space_backup.config import BackupConfig, ConfigError
from space_backup.backup.executor import BackupExecutor
from space_backup.backup.storage import StorageError
from space_backup.backup.queue import QueueError


logger = logging.getLogger(__name__)

# Built on first invocation
_config: Optional[BackupConfig] = None


def get_config() -> BackupConfig:
    """
    Load configuration from the environment once per process.

    The configuration is cached only after logging was set up, so a failed
    setup is retried by the next invocation.

    Raises:
        ConfigError: If required variables are missing
        OSError: If the log directory cannot be created
    """
    global _config

    if _config is None:
        config = BackupConfig.from_env()
        configure_logging(config.log_level, config.log_dir)
        _config = config
    return _config


def handler(event: Mapping[str, Any], context: Any = None) -> Dict[str, Any]:
    """
    Run one backup for an SQS event.

    Args:
        event: Lambda SQS event
        context: Lambda context (unused)

    Returns:
        {'statusCode': 200|500, 'body': str}
    """
    try:
        config = get_config()
    except (ConfigError, OSError) as e:
        logger.error(f"The following error occurred: {e}")
        return {'statusCode': 500, 'body': str(e)}

    try:
        executor = BackupExecutor(config)
    except (StorageError, QueueError) as e:
        logger.error(f"The following error occurred: {e}")
        return {'statusCode': 500, 'body': str(e)}

    result = executor.execute(event)

    if result.succeeded:
        logger.info(result.body)
    else:
        logger.error(f"The following error occurred: {result.body}")

    return result.to_response()
