import os
from dataclasses import dataclass
from typing import Mapping, Optional


class ConfigError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


# Environment variable -> BackupConfig field
REQUIRED_VARIABLES = {
    'SPACE_ID': 'space_id',
    'SPACE_ENV': 'environment_id',
    'MANAGEMENT_TOKEN': 'management_token',
    'DELIVERY_TOKEN': 'delivery_token',
    'S3_BUCKET_NAME': 's3_bucket_name',
    'S3_STORAGE_CLASS': 's3_storage_class',
    'SQS_QUEUE_URL': 'sqs_queue_url',
}


@dataclass(frozen=True)
class BackupConfig:
    """Backup job configuration, built once at process start."""

    # Contentful
    space_id: str
    environment_id: str
    management_token: str
    delivery_token: str

    # AWS
    s3_bucket_name: str
    s3_storage_class: str
    sqs_queue_url: str
    aws_region: Optional[str] = None

    # Local working directory (Lambda ephemeral storage)
    local_backup_path: str = '/tmp'
    contentful_cli: str = 'contentful'

    # Poller
    poll_interval: int = 60
    poll_wait_seconds: int = 20
    # Seconds a received message stays hidden while its backup runs
    visibility_timeout: int = 900

    # Logging
    log_level: str = 'INFO'
    log_dir: Optional[str] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'BackupConfig':
        """
        Build configuration from environment variables.

        Args:
            environ: Mapping to read from (default: os.environ)

        Returns:
            BackupConfig instance

        Raises:
            ConfigError: If required variables are missing or a number is malformed
        """
        if environ is None:
            environ = os.environ

        missing = [name for name in REQUIRED_VARIABLES if not environ.get(name)]
        if missing:
            raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")

        values = {field: environ[name] for name, field in REQUIRED_VARIABLES.items()}

        return cls(
            aws_region=environ.get('AWS_REGION') or None,
            local_backup_path=environ.get('LOCAL_BACKUP_PATH') or '/tmp',
            contentful_cli=environ.get('CONTENTFUL_CLI') or 'contentful',
            poll_interval=_int_from_env(environ, 'BACKUP_POLL_INTERVAL', 60),
            poll_wait_seconds=_int_from_env(environ, 'BACKUP_POLL_WAIT', 20),
            visibility_timeout=_int_from_env(environ, 'BACKUP_VISIBILITY_TIMEOUT', 900),
            log_level=(environ.get('LOG_LEVEL') or 'INFO').upper(),
            log_dir=environ.get('LOG_DIR') or None,
            **values
        )


def _int_from_env(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name)
    if not raw:
        return default

    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got: {raw!r}")
