"""
Shared pytest fixtures for space_backup tests.

This module provides fixtures for:
- Backup configuration
- Lambda SQS events
- Mock fixtures for external services (S3, SQS, Contentful CLI)
- Temporary file fixtures
"""

import json
from unittest.mock import MagicMock

import pytest
import boto3
from moto import mock_aws

from space_backup.config import BackupConfig
from space_backup.backup.models import Success


@pytest.fixture(autouse=True)
def aws_credentials(monkeypatch):
    """Fake AWS credentials so boto3 never reaches a real account."""
    monkeypatch.setenv('AWS_ACCESS_KEY_ID', 'testing')
    monkeypatch.setenv('AWS_SECRET_ACCESS_KEY', 'testing')
    monkeypatch.setenv('AWS_SECURITY_TOKEN', 'testing')
    monkeypatch.setenv('AWS_SESSION_TOKEN', 'testing')
    monkeypatch.setenv('AWS_DEFAULT_REGION', 'us-east-1')


@pytest.fixture
def env_vars():
    """Complete set of required environment variables."""
    return {
        'SPACE_ID': 'space123',
        'SPACE_ENV': 'master',
        'MANAGEMENT_TOKEN': 'cma-token',
        'DELIVERY_TOKEN': 'cda-token',
        'S3_BUCKET_NAME': 'test-bucket',
        'S3_STORAGE_CLASS': 'STANDARD_IA',
        'SQS_QUEUE_URL': 'https://sqs.us-east-1.amazonaws.com/123456789012/backup-queue',
    }


@pytest.fixture
def backup_config(tmp_path):
    """BackupConfig writing into a temporary directory."""
    return BackupConfig(
        space_id='space123',
        environment_id='master',
        management_token='cma-token',
        delivery_token='cda-token',
        s3_bucket_name='test-bucket',
        s3_storage_class='STANDARD_IA',
        sqs_queue_url='https://sqs.us-east-1.amazonaws.com/123456789012/backup-queue',
        aws_region='us-east-1',
        local_backup_path=str(tmp_path)
    )


@pytest.fixture
def sqs_event():
    """Lambda SQS event with a single record."""
    return {
        'Records': [{
            'messageId': '059f36b4-87a3-44ab-83d2-661975830a7d',
            'receiptHandle': 'AQEBwJnKyrHigUMZj6rYigCgxlaS3SLy0a',
            'body': 'backup',
            'eventSource': 'aws:sqs'
        }]
    }


@pytest.fixture
def fake_exporter():
    """
    Exporter double that writes a small JSON export like the CLI does.
    """
    exporter = MagicMock()

    def _export(export_dir, content_file):
        path = f"{export_dir}/{content_file}"
        with open(path, 'w') as f:
            json.dump({'entries': [{'sys': {'id': 'entry1'}}], 'assets': []}, f)
        return path

    exporter.export.side_effect = _export
    return exporter


@pytest.fixture
def mock_storage():
    """S3Storage double reporting success."""
    storage = MagicMock()
    storage.upload_bytes.return_value = Success('2024/01/05/13-02-09.zip')
    return storage


@pytest.fixture
def mock_queue():
    """SQSQueue double reporting success."""
    queue = MagicMock()
    queue.delete_message.return_value = Success()
    return queue


@pytest.fixture
def mock_s3():
    """
    Mock AWS S3 service using moto.

    Creates a test bucket 'test-bucket' in us-east-1 region.
    """
    with mock_aws():
        s3 = boto3.resource('s3', region_name='us-east-1')
        s3.create_bucket(Bucket='test-bucket')
        yield s3


@pytest.fixture
def mock_sqs():
    """
    Mock AWS SQS service using moto.

    Yields (client, queue_url) for a queue named 'backup-queue'.
    """
    with mock_aws():
        client = boto3.client('sqs', region_name='us-east-1')
        queue_url = client.create_queue(QueueName='backup-queue')['QueueUrl']
        yield client, queue_url


@pytest.fixture
def export_file(tmp_path):
    """
    Create a sample export file for compression tests.
    """
    path = tmp_path / '13-02-09.json'
    path.write_text(json.dumps({'contentTypes': [], 'entries': [], 'assets': []}))
    return path
