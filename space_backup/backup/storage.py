"""
S3 storage handler for backup archives.

Archives are uploaded from memory under a timestamp key:
{YYYY}/{MM}/{DD}/{HH}-{MM}-{SS}.zip
"""

import logging
from typing import Optional

import boto3
from botocore.exceptions import ClientError, BotoCoreError

from .models import Success, Failure, StepOutcome


logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when the storage handler cannot be set up or reached."""
    pass


def response_status_code(response: dict) -> Optional[int]:
    """HTTP status code of a boto3 response, if present."""
    return response.get('ResponseMetadata', {}).get('HTTPStatusCode')


class S3Storage:
    """
    Handler for uploading backups to AWS S3.

    Credentials come from the standard boto3 chain (Lambda execution role,
    environment, shared config).
    """

    def __init__(self, bucket_name: str, storage_class: str, region: Optional[str] = None, client=None):
        """
        Initialize S3 storage handler.

        Args:
            bucket_name: S3 bucket name
            storage_class: S3 storage class for uploaded objects (e.g. STANDARD_IA)
            region: AWS region (default: boto3 resolution)
            client: Pre-built boto3 S3 client (optional)
        """
        self.bucket_name = bucket_name
        self.storage_class = storage_class
        self.region = region

        if client is not None:
            self.s3_client = client
            return

        try:
            self.s3_client = boto3.client('s3', region_name=region)
        except Exception as e:
            raise StorageError(f"Failed to initialize S3 client: {e}")

    def upload_bytes(self, data: bytes, key: str) -> StepOutcome:
        """
        Upload an in-memory archive to S3.

        Args:
            data: Archive contents
            key: S3 object key

        Returns:
            Success if S3 answered 200, otherwise Failure with the reason
        """
        try:
            response = self.s3_client.put_object(
                Bucket=self.bucket_name,
                StorageClass=self.storage_class,
                Key=key,
                Body=data
            )
        except ClientError as e:
            error_code = e.response.get('Error', {}).get('Code', 'Unknown')
            logger.error(f"File upload failure ({error_code}): {e}")
            return Failure('upload', f"S3 upload failed ({error_code}): {e}")
        except BotoCoreError as e:
            logger.error(f"File upload failure: {e}")
            return Failure('upload', f"S3 upload failed: {e}")

        status_code = response_status_code(response)
        if status_code != 200:
            logger.error(f"File upload failure: {response}")
            return Failure('upload', f"S3 returned HTTP status {status_code}")

        logger.info(f"File uploaded: s3://{self.bucket_name}/{key}")
        return Success(key)

    def test_connection(self) -> bool:
        """
        Test S3 connection and bucket access.

        Returns:
            True if connection is successful

        Raises:
            StorageError: If connection test fails
        """
        try:
            self.s3_client.head_bucket(Bucket=self.bucket_name)
            return True
        except ClientError as e:
            error_code = e.response.get('Error', {}).get('Code', 'Unknown')
            if error_code == '404':
                raise StorageError(f"Bucket does not exist: {self.bucket_name}")
            elif error_code == '403':
                raise StorageError(f"Access denied to bucket: {self.bucket_name}")
            else:
                raise StorageError(f"S3 connection test failed ({error_code}): {e}")
        except Exception as e:
            raise StorageError(f"Failed to connect to S3: {e}")
