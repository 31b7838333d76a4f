"""
SQS handler for the backup trigger queue.

A message on the queue requests one backup; it is deleted only after the
archive reached S3, otherwise SQS redelivers it after the visibility timeout.
"""

import json
import logging
from typing import Any, Dict, Optional

import boto3
from botocore.exceptions import ClientError, BotoCoreError

from .models import Success, Failure, StepOutcome
from .storage import response_status_code


logger = logging.getLogger(__name__)


class QueueError(Exception):
    """Raised when the queue handler cannot be set up or reached."""
    pass


class SQSQueue:
    """Handler for the backup trigger queue."""

    def __init__(self, queue_url: str, region: Optional[str] = None, client=None):
        """
        Initialize SQS handler.

        Args:
            queue_url: URL of the backup queue
            region: AWS region (default: boto3 resolution)
            client: Pre-built boto3 SQS client (optional)
        """
        self.queue_url = queue_url

        if client is not None:
            self.sqs_client = client
            return

        try:
            self.sqs_client = boto3.client('sqs', region_name=region)
        except Exception as e:
            raise QueueError(f"Failed to initialize SQS client: {e}")

    def delete_message(self, receipt_handle: str) -> StepOutcome:
        """
        Delete (acknowledge) a message from the backup queue.

        Args:
            receipt_handle: Receipt handle of the delivered message

        Returns:
            Success if SQS answered 200, otherwise Failure with the reason
        """
        try:
            response = self.sqs_client.delete_message(
                QueueUrl=self.queue_url,
                ReceiptHandle=receipt_handle
            )
        except ClientError as e:
            error_code = e.response.get('Error', {}).get('Code', 'Unknown')
            logger.error(f"Message delete failure ({error_code}): {e}")
            return Failure('delete', f"SQS delete failed ({error_code}): {e}")
        except BotoCoreError as e:
            logger.error(f"Message delete failure: {e}")
            return Failure('delete', f"SQS delete failed: {e}")

        status_code = response_status_code(response)
        if status_code != 200:
            logger.error(f"Message delete failure: {json.dumps(response, default=str)}")
            return Failure('delete', f"SQS returned HTTP status {status_code}")

        logger.info(f"Message deleted: {json.dumps(response, default=str)}")
        return Success()

    def receive_message(self, wait_seconds: int = 20, visibility_timeout: Optional[int] = None) -> Optional[Dict[str, Any]]:
        """
        Long-poll the queue for a single message.

        Args:
            wait_seconds: Long-poll wait time (0-20 seconds)
            visibility_timeout: Seconds the message stays hidden from other consumers
                (default: the queue's own setting)

        Returns:
            The SQS message dict, or None if the queue is empty

        Raises:
            QueueError: If the receive call fails
        """
        params = {
            'QueueUrl': self.queue_url,
            'MaxNumberOfMessages': 1,
            'WaitTimeSeconds': wait_seconds
        }
        if visibility_timeout is not None:
            params['VisibilityTimeout'] = visibility_timeout

        try:
            response = self.sqs_client.receive_message(**params)
        except (ClientError, BotoCoreError) as e:
            raise QueueError(f"SQS receive failed: {e}")

        messages = response.get('Messages', [])
        return messages[0] if messages else None
