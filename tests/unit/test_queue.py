"""
Unit tests for queue handler (space_backup/backup/queue.py).

Tests SQSQueue message acknowledgement and polling.
"""

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from space_backup.backup.models import Success, Failure
from space_backup.backup.queue import SQSQueue, QueueError


class TestDeleteMessage:
    """Test SQSQueue.delete_message."""

    def test_delete_message(self, mock_sqs):
        """Test a received message is removed from the queue."""
        client, queue_url = mock_sqs
        client.send_message(QueueUrl=queue_url, MessageBody='backup')
        message = client.receive_message(QueueUrl=queue_url, MaxNumberOfMessages=1)['Messages'][0]

        queue = SQSQueue(queue_url, client=client)
        outcome = queue.delete_message(message['ReceiptHandle'])

        assert outcome == Success()

        attributes = client.get_queue_attributes(
            QueueUrl=queue_url,
            AttributeNames=['ApproximateNumberOfMessages', 'ApproximateNumberOfMessagesNotVisible']
        )['Attributes']
        assert attributes['ApproximateNumberOfMessages'] == '0'
        assert attributes['ApproximateNumberOfMessagesNotVisible'] == '0'

    def test_delete_message_non_200_status(self):
        """Test a non-200 response is a failure."""
        client = MagicMock()
        client.delete_message.return_value = {'ResponseMetadata': {'HTTPStatusCode': 400}}
        queue = SQSQueue('https://queue', client=client)

        outcome = queue.delete_message('handle')

        assert outcome == Failure('delete', 'SQS returned HTTP status 400')

    def test_delete_message_client_error(self):
        """Test client errors are reported as failure."""
        client = MagicMock()
        client.delete_message.side_effect = ClientError(
            {'Error': {'Code': 'ReceiptHandleIsInvalid', 'Message': 'bad handle'}}, 'DeleteMessage'
        )
        queue = SQSQueue('https://queue', client=client)

        outcome = queue.delete_message('handle')

        assert isinstance(outcome, Failure)
        assert outcome.step == 'delete'
        assert 'ReceiptHandleIsInvalid' in outcome.reason

    def test_delete_message_parameters(self):
        """Test delete_message call parameters."""
        client = MagicMock()
        client.delete_message.return_value = {'ResponseMetadata': {'HTTPStatusCode': 200}}
        queue = SQSQueue('https://queue', client=client)

        queue.delete_message('handle-1')

        client.delete_message.assert_called_once_with(QueueUrl='https://queue', ReceiptHandle='handle-1')


class TestReceiveMessage:
    """Test SQSQueue.receive_message."""

    def test_receive_message(self, mock_sqs):
        """Test a pending message is returned."""
        client, queue_url = mock_sqs
        client.send_message(QueueUrl=queue_url, MessageBody='backup')

        queue = SQSQueue(queue_url, client=client)
        message = queue.receive_message(wait_seconds=0)

        assert message['Body'] == 'backup'
        assert message['ReceiptHandle']

    def test_receive_message_empty_queue(self, mock_sqs):
        """Test None is returned for an empty queue."""
        client, queue_url = mock_sqs

        queue = SQSQueue(queue_url, client=client)

        assert queue.receive_message(wait_seconds=0) is None

    def test_receive_message_error(self):
        """Test client errors raise QueueError."""
        client = MagicMock()
        client.receive_message.side_effect = ClientError(
            {'Error': {'Code': 'AWS.SimpleQueueService.NonExistentQueue', 'Message': 'gone'}},
            'ReceiveMessage'
        )
        queue = SQSQueue('https://queue', client=client)

        with pytest.raises(QueueError, match="SQS receive failed"):
            queue.receive_message()

    def test_receive_message_parameters(self):
        """Test receive_message asks for one message with the given wait."""
        client = MagicMock()
        client.receive_message.return_value = {}
        queue = SQSQueue('https://queue', client=client)

        assert queue.receive_message(wait_seconds=5) is None

        client.receive_message.assert_called_once_with(
            QueueUrl='https://queue', MaxNumberOfMessages=1, WaitTimeSeconds=5
        )

    def test_receive_message_visibility_timeout(self):
        """Test a visibility timeout hides the message for the length of a backup."""
        client = MagicMock()
        client.receive_message.return_value = {'Messages': [{'ReceiptHandle': 'handle-1'}]}
        queue = SQSQueue('https://queue', client=client)

        queue.receive_message(wait_seconds=5, visibility_timeout=900)

        assert client.receive_message.call_args[1]['VisibilityTimeout'] == 900
