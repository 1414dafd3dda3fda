"""
Unit tests for the DynamoDB Remote Crop Store (mocked table)
"""

import json

import pytest
from unittest.mock import MagicMock, patch
from botocore.exceptions import ClientError

from cropsync.models import Crop
from cropsync.storage.remote_store import RemoteCropStore, RemoteStoreError


def client_error(code="InternalServerError", operation="GetItem"):
    return ClientError({"Error": {"Code": code, "Message": "mocked"}}, operation)


def stored_item(crops, version=1):
    return {
        "Item": {
            "pk": "USER#farmer-1",
            "sk": "SAVED_CROPS",
            "saved_crops": json.dumps([crop.to_dict() for crop in crops]),
            "version": version,
        }
    }


@pytest.fixture
def table():
    table = MagicMock()
    table.get_item.return_value = {}
    return table


@pytest.fixture
def remote(table):
    return RemoteCropStore(table=table)


class TestRemoteCropStore:
    """Test cases for remote saved crop documents."""

    @patch('cropsync.storage.remote_store.logger')
    def test_missing_document_is_created_empty(self, mock_logger, remote, table):
        assert remote.get_saved_crops("farmer-1") == []

        item = table.put_item.call_args.kwargs["Item"]
        assert item["pk"] == "USER#farmer-1"
        assert item["sk"] == "SAVED_CROPS"
        assert json.loads(item["saved_crops"]) == []

    def test_get_existing(self, remote, table, maize, beans):
        table.get_item.return_value = stored_item([maize, beans])

        crops = remote.get_saved_crops("farmer-1")

        assert [c.name for c in crops] == ["Maize", "Beans"]
        table.put_item.assert_not_called()
        assert table.get_item.call_args.kwargs["ConsistentRead"] is True

    def test_set_increments_version(self, remote, table, maize):
        table.get_item.return_value = stored_item([], version=3)

        remote.set_saved_crops("farmer-1", [maize])

        item = table.put_item.call_args.kwargs["Item"]
        assert item["version"] == 4
        assert json.loads(item["saved_crops"])[0]["name"] == "Maize"
        assert "ConditionExpression" not in table.put_item.call_args.kwargs

    def test_read_error_is_wrapped(self, remote, table):
        table.get_item.side_effect = client_error()

        with pytest.raises(RemoteStoreError) as exc_info:
            remote.get_saved_crops("farmer-1")
        assert exc_info.value.operation == "get"
        assert exc_info.value.user_id == "farmer-1"

    def test_write_error_is_wrapped(self, remote, table, maize):
        table.put_item.side_effect = client_error(operation="PutItem")

        with pytest.raises(RemoteStoreError):
            remote.set_saved_crops("farmer-1", [maize])


class TestUnionMerge:
    """Test cases for conditional union merges."""

    def test_union_keeps_existing_and_adds_new(self, remote, table, maize, beans):
        table.get_item.return_value = stored_item([maize], version=2)

        result = remote.union_merge("farmer-1", [beans, Crop(name="Maize", description="other")])

        assert [c.name for c in result] == ["Maize", "Beans"]
        assert result[0].description == ""
        kwargs = table.put_item.call_args.kwargs
        assert kwargs["ExpressionAttributeValues"] == {":v": 2}
        assert kwargs["Item"]["version"] == 3

    def test_conflict_is_retried(self, remote, table, maize):
        table.put_item.side_effect = [client_error("ConditionalCheckFailedException", "PutItem"), None]

        result = remote.union_merge("farmer-1", [maize])

        assert [c.name for c in result] == ["Maize"]
        assert table.put_item.call_count == 2

    def test_repeated_conflicts_give_up(self, remote, table, maize):
        table.put_item.side_effect = client_error("ConditionalCheckFailedException", "PutItem")

        with pytest.raises(RemoteStoreError):
            remote.union_merge("farmer-1", [maize], max_attempts=2)
        assert table.put_item.call_count == 2
