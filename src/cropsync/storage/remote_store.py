"""
Remote Crop Store
=================

DynamoDB-backed remote copy of each user's saved crops.

DynamoDB Schema:
----------------
Table: farmer-saved-crops

Primary Key:
    - pk (String): "USER#{user_id}"
    - sk (String): "SAVED_CROPS"

Attributes:
    - saved_crops (String): JSON list of crop records
    - version (Number): incremented on every write, used for conditional updates
    - updated_at (String): ISO timestamp of the last write
"""

import json
from datetime import datetime
from typing import Any, Dict, List, Tuple

import boto3
from botocore.exceptions import ClientError

from cropsync.config import AWS_REGION, SAVED_CROPS_TABLE
from cropsync.models import Crop
from cropsync.utils.logger import logger


SORT_KEY = "SAVED_CROPS"


class RemoteStoreError(Exception):
    """Raised when the remote store cannot be read or written."""

    def __init__(self, operation: str, user_id: str, cause: Exception = None):
        self.operation = operation
        self.user_id = user_id
        super().__init__(f"Remote store {operation} failed for {user_id}: {cause}")


class RemoteCropStore:
    """Per-user saved crop documents in DynamoDB."""

    def __init__(self, table_name: str = SAVED_CROPS_TABLE, region: str = AWS_REGION, table=None):
        if table is None:
            dynamodb = boto3.resource("dynamodb", region_name=region)
            table = dynamodb.Table(table_name)
        self.table = table

    def _key(self, user_id: str) -> Dict[str, str]:
        return {"pk": f"USER#{user_id}", "sk": SORT_KEY}

    def _get_document(self, user_id: str) -> Tuple[List[Crop], int, bool]:
        """Returns (crops, version, exists)."""
        response = self.table.get_item(Key=self._key(user_id), ConsistentRead=True)
        item = response.get("Item")
        if item is None:
            return [], 0, False
        records = json.loads(item.get("saved_crops") or "[]")
        return [Crop.from_dict(record) for record in records], int(item.get("version", 0)), True

    def _put_document(self, user_id: str, crops: List[Crop], version: int = 0, conditional: bool = False) -> int:
        new_version = version + 1
        item: Dict[str, Any] = {
            **self._key(user_id),
            "saved_crops": json.dumps([crop.to_dict() for crop in crops]),
            "version": new_version,
            "updated_at": datetime.now().isoformat(),
        }
        kwargs: Dict[str, Any] = {"Item": item}
        if conditional:
            kwargs["ConditionExpression"] = "attribute_not_exists(pk) OR version = :v"
            kwargs["ExpressionAttributeValues"] = {":v": version}
        self.table.put_item(**kwargs)
        return new_version

    def get_saved_crops(self, user_id: str) -> List[Crop]:
        """
        Fetch the user's remote saved crops.

        A missing document is created empty.

        Raises:
            RemoteStoreError: on DynamoDB failure
        """
        try:
            crops, _, exists = self._get_document(user_id)
            if not exists:
                logger.info(f"Remote Store: no saved crops document for {user_id}, creating it")
                self._put_document(user_id, [])
            logger.info(f"Remote Store: fetched {len(crops)} crops for {user_id}")
            return crops
        except ClientError as e:
            logger.error(f"Remote Store: DynamoDB error reading {user_id}: {e}")
            raise RemoteStoreError("get", user_id, e)

    def set_saved_crops(self, user_id: str, crops: List[Crop]):
        """
        Overwrite the user's remote saved crops.

        Raises:
            RemoteStoreError: on DynamoDB failure
        """
        try:
            _, version, _ = self._get_document(user_id)
            self._put_document(user_id, crops, version)
            logger.info(f"Remote Store: wrote {len(crops)} crops for {user_id} (version {version + 1})")
        except ClientError as e:
            logger.error(f"Remote Store: DynamoDB error writing {user_id}: {e}")
            raise RemoteStoreError("set", user_id, e)

    def union_merge(self, user_id: str, crops: List[Crop], max_attempts: int = 3) -> List[Crop]:
        """
        Add crops to the remote set without removing anything.

        Uses a conditional write on the document version and retries when
        another writer got there first.

        Returns:
            The merged remote set

        Raises:
            RemoteStoreError: on DynamoDB failure or repeated write conflicts
        """
        for attempt in range(1, max_attempts + 1):
            try:
                existing, version, _ = self._get_document(user_id)
                merged = {crop.identity_key: crop for crop in existing}
                for crop in crops:
                    merged.setdefault(crop.identity_key, crop)
                result = list(merged.values())
                self._put_document(user_id, result, version, conditional=True)
                logger.info(f"Remote Store: union merged {len(crops)} crops for {user_id}, {len(result)} total")
                return result
            except ClientError as e:
                code = e.response.get("Error", {}).get("Code")
                if code == "ConditionalCheckFailedException" and attempt < max_attempts:
                    logger.warning(f"Remote Store: write conflict for {user_id}, retrying ({attempt}/{max_attempts})")
                    continue
                logger.error(f"Remote Store: DynamoDB error merging {user_id}: {e}")
                raise RemoteStoreError("union_merge", user_id, e)
