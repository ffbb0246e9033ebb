import logging
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

import boto3
from botocore.exceptions import ClientError

from finance_tracker.core.config import settings
from finance_tracker.core.exceptions import UnknownRecordKindError

logger = logging.getLogger(__name__)

# Initialize DynamoDB resource
dynamodb = boto3.resource("dynamodb", region_name=settings.DYNAMO_REGION)

# One table per record kind, keyed by transaction_id
TABLES = {
    "income": dynamodb.Table(settings.DYNAMO_INCOME_TABLE),
    "employee": dynamodb.Table(settings.DYNAMO_EMPLOYEE_EXPENSES_TABLE),
    "salary": dynamodb.Table(settings.DYNAMO_SALARY_EXPENSES_TABLE),
    "vendor": dynamodb.Table(settings.DYNAMO_VENDOR_PAYMENTS_TABLE),
}


def _table(kind: str):
    try:
        return TABLES[kind]
    except KeyError:
        raise UnknownRecordKindError(kind) from None


def get_transaction(kind: str, transaction_id: str) -> Optional[Dict[str, Any]]:
    """Fetch a single record of the given kind."""
    table = _table(kind)
    try:
        response = table.get_item(Key={"transaction_id": transaction_id})
        item = response.get("Item")
        return _from_dynamo(item) if item else None
    except ClientError as e:
        logger.error(f"get_transaction failed: {e.response['Error']['Message']}")
        return None


def list_transactions(kind: str) -> List[Dict[str, Any]]:
    """Scan every record of the given kind, following pagination."""
    table = _table(kind)
    items: List[Dict[str, Any]] = []
    scan_kwargs: Dict[str, Any] = {}
    try:
        while True:
            response = table.scan(**scan_kwargs)
            items.extend(_from_dynamo(item) for item in response.get("Items", []))
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                return items
            scan_kwargs["ExclusiveStartKey"] = last_key
    except ClientError as e:
        logger.error(f"list_transactions failed: {e.response['Error']['Message']}")
        return []


def list_all_transactions() -> Dict[str, List[Dict[str, Any]]]:
    return {kind: list_transactions(kind) for kind in TABLES}


def put_transaction(kind: str, item: Dict[str, Any]) -> bool:
    """Insert or replace a record."""
    table = _table(kind)
    try:
        table.put_item(Item=_convert_for_dynamo(item))
        return True
    except ClientError as e:
        logger.error(f"put_transaction failed: {e.response['Error']['Message']}")
        return False


def put_transactions(kind: str, items: Iterable[Dict[str, Any]]) -> bool:
    """Write many records with a batch writer."""
    table = _table(kind)
    try:
        with table.batch_writer() as batch:
            for item in items:
                batch.put_item(Item=_convert_for_dynamo(item))
        return True
    except ClientError as e:
        logger.error(f"put_transactions failed: {e.response['Error']['Message']}")
        return False


def _convert_for_dynamo(obj: Any):
    """
    Recursively convert floats to Decimal for DynamoDB compatibility.
    """
    if isinstance(obj, float):
        return Decimal(str(obj))
    if isinstance(obj, dict):
        return {k: _convert_for_dynamo(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_convert_for_dynamo(v) for v in obj]
    return obj


def _from_dynamo(obj: Any):
    """
    Recursively convert Decimal instances back to native Python numeric types.
    """
    if isinstance(obj, list):
        return [_from_dynamo(item) for item in obj]
    if isinstance(obj, dict):
        return {k: _from_dynamo(v) for k, v in obj.items()}
    if isinstance(obj, Decimal):
        if obj % 1 == 0:
            return int(obj)
        return float(obj)
    return obj
