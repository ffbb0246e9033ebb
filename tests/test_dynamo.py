from decimal import Decimal

import pytest
from botocore.exceptions import ClientError

from finance_tracker.core.exceptions import UnknownRecordKindError
from finance_tracker.db import dynamo


class FakeBatch:
    def __init__(self, table):
        self.table = table

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def put_item(self, Item):
        self.table.put_item(Item=Item)


class FakeTable:
    def __init__(self, page_size=2):
        self.items = {}
        self.page_size = page_size

    def get_item(self, Key):
        item = self.items.get(Key["transaction_id"])
        return {"Item": item} if item else {}

    def put_item(self, Item):
        self.items[Item["transaction_id"]] = Item

    def batch_writer(self):
        return FakeBatch(self)

    def scan(self, ExclusiveStartKey=None):
        keys = sorted(self.items)
        start = keys.index(ExclusiveStartKey["transaction_id"]) + 1 if ExclusiveStartKey else 0
        page = keys[start:start + self.page_size]
        response = {"Items": [self.items[k] for k in page]}
        if start + self.page_size < len(keys):
            response["LastEvaluatedKey"] = {"transaction_id": page[-1]}
        return response


class BrokenTable:
    def get_item(self, Key):
        raise ClientError({"Error": {"Code": "ResourceNotFoundException", "Message": "no table"}}, "GetItem")


@pytest.fixture
def fake_tables(monkeypatch):
    tables = {kind: FakeTable() for kind in ("income", "employee", "salary", "vendor")}
    monkeypatch.setattr(dynamo, "TABLES", tables)
    return tables


def test_put_and_get_converts_numbers(fake_tables):
    assert dynamo.put_transaction("vendor", {"transaction_id": "v-1", "amount_incl_gst": 1180.5, "igst": 0.0})

    stored = fake_tables["vendor"].items["v-1"]
    assert stored["amount_incl_gst"] == Decimal("1180.5")

    item = dynamo.get_transaction("vendor", "v-1")
    assert item == {"transaction_id": "v-1", "amount_incl_gst": 1180.5, "igst": 0}


def test_list_transactions_follows_pagination(fake_tables):
    records = [{"transaction_id": f"e-{i}", "amount_paid": 10.0 * i} for i in range(5)]
    assert dynamo.put_transactions("employee", records)

    listed = dynamo.list_transactions("employee")
    assert [item["transaction_id"] for item in listed] == ["e-0", "e-1", "e-2", "e-3", "e-4"]
    assert dynamo.list_all_transactions()["employee"] == listed


def test_missing_transaction_returns_none(fake_tables):
    assert dynamo.get_transaction("income", "nope") is None


def test_client_error_returns_none(monkeypatch):
    monkeypatch.setattr(dynamo, "TABLES", {"income": BrokenTable()})
    assert dynamo.get_transaction("income", "i-1") is None


def test_unknown_kind_raises(fake_tables):
    with pytest.raises(UnknownRecordKindError):
        dynamo.get_transaction("invoice", "x")
