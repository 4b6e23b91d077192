"""Unit tests for the DynamoDB wrapper against moto."""

import datetime as dt
from decimal import Decimal
from unittest.mock import patch

import pytest
from boto3.dynamodb.conditions import Key

from tourmatch.models import ApplicationStatus, RequestStatus
from tourmatch.services.dynamodb import (
    APPLICATIONS_TABLE,
    REQUESTS_TABLE,
    DynamoDBService,
    get_dynamodb_service,
    reset_dynamodb_service,
    to_attribute,
)


def put_application(db: DynamoDBService, request_id: str, guide_id: str) -> None:
    db.put_item(
        APPLICATIONS_TABLE,
        {
            "request_id": request_id,
            "application_id": guide_id,
            "guide_id": guide_id,
            "status": ApplicationStatus.PENDING.value,
        },
    )


class TestToAttribute:
    def test_converts_enums_and_dates(self) -> None:
        assert to_attribute(RequestStatus.OPEN) == "open"
        assert to_attribute(dt.date(2025, 6, 1)) == "2025-06-01"
        assert to_attribute(
            dt.datetime(2025, 6, 1, 12, 0, tzinfo=dt.timezone.utc)
        ) == "2025-06-01T12:00:00+00:00"
        assert to_attribute([RequestStatus.OPEN, Decimal("1.5")]) == ["open", Decimal("1.5")]

    def test_rejects_floats(self) -> None:
        with pytest.raises(TypeError):
            to_attribute(1.5)


class TestTableNames:
    def test_prefix_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DYNAMODB_TABLE_PREFIX", "custom")

        assert DynamoDBService()._table_name(REQUESTS_TABLE) == "custom-tour-requests"

    def test_default_prefix_uses_environment_name(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("DYNAMODB_TABLE_PREFIX", raising=False)

        service = DynamoDBService("prod")

        assert service._table_name(APPLICATIONS_TABLE) == "tourmatch-prod-applications"

    def test_singleton(self) -> None:
        first = get_dynamodb_service()

        assert get_dynamodb_service() is first
        reset_dynamodb_service()
        assert get_dynamodb_service() is not first


class TestConditionalWrites:
    def test_put_condition_failure_returns_false(self, db: DynamoDBService) -> None:
        put_application(db, "REQ-1", "guide-a")

        stored = db.put_item(
            APPLICATIONS_TABLE,
            {"request_id": "REQ-1", "application_id": "guide-a"},
            condition_expression="attribute_not_exists(application_id)",
        )

        assert stored is False

    def test_update_condition_failure_returns_none(self, db: DynamoDBService) -> None:
        put_application(db, "REQ-1", "guide-a")

        attrs = db.update_item(
            APPLICATIONS_TABLE,
            key={"request_id": "REQ-1", "application_id": "guide-a"},
            update_expression="SET #s = :s",
            expression_attribute_values={":s": "selected", ":rejected": "rejected"},
            expression_attribute_names={"#s": "status"},
            condition_expression="#s = :rejected",
        )

        assert attrs is None


class TestReads:
    def test_query_and_count(self, db: DynamoDBService) -> None:
        for i in range(5):
            put_application(db, "REQ-1", f"guide-{i}")
        put_application(db, "REQ-2", "guide-0")

        items = db.query(APPLICATIONS_TABLE, Key("request_id").eq("REQ-1"), consistent_read=True)

        assert len(items) == 5
        assert db.count(APPLICATIONS_TABLE, Key("request_id").eq("REQ-1")) == 5
        assert db.count(APPLICATIONS_TABLE, Key("request_id").eq("REQ-3")) == 0

    def test_batch_get_spans_chunks(self, db: DynamoDBService) -> None:
        for i in range(120):
            put_application(db, f"REQ-{i}", "guide-a")

        keys = [{"request_id": f"REQ-{i}", "application_id": "guide-a"} for i in range(130)]
        items = db.batch_get(APPLICATIONS_TABLE, keys)

        assert len(items) == 120
        assert db.batch_get(APPLICATIONS_TABLE, []) == []

    def test_scan_projection(self, db: DynamoDBService) -> None:
        put_application(db, "REQ-1", "guide-a")

        items = db.scan(APPLICATIONS_TABLE, projection=["request_id"])

        assert items == [{"request_id": "REQ-1"}]


class TestTransactWrite:
    def test_all_or_nothing(self, db: DynamoDBService) -> None:
        put_application(db, "REQ-1", "guide-a")

        committed = db.transact_write(
            [
                db.transact_put(
                    APPLICATIONS_TABLE,
                    {"request_id": "REQ-1", "application_id": "guide-b", "status": "pending"},
                ),
                db.transact_put(
                    APPLICATIONS_TABLE,
                    {"request_id": "REQ-1", "application_id": "guide-a", "status": "pending"},
                    condition_expression="attribute_not_exists(application_id)",
                ),
            ]
        )

        assert committed is False
        assert db.get_item(
            APPLICATIONS_TABLE, {"request_id": "REQ-1", "application_id": "guide-b"}
        ) is None

    def test_serializes_python_values(self, db: DynamoDBService) -> None:
        now = dt.datetime(2025, 5, 1, 9, 30, tzinfo=dt.timezone.utc)

        committed = db.transact_write(
            [
                db.transact_put(
                    APPLICATIONS_TABLE,
                    {
                        "request_id": "REQ-1",
                        "application_id": "guide-a",
                        "status": ApplicationStatus.PENDING,
                        "proposed_price": Decimal("450"),
                        "created_at": now,
                    },
                )
            ]
        )

        item = db.get_item(APPLICATIONS_TABLE, {"request_id": "REQ-1", "application_id": "guide-a"})
        assert committed is True
        assert item["status"] == "pending"
        assert item["proposed_price"] == Decimal("450")
        assert item["created_at"] == "2025-05-01T09:30:00+00:00"

    def test_other_client_errors_propagate(self, db: DynamoDBService) -> None:
        from botocore.exceptions import ClientError

        error = ClientError(
            {"Error": {"Code": "ValidationException", "Message": "bad"}}, "TransactWriteItems"
        )
        with patch.object(db._client, "transact_write_items", side_effect=error):
            with pytest.raises(ClientError):
                db.transact_write([])
