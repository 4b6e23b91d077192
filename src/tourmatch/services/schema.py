"""DynamoDB table definitions for the three lifecycle tables.

Used by scripts/create_tables.py and by the test fixtures, so local,
test and deployed tables share one key layout.
"""

from typing import Any

from .dynamodb import APPLICATIONS_TABLE, BOOKINGS_TABLE, REQUESTS_TABLE


def _gsi(attribute: str) -> dict[str, Any]:
    return {
        "IndexName": f"{attribute}-index",
        "KeySchema": [{"AttributeName": attribute, "KeyType": "HASH"}],
        "Projection": {"ProjectionType": "ALL"},
    }


def table_definitions(prefix: str) -> list[dict[str, Any]]:
    """CreateTable arguments for every table under the given name prefix."""
    return [
        {
            "TableName": f"{prefix}-{REQUESTS_TABLE}",
            "KeySchema": [{"AttributeName": "request_id", "KeyType": "HASH"}],
            "AttributeDefinitions": [
                {"AttributeName": "request_id", "AttributeType": "S"},
                {"AttributeName": "tourist_id", "AttributeType": "S"},
            ],
            "GlobalSecondaryIndexes": [_gsi("tourist_id")],
            "BillingMode": "PAY_PER_REQUEST",
        },
        {
            # Applications live under their parent request's partition
            "TableName": f"{prefix}-{APPLICATIONS_TABLE}",
            "KeySchema": [
                {"AttributeName": "request_id", "KeyType": "HASH"},
                {"AttributeName": "application_id", "KeyType": "RANGE"},
            ],
            "AttributeDefinitions": [
                {"AttributeName": "request_id", "AttributeType": "S"},
                {"AttributeName": "application_id", "AttributeType": "S"},
            ],
            "BillingMode": "PAY_PER_REQUEST",
        },
        {
            "TableName": f"{prefix}-{BOOKINGS_TABLE}",
            "KeySchema": [{"AttributeName": "booking_id", "KeyType": "HASH"}],
            "AttributeDefinitions": [
                {"AttributeName": "booking_id", "AttributeType": "S"},
                {"AttributeName": "request_id", "AttributeType": "S"},
                {"AttributeName": "guide_id", "AttributeType": "S"},
                {"AttributeName": "tourist_id", "AttributeType": "S"},
            ],
            "GlobalSecondaryIndexes": [
                _gsi("request_id"),
                _gsi("guide_id"),
                _gsi("tourist_id"),
            ],
            "BillingMode": "PAY_PER_REQUEST",
        },
    ]
