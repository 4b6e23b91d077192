#!/usr/bin/env python3
"""Create the tour matching DynamoDB tables and optionally seed sample data.

Usage:
    python scripts/create_tables.py --env dev
    python scripts/create_tables.py --env dev --seed
    python scripts/create_tables.py --endpoint-url http://localhost:8000 --seed
"""

import argparse
import datetime as dt
import os
from decimal import Decimal

import boto3
from botocore.exceptions import ClientError

from tourmatch.models import ApplicationSubmit, GuideIdentity, TourRequestCreate
from tourmatch.services.applications import ApplicationService
from tourmatch.services.dynamodb import DynamoDBService
from tourmatch.services.requests import TourRequestService
from tourmatch.services.schema import table_definitions


def create_tables(client, prefix: str) -> None:
    """Create every table that does not exist yet and wait for it."""
    for definition in table_definitions(prefix):
        name = definition["TableName"]
        try:
            client.create_table(**definition)
            client.get_waiter("table_exists").wait(TableName=name)
            print(f"  ✓ Created {name}")
        except ClientError as e:
            if e.response["Error"]["Code"] != "ResourceInUseException":
                raise
            print(f"  - {name} already exists")


def seed(db: DynamoDBService) -> None:
    """Post one open request with two guide applications."""
    requests = TourRequestService(db)
    applications = ApplicationService(db)

    start = dt.date.today() + dt.timedelta(days=30)
    request = requests.create_request(
        "tourist-demo",
        TourRequestCreate(
            title="Old town walking tour",
            destination="Lisbon",
            start_date=start,
            end_date=start + dt.timedelta(days=2),
            budget=Decimal("500"),
            number_of_people=2,
            tour_type="cultural",
            languages=["en", "pt"],
            description="History, tiles and pastel de nata",
        ),
        tourist_name="Demo Tourist",
    )
    print(f"  ✓ Request {request.request_id}")

    for guide_id, name, price in (("guide-ana", "Ana", "450"), ("guide-rui", "Rui", "480")):
        applications.submit_application(
            request.request_id,
            GuideIdentity(guide_id=guide_id, guide_name=name),
            ApplicationSubmit(
                proposed_price=Decimal(price),
                cover_letter=f"{name} here, licensed Lisbon guide.",
            ),
        )
        print(f"  ✓ Application from {name} at {price}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Create tour matching DynamoDB tables")
    parser.add_argument("--env", default="dev", help="Environment name (default: dev)")
    parser.add_argument("--prefix", help="Table prefix (default: tourmatch-{env})")
    parser.add_argument("--region", help="AWS region")
    parser.add_argument("--endpoint-url", help="DynamoDB endpoint (e.g. DynamoDB Local)")
    parser.add_argument("--seed", action="store_true", help="Insert sample data")
    args = parser.parse_args()

    prefix = args.prefix or f"tourmatch-{args.env}"
    client = boto3.client(
        "dynamodb", region_name=args.region, endpoint_url=args.endpoint_url
    )

    print(f"Creating tables with prefix '{prefix}'...")
    create_tables(client, prefix)

    if args.seed:
        os.environ["DYNAMODB_TABLE_PREFIX"] = prefix
        if args.endpoint_url:
            os.environ["DYNAMODB_ENDPOINT_URL"] = args.endpoint_url
        if args.region:
            os.environ["AWS_DEFAULT_REGION"] = args.region
        print("Seeding sample data...")
        seed(DynamoDBService(args.env))

    print("Done.")


if __name__ == "__main__":
    main()
