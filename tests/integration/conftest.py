"""Moto-backed fixtures for dynamo_cdc integration tests."""

from __future__ import annotations

import json
from typing import Any, Iterator

import boto3
import pytest
from moto import mock_aws

from dynamo_cdc.clients import CdcClients, create_clients
from dynamo_cdc.config import CdcConfig

REGION = "us-east-1"
BUCKET = "cdc-offload"
BUS = "cdc-bus"
SOURCE = "orders.table"


@pytest.fixture
def aws() -> Iterator[None]:
    with mock_aws():
        yield


@pytest.fixture
def config() -> CdcConfig:
    return CdcConfig(
        event_source=SOURCE,
        event_bus_name=BUS,
        bucket_name=BUCKET,
        region=REGION,
    )


@pytest.fixture
def clients(aws: None, config: CdcConfig) -> CdcClients:
    cdc_clients = create_clients(config)
    cdc_clients.s3.create_bucket(Bucket=BUCKET)
    cdc_clients.events.create_event_bus(Name=BUS)
    return cdc_clients


@pytest.fixture
def bus_queue(clients: CdcClients) -> str:
    """SQS queue receiving every event the pipeline puts on the bus."""
    sqs: Any = boto3.client("sqs", region_name=REGION)
    queue_url = sqs.create_queue(QueueName="cdc-events")["QueueUrl"]
    queue_arn = sqs.get_queue_attributes(
        QueueUrl=queue_url, AttributeNames=["QueueArn"]
    )["Attributes"]["QueueArn"]

    clients.events.put_rule(
        Name="all-item-changes",
        EventBusName=BUS,
        EventPattern=(
            '{"source": ["%s"], "detail-type": ["dynamo.item.changed"]}'
            % SOURCE
        ),
        State="ENABLED",
    )
    clients.events.put_targets(
        Rule="all-item-changes",
        EventBusName=BUS,
        Targets=[{"Id": "queue", "Arn": queue_arn}],
    )
    return queue_url


def receive_all(queue_url: str) -> list[dict[str, Any]]:
    """Drain the queue and return the message bodies."""
    sqs: Any = boto3.client("sqs", region_name=REGION)
    bodies: list[dict[str, Any]] = []
    while True:
        messages = sqs.receive_message(
            QueueUrl=queue_url, MaxNumberOfMessages=10
        ).get("Messages", [])
        if not messages:
            return bodies
        for message in messages:
            bodies.append(json.loads(message["Body"]))
            sqs.delete_message(
                QueueUrl=queue_url, ReceiptHandle=message["ReceiptHandle"]
            )
