"""Kafka consumer loop for movie events.

High-level flow:
    consume batch -> decode + dispatch (events.consume_movie_events) -> commit

Kafka concepts used here:

1) Consumer groups and offsets
- Kafka tracks the position (offset) per partition per consumer group.
- Consumers sharing a group.id split the partitions between them.

2) Manual offset commit
- `enable.auto.commit=False`; the batch is committed after the decoder has
  seen every message in it.
- Messages for the same movie share a key, so they land on the same partition
  and arrive in order.

3) consume(num_messages, timeout)
- Returns up to `num_messages` messages, waiting at most `timeout` seconds.
- The loop wakes up at least that often to check the stop signal.

Poison pills:
    A message the decoder rejects is reported and still committed. Otherwise the
    consumer would re-read the same bad message forever. Handler failures are
    committed too: there is no redelivery or retry.
"""

from __future__ import annotations

from collections.abc import Mapping
from threading import Event
from typing import Any

import structlog
from confluent_kafka import Consumer, KafkaException

from .config import Settings
from .events import ConsumeReport, EventKind, MovieEventHandler, RawMessage, consume_movie_events

logger = structlog.get_logger(__name__)


def create_consumer(settings: Settings) -> Consumer:
    """Create a Confluent Kafka Consumer for the movie topics.

    - auto.offset.reset=earliest: a group with no committed offsets starts at
      the beginning of each topic.
    - enable.auto.commit=False: offsets are committed by `run_consumer` after
      each batch.
    """
    conf: dict[str, Any] = {
        "bootstrap.servers": settings.kafka_bootstrap_servers,
        "group.id": settings.kafka_group_id,
        "auto.offset.reset": "earliest",
        "enable.auto.commit": False,
    }
    return Consumer(conf)


def to_raw_messages(batch: list[Any]) -> list[RawMessage]:
    """Convert confluent-kafka messages, dropping broker-level errors."""
    raw: list[RawMessage] = []
    for msg in batch:
        # `msg.error()` is a Kafka-level error, not an application payload error.
        if msg.error():
            logger.warning("kafka.message_error", error=str(msg.error()))
            continue
        raw.append(
            RawMessage(
                topic=msg.topic(),
                value=msg.value(),
                key=msg.key(),
                partition=msg.partition(),
                offset=msg.offset(),
            )
        )
    return raw


def process_batch(
    consumer: Consumer,
    batch: list[Any],
    handlers: Mapping[EventKind, MovieEventHandler] | None = None,
) -> ConsumeReport:
    """Decode and dispatch one polled batch, then commit it."""
    report = consume_movie_events(to_raw_messages(batch), handlers)
    logger.info(
        "kafka.batch_processed",
        received=len(batch),
        handled=len(report.handled),
        failed=len(report.failures),
    )
    try:
        consumer.commit(asynchronous=False)
    except KafkaException as e:
        # Uncommitted messages are redelivered after a rebalance or restart.
        logger.error("kafka.commit_failed", error=str(e))
    return report


def run_consumer(
    settings: Settings,
    stop_event: Event,
    handlers: Mapping[EventKind, MovieEventHandler] | None = None,
) -> None:
    """Run the consumer loop until `stop_event.is_set()` becomes True.

    Args:
        settings: broker address, group id, topics and batch sizing.
        stop_event: a threading.Event (or compatible object) used to stop the loop.
        handlers: per-kind handlers passed on to the decoder.
    """
    logger.info(
        "kafka.consumer_starting",
        bootstrap_servers=settings.kafka_bootstrap_servers,
        group_id=settings.kafka_group_id,
        topics=settings.kafka_topics,
    )

    consumer = create_consumer(settings)
    consumer.subscribe(settings.kafka_topics)

    try:
        while not stop_event.is_set():
            batch = consumer.consume(
                num_messages=settings.kafka_batch_size,
                timeout=settings.kafka_poll_timeout,
            )
            if not batch:
                continue
            process_batch(consumer, batch, handlers)
    finally:
        consumer.close()
        logger.info("kafka.consumer_closed")
