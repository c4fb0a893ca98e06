"""Decoder for movie lifecycle events.

High-level flow, per message:
    decode bytes -> parse JSON -> validate schema -> classify topic -> handler

Messages arrive on three topics: `movie-created`, `movie-updated` and
`movie-deleted`. Each value is a UTF-8 JSON object with at least `id`, `name`
and `year`.

Failure isolation:
- A message that cannot be decoded (bad UTF-8, bad JSON, wrong schema, unknown
  topic) is recorded in the report and skipped. The rest of the batch is still
  processed.
- A handler that raises is recorded the same way; the next message is still
  handled.

Messages are processed strictly in arrival order. An `updated` after a
`deleted` for the same id means something, so there is no reordering or
parallel dispatch here.
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, ValidationError

from .exceptions import MovieEventError, MovieEventErrorCodes

logger = structlog.get_logger(__name__)

TOPIC_PATTERN = re.compile(r"^movie-(created|updated|deleted)$")


class EventKind(StrEnum):
    """Lifecycle event kind, taken from the topic name."""

    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"

    @property
    def topic(self) -> str:
        return f"movie-{self.value}"

    @classmethod
    def from_topic(cls, topic: str | bytes) -> EventKind:
        """Map `movie-<kind>` to its kind.

        Raises:
            MovieEventError: UNKNOWN_TOPIC for anything else.
        """
        if isinstance(topic, bytes):
            topic = topic.decode("utf-8", errors="replace")
        match = TOPIC_PATTERN.match(topic) if isinstance(topic, str) else None
        if match is None:
            raise MovieEventError(
                code=MovieEventErrorCodes.UNKNOWN_TOPIC,
                message=f"Unrecognized topic {topic!r}",
            )
        return cls(match.group(1))


class MovieEventPayload(BaseModel):
    """Value of a movie event. Extra keys from the producer are kept."""

    model_config = ConfigDict(extra="allow", frozen=True)

    id: int
    name: str
    year: int
    rating: float | None = None


class MovieEvent(BaseModel):
    """A decoded event, ready for a handler."""

    model_config = ConfigDict(frozen=True)

    kind: EventKind
    topic: str
    movie: MovieEventPayload
    key: str | None = None
    partition: int | None = None
    offset: int | None = None


@dataclass
class RawMessage:
    """An undecoded message as handed over by the transport.

    `value` is normally the serialized bytes (or str). Contract-test bodies
    carry it as an already-parsed JSON object, which is accepted too.
    """

    topic: str | bytes
    value: bytes | str | Mapping[str, Any] | None
    key: bytes | str | None = None
    partition: int | None = None
    offset: int | None = None


MovieEventHandler = Callable[[MovieEvent], None]


@dataclass(frozen=True)
class MessageFailure:
    """Why one message of a batch was skipped."""

    index: int
    topic: str
    code: str
    reason: str
    offset: int | None = None


@dataclass
class ConsumeReport:
    """Outcome of one batch."""

    handled: list[MovieEvent] = field(default_factory=list)
    failures: list[MessageFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def decode_failures(self) -> list[MessageFailure]:
        return [f for f in self.failures if f.code != MovieEventErrorCodes.HANDLER_FAILED]


def _decode_value(value: bytes | str | Mapping[str, Any] | None) -> Any:
    if isinstance(value, Mapping):
        return dict(value)
    if isinstance(value, bytes):
        value = value.decode("utf-8")
    if not isinstance(value, str):
        raise ValueError(f"unsupported message value of type {type(value).__name__}")
    return json.loads(value)


def _decode_key(key: Any) -> str | None:
    if key is None:
        return None
    if isinstance(key, bytes):
        return key.decode("utf-8", errors="replace")
    return str(key)


def decode_message(raw: RawMessage) -> MovieEvent:
    """Parse and classify one raw message.

    Raises:
        MovieEventError: INVALID_PAYLOAD when the value is not a valid movie
            event, UNKNOWN_TOPIC when the topic is not a movie topic.
    """
    # --- Decode JSON payload -------------------------------------------------
    try:
        data = _decode_value(raw.value)
    except (UnicodeDecodeError, ValueError, RecursionError) as e:
        # json.JSONDecodeError is a ValueError; RecursionError on deeply nested values
        raise MovieEventError(
            code=MovieEventErrorCodes.INVALID_PAYLOAD,
            message=f"Bad payload (decode/json): {e}",
            cause=e,
        ) from e

    # --- Validate event schema -----------------------------------------------
    try:
        movie = MovieEventPayload.model_validate(data)
    except ValidationError as e:
        raise MovieEventError(
            code=MovieEventErrorCodes.INVALID_PAYLOAD,
            message=f"Bad event schema: {e.error_count()} validation error(s)",
            cause=e,
        ) from e

    kind = EventKind.from_topic(raw.topic)

    try:
        return MovieEvent(
            kind=kind,
            topic=kind.topic,
            movie=movie,
            key=_decode_key(raw.key),
            partition=raw.partition,
            offset=raw.offset,
        )
    except ValidationError as e:
        raise MovieEventError(
            code=MovieEventErrorCodes.INVALID_PAYLOAD,
            message=f"Bad message metadata: {e.error_count()} validation error(s)",
            cause=e,
        ) from e


def log_movie_created(event: MovieEvent) -> None:
    logger.info("movie.created", movie=event.movie.model_dump(), key=event.key)


def log_movie_updated(event: MovieEvent) -> None:
    logger.info("movie.updated", movie=event.movie.model_dump(), key=event.key)


def log_movie_deleted(event: MovieEvent) -> None:
    logger.info("movie.deleted", movie=event.movie.model_dump(), key=event.key)


DEFAULT_HANDLERS: Mapping[EventKind, MovieEventHandler] = {
    EventKind.CREATED: log_movie_created,
    EventKind.UPDATED: log_movie_updated,
    EventKind.DELETED: log_movie_deleted,
}


def consume_movie_events(
    messages: Iterable[RawMessage],
    handlers: Mapping[EventKind, MovieEventHandler] | None = None,
) -> ConsumeReport:
    """Decode a batch of messages in order and dispatch each to its handler.

    Args:
        messages: the batch, in arrival order.
        handlers: handler per event kind. Kinds left out fall back to the
            logging handlers in `DEFAULT_HANDLERS`.

    Returns:
        A report with every handled event and every skipped message. This
        function does not raise for a bad message or a failing handler.
    """
    routes = {**DEFAULT_HANDLERS, **(handlers or {})}
    report = ConsumeReport()

    for index, raw in enumerate(messages):
        try:
            event = decode_message(raw)
        except MovieEventError as e:
            logger.warning(
                "movie_event.skipped",
                index=index,
                topic=raw.topic,
                offset=raw.offset,
                code=e.code,
                reason=e.message,
            )
            report.failures.append(
                MessageFailure(
                    index=index, topic=raw.topic, code=e.code, reason=e.message, offset=raw.offset
                )
            )
            continue

        try:
            routes[event.kind](event)
        except Exception as e:
            logger.exception(
                "movie_event.handler_failed",
                index=index,
                kind=event.kind.value,
                movie_id=event.movie.id,
            )
            report.failures.append(
                MessageFailure(
                    index=index,
                    topic=raw.topic,
                    code=MovieEventErrorCodes.HANDLER_FAILED,
                    reason=f"{type(e).__name__}: {e}",
                    offset=raw.offset,
                )
            )
            continue

        report.handled.append(event)

    return report


def raw_messages_from_content(content: Mapping[str, Any]) -> list[RawMessage]:
    """Flatten a `{topic, messages: [{key, value}, ...]}` body into raw messages."""
    topic = content.get("topic", "")
    return [
        RawMessage(topic=topic, value=m.get("value"), key=m.get("key"))
        for m in content.get("messages", [])
    ]
