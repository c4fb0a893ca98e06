"""Typed consumer for the Movies API and its Kafka lifecycle events."""

from .api_client import (
    add_movie,
    delete_movie_by_id,
    get_movie_by_id,
    get_movie_by_name,
    get_movies,
    update_movie,
)
from .config import Settings
from .events import (
    ConsumeReport,
    EventKind,
    MessageFailure,
    MovieEvent,
    RawMessage,
    consume_movie_events,
    decode_message,
)
from .exceptions import MovieEventError, MovieEventErrorCodes
from .models import Failure, Movie, MovieDraft, MovieUpdate, Result, Success

__all__ = [
    "get_movies",
    "get_movie_by_id",
    "get_movie_by_name",
    "add_movie",
    "update_movie",
    "delete_movie_by_id",
    "consume_movie_events",
    "decode_message",
    "ConsumeReport",
    "EventKind",
    "MessageFailure",
    "MovieEvent",
    "RawMessage",
    "Movie",
    "MovieDraft",
    "MovieUpdate",
    "Result",
    "Success",
    "Failure",
    "MovieEventError",
    "MovieEventErrorCodes",
    "Settings",
]
