"""HTTP client for the Movies API.

Every function takes the provider's base URL explicitly and returns a
`Result`: `Success` with the parsed payload, or `Failure` with the server's
message and status.

Error classification:
- Any response the server sent back (404, 409, 500, a garbled 200) becomes data.
  `raise_for_status()` is called and the resulting `httpx.HTTPStatusError` is
  caught right here, so nothing server-originated escapes as an exception.
- When there is no response at all (DNS failure, refused connection, timeout,
  invalid URL) the httpx exception propagates. There is nothing to normalize
  and no retry is attempted; callers that need resilience wrap the call.

No state is kept between calls: each call opens its own `httpx.AsyncClient`,
so the functions are safe to use from concurrent tasks.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, TypeVar

import httpx
import structlog
from pydantic import TypeAdapter, ValidationError

from .models import Failure, Movie, MovieDraft, MovieUpdate, Result, Success

logger = structlog.get_logger(__name__)

DEFAULT_TIMEOUT = 10.0

T = TypeVar("T")

_movie_list = TypeAdapter(list[Movie])


def _movies_url(base_url: str, movie_id: int | None = None) -> str:
    url = f"{base_url.rstrip('/')}/movies"
    if movie_id is not None:
        url = f"{url}/{movie_id}"
    return url


async def _send(
    method: str,
    url: str,
    *,
    timeout: float,
    params: Mapping[str, str] | None = None,
    json: Any = None,
) -> httpx.Response:
    # Transport errors (no response) propagate to the caller.
    async with httpx.AsyncClient(timeout=timeout) as client:
        return await client.request(method, url, params=params, json=json)


def _json_body(resp: httpx.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return None


def _error_message(resp: httpx.Response, body: Any) -> str:
    """Pick the most specific message the server gave us."""
    if isinstance(body, dict):
        for field in ("error", "message"):
            value = body.get(field)
            if isinstance(value, str) and value:
                return value
    if resp.text:
        return resp.text
    return resp.reason_phrase or f"HTTP {resp.status_code}"


def _to_result(
    resp: httpx.Response,
    parse: Callable[[dict[str, Any]], T],
) -> Result[T]:
    """Normalize a response into Success/Failure.

    `parse` receives the decoded JSON object of a 2xx response and returns the
    payload. Any exception it raises about the body shape becomes a Failure.
    """
    body = _json_body(resp)
    try:
        resp.raise_for_status()
    except httpx.HTTPStatusError:
        failure = Failure(error=_error_message(resp, body), status=resp.status_code)
        logger.info(
            "movies_api.failure",
            method=resp.request.method,
            url=str(resp.request.url),
            status=failure.status,
            error=failure.error,
        )
        return failure

    if not isinstance(body, dict):
        return Failure(error="Response body is not a JSON object", status=resp.status_code)

    try:
        data = parse(body)
    except (KeyError, ValidationError) as e:
        logger.warning(
            "movies_api.malformed_body",
            method=resp.request.method,
            url=str(resp.request.url),
            status=resp.status_code,
            reason=str(e),
        )
        return Failure(error=f"Unexpected response body: {e}", status=resp.status_code)

    status = body.get("status")
    if not isinstance(status, int):
        status = resp.status_code
    return Success[Any](status=status, data=data)


def _one_movie(body: dict[str, Any]) -> Movie:
    return Movie.model_validate(body["data"])


def _many_movies(body: dict[str, Any]) -> list[Movie]:
    return _movie_list.validate_python(body["data"])


def _confirmation(body: dict[str, Any]) -> str:
    message = body["message"]
    if not isinstance(message, str):
        raise KeyError("message")
    return message


async def get_movies(base_url: str, *, timeout: float = DEFAULT_TIMEOUT) -> Result[list[Movie]]:
    """`GET /movies`. An empty list is a valid success."""
    resp = await _send("GET", _movies_url(base_url), timeout=timeout)
    return _to_result(resp, _many_movies)


async def get_movie_by_id(
    base_url: str, movie_id: int, *, timeout: float = DEFAULT_TIMEOUT
) -> Result[Movie]:
    """`GET /movies/{id}`. A missing movie comes back as a 404 Failure."""
    resp = await _send("GET", _movies_url(base_url, movie_id), timeout=timeout)
    return _to_result(resp, _one_movie)


async def get_movie_by_name(
    base_url: str, name: str, *, timeout: float = DEFAULT_TIMEOUT
) -> Result[Movie]:
    """`GET /movies?name=<name>`.

    The name is sent verbatim as a query parameter; httpx escapes spaces and
    reserved characters.
    """
    resp = await _send("GET", _movies_url(base_url), params={"name": name}, timeout=timeout)
    return _to_result(resp, _one_movie)


async def add_movie(
    base_url: str,
    draft: MovieDraft | Mapping[str, Any],
    *,
    timeout: float = DEFAULT_TIMEOUT,
) -> Result[Movie]:
    """`POST /movies`. A duplicate name comes back as a 409 Failure.

    Raises:
        pydantic.ValidationError: when `draft` is not a valid movie draft.
    """
    if not isinstance(draft, MovieDraft):
        draft = MovieDraft.model_validate(draft)
    resp = await _send("POST", _movies_url(base_url), json=draft.model_dump(), timeout=timeout)
    result = _to_result(resp, _one_movie)
    if result.ok:
        logger.debug("movies_api.created", movie_id=result.data.id, name=result.data.name)
    return result


async def update_movie(
    base_url: str,
    movie_id: int,
    fields: MovieUpdate | Mapping[str, Any],
    *,
    timeout: float = DEFAULT_TIMEOUT,
) -> Result[Movie]:
    """`PUT /movies/{id}` with only the supplied fields.

    An `id` key in `fields` is ignored; the path identifier always wins.

    Raises:
        pydantic.ValidationError: when a supplied field has the wrong type.
    """
    if not isinstance(fields, MovieUpdate):
        fields = MovieUpdate.model_validate(fields)
    resp = await _send(
        "PUT", _movies_url(base_url, movie_id), json=fields.to_body(), timeout=timeout
    )
    return _to_result(resp, _one_movie)


async def delete_movie_by_id(
    base_url: str, movie_id: int, *, timeout: float = DEFAULT_TIMEOUT
) -> Result[str]:
    """`DELETE /movies/{id}`. On success `data` is the confirmation message."""
    resp = await _send("DELETE", _movies_url(base_url, movie_id), timeout=timeout)
    return _to_result(resp, _confirmation)
