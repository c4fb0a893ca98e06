"""Shared fixtures: an in-memory Movies provider behind respx."""

from __future__ import annotations

import json
import re
from typing import Any

import httpx
import pytest
import respx

PROVIDER_URL = "http://movies-provider.test"

_BY_ID = re.compile(r"^/movies/(\d+)$")


class FakeMoviesProvider:
    """Speaks the provider's wire format: `{status, data}`, `{error}`, `{status, message}`."""

    def __init__(self) -> None:
        self.movies: dict[int, dict[str, Any]] = {}
        self._next_id = 1

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path == "/movies":
            if request.method == "GET":
                return self._get(request.url.params.get("name"))
            if request.method == "POST":
                return self._create(json.loads(request.content))
        match = _BY_ID.match(path)
        if match is not None:
            movie_id = int(match.group(1))
            if request.method == "GET":
                return self._get_by_id(movie_id)
            if request.method == "PUT":
                return self._update(movie_id, json.loads(request.content))
            if request.method == "DELETE":
                return self._delete(movie_id)
        return httpx.Response(404, json={"error": "Not found"})

    def _get(self, name: str | None) -> httpx.Response:
        if name is None:
            return httpx.Response(200, json={"status": 200, "data": list(self.movies.values())})
        for movie in self.movies.values():
            if movie["name"] == name:
                return httpx.Response(200, json={"status": 200, "data": movie})
        return httpx.Response(404, json={"error": f"Movie {name} not found"})

    def _get_by_id(self, movie_id: int) -> httpx.Response:
        movie = self.movies.get(movie_id)
        if movie is None:
            return httpx.Response(404, json={"error": f"Movie {movie_id} not found"})
        return httpx.Response(200, json={"status": 200, "data": movie})

    def _create(self, body: dict[str, Any]) -> httpx.Response:
        if any(m["name"] == body["name"] for m in self.movies.values()):
            return httpx.Response(409, json={"error": f"Movie {body['name']} already exists"})
        movie = {"id": self._next_id, **body}
        self.movies[self._next_id] = movie
        self._next_id += 1
        return httpx.Response(200, json={"status": 200, "data": movie})

    def _update(self, movie_id: int, body: dict[str, Any]) -> httpx.Response:
        movie = self.movies.get(movie_id)
        if movie is None:
            return httpx.Response(404, json={"error": f"Movie {movie_id} not found"})
        movie.update({k: v for k, v in body.items() if k != "id"})
        return httpx.Response(200, json={"status": 200, "data": movie})

    def _delete(self, movie_id: int) -> httpx.Response:
        if self.movies.pop(movie_id, None) is None:
            return httpx.Response(404, json={"status": 404, "message": f"Movie {movie_id} not found"})
        return httpx.Response(
            200, json={"status": 200, "message": f"Movie {movie_id} has been deleted"}
        )


@pytest.fixture
def movies_provider():
    provider = FakeMoviesProvider()
    with respx.mock(base_url=PROVIDER_URL, assert_all_called=False) as router:
        router.route().mock(side_effect=provider)
        yield provider
