"""Pydantic models for the Movies API.

Two groups live here:

- the movie entity and its creation / update shapes, which double as the JSON
  request bodies;
- the `Result` envelope every client call returns.

`Result` is a tagged union: `Success` or `Failure`, discriminated by `kind`.
Callers branch on the type (or `result.ok`) instead of probing for an `error`
key in a dict:

    match await get_movie_by_id(url, 1):
        case Success(data=movie):
            ...
        case Failure(error=message, status=status):
            ...
"""

from __future__ import annotations

from typing import Any, ClassVar, Generic, Literal, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field


class MovieDraft(BaseModel):
    """A movie without an identifier. Body of `POST /movies`."""

    name: str = Field(min_length=1)
    year: int
    rating: float


class Movie(MovieDraft):
    """A movie as stored by the provider. `id` is server-assigned."""

    id: int

    # May be absent from update responses
    rating: float | None = None


class MovieUpdate(BaseModel):
    """Partial field set for `PUT /movies/{id}`.

    Unknown keys are dropped, `id` included: the identifier of an existing
    movie is never overwritten.
    """

    model_config = ConfigDict(extra="ignore")

    name: str | None = Field(default=None, min_length=1)
    year: int | None = None
    rating: float | None = None

    def to_body(self) -> dict[str, Any]:
        """Only the fields the caller actually supplied."""
        return self.model_dump(exclude_unset=True)


T = TypeVar("T")


class Success(BaseModel, Generic[T]):
    """Successful call. `data` is a Movie, a list of movies, or a confirmation message."""

    model_config = ConfigDict(frozen=True)

    ok: ClassVar[bool] = True

    kind: Literal["success"] = "success"
    status: int
    data: T

    def to_wire(self) -> dict[str, Any]:
        """Render as the provider's JSON: `{status, data}` or `{status, message}`.

        Fields the server left out of a movie stay out.
        """
        if isinstance(self.data, str):
            return {"status": self.status, "message": self.data}
        return {
            "status": self.status,
            "data": self.model_dump(mode="json", exclude_unset=True)["data"],
        }


class Failure(BaseModel):
    """Failed call. `status` is None only when no HTTP status was available."""

    model_config = ConfigDict(frozen=True)

    ok: ClassVar[bool] = False

    kind: Literal["error"] = "error"
    error: str
    status: int | None = None

    def to_wire(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.error}
        if self.status is not None:
            body["status"] = self.status
        return body


Result = Union[Success[T], Failure]
