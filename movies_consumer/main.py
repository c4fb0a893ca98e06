"""movies-consumer FastAPI application.

Responsibilities:
- Start a background Kafka consumer that decodes movie lifecycle events.
- Serve a liveness endpoint reporting whether the consumer is running.

The consumer loop blocks, so it runs in a daemon thread next to the HTTP
server. Run with `uvicorn movies_consumer.main:app`.
"""

from __future__ import annotations

from collections.abc import Mapping
from threading import Event, Thread

from fastapi import FastAPI

from .config import Settings
from .events import EventKind, MovieEventHandler
from .kafka_consumer import run_consumer
from .log import configure_logging


def create_app(
    settings: Settings | None = None,
    handlers: Mapping[EventKind, MovieEventHandler] | None = None,
) -> FastAPI:
    """Build the application around explicit settings (default: from the environment)."""
    settings = settings or Settings.from_env()

    app = FastAPI(title="Movies Consumer")
    app.state.settings = settings

    # Used to signal the consumer thread to stop on shutdown.
    stop_event = Event()
    app.state.stop_event = stop_event
    app.state.consumer_thread = None

    @app.on_event("startup")
    def on_startup() -> None:
        configure_logging(settings.log_level, settings.log_format)
        consumer_thread = Thread(
            target=run_consumer,
            args=(settings, stop_event, handlers),
            name="movies-consumer",
            daemon=True,
        )
        consumer_thread.start()
        app.state.consumer_thread = consumer_thread

    @app.on_event("shutdown")
    def on_shutdown() -> None:
        stop_event.set()

    @app.get("/health")
    def health() -> dict[str, str]:
        """Liveness plus consumer thread state."""
        thread = app.state.consumer_thread
        running = thread is not None and thread.is_alive()
        return {"status": "ok", "consumer": "running" if running else "stopped"}

    return app


app = create_app()
