import logging
from typing import Optional
import uvicorn
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)

DEFAULT_GRACE_PERIOD = 1.0


class Server:
    """Runs an ASGI app (usually a Router) on uvicorn.

    ``stop`` lets in-flight connections finish for ``grace_period`` seconds
    before uvicorn cancels them.
    """

    def __init__(
        self,
        app: ASGIApp,
        host: str = "0.0.0.0",
        port: int = 8080,
        grace_period: float = DEFAULT_GRACE_PERIOD,
        log_level: Optional[str] = None,
    ):
        self.app = app
        self.config = uvicorn.Config(
            app,
            host=host,
            port=port,
            timeout_graceful_shutdown=grace_period,
            log_level=log_level.lower() if log_level else None,
            log_config=None,
        )
        self.server = uvicorn.Server(self.config)

    @property
    def started(self) -> bool:
        return self.server.started

    def listen_and_serve(self) -> None:
        logger.info(f"[mux] Listening on {self.config.host}:{self.config.port}")
        self.server.run()

    async def serve(self) -> None:
        logger.info(f"[mux] Listening on {self.config.host}:{self.config.port}")
        await self.server.serve()

    def stop(self) -> None:
        if not self.server.started:
            return
        logger.info("[mux] Stopping server")
        self.server.should_exit = True
