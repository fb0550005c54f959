"""
FastAPI backend serving the static greeting on ``GET /api``.
Any origin may call it.
"""
import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from hello_stack.logs import configure_logging
from hello_stack.schemas import BACKEND_MESSAGE, MessagePayload

logger = logging.getLogger(__name__)

HOST = "0.0.0.0"
PORT = 5000

app = FastAPI(title="Hello Backend", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def allow_any_origin(request: Request, call_next):
    """Stamp the wildcard origin header on responses to non-browser callers too."""
    response = await call_next(request)
    response.headers.setdefault("Access-Control-Allow-Origin", "*")
    return response


@app.get("/api", response_model=MessagePayload)
async def get_message() -> MessagePayload:
    """Return the fixed greeting."""
    return MessagePayload(message=BACKEND_MESSAGE)


def serve(host: str = HOST, port: int = PORT) -> None:
    """Bind, announce readiness, then serve until interrupted.

    The socket is bound before the readiness line is logged. A failed bind
    exits the process through uvicorn.
    """
    config = uvicorn.Config(app, host=host, port=port)
    server = uvicorn.Server(config)
    sock = config.bind_socket()
    logger.info("Backend is running on port %d", port)
    server.run(sockets=[sock])


def main() -> None:
    configure_logging()
    serve()


if __name__ == "__main__":
    # Run the app when called as a module
    main()
