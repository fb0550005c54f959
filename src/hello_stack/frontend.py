"""
Frontend process: a single view that fetches the backend greeting once and
renders it as an HTML page.
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Callable, Optional

import requests
import uvicorn
from fastapi import FastAPI
from fastapi.responses import HTMLResponse
from jinja2 import Environment, PackageLoader

from hello_stack.logs import configure_logging
from hello_stack.schemas import MessagePayload

logger = logging.getLogger(__name__)

API_URL = "http://localhost:5000/api"
LOADING_TEXT = "Se încarcă..."
ERROR_TEXT = "Error in getting message."

HOST = "0.0.0.0"
FRONTEND_PORT = 3000

templates = Environment(
    loader=PackageLoader("hello_stack", "templates"),
    autoescape=True,
)


def fetch_message(url: str = API_URL) -> MessagePayload:
    """GET the backend endpoint and parse its JSON body.

    Raises:
        requests.RequestException: transport failure or error status.
        ValueError: the body is not JSON or lacks a string ``message``.
    """
    response = requests.get(url)
    response.raise_for_status()
    return MessagePayload.model_validate(response.json())


class MessageView:
    """Holds the one piece of state the page shows.

    ``message`` starts as the loading placeholder and moves exactly once, to
    either the fetched greeting or the error text.
    """

    def __init__(
        self,
        url: str = API_URL,
        fetch: Callable[[str], MessagePayload] = fetch_message,
    ):
        self.url = url
        self.message = LOADING_TEXT
        self._fetch = fetch
        self._load_task: Optional[asyncio.Task] = None

    @property
    def mounted(self) -> bool:
        return self._load_task is not None

    def mount(self) -> asyncio.Task:
        """Start the load on the running loop. Later calls reuse the same task."""
        if self._load_task is None:
            self._load_task = asyncio.get_running_loop().create_task(self._load())
        return self._load_task

    async def _load(self) -> None:
        try:
            payload = await asyncio.to_thread(self._fetch, self.url)
        except Exception:
            logger.exception("Fetching %s failed", self.url)
            self.message = ERROR_TEXT
            return
        self.message = payload.message

    def render(self) -> str:
        return templates.get_template("index.html").render(message=self.message)


def create_app(view: Optional[MessageView] = None) -> FastAPI:
    """Build the frontend app around ``view``; the view is mounted at startup."""
    view = view or MessageView()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        view.mount()
        yield

    app = FastAPI(title="Hello Frontend", version="1.0.0", lifespan=lifespan)
    app.state.view = view

    @app.get("/", response_class=HTMLResponse)
    async def index() -> str:
        """Render the current view state."""
        return view.render()

    return app


def main() -> None:
    configure_logging()
    uvicorn.run(create_app(), host=HOST, port=FRONTEND_PORT)


if __name__ == "__main__":
    # Run the app when called as a module
    main()
