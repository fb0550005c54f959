"""Wire payload shared by the backend and the frontend view."""
from pydantic import BaseModel

BACKEND_MESSAGE = "Hello from the backend!"


class MessagePayload(BaseModel):
    message: str
