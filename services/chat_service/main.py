from fastapi import FastAPI

from shared.errors import register_exception_handlers

from .models import ChatMessage, ChatRoom  # noqa: F401
from .router import router, public_router

chat_app = FastAPI(title="Chat Service", version="1.0.0")

register_exception_handlers(chat_app)

chat_app.include_router(public_router)
chat_app.include_router(router)
