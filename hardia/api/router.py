from fastapi import APIRouter

from hardia.api.routes import chat, health

api_router = APIRouter(prefix="/api")

api_router.include_router(chat.router, tags=["Chat"])
api_router.include_router(health.router, tags=["Health"])
