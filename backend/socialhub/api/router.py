"""SocialHub API Router - aggregates all API routes."""

from fastapi import APIRouter

from socialhub.api import auth, chat, comments, gateway, health, posts, users

api_router = APIRouter()

api_router.include_router(health.router)
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(posts.router)
api_router.include_router(comments.router)
api_router.include_router(chat.router)
api_router.include_router(gateway.router)
