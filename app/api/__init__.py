"""API router for v1 endpoints."""

from fastapi import APIRouter

from app.api import chat, search

router = APIRouter()

# Cross-collection search (one-shot and interactive session)
router.include_router(search.router, tags=["search"])

# Grounded support assistant
router.include_router(chat.router, tags=["chat"])
