"""
API v1 Router

Thread routes are addressed by channel slug: /threads/{channel}/{thread_id}.
"""

from fastapi import APIRouter
from . import channels, profiles, replies, threads

router = APIRouter()

router.include_router(threads.router, prefix="/threads", tags=["Threads"])
router.include_router(replies.router, prefix="/replies", tags=["Replies"])
router.include_router(channels.router, prefix="/channels", tags=["Channels"])
router.include_router(profiles.router, prefix="/profiles", tags=["Profiles"])


@router.get("/", tags=["API"])
async def api_root():
    """API root: version and available endpoints."""
    return {
        "api": "v1",
        "version": "0.1.0",
        "endpoints": [
            "/threads",
            "/threads/{channel}",
            "/threads/{channel}/{thread_id}",
            "/threads/{channel}/{thread_id}/replies",
            "/threads/{channel}/{thread_id}/subscriptions",
            "/replies/{reply_id}",
            "/channels",
            "/profiles/{name}",
        ],
    }
