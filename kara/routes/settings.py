"""Settings routes for the kara API."""

from fastapi import APIRouter, Depends
from kara.dependencies import get_queue_manager
from kara.models.queue import SettingsUpdateRequest
from kara.services.queue import QueueManager

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("")
async def get_settings(queue: QueueManager = Depends(get_queue_manager)):
    """Get current settings."""
    return {"autoRecommend": queue.get_auto_recommend()}


@router.post("")
async def update_settings(request: SettingsUpdateRequest, queue: QueueManager = Depends(get_queue_manager)):
    """Update settings; omitted fields are left alone."""
    if request.auto_recommend is not None:
        queue.set_auto_recommend(request.auto_recommend)
    return {"success": True, "autoRecommend": queue.get_auto_recommend()}
