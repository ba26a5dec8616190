"""Playback control routes for the kara API."""

from fastapi import APIRouter, Depends, HTTPException
from kara.core.logging import log_api_request
from kara.dependencies import get_queue_manager, require_master
from kara.models.queue import PlaybackRequest
from kara.services.queue import QueueManager

router = APIRouter(prefix="/playback", tags=["playback"], dependencies=[Depends(require_master)])


@router.post("")
async def control_playback(request: PlaybackRequest, queue: QueueManager = Depends(get_queue_manager)):
    """Run a playback command from the master device."""
    action = request.action
    log_api_request(f"playback_{action}", trigger_source="master")

    if action == "next":
        # Keeps the current song in the queue
        song = queue.play_next()
    elif action == "previous":
        song = queue.play_previous()
    elif action == "play":
        queue.set_playing_state(True)
        song = queue.get_current_song()
    elif action == "pause":
        queue.set_playing_state(False)
        song = queue.get_current_song()
    elif action == "play_at":
        if request.index is None:
            raise HTTPException(status_code=400, detail="index required")
        song = queue.play_song_at(request.index)
    elif action in ("complete", "skip"):
        song = queue.remove_current_and_move_next()
    else:  # reorder
        if request.from_index is None or request.to_index is None:
            raise HTTPException(status_code=400, detail="fromIndex and toIndex required")
        return {"success": queue.reorder_queue(request.from_index, request.to_index)}

    return {"success": True, "song": song}
