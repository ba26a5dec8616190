"""Queue routes for the kara API."""

from fastapi import APIRouter, Depends, Header, HTTPException, Response
from kara.config import DEVICE_HEADER
from kara.core.logging import log_api_request
from kara.dependencies import (
    get_master_manager,
    get_master_token,
    get_queue_manager,
    require_master,
    set_master_token,
)
from kara.models.queue import QueueState
from kara.models.song import SongCreate
from kara.services.master import MasterManager
from kara.services.queue import QueueManager

router = APIRouter(prefix="/queue", tags=["queue"])


@router.get("", response_model=QueueState)
async def get_queue(queue: QueueManager = Depends(get_queue_manager)):
    """Get the current queue state."""
    return queue.get_state()


@router.post("", status_code=201)
async def add_song(request: SongCreate, queue: QueueManager = Depends(get_queue_manager)):
    """Add a song to the end of the queue."""
    song = request.to_song()
    log_api_request("add_song", description=song.title, added_by=song.added_by)
    queue.add_song(song)
    return {"success": True, "song": song}


@router.delete("", dependencies=[Depends(require_master)])
async def clear_queue(queue: QueueManager = Depends(get_queue_manager)):
    """Clear the queue and the play history."""
    log_api_request("clear_queue")
    queue.clear_queue()
    return {"success": True}


@router.delete("/{song_id}")
async def remove_song(
    song_id: str,
    response: Response,
    device_id: str | None = Header(None, alias=DEVICE_HEADER),
    token: str | None = Depends(get_master_token),
    queue: QueueManager = Depends(get_queue_manager),
    master: MasterManager = Depends(get_master_manager),
):
    """Remove a song. The master may remove anything, others only their own requests."""
    song = queue.get_song(song_id)
    if song is None:
        raise HTTPException(status_code=404, detail=f"No song with id {song_id}")

    is_owner = bool(device_id) and song.added_by == device_id
    if not is_owner:
        result = master.authorize(token)
        if not result.allowed:
            raise HTTPException(status_code=403, detail="Only the master or the requesting device may remove this song")
        if result.new_token:
            # Caller adopted an unclaimed master
            set_master_token(response, result.new_token)

    log_api_request("remove_song", description=song.title, owner=is_owner)
    removed = queue.remove_song(song_id)
    if removed is None:
        raise HTTPException(status_code=404, detail=f"No song with id {song_id}")
    return {"success": True, "song": removed}
