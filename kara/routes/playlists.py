"""Playlist routes for the kara API."""

from fastapi import APIRouter, Depends, HTTPException
from kara.core.logging import log_api_request, log_error
from kara.dependencies import get_playlist_store, get_queue_manager
from kara.models.playlist import PlaylistRequest
from kara.services.playlists import PlaylistStore
from kara.services.queue import QueueManager

router = APIRouter(prefix="/playlists", tags=["playlists"])


@router.get("")
def list_playlists(store: PlaylistStore = Depends(get_playlist_store)):
    """Get all saved playlists."""
    return {"playlists": store.list_playlists()}


@router.post("")
def playlist_action(
    request: PlaylistRequest,
    store: PlaylistStore = Depends(get_playlist_store),
    queue: QueueManager = Depends(get_queue_manager),
):
    """Save the current queue under a name, or replace the queue with a saved playlist."""
    log_api_request(f"playlist_{request.action}", description=request.name)

    if request.action == "save":
        try:
            entry = store.save(request.name, queue.get_state().songs)
        except OSError as e:
            log_error(e, context="playlist_save", name=request.name)
            raise HTTPException(status_code=500, detail="Playlist operation failed") from e
        return {
            "success": True,
            "playlist": {"name": entry.name, "updatedAt": entry.updated_at, "count": len(entry.songs)},
        }

    try:
        entry = store.load(request.name)
    except OSError as e:
        log_error(e, context="playlist_load", name=request.name)
        raise HTTPException(status_code=500, detail="Playlist operation failed") from e
    if entry is None:
        raise HTTPException(status_code=404, detail="Playlist not found")
    queue.load_songs(entry.songs)
    return {"success": True, "playlist": {"name": entry.name, "count": len(entry.songs)}}
