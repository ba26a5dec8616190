"""Master arbitration routes for the kara API."""

from fastapi import APIRouter, Depends, HTTPException, Response
from kara.core.logging import log_api_request
from kara.dependencies import (
    clear_master_token,
    get_master_manager,
    get_master_token,
    get_queue_manager,
    set_master_token,
)
from kara.models.master import MasterRequest
from kara.services.master import MasterManager
from kara.services.queue import QueueManager

router = APIRouter(prefix="/master", tags=["master"])


@router.get("")
async def get_master(
    response: Response,
    token: str | None = Depends(get_master_token),
    master: MasterManager = Depends(get_master_manager),
    queue: QueueManager = Depends(get_queue_manager),
):
    """Who is master, whether it is locked, and who is connected."""
    status = master.get_state(token)
    if status.you_are_master and status.master_token:
        # Refresh the cookie for the holder
        set_master_token(response, status.master_token)
    return {**status.model_dump(mode="json", by_alias=True), "autoRecommend": queue.get_auto_recommend()}


@router.post("")
async def update_master(
    request: MasterRequest,
    response: Response,
    token: str | None = Depends(get_master_token),
    master: MasterManager = Depends(get_master_manager),
    queue: QueueManager = Depends(get_queue_manager),
):
    """Claim, release, lock or unlock the master role, or toggle auto-recommend."""
    if request.auto_recommend is not None:
        queue.set_auto_recommend(request.auto_recommend)
        return {"success": True, "autoRecommend": request.auto_recommend}

    log_api_request(f"master_{request.action}", label=request.label)

    if request.action == "claim":
        result = master.claim(token, request.label, request.lock)
        if not result.success:
            raise HTTPException(status_code=409, detail="Master is locked")
        set_master_token(response, result.token)
        return {"success": True, "token": result.token, "locked": result.locked}

    if request.action == "release":
        result = master.release(token)
        if not result.success:
            raise HTTPException(status_code=409 if result.locked else 403, detail="Not master")
        clear_master_token(response)
        return {"success": True}

    if request.action == "lock":
        result = master.lock(token)
    elif request.action == "unlock":
        result = master.unlock(token)
    else:
        raise HTTPException(status_code=400, detail="Invalid action")

    if not result.success:
        raise HTTPException(status_code=403, detail="Not master")
    return {"success": True, "locked": result.locked}
