"""
POST /refresh
Starts a manual refresh. A cycle already in flight is superseded and its
results are discarded.
"""
from fastapi import APIRouter, Request

router = APIRouter()


@router.post("/refresh", status_code=202)
async def refresh(request: Request):
    poller = request.app.state.poller
    await poller.refresh()
    return {"message": "refresh started", "generation": poller.generation}
