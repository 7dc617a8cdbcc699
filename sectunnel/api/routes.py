"""
API routes exposing live session state.
"""

import logging

from fastapi import APIRouter, HTTPException, Request

router = APIRouter()
logger = logging.getLogger("sectunnel.api")


@router.get("/api/sessions")
async def list_sessions(request: Request):
    """List all live sessions."""
    controller = request.app.state.session_controller
    sessions = controller.list_sessions()
    return {
        "count": len(sessions),
        "sessions": [s.to_dict() for s in sessions]
    }


@router.get("/api/sessions/{session_id}")
async def get_session(request: Request, session_id: int):
    """Get details of a specific session."""
    controller = request.app.state.session_controller
    session = controller.get_session(session_id)

    if not session:
        raise HTTPException(
            status_code=404,
            detail=f"Session not found: {session_id}"
        )

    return session.to_dict()


@router.get("/api/stats")
async def get_stats(request: Request):
    """Get relay statistics."""
    controller = request.app.state.session_controller
    sessions = controller.list_sessions()
    return {
        "active_sessions": controller.count,
        "idle_timeout": controller.idle_timeout,
        "bytes_up": sum(s.bytes_up for s in sessions),
        "bytes_down": sum(s.bytes_down for s in sessions)
    }
