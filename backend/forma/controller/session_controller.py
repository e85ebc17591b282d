"""API routes driving a design session through form, selection and output."""

import base64
from typing import Any, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from fastapi.responses import Response

from forma.handlers.error_handler import RoomDesignError
from forma.models.design import FormInputs
from forma.models.session import (
    BackRequest,
    OptionChoiceRequest,
    RedesignRequest,
    SessionView,
    ToggleItemRequest,
)
from forma.services.session_service.main import DesignSessions as ds
from forma.services.session_service.session_store import SessionStore
from forma.utility.logger import AppLogger

router = APIRouter(prefix="/api/session", tags=["Session"])
logger = AppLogger.get_logger(__name__)


def _unexpected(action: str, e: Exception) -> HTTPException:
    """Log and wrap a failure that is not part of the design error taxonomy."""
    logger.error(f"Exception occurred while {action}: {e}", exc_info=e)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Unexpected error while {action}.",
    )


@router.post("", response_model=SessionView, status_code=status.HTTP_201_CREATED)
async def create_session(store: SessionStore = Depends(ds.get_store)) -> SessionView:
    """Start a new session on the form screen."""
    session = store.create()
    return session.snapshot()


@router.get("/{session_id}", response_model=SessionView)
async def get_session(
    session_id: str, store: SessionStore = Depends(ds.get_store)
) -> SessionView:
    """Return the current screen state of a session."""
    return store.get(session_id).snapshot()


@router.delete("/{session_id}")
async def delete_session(
    session_id: str, store: SessionStore = Depends(ds.get_store)
) -> dict[str, Any]:
    """Discard a session and everything it holds."""
    store.delete(session_id)
    return {"success": True}


@router.post("/{session_id}/form", response_model=SessionView)
async def submit_form(
    session_id: str,
    existingObjects: str = Form(""),
    designPrompt: str = Form(""),
    designVibe: str = Form(""),
    roomDimensions: Optional[str] = Form(None),
    clearImage: bool = Form(False),
    room_image: Optional[UploadFile] = File(None),
    store: SessionStore = Depends(ds.get_store),
) -> SessionView:
    """
    Submit the design form and fetch item suggestions.
    Failures of the suggestion request come back in the view's ``error``.
    Without a new upload the earlier room photo is reused unless ``clearImage`` is set.
    """
    session = store.get(session_id)
    try:
        inputs = FormInputs(
            existing_objects=existingObjects,
            design_prompt=designPrompt,
            design_vibe=designVibe,
            room_dimensions=roomDimensions or None,
        )
        data, filename, content_type = None, None, None
        # browsers send an empty part when no file was picked
        if room_image is not None and room_image.filename:
            data = await room_image.read()
            filename, content_type = room_image.filename, room_image.content_type

        await session.submit_form(
            inputs,
            image_source=data,
            filename=filename,
            mime_type=content_type,
            clear_image=clearImage,
        )
        return session.snapshot()
    except RoomDesignError:
        raise
    except Exception as e:
        raise _unexpected("submitting the form", e)


@router.post("/{session_id}/selection/option", response_model=SessionView)
async def choose_option(
    session_id: str,
    payload: OptionChoiceRequest,
    store: SessionStore = Depends(ds.get_store),
) -> SessionView:
    """Pick a style option for one suggested item."""
    session = store.get(session_id)
    session.choose_option(payload.item_name, payload.option_name)
    return session.snapshot()


@router.post("/{session_id}/selection/toggle", response_model=SessionView)
async def toggle_item(
    session_id: str,
    payload: ToggleItemRequest,
    store: SessionStore = Depends(ds.get_store),
) -> SessionView:
    """Include or exclude one suggested item."""
    session = store.get(session_id)
    session.toggle_item(payload.item_name)
    return session.snapshot()


@router.post("/{session_id}/selection/submit", response_model=SessionView)
async def submit_selection(
    session_id: str, store: SessionStore = Depends(ds.get_store)
) -> SessionView:
    """Generate the room image from the current selection."""
    session = store.get(session_id)
    try:
        await session.submit_selection()
        return session.snapshot()
    except RoomDesignError:
        raise
    except Exception as e:
        raise _unexpected("generating the design", e)


@router.post("/{session_id}/back", response_model=SessionView)
async def go_back(
    session_id: str,
    payload: BackRequest,
    store: SessionStore = Depends(ds.get_store),
) -> SessionView:
    """Return to the form or, from the output screen, to the item selection."""
    session = store.get(session_id)
    if payload.target == "selection":
        session.back_to_selection()
    else:
        session.back_to_form()
    return session.snapshot()


@router.post("/{session_id}/redesign", response_model=SessionView)
async def redesign(
    session_id: str,
    payload: RedesignRequest,
    store: SessionStore = Depends(ds.get_store),
) -> SessionView:
    """Refine the current design with a free-text instruction."""
    session = store.get(session_id)
    try:
        await session.redesign(payload.prompt)
        return session.snapshot()
    except RoomDesignError:
        raise
    except Exception as e:
        raise _unexpected("redesigning", e)


@router.post("/{session_id}/summary", response_model=SessionView)
async def describe_design(
    session_id: str, store: SessionStore = Depends(ds.get_store)
) -> SessionView:
    """Fetch a summary and shopping list for the current image."""
    session = store.get(session_id)
    try:
        await session.describe_design()
        return session.snapshot()
    except RoomDesignError:
        raise
    except Exception as e:
        raise _unexpected("describing the design", e)


@router.get("/{session_id}/image")
async def get_image(session_id: str, store: SessionStore = Depends(ds.get_store)):
    """Return the current generated image as raw bytes for the panorama viewer."""
    session = store.get(session_id)
    turn = session.current_turn
    if turn is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No image has been generated for this session yet.",
        )
    extension = turn.image.mime_type.split("/")[-1]
    return Response(
        content=base64.b64decode(turn.image.image.data_b64),
        media_type=turn.image.mime_type,
        headers={"Content-Disposition": f'inline; filename="design-{turn.turn}.{extension}"'},
    )
