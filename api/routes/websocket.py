"""
WebSocket sessions for the location picker and the pincode field.

Each connection owns one picker. The client streams raw input events
(keystrokes, map clicks, edits) and the server pushes a state snapshot after
every change, so debounced searches and late reverse geocodes reach the
client without polling.
"""

import asyncio
import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from api.routes.geocoding import get_geocoder, get_pincode_service
from core.config import settings
from services.geocoding import Location, NominatimClient, PincodeGeocodingService
from services.location_picker import LocationPicker, PincodeInput, SelectionError

router = APIRouter(tags=["websocket"])
logger = logging.getLogger(__name__)

# Close code for "service unavailable, try again later"
TRY_AGAIN_LATER = 1013


def get_optional_pincode_service() -> Optional[PincodeGeocodingService]:
    """Pincode service, or None when Google isn't configured"""
    try:
        return get_pincode_service()
    except HTTPException:
        return None


async def _pump(websocket: WebSocket, outbox: asyncio.Queue):
    """Send queued messages in order until the None sentinel arrives"""
    while True:
        message = await outbox.get()
        if message is None:
            return
        await websocket.send_json(message)


async def _stop_pump(sender: asyncio.Task, outbox: asyncio.Queue, disconnected: bool):
    if disconnected:
        sender.cancel()
    else:
        outbox.put_nowait(None)
    try:
        await sender
    except asyncio.CancelledError:
        pass
    except Exception as e:
        logger.warning(f"WebSocket sender stopped with error: {e}")


def _parse(raw: str) -> Optional[dict]:
    data = json.loads(raw)
    if not isinstance(data, dict):
        return None
    return data


def _build_picker(geocoder, outbox: asyncio.Queue, message: Optional[dict]) -> LocationPicker:
    initial = None
    if message and message.get("type") == "open" and message.get("initial_location"):
        initial = Location.model_validate(message["initial_location"])

    picker = LocationPicker(
        geocoder,
        initial_location=initial,
        on_confirm=lambda location: outbox.put_nowait(
            {"type": "confirmed", "location": location.model_dump(mode="json")}
        ),
        debounce_interval=settings.SEARCH_DEBOUNCE_SECONDS,
        min_query_length=settings.SEARCH_MIN_QUERY_LENGTH,
    )
    picker.subscribe(
        lambda snapshot: outbox.put_nowait({"type": "state", "data": snapshot.model_dump(mode="json")})
    )
    return picker


def _handle_picker_message(picker: LocationPicker, message: dict):
    kind = message.get("type")

    if kind == "query":
        picker.set_query(str(message.get("text", "")))
    elif kind == "map_click":
        picker.click_map(float(message["latitude"]), float(message["longitude"]))
    elif kind == "select_result":
        picker.select_result(int(message["index"]))
    elif kind == "edit_field":
        picker.edit_field(str(message["field"]), str(message.get("value", "")))
    elif kind == "confirm":
        picker.confirm()
    elif kind == "cancel":
        picker.cancel()
    else:
        raise ValueError(f"Unknown message type: {kind}")


@router.websocket("/ws/location-picker")
async def location_picker_websocket(
    websocket: WebSocket,
    geocoder: NominatimClient = Depends(get_geocoder),
):
    """
    Location picker session.

    Client -> server: open (optional, first), query, map_click, select_result,
    edit_field, confirm, cancel, or the text "ping".
    Server -> client: state, confirmed, error. The socket closes after
    confirm or cancel.
    """
    await websocket.accept()

    outbox: asyncio.Queue = asyncio.Queue()
    sender = asyncio.create_task(_pump(websocket, outbox))
    picker: Optional[LocationPicker] = None
    disconnected = False

    try:
        while picker is None or not picker.closed:
            raw = await websocket.receive_text()
            if raw == "ping":
                outbox.put_nowait({"type": "pong"})
                continue

            try:
                message = _parse(raw)
                if message is None:
                    raise ValueError("Message must be a JSON object")

                if picker is None:
                    picker = _build_picker(geocoder, outbox, message)
                    outbox.put_nowait({"type": "state", "data": picker.snapshot().model_dump(mode="json")})
                    if message.get("type") == "open":
                        continue

                _handle_picker_message(picker, message)

            except json.JSONDecodeError as e:
                logger.warning(f"Invalid JSON on location picker socket: {e}")
                outbox.put_nowait({"type": "error", "detail": "Invalid JSON"})
            except (KeyError, TypeError, ValueError, ValidationError, SelectionError) as e:
                # ValueError covers InvalidCoordinates: the selection is kept as it was
                logger.info(f"Rejected location picker input: {e}")
                outbox.put_nowait({"type": "error", "detail": str(e)})

    except WebSocketDisconnect:
        disconnected = True
        logger.info("Location picker socket disconnected")
    finally:
        if picker is not None:
            await picker.aclose()
        await _stop_pump(sender, outbox, disconnected)

    if not disconnected:
        await websocket.close()


@router.websocket("/ws/pincode")
async def pincode_websocket(
    websocket: WebSocket,
    service: Optional[PincodeGeocodingService] = Depends(get_optional_pincode_service),
):
    """
    Pincode field session.

    Client -> server: value, select, focus, blur, or the text "ping".
    Server -> client: state, location, error.
    """
    await websocket.accept()
    if service is None:
        await websocket.close(code=TRY_AGAIN_LATER, reason="Pincode lookup not configured")
        return

    outbox: asyncio.Queue = asyncio.Queue()
    sender = asyncio.create_task(_pump(websocket, outbox))
    field = PincodeInput(
        service,
        on_change=lambda snapshot: outbox.put_nowait({"type": "state", "data": snapshot.model_dump(mode="json")}),
        on_location_data=lambda location: outbox.put_nowait(
            {"type": "location", "location": location.model_dump(mode="json")}
        ),
        debounce_interval=settings.SEARCH_DEBOUNCE_SECONDS,
        min_length=settings.SEARCH_MIN_QUERY_LENGTH,
    )
    disconnected = False

    try:
        while True:
            raw = await websocket.receive_text()
            if raw == "ping":
                outbox.put_nowait({"type": "pong"})
                continue

            try:
                message = _parse(raw)
                if message is None:
                    raise ValueError("Message must be a JSON object")

                kind = message.get("type")
                if kind == "value":
                    field.set_value(str(message.get("value", "")))
                elif kind == "select":
                    field.select(int(message["index"]))
                elif kind == "focus":
                    field.focus()
                elif kind == "blur":
                    field.blur()
                else:
                    raise ValueError(f"Unknown message type: {kind}")

            except json.JSONDecodeError as e:
                logger.warning(f"Invalid JSON on pincode socket: {e}")
                outbox.put_nowait({"type": "error", "detail": "Invalid JSON"})
            except (KeyError, TypeError, ValueError, SelectionError) as e:
                logger.info(f"Rejected pincode input: {e}")
                outbox.put_nowait({"type": "error", "detail": str(e)})

    except WebSocketDisconnect:
        disconnected = True
        logger.info("Pincode socket disconnected")
    finally:
        await field.aclose()
        await _stop_pump(sender, outbox, disconnected)
