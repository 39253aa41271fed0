import logging
import uuid
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI, HTTPException, WebSocket
from fastapi.middleware.cors import CORSMiddleware

from nodi.app.api.websocket_manager import manager
from nodi.app.core.config import registry
from nodi.app.schemas.game_schema import (
    AIMoveRequest,
    AIMoveResponse,
    ApplyRequest,
    ApplyResponse,
    InitialBoardResponse,
    LegalRequest,
    LegalResponse,
    PresetResponse,
    ValuesRequest,
    ValuesResponse,
)
from nodi.app.services.ai_runner import ai_runner
from nodi.app.services.game_service import IllegalActionError, game_service

logger = logging.getLogger(__name__)


# --- LIFESPAN MANAGER ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Loaded AI presets: %s (default %s)", ", ".join(registry.list_all()), registry.default_key)
    yield
    # Shutdown: drop any search still in flight
    for client_id in list(ai_runner.running_tasks):
        await ai_runner.stop(client_id)
# -------------------------------------------------

app = FastAPI(title="NODI Rules Engine", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://localhost:3000"],  # Vite (5173) and React default (3000)
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/board/initial", response_model=InitialBoardResponse)
async def get_initial_board():
    """The fixed starting layout. Black moves first."""
    return game_service.initial_board()


@app.post("/legal", response_model=LegalResponse)
async def get_legal_actions(payload: LegalRequest):
    return game_service.legal_actions(payload.board.to_board(), payload.at)


@app.post("/apply", response_model=ApplyResponse)
async def apply_action(payload: ApplyRequest):
    """
    Applies one action to the supplied board and returns the NEW board.
    The request board is never modified, so the client can keep it for undo.
    """
    try:
        return game_service.apply_action(payload.board.to_board(), payload.action)
    except IllegalActionError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.post("/values", response_model=ValuesResponse)
async def get_values(payload: ValuesRequest):
    """Ability values, unclamped values and king rays for display overlays."""
    return game_service.values(payload.board.to_board())


@app.get("/ai/presets", response_model=List[PresetResponse])
async def get_ai_presets():
    return [
        PresetResponse(id=key, **preset.model_dump())
        for key, preset in registry.list_all().items()
    ]


@app.post("/ai/move", response_model=AIMoveResponse)
async def get_ai_move(payload: AIMoveRequest, client_id: Optional[str] = None):
    """
    Picks the AI's action for `side`. Passing the same client_id on a new
    request supersedes an earlier one still thinking (that one gets 409).
    """
    result = await ai_runner.request_move(
        client_id or uuid.uuid4().hex,
        payload.board.to_board(),
        payload.side,
        preset=payload.preset,
        move_limit=payload.move_limit,
        reply_limit=payload.reply_limit,
    )
    if result is None:
        raise HTTPException(status_code=409, detail="Superseded by a newer request")
    return result


@app.websocket("/ai/ws")
async def ai_websocket(websocket: WebSocket):
    await manager.handle_ai_session(websocket)
