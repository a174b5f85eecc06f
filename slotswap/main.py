# main.py
import logging
from datetime import datetime
from typing import List, Optional

import fastapi
from fastapi import Depends, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from slotswap.auth import UserCreate, create_user, get_current_user_id, get_store, get_user
from slotswap.config import DATABASE_URL, LOG_LEVEL
from slotswap.data_models import Slot, SlotStatus, Swap, SwapListing, User
from slotswap.errors import SlotSwapError
from slotswap.lifecycle import SlotManager
from slotswap.store import RecordStore
from slotswap.swaps import SwapExchange

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("slotswap")


# FastAPI Setup
app = fastapi.FastAPI(title="SlotSwap")
app.state.store = RecordStore(DATABASE_URL)


# Slot and swap request models
class SlotCreate(BaseModel):
    title: str
    start_time: datetime
    end_time: datetime

class SlotUpdate(BaseModel):
    title: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    status: Optional[SlotStatus] = None

class SwapRequest(BaseModel):
    my_slot_id: str
    their_slot_id: str

class SwapResponse(BaseModel):
    accept: bool


def get_slot_manager(store: RecordStore = Depends(get_store)) -> SlotManager:
    return SlotManager(store)

def get_swap_exchange(store: RecordStore = Depends(get_store)) -> SwapExchange:
    return SwapExchange(store)


@app.exception_handler(SlotSwapError)
async def slotswap_error_handler(request: Request, exc: SlotSwapError):
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content={"detail": str(exc)})


@app.get("/api/health")
async def health():
    return {"ok": True}


@app.post("/api/users", response_model=User, status_code=status.HTTP_201_CREATED)
async def register_user(user: UserCreate, store: RecordStore = Depends(get_store)):
    return await create_user(store, user)

@app.get("/api/users/me", response_model=User)
async def read_users_me(user_id: str = Depends(get_current_user_id), store: RecordStore = Depends(get_store)):
    """
    Get the current caller's identity record.
    """
    return await get_user(store, user_id)


# Slots owned by the caller
@app.get("/api/events", response_model=List[Slot])
async def list_own_slots(user_id: str = Depends(get_current_user_id), slot_manager: SlotManager = Depends(get_slot_manager)):
    return await slot_manager.list_own_slots(user_id)

@app.post("/api/events", response_model=Slot, status_code=status.HTTP_201_CREATED)
async def create_slot(slot: SlotCreate, user_id: str = Depends(get_current_user_id), slot_manager: SlotManager = Depends(get_slot_manager)):
    return await slot_manager.create_slot(user_id, slot.title, slot.start_time, slot.end_time)

@app.put("/api/events/{slot_id}", response_model=Slot)
async def update_slot(slot_id: str, slot: SlotUpdate, user_id: str = Depends(get_current_user_id), slot_manager: SlotManager = Depends(get_slot_manager)):
    return await slot_manager.update_slot(user_id, slot_id, slot.model_dump(exclude_unset=True))

@app.delete("/api/events/{slot_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_slot(slot_id: str, user_id: str = Depends(get_current_user_id), slot_manager: SlotManager = Depends(get_slot_manager)):
    await slot_manager.delete_slot(user_id, slot_id)


# Marketplace: other users' tradeable slots
@app.get("/api/swappable-slots", response_model=List[Slot])
async def list_swappable_slots(user_id: str = Depends(get_current_user_id), slot_manager: SlotManager = Depends(get_slot_manager)):
    return await slot_manager.list_swappable_slots(user_id)


@app.post("/api/swap-request", response_model=Swap, status_code=status.HTTP_201_CREATED)
async def request_swap(body: SwapRequest, user_id: str = Depends(get_current_user_id), exchange: SwapExchange = Depends(get_swap_exchange)):
    return await exchange.request_swap(user_id, body.my_slot_id, body.their_slot_id)

@app.post("/api/swap-response/{swap_id}", response_model=Swap)
async def respond_to_swap(swap_id: str, body: SwapResponse, user_id: str = Depends(get_current_user_id), exchange: SwapExchange = Depends(get_swap_exchange)):
    return await exchange.respond_to_swap(user_id, swap_id, body.accept)

@app.get("/api/swaps", response_model=SwapListing)
async def list_swaps(user_id: str = Depends(get_current_user_id), exchange: SwapExchange = Depends(get_swap_exchange)):
    return await exchange.list_swaps_for_user(user_id)


@app.on_event("startup")
async def startup():
    await app.state.store.connect()


@app.on_event("shutdown")
async def shutdown():
    await app.state.store.disconnect()
