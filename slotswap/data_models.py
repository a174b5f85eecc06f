# data_models.py
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel


class SlotStatus(str, Enum):
    BUSY = "BUSY"
    SWAPPABLE = "SWAPPABLE"
    SWAP_PENDING = "SWAP_PENDING"


class SwapStatus(str, Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"


class User(BaseModel):
    """Identity anchor; credentials live outside the core."""
    id: str
    name: str
    email: str
    created_at: datetime


class Slot(BaseModel):
    """A bookable interval with exactly one owner and one status."""
    id: str
    owner_id: str
    title: str
    start_time: datetime
    end_time: datetime
    status: SlotStatus
    created_at: datetime
    updated_at: Optional[datetime] = None


class Swap(BaseModel):
    """A negotiation pairing two slots and their owners at request time."""
    id: str
    requester_slot_id: str
    counterparty_slot_id: str
    requester_id: str
    counterparty_id: str
    status: SwapStatus
    created_at: datetime
    responded_at: Optional[datetime] = None


class SwapListing(BaseModel):
    incoming: List[Swap]
    outgoing: List[Swap]
