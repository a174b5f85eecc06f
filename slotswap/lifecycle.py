# lifecycle.py
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping

from slotswap.data_models import Slot, SlotStatus
from slotswap.errors import ForbiddenError, InvalidRequestError, InvalidStateError, NotFoundError
from slotswap.models import slots
from slotswap.store import RecordStore, Transaction

logger = logging.getLogger(__name__)


class Trigger(str, Enum):
    OWNER_EDIT = "owner_edit"
    SWAP_REQUESTED = "swap_requested"
    SWAP_ACCEPTED = "swap_accepted"
    SWAP_REJECTED = "swap_rejected"


# The only legal (from, to) status changes and what may cause them
TRANSITIONS = {
    (SlotStatus.BUSY, SlotStatus.SWAPPABLE): Trigger.OWNER_EDIT,
    (SlotStatus.SWAPPABLE, SlotStatus.BUSY): Trigger.OWNER_EDIT,
    (SlotStatus.SWAPPABLE, SlotStatus.SWAP_PENDING): Trigger.SWAP_REQUESTED,
    (SlotStatus.SWAP_PENDING, SlotStatus.BUSY): Trigger.SWAP_ACCEPTED,
    (SlotStatus.SWAP_PENDING, SlotStatus.SWAPPABLE): Trigger.SWAP_REJECTED,
}

EDITABLE_FIELDS = {"title", "start_time", "end_time", "status"}


def next_status(current: SlotStatus, target: SlotStatus, trigger: Trigger) -> SlotStatus:
    """Validate a status change against the transition table."""
    current, target = SlotStatus(current), SlotStatus(target)
    if current == SlotStatus.SWAP_PENDING and trigger == Trigger.OWNER_EDIT:
        raise InvalidStateError("Slot is locked in a pending swap")
    if current == target and trigger == Trigger.OWNER_EDIT:
        return target
    if TRANSITIONS.get((current, target)) != trigger:
        raise InvalidStateError(f"Cannot move slot from {current.value} to {target.value}")
    return target


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


async def get_owned_slot(tx: Transaction, caller_id: str, slot_id: str) -> Dict[str, Any]:
    slot = await tx.get("slots", slot_id)
    if slot is None:
        raise NotFoundError(f"Slot {slot_id} not found")
    if slot["owner_id"] != caller_id:
        raise ForbiddenError(f"Slot {slot_id} does not belong to you")
    return slot


class SlotManager:
    """Owner-facing slot operations, each in a single store transaction."""

    def __init__(self, store: RecordStore):
        self.store = store

    async def create_slot(self, caller_id: str, title: str, start_time: datetime, end_time: datetime) -> Slot:
        async def _create(tx: Transaction) -> Dict[str, Any]:
            return await tx.insert("slots", {
                "owner_id": caller_id,
                "title": title,
                "start_time": start_time,
                "end_time": end_time,
                "status": SlotStatus.BUSY.value,
                "created_at": utcnow(),
            })

        slot = Slot(**await self.store.transact(_create))
        logger.info("Slot %s created by %s", slot.id, caller_id)
        return slot

    async def list_own_slots(self, caller_id: str) -> List[Slot]:
        async def _list(tx: Transaction):
            return await tx.find("slots", slots.c.owner_id == caller_id)

        return [Slot(**record) for record in await self.store.transact(_list)]

    async def update_slot(self, caller_id: str, slot_id: str, fields: Mapping[str, Any]) -> Slot:
        unknown = set(fields) - EDITABLE_FIELDS
        if unknown:
            raise InvalidRequestError(f"Cannot edit slot field(s): {', '.join(sorted(unknown))}")
        if any(value is None for value in fields.values()):
            raise InvalidRequestError("Slot fields cannot be cleared")

        values = dict(fields)
        if "status" in values:
            try:
                values["status"] = SlotStatus(values["status"])
            except ValueError:
                raise InvalidRequestError(f"Unknown slot status: {values['status']}") from None

        async def _update(tx: Transaction) -> Dict[str, Any]:
            slot = await get_owned_slot(tx, caller_id, slot_id)
            if slot["status"] == SlotStatus.SWAP_PENDING.value:
                raise InvalidStateError("Slot is locked in a pending swap")
            if "status" in values:
                values["status"] = next_status(slot["status"], values["status"], Trigger.OWNER_EDIT).value
            values["updated_at"] = utcnow()
            return await tx.update("slots", slot_id, values)

        return Slot(**await self.store.transact(_update))

    async def delete_slot(self, caller_id: str, slot_id: str) -> None:
        async def _delete(tx: Transaction) -> None:
            slot = await get_owned_slot(tx, caller_id, slot_id)
            if slot["status"] == SlotStatus.SWAP_PENDING.value:
                raise InvalidStateError("Cannot delete a slot while a swap is pending")
            await tx.remove("slots", slot_id)

        await self.store.transact(_delete)
        logger.info("Slot %s deleted by %s", slot_id, caller_id)

    async def list_swappable_slots(self, caller_id: str) -> List[Slot]:
        """Marketplace view: tradeable slots owned by someone else."""
        async def _list(tx: Transaction):
            return await tx.find(
                "slots",
                slots.c.status == SlotStatus.SWAPPABLE.value,
                slots.c.owner_id != caller_id,
            )

        return [Slot(**record) for record in await self.store.transact(_list)]
