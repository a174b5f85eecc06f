# swaps.py
"""
Request/accept/reject workflow coupling two slots and two users.

Each operation reads both slots, checks the state-machine guards and writes
every affected record inside one store transaction, so a racing request
either sees the slots already ``SWAP_PENDING`` or does not run at all.
"""

import logging
from typing import Any, Dict, Tuple

from slotswap.data_models import SlotStatus, Swap, SwapListing, SwapStatus
from slotswap.errors import (
    ConsistencyError,
    ForbiddenError,
    InvalidRequestError,
    InvalidStateError,
    NotFoundError,
)
from slotswap.lifecycle import Trigger, get_owned_slot, next_status, utcnow
from slotswap.models import swaps
from slotswap.store import RecordStore, Transaction

logger = logging.getLogger(__name__)


async def _load_swap_slots(tx: Transaction, swap: Dict[str, Any]) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    requester_slot = await tx.get("slots", swap["requester_slot_id"])
    counterparty_slot = await tx.get("slots", swap["counterparty_slot_id"])
    if requester_slot is None or counterparty_slot is None:
        logger.error(
            "Swap %s references missing slot(s): requester=%s counterparty=%s",
            swap["id"], swap["requester_slot_id"], swap["counterparty_slot_id"],
        )
        raise ConsistencyError(f"Slots for swap {swap['id']} no longer exist")
    return requester_slot, counterparty_slot


class SwapExchange:
    """Negotiates one-for-one ownership exchanges between slots."""

    def __init__(self, store: RecordStore):
        self.store = store

    async def request_swap(self, caller_id: str, requester_slot_id: str, counterparty_slot_id: str) -> Swap:
        """
        Offer the caller's slot in exchange for another user's slot.

        Both slots must be ``SWAPPABLE``; on success both become
        ``SWAP_PENDING`` and a ``PENDING`` swap is recorded.
        """
        async def _request(tx: Transaction) -> Dict[str, Any]:
            mine = await get_owned_slot(tx, caller_id, requester_slot_id)
            theirs = await tx.get("slots", counterparty_slot_id)
            if theirs is None:
                raise NotFoundError(f"Slot {counterparty_slot_id} not found")
            if requester_slot_id == counterparty_slot_id:
                raise InvalidRequestError("A slot cannot be swapped with itself")
            if theirs["owner_id"] == caller_id:
                raise InvalidRequestError("Both slots belong to you")
            if mine["status"] != SlotStatus.SWAPPABLE.value or theirs["status"] != SlotStatus.SWAPPABLE.value:
                raise InvalidStateError("Both slots must be SWAPPABLE")

            swap = await tx.insert("swaps", {
                "requester_slot_id": requester_slot_id,
                "counterparty_slot_id": counterparty_slot_id,
                "requester_id": caller_id,
                "counterparty_id": theirs["owner_id"],
                "status": SwapStatus.PENDING.value,
                "created_at": utcnow(),
            })
            now = utcnow()
            for slot in (mine, theirs):
                status = next_status(slot["status"], SlotStatus.SWAP_PENDING, Trigger.SWAP_REQUESTED)
                await tx.update("slots", slot["id"], {"status": status.value, "updated_at": now})
            return swap

        swap = Swap(**await self.store.transact(_request))
        logger.info(
            "Swap %s requested by %s: %s <-> %s",
            swap.id, caller_id, requester_slot_id, counterparty_slot_id,
        )
        return swap

    async def respond_to_swap(self, caller_id: str, swap_id: str, accept: bool) -> Swap:
        """
        Accept or reject a pending swap; only the counterparty may answer.

        Accepting exchanges the two owners and leaves both slots ``BUSY``.
        Rejecting returns both slots to ``SWAPPABLE`` with owners untouched.
        """
        async def _respond(tx: Transaction) -> Dict[str, Any]:
            swap = await tx.get("swaps", swap_id)
            if swap is None:
                raise NotFoundError(f"Swap {swap_id} not found")
            if swap["status"] != SwapStatus.PENDING.value:
                raise InvalidStateError(f"Swap {swap_id} was already {swap['status']}")
            if swap["counterparty_id"] != caller_id:
                raise ForbiddenError("Not authorized to respond to this swap")

            requester_slot, counterparty_slot = await _load_swap_slots(tx, swap)

            if accept:
                trigger, target, outcome = Trigger.SWAP_ACCEPTED, SlotStatus.BUSY, SwapStatus.ACCEPTED
                new_owners = {
                    requester_slot["id"]: counterparty_slot["owner_id"],
                    counterparty_slot["id"]: requester_slot["owner_id"],
                }
            else:
                trigger, target, outcome = Trigger.SWAP_REJECTED, SlotStatus.SWAPPABLE, SwapStatus.REJECTED
                new_owners = {}

            now = utcnow()
            for slot in (requester_slot, counterparty_slot):
                values = {"status": next_status(slot["status"], target, trigger).value, "updated_at": now}
                if slot["id"] in new_owners:
                    values["owner_id"] = new_owners[slot["id"]]
                await tx.update("slots", slot["id"], values)

            return await tx.update("swaps", swap_id, {"status": outcome.value, "responded_at": now})

        swap = Swap(**await self.store.transact(_respond))
        logger.info("Swap %s %s by %s", swap.id, swap.status.value.lower(), caller_id)
        return swap

    async def list_swaps_for_user(self, caller_id: str) -> SwapListing:
        async def _list(tx: Transaction):
            incoming = await tx.find("swaps", swaps.c.counterparty_id == caller_id)
            outgoing = await tx.find("swaps", swaps.c.requester_id == caller_id)
            return incoming, outgoing

        incoming, outgoing = await self.store.transact(_list)
        return SwapListing(
            incoming=[Swap(**record) for record in incoming],
            outgoing=[Swap(**record) for record in outgoing],
        )
