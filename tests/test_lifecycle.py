"""Tests for the slot state machine and owner-facing slot operations."""

from datetime import datetime, timedelta, timezone

import pytest

from slotswap.data_models import SlotStatus
from slotswap.errors import ForbiddenError, InvalidRequestError, InvalidStateError, NotFoundError
from slotswap.lifecycle import TRANSITIONS, Trigger, next_status

START = datetime(2025, 3, 3, 9, 0)
END = datetime(2025, 3, 3, 10, 0)


class TestTransitionTable:
    @pytest.mark.parametrize("current, target, trigger", [
        (SlotStatus.BUSY, SlotStatus.SWAPPABLE, Trigger.OWNER_EDIT),
        (SlotStatus.SWAPPABLE, SlotStatus.BUSY, Trigger.OWNER_EDIT),
        (SlotStatus.SWAPPABLE, SlotStatus.SWAP_PENDING, Trigger.SWAP_REQUESTED),
        (SlotStatus.SWAP_PENDING, SlotStatus.BUSY, Trigger.SWAP_ACCEPTED),
        (SlotStatus.SWAP_PENDING, SlotStatus.SWAPPABLE, Trigger.SWAP_REJECTED),
    ])
    def test_legal_transitions(self, current, target, trigger):
        assert next_status(current, target, trigger) == target

    def test_table_has_exactly_five_edges(self):
        assert len(TRANSITIONS) == 5

    def test_accepts_stored_string_values(self):
        assert next_status("BUSY", "SWAPPABLE", Trigger.OWNER_EDIT) == SlotStatus.SWAPPABLE

    @pytest.mark.parametrize("current, target, trigger", [
        (SlotStatus.BUSY, SlotStatus.SWAP_PENDING, Trigger.SWAP_REQUESTED),
        (SlotStatus.BUSY, SlotStatus.SWAP_PENDING, Trigger.OWNER_EDIT),
        (SlotStatus.SWAPPABLE, SlotStatus.SWAP_PENDING, Trigger.OWNER_EDIT),
        (SlotStatus.SWAP_PENDING, SlotStatus.BUSY, Trigger.OWNER_EDIT),
        (SlotStatus.SWAP_PENDING, SlotStatus.SWAPPABLE, Trigger.OWNER_EDIT),
        (SlotStatus.SWAP_PENDING, SlotStatus.SWAP_PENDING, Trigger.OWNER_EDIT),
        (SlotStatus.BUSY, SlotStatus.SWAPPABLE, Trigger.SWAP_REJECTED),
        (SlotStatus.SWAP_PENDING, SlotStatus.BUSY, Trigger.SWAP_REJECTED),
    ])
    def test_illegal_transitions(self, current, target, trigger):
        with pytest.raises(InvalidStateError):
            next_status(current, target, trigger)

    def test_owner_can_reassert_current_status(self):
        assert next_status(SlotStatus.BUSY, SlotStatus.BUSY, Trigger.OWNER_EDIT) == SlotStatus.BUSY

    def test_unknown_status_value(self):
        with pytest.raises(ValueError):
            next_status("FREE", SlotStatus.BUSY, Trigger.OWNER_EDIT)


class TestSlotOperations:
    @pytest.mark.asyncio
    async def test_create_slot_starts_busy(self, slot_manager, users):
        slot = await slot_manager.create_slot(users["alice"], "Dentist", START, END)

        assert slot.status == SlotStatus.BUSY
        assert slot.owner_id == users["alice"]
        assert slot.title == "Dentist"
        assert slot.updated_at is None

    @pytest.mark.asyncio
    async def test_list_own_slots(self, slot_manager, users):
        first = await slot_manager.create_slot(users["alice"], "One", START, END)
        second = await slot_manager.create_slot(users["alice"], "Two", START, END)
        await slot_manager.create_slot(users["bob"], "Bob's", START, END)

        own = await slot_manager.list_own_slots(users["alice"])
        assert [slot.id for slot in own] == [first.id, second.id]

    @pytest.mark.asyncio
    async def test_owner_marks_slot_swappable_and_back(self, slot_manager, users):
        slot = await slot_manager.create_slot(users["alice"], "Gym", START, END)

        slot = await slot_manager.update_slot(users["alice"], slot.id, {"status": "SWAPPABLE"})
        assert slot.status == SlotStatus.SWAPPABLE
        assert slot.updated_at is not None

        slot = await slot_manager.update_slot(users["alice"], slot.id, {"status": SlotStatus.BUSY})
        assert slot.status == SlotStatus.BUSY

    @pytest.mark.asyncio
    async def test_update_other_fields(self, slot_manager, users):
        slot = await slot_manager.create_slot(users["alice"], "Gym", START, END)

        slot = await slot_manager.update_slot(users["alice"], slot.id, {"title": "Swim"})
        assert slot.title == "Swim"
        assert slot.status == SlotStatus.BUSY

    @pytest.mark.asyncio
    async def test_update_by_non_owner_is_forbidden(self, slot_manager, users):
        slot = await slot_manager.create_slot(users["alice"], "Gym", START, END)

        with pytest.raises(ForbiddenError):
            await slot_manager.update_slot(users["bob"], slot.id, {"title": "Mine now"})

    @pytest.mark.asyncio
    async def test_update_missing_slot(self, slot_manager, users):
        with pytest.raises(NotFoundError):
            await slot_manager.update_slot(users["alice"], "missing", {"title": "x"})

    @pytest.mark.asyncio
    async def test_owner_cannot_set_swap_pending(self, slot_manager, users):
        slot = await slot_manager.create_slot(users["alice"], "Gym", START, END)
        await slot_manager.update_slot(users["alice"], slot.id, {"status": "SWAPPABLE"})

        with pytest.raises(InvalidStateError):
            await slot_manager.update_slot(users["alice"], slot.id, {"status": "SWAP_PENDING"})

    @pytest.mark.asyncio
    async def test_unknown_status_is_rejected(self, slot_manager, users):
        slot = await slot_manager.create_slot(users["alice"], "Gym", START, END)

        with pytest.raises(InvalidRequestError):
            await slot_manager.update_slot(users["alice"], slot.id, {"status": "FREE"})

    @pytest.mark.asyncio
    async def test_unknown_field_is_rejected(self, slot_manager, users):
        slot = await slot_manager.create_slot(users["alice"], "Gym", START, END)

        with pytest.raises(InvalidRequestError):
            await slot_manager.update_slot(users["alice"], slot.id, {"owner_id": users["bob"]})

    @pytest.mark.asyncio
    async def test_delete_slot(self, slot_manager, users):
        slot = await slot_manager.create_slot(users["alice"], "Gym", START, END)

        await slot_manager.delete_slot(users["alice"], slot.id)
        assert await slot_manager.list_own_slots(users["alice"]) == []

    @pytest.mark.asyncio
    async def test_delete_by_non_owner_is_forbidden(self, slot_manager, users):
        slot = await slot_manager.create_slot(users["alice"], "Gym", START, END)

        with pytest.raises(ForbiddenError):
            await slot_manager.delete_slot(users["bob"], slot.id)

    @pytest.mark.asyncio
    async def test_list_swappable_slots_excludes_own_and_busy(self, slot_manager, users):
        mine = await slot_manager.create_slot(users["alice"], "Mine", START, END)
        await slot_manager.update_slot(users["alice"], mine.id, {"status": "SWAPPABLE"})
        offered = await slot_manager.create_slot(users["bob"], "Offered", START, END)
        await slot_manager.update_slot(users["bob"], offered.id, {"status": "SWAPPABLE"})
        await slot_manager.create_slot(users["bob"], "Kept", START, END)

        market = await slot_manager.list_swappable_slots(users["alice"])
        assert [slot.id for slot in market] == [offered.id]

    @pytest.mark.asyncio
    async def test_fields_cannot_be_cleared(self, slot_manager, users):
        slot = await slot_manager.create_slot(users["alice"], "Gym", START, END)

        with pytest.raises(InvalidRequestError):
            await slot_manager.update_slot(users["alice"], slot.id, {"title": None})

    @pytest.mark.asyncio
    async def test_times_keep_their_utc_offset(self, slot_manager, users):
        plus_five = timezone(timedelta(hours=5))
        start = datetime(2025, 3, 3, 9, 0, tzinfo=plus_five)
        end = datetime(2025, 3, 3, 10, 0, tzinfo=plus_five)
        await slot_manager.create_slot(users["alice"], "Standup", start, end)

        [slot] = await slot_manager.list_own_slots(users["alice"])
        assert slot.start_time == start
        assert slot.start_time.utcoffset() == timedelta(hours=5)
        assert slot.end_time.utcoffset() == timedelta(hours=5)
        assert slot.created_at.tzinfo is not None
