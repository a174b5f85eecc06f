"""Slot marketplace: publish time slots and negotiate one-for-one swaps."""
