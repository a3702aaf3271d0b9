"""Shared constants and negotiation options."""
