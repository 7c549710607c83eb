"""Builders translating resource specs into Atlas payloads."""

from .ipaccesslist import compute_diff, entries_from_spec

__all__ = ["compute_diff", "entries_from_spec"]
