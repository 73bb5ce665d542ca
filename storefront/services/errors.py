from __future__ import annotations


class NotFound(LookupError):
    """A document the caller asked for does not exist (or is not theirs to see)."""
