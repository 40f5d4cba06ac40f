"""
=============================================================================
ERRORS.PY — Error taxonomy
=============================================================================
  NotFoundError → a habit / user / battle id that does not exist.
                  Always propagated to the caller (it means a stale reference).

Everything else is NOT an exception:
  - Freeze requested during the cooldown → use_freeze() returns False
  - Tie in a comparison or battle        → winner is None
  - Corrupt snapshot                      → StateStore.load() returns the default
"""


class NotFoundError(LookupError):
    """An operation referenced an entity that does not exist"""

    def __init__(self, kind: str, key):
        self.kind = kind
        self.key = key
        super().__init__(f"{kind} not found: {key}")
