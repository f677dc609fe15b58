"""Error taxonomy for the arena simulation and score persistence.

Expected simulation conditions (empty magazine, reload in progress, the
adversary cap) are not errors; they surface as ignored actions.
"""


class ArenaError(Exception):
    """Base class for all arena errors."""


class ValidationError(ArenaError):
    """A match submission is missing or has invalid required fields.

    Raised before anything is written, so a rejected submission never leaves
    a partial record behind.
    """


class TransientPersistenceError(ArenaError):
    """The score store failed while persisting a submission.

    The in-memory match result is kept by the caller; submissions are not
    retried automatically.
    """


class InvariantViolation(ArenaError):
    """Core state broke one of its invariants (negative ammo, health gain,
    difficulty decrease). Indicates a bug, never clamped."""


class UnknownWeaponError(ArenaError, KeyError):
    """No weapon with the requested id or slot exists in the catalog."""
