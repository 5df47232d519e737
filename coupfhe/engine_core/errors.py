"""
Engine Errors - The exception taxonomy surfaced to callers.

Four families:
- ValidationError: illegal request, state unchanged
- EconomicError: cannot pay, no partial debit
- StateConflictError: request conflicts with game lifecycle
- CapabilityError: ledger or confidential store failed, nothing committed

Every error carries an error_code for the API layer.
"""

from __future__ import annotations


class CoupError(Exception):
    """Base class for all engine errors."""
    error_code = "COUP_ERROR"


# =============================================================================
# Validation
# =============================================================================

class ValidationError(CoupError):
    error_code = "VALIDATION_ERROR"


class GamePhaseError(ValidationError):
    error_code = "WRONG_PHASE"


class NotYourTurn(ValidationError):
    error_code = "NOT_YOUR_TURN"


class TargetError(ValidationError):
    error_code = "INVALID_TARGET"


class UnknownPlayer(ValidationError):
    error_code = "UNKNOWN_PLAYER"


class UnknownAction(ValidationError):
    error_code = "UNKNOWN_ACTION"


class IllegalResponse(ValidationError):
    """Challenge, block or allow that the action's current state does not accept."""
    error_code = "ILLEGAL_RESPONSE"


class ActionInProgress(ValidationError):
    error_code = "ACTION_IN_PROGRESS"


class MustCoup(ValidationError):
    error_code = "MUST_COUP"


class RoleNotHeld(ValidationError):
    error_code = "ROLE_NOT_HELD"


class NoSealedRoles(ValidationError):
    error_code = "NO_SEALED_ROLES"


class InvalidSlot(ValidationError):
    error_code = "INVALID_SLOT"


# =============================================================================
# Economy
# =============================================================================

class EconomicError(CoupError):
    error_code = "ECONOMIC_ERROR"


class InsufficientFunds(EconomicError):
    error_code = "INSUFFICIENT_FUNDS"


# =============================================================================
# Lifecycle conflicts
# =============================================================================

class StateConflictError(CoupError):
    error_code = "STATE_CONFLICT"


class GameOver(StateConflictError):
    error_code = "GAME_OVER"


class AlreadyJoined(StateConflictError):
    error_code = "ALREADY_JOINED"


class GameFull(StateConflictError):
    error_code = "GAME_FULL"


# =============================================================================
# Capabilities
# =============================================================================

class CapabilityError(CoupError):
    error_code = "CAPABILITY_ERROR"


class LedgerUnavailable(CapabilityError):
    error_code = "LEDGER_UNAVAILABLE"


class StoreUnavailable(CapabilityError):
    error_code = "STORE_UNAVAILABLE"


class OwnershipError(CapabilityError):
    """A sealed handle was presented by someone other than its owner."""
    error_code = "OWNERSHIP_ERROR"


class GameNotFound(CoupError):
    error_code = "GAME_NOT_FOUND"
