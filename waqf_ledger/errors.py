"""
Typed ledger errors.

Every error is a ValueError so callers that only know the
generic "bad request" contract keep working. Callers that care
catch the specific class instead of parsing the message.
"""


class LedgerError(ValueError):
    """Base class for all ledger-core errors."""


class ValidationError(LedgerError):
    """Input rejected before any write: unbalanced entry, bad account, ..."""


class NotFoundError(LedgerError):
    """Requested account, entry, template or match does not exist."""


class StateConflictError(LedgerError):
    """Operation not legal in the entity's current state."""


class ReferentialIntegrityError(LedgerError):
    """Operation blocked because other records still reference the entity."""


def account_not_found(account_id: int) -> str:
    return f"Account {account_id} not found"


def entry_not_found(entry_id: int) -> str:
    return f"Journal entry {entry_id} not found"


def illegal_transition(entry_number: str, current: str, target: str) -> str:
    return (
        f"Cannot move journal entry {entry_number} from "
        f"{current} to {target}"
    )


def account_delete_blocked(
    code: str, child_count: int, line_count: int, opening_count: int
) -> str:
    """Return message when an account is still referenced."""
    parts = []
    if child_count > 0:
        parts.append(f"{child_count} child account{'s' if child_count != 1 else ''}")
    if line_count > 0:
        parts.append(f"{line_count} journal line{'s' if line_count != 1 else ''}")
    if opening_count > 0:
        parts.append(
            f"{opening_count} opening balance{'s' if opening_count != 1 else ''}"
        )
    return (
        f"Cannot delete account {code}: it has {', '.join(parts)}. "
        "Deactivate it instead."
    )
