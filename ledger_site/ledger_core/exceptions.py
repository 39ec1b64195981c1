from django.core.exceptions import ObjectDoesNotExist, ValidationError


# ---------- Client-fixable input errors ----------
class LedgerValidationError(ValidationError):
    """Rejected write the caller can fix by changing its input."""
    pass


class UnbalancedJournalError(LedgerValidationError):
    """Raised when a JournalEntry fails double-entry balance check."""
    pass


class EmptyEntryError(LedgerValidationError):
    """Raised when no journal line carries a non-zero amount."""
    pass


class InvalidAccountError(LedgerValidationError):
    """Journal line points at an account the tenant does not own."""
    pass


class DuplicateAccountCodeError(LedgerValidationError):
    pass


class InvalidParentAccountError(LedgerValidationError):
    pass


class AccountInUseError(LedgerValidationError):
    """Account is referenced by journal lines and cannot be removed."""
    pass


class ContactNotFoundError(LedgerValidationError):
    pass


class ContactInUseError(LedgerValidationError):
    pass


class EmptyInvoiceError(LedgerValidationError):
    pass


class InvalidLineError(LedgerValidationError):
    """Quantity, price, discount or tax rate out of range."""
    pass


# ---------- Wrong document state ----------
class LedgerStateError(ValidationError):
    """Operation not allowed in the document's current status."""
    pass


class ImmutableInvoiceError(LedgerStateError):
    pass


class InvalidTransitionError(LedgerStateError):
    pass


# ---------- Lookup / concurrency / infrastructure ----------
class RecordNotFound(ObjectDoesNotExist):
    """Entity missing, or owned by another company."""
    pass


class NumberConflictError(Exception):
    """Document number still collides after the bounded retry."""
    pass


class InfrastructureError(Exception):
    """Report could not be read from the data store."""
    pass
