"""
Exceptions raised while building, packing, unpacking or signing transactions.
All of them derive from TransactionError so callers can catch the family at once.
"""


class TransactionError(Exception):
    """Base class for every ledgertx failure."""


class TruncatedInput(TransactionError):
    """A declared length runs past the end of the buffer."""

    def __init__(self, wanted: int, available: int, what: str = "data"):
        self.wanted = wanted
        self.available = available
        self.what = what
        super().__init__(f"truncated {what}: need {wanted} bytes, {available} left")


class UnsupportedFormat(TransactionError):
    """Unknown envelope format tag."""

    def __init__(self, format_type: int):
        self.format_type = format_type
        super().__init__(f"unsupported format type 0x{format_type:04x}")


class UnsupportedVersion(TransactionError):
    """Packing a transaction whose version is 0."""


class ApproverCountMismatch(TransactionError):
    """Number of option approvers differs from the quorum denominator."""


class MissingAssetGroup(TransactionError):
    """A Relation was packed without an asset_group_id."""


class NotAnApprover(TransactionError):
    """Signature offered by a user the referenced event does not name."""


class TransactionNotLinked(TransactionError):
    """Reference/Witness used before being attached to a transaction."""


class OptionalSlotsExhausted(TransactionError):
    """All optional-approver slots of a Reference are already claimed."""


class SlotLayoutMismatch(TransactionError):
    """Recorded slot indices do not fit the referenced event's approvers."""


class InvalidEventIndex(TransactionError, IndexError):
    """A Reference names an event the referenced transaction does not have."""


class RngUnavailable(TransactionError):
    """The operating system random source could not be read."""


class SigningError(TransactionError):
    """Key material could not be used to produce a signature."""


class InvalidIdLength(TransactionError, ValueError):
    """An identifier length outside 1..32."""


class FieldOverflow(TransactionError, ValueError):
    """A value does not fit its fixed-width wire field."""


__all__ = [
    "TransactionError",
    "TruncatedInput",
    "UnsupportedFormat",
    "UnsupportedVersion",
    "ApproverCountMismatch",
    "MissingAssetGroup",
    "NotAnApprover",
    "TransactionNotLinked",
    "OptionalSlotsExhausted",
    "SlotLayoutMismatch",
    "InvalidEventIndex",
    "RngUnavailable",
    "SigningError",
    "InvalidIdLength",
    "FieldOverflow",
]
