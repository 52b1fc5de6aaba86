"""Exception taxonomy surfaced by the recommendation core."""


class RecosimError(Exception):
    """Base class for errors raised by recosim."""


class NotFoundError(RecosimError, KeyError):
    """Raised when an identifier is absent from the similarity index or store."""

    def __str__(self) -> str:
        # KeyError.__str__ would repr-quote the message.
        return str(self.args[0]) if self.args else ""


class InvalidArgumentError(RecosimError, ValueError):
    """Raised for non-positive top_n or k, or a malformed feature batch."""


class AuditDisabledError(RecosimError):
    """Raised when the activity ledger is queried while auditing is switched off."""
