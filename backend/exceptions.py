from decimal import Decimal


class LedgerError(Exception):
    """Base class for errors raised by the ledger core."""


class PermissionDenied(LedgerError):
    """
    Raised when a write carries a tenant id the acting principal may not use.

    The message is deliberately fixed so a denied write never reveals whether
    the targeted row exists.
    """

    def __init__(self, message: str = "Permission denied"):
        super().__init__(message)
        self.message = message


class LedgerViolation(LedgerError):
    """A transaction header failed the double-entry rule at commit time."""

    code = "ledger_violation"

    def __init__(self, header_id: int, message: str):
        super().__init__(message)
        self.header_id = header_id
        self.message = message

    def to_dict(self) -> dict:
        return {"detail": self.message, "code": self.code, "transaction_id": self.header_id}


class TooFewLines(LedgerViolation):
    code = "too_few_lines"

    def __init__(self, header_id: int, count: int = 0):
        super().__init__(
            header_id,
            f"Transaction {header_id} must have at least two entry lines (debit and credit), found {count}.",
        )
        self.count = count


class Unbalanced(LedgerViolation):
    code = "unbalanced"

    def __init__(self, header_id: int, total: Decimal):
        super().__init__(
            header_id,
            f"Entry lines of transaction {header_id} must sum to zero, but they sum to {total}.",
        )
        self.total = total

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["total"] = str(self.total)
        return data


class UnsupportedWrite(LedgerError):
    """A statement that would write entry lines without going through the session."""

    def __init__(self, message: str = "Entry lines are inserted through the session, one object per line"):
        super().__init__(message)
        self.message = message
