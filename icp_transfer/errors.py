from typing import Any


class TransferError(Exception):
    """Base class of every error raised by the transfer core.

    `kind` is a stable machine-checkable name, `message` is meant for humans.
    """

    kind = "TransferError"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(TransferError):
    """Input rejected locally, before any ledger call."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field


class InvalidKeyFormat(ValidationError):
    kind = "InvalidKeyFormat"

    def __init__(self, message: str = "Private key must be 64 hex characters (32 bytes)"):
        super().__init__("private_key", message)


class InvalidKeyMaterial(ValidationError):
    kind = "InvalidKeyMaterial"

    def __init__(self, message: str = "Private key is not a valid key for the signature scheme"):
        super().__init__("private_key", message)


class MissingAddress(ValidationError):
    kind = "MissingAddress"

    def __init__(self, message: str = "Receiver address is required"):
        super().__init__("receiver", message)


class InvalidAddress(ValidationError):
    kind = "InvalidAddress"

    def __init__(self, message: str):
        super().__init__("receiver", message)


class InvalidAmount(ValidationError):
    kind = "InvalidAmount"

    def __init__(self, message: str = "Amount must be a positive number"):
        super().__init__("amount", message)


class AmountTooSmall(ValidationError):
    kind = "AmountTooSmall"

    def __init__(self, message: str = "Amount too small (minimum: 0.00000001 ICP)"):
        super().__init__("amount", message)


class InsufficientBalance(TransferError):
    kind = "InsufficientBalance"

    def __init__(self, required: int, available: int):
        super().__init__(f"Insufficient balance. Required: {required} e8s, Available: {available} e8s")
        self.required = required
        self.available = available


class LedgerRejectedError(TransferError):
    """The ledger answered and refused the transfer."""


class BadFee(LedgerRejectedError):
    kind = "BadFee"

    def __init__(self, expected: int):
        super().__init__(f"Transfer failed: Bad fee. Expected: {expected}")
        self.expected = expected


class InsufficientFunds(LedgerRejectedError):
    kind = "InsufficientFunds"

    def __init__(self, balance: int):
        super().__init__(f"Transfer failed: Insufficient funds. Balance: {balance}")
        self.balance = balance


class TransactionTooOld(LedgerRejectedError):
    kind = "TransactionTooOld"

    def __init__(self):
        super().__init__("Transfer failed: Transaction too old")


class TransactionInFuture(LedgerRejectedError):
    kind = "TransactionInFuture"

    def __init__(self):
        super().__init__("Transfer failed: Transaction created in future")


class DuplicateTransaction(LedgerRejectedError):
    kind = "DuplicateTransaction"

    def __init__(self, of_block: int):
        super().__init__(f"Transfer failed: Duplicate transaction. Block: {of_block}")
        self.of_block = of_block


class UnrecognizedLedgerError(LedgerRejectedError):
    kind = "UnrecognizedLedgerError"

    def __init__(self, raw: Any):
        super().__init__(f"Transfer failed: {raw!r}")
        self.raw = raw


class MalformedLedgerResponse(TransferError):
    kind = "MalformedLedgerResponse"

    def __init__(self, raw: Any):
        super().__init__(f"Unexpected ledger response: {raw!r}")
        self.raw = raw


class LedgerTransportError(TransferError):
    kind = "LedgerTransportError"


class SubmissionTimedOut(LedgerTransportError):
    """The transfer may or may not have been applied; it is never resubmitted automatically."""

    kind = "SubmissionTimedOut"


class LedgerNotInitialized(TransferError):
    kind = "LedgerNotInitialized"

    def __init__(self, message: str = "Ledger not initialized. Call connect() first."):
        super().__init__(message)
