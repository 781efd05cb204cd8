"""
Classification of the ledger's transfer response.

The ledger answers with a bare block index, with ``{"Ok": block_index}`` or
with ``{"Err": {<variant>: <payload>}}`` (``Confirmed``/``Rejected`` are
accepted as aliases). Responses are matched structurally in that order; known
error variants map to typed reasons and every other error shape is kept
verbatim as ``Unrecognized``. A response matching none of the shapes is
``Malformed``.
"""

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

from icp_transfer.errors import (
    BadFee,
    DuplicateTransaction,
    InsufficientFunds,
    LedgerRejectedError,
    MalformedLedgerResponse,
    TransactionInFuture,
    TransactionTooOld,
    UnrecognizedLedgerError,
)

OK_KEYS = ("Ok", "Confirmed")
ERR_KEYS = ("Err", "Rejected")


@dataclass(frozen=True)
class BadFeeReason:
    expected: int

    def to_error(self) -> LedgerRejectedError:
        return BadFee(self.expected)


@dataclass(frozen=True)
class InsufficientFundsReason:
    balance: int

    def to_error(self) -> LedgerRejectedError:
        return InsufficientFunds(self.balance)


@dataclass(frozen=True)
class TxTooOldReason:
    def to_error(self) -> LedgerRejectedError:
        return TransactionTooOld()


@dataclass(frozen=True)
class TxCreatedInFutureReason:
    def to_error(self) -> LedgerRejectedError:
        return TransactionInFuture()


@dataclass(frozen=True)
class TxDuplicateReason:
    duplicate_of: int

    def to_error(self) -> LedgerRejectedError:
        return DuplicateTransaction(self.duplicate_of)


@dataclass(frozen=True)
class UnrecognizedReason:
    raw: Any

    def to_error(self) -> LedgerRejectedError:
        return UnrecognizedLedgerError(self.raw)


LedgerErrorReason = Union[
    BadFeeReason,
    InsufficientFundsReason,
    TxTooOldReason,
    TxCreatedInFutureReason,
    TxDuplicateReason,
    UnrecognizedReason,
]


@dataclass(frozen=True)
class Confirmed:
    block_index: int

    def raise_for_outcome(self) -> "Confirmed":
        return self


@dataclass(frozen=True)
class Rejected:
    reason: LedgerErrorReason

    def raise_for_outcome(self):
        raise self.reason.to_error()


@dataclass(frozen=True)
class Malformed:
    raw: Any

    def raise_for_outcome(self):
        raise MalformedLedgerResponse(self.raw)


TransferOutcome = Union[Confirmed, Rejected, Malformed]


def _nat(value: Any) -> Optional[int]:
    if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
        return value
    return None


def _tokens(value: Any) -> Optional[int]:
    """Tokens come either as a plain nat or as a ``{"e8s": nat}`` record."""
    if isinstance(value, Mapping):
        return _nat(value.get("e8s"))
    return _nat(value)


def _field(payload: Any, *names: str) -> Any:
    if not isinstance(payload, Mapping):
        return None
    for name in names:
        if name in payload:
            return payload[name]
    return None


def _single_variant(value: Any, keys) -> Optional[str]:
    if not isinstance(value, Mapping):
        return None
    # a payload naming more than one variant is ambiguous
    variants = [key for key in OK_KEYS + ERR_KEYS if key in value]
    if len(variants) != 1 or variants[0] not in keys:
        return None
    return variants[0]


def classify_reason(err: Any) -> LedgerErrorReason:
    if not isinstance(err, Mapping) or len(err) != 1:
        return UnrecognizedReason(err)
    ((variant, payload),) = err.items()

    if variant == "BadFee":
        expected = _tokens(_field(payload, "expected_fee", "expected"))
        if expected is not None:
            return BadFeeReason(expected)
    elif variant == "InsufficientFunds":
        balance = _tokens(_field(payload, "balance"))
        if balance is not None:
            return InsufficientFundsReason(balance)
    elif variant in ("TxTooOld", "TransactionTooOld"):
        return TxTooOldReason()
    elif variant in ("TxCreatedInFuture", "TransactionInFuture"):
        return TxCreatedInFutureReason()
    elif variant in ("TxDuplicate", "DuplicateTransaction"):
        block = _nat(_field(payload, "duplicate_of", "ofBlock", "of_block"))
        if block is not None:
            return TxDuplicateReason(block)
    return UnrecognizedReason(err)


def classify_outcome(raw: Any) -> TransferOutcome:
    block_index = _nat(raw)
    if block_index is not None:
        return Confirmed(block_index)

    ok_key = _single_variant(raw, OK_KEYS)
    if ok_key is not None:
        inner = raw[ok_key]
        block_index = _nat(inner)
        if block_index is None:
            block_index = _nat(_field(inner, "block_index", "blockIndex"))
        if block_index is None:
            return Malformed(raw)
        return Confirmed(block_index)

    err_key = _single_variant(raw, ERR_KEYS)
    if err_key is not None:
        return Rejected(classify_reason(raw[err_key]))

    return Malformed(raw)
