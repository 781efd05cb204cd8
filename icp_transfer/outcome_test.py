import pytest

from icp_transfer.errors import (
    BadFee,
    DuplicateTransaction,
    InsufficientFunds,
    MalformedLedgerResponse,
    TransactionInFuture,
    TransactionTooOld,
    UnrecognizedLedgerError,
)
from icp_transfer.outcome import (
    BadFeeReason,
    Confirmed,
    InsufficientFundsReason,
    Malformed,
    Rejected,
    TxCreatedInFutureReason,
    TxDuplicateReason,
    TxTooOldReason,
    UnrecognizedReason,
    classify_outcome,
)


@pytest.mark.parametrize(
    "raw",
    [7, {"Ok": 7}, {"Confirmed": 7}, {"Ok": {"block_index": 7}}, {"Confirmed": {"blockIndex": 7}}],
)
def test_confirmed_shapes(raw):
    assert classify_outcome(raw) == Confirmed(7)


def test_confirmed_large_block_index_stays_integer():
    assert classify_outcome({"Ok": 2**63 + 1}) == Confirmed(2**63 + 1)


@pytest.mark.parametrize(
    "raw,reason",
    [
        ({"Err": {"BadFee": {"expected_fee": {"e8s": 10_000}}}}, BadFeeReason(10_000)),
        ({"Rejected": {"BadFee": {"expected": 10_000}}}, BadFeeReason(10_000)),
        ({"Err": {"InsufficientFunds": {"balance": {"e8s": 5}}}}, InsufficientFundsReason(5)),
        ({"Err": {"InsufficientFunds": {"balance": 5}}}, InsufficientFundsReason(5)),
        ({"Err": {"TxTooOld": {"allowed_window_nanos": 86_400_000_000_000}}}, TxTooOldReason()),
        ({"Rejected": {"TransactionTooOld": None}}, TxTooOldReason()),
        ({"Err": {"TxCreatedInFuture": None}}, TxCreatedInFutureReason()),
        ({"Rejected": {"TransactionInFuture": None}}, TxCreatedInFutureReason()),
        ({"Err": {"TxDuplicate": {"duplicate_of": 3}}}, TxDuplicateReason(3)),
        ({"Rejected": {"DuplicateTransaction": {"ofBlock": 3}}}, TxDuplicateReason(3)),
    ],
)
def test_rejected_known_reasons(raw, reason):
    assert classify_outcome(raw) == Rejected(reason)


@pytest.mark.parametrize(
    "err",
    [
        {"TemporarilyUnavailable": None},
        {"BadFee": {"expected_fee": "lots"}},
        {"InsufficientFunds": {}},
        {"TxDuplicate": {"duplicate_of": -1}},
        {"BadFee": {"expected": 1}, "TxTooOld": None},
        "boom",
    ],
)
def test_rejected_unknown_shapes_keep_raw_payload(err):
    assert classify_outcome({"Err": err}) == Rejected(UnrecognizedReason(err))


@pytest.mark.parametrize(
    "raw",
    [
        None,
        -1,
        True,
        "7",
        7.0,
        [7],
        {},
        {"Ok": "7"},
        {"Ok": -1},
        {"Ok": None},
        {"Status": 1},
        {"Ok": 7, "Err": {"TxTooOld": None}},
        {"Ok": 7, "Confirmed": 7},
    ],
)
def test_malformed_shapes(raw):
    assert classify_outcome(raw) == Malformed(raw)


def test_confirmed_raise_for_outcome_returns_itself():
    outcome = Confirmed(1)

    assert outcome.raise_for_outcome() is outcome


@pytest.mark.parametrize(
    "raw,error,attr,value",
    [
        ({"Err": {"BadFee": {"expected_fee": {"e8s": 10_000}}}}, BadFee, "expected", 10_000),
        ({"Err": {"InsufficientFunds": {"balance": {"e8s": 5}}}}, InsufficientFunds, "balance", 5),
        ({"Err": {"TxDuplicate": {"duplicate_of": 3}}}, DuplicateTransaction, "of_block", 3),
        ({"Err": {"Other": 1}}, UnrecognizedLedgerError, "raw", {"Other": 1}),
        ({"Nope": 1}, MalformedLedgerResponse, "raw", {"Nope": 1}),
    ],
)
def test_raise_for_outcome_maps_to_typed_errors(raw, error, attr, value):
    with pytest.raises(error) as e:
        classify_outcome(raw).raise_for_outcome()

    assert getattr(e.value, attr) == value
    assert e.value.kind == error.kind


@pytest.mark.parametrize(
    "raw,error",
    [({"Err": {"TxTooOld": None}}, TransactionTooOld), ({"Err": {"TxCreatedInFuture": None}}, TransactionInFuture)],
)
def test_raise_for_outcome_without_payload(raw, error):
    with pytest.raises(error):
        classify_outcome(raw).raise_for_outcome()
