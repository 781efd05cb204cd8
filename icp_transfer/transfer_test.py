import pytest

from icp_transfer.address import AddressKind
from icp_transfer.errors import (
    BadFee,
    DuplicateTransaction,
    InsufficientBalance,
    InsufficientFunds,
    InvalidAddress,
    InvalidAmount,
    InvalidKeyFormat,
    LedgerNotInitialized,
    LedgerTransportError,
    MalformedLedgerResponse,
    SubmissionTimedOut,
    UnrecognizedLedgerError,
)
from icp_transfer.ledger import LedgerClient
from icp_transfer.transfer import TransferOrchestrator

KEY = "11" * 32
SENDER_ACCOUNT = "b3d3eaa2402ae8160a2dd58b057800bccf98e669687f51863b29e9b2a2acb40d"
RECEIVER_ACCOUNT = "1c7a48ba6a562aa9eaa2481a9049cdf0433b9738c992d698c31d8abf89cadc79"
NOW = 1_700_000_000.5


class FakeLedger(LedgerClient):
    def __init__(self, balance=200_000_000, result=None):
        self.balance = balance
        self.result = {"Ok": 7} if result is None else result
        self.balance_queries = []
        self.requests = []

    def account_balance(self, account):
        self.balance_queries.append(account)
        if isinstance(self.balance, Exception):
            raise self.balance
        return self.balance

    def transfer(self, request):
        self.requests.append(request)
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


@pytest.fixture
def events():
    return []


def orchestrator(ledger, events=None, **kwargs):
    on_event = (lambda name, fields: events.append((name, fields))) if events is not None else None
    return TransferOrchestrator(ledger, network="local", on_event=on_event, clock=lambda: NOW, **kwargs)


def test_transfer_confirmed_returns_receipt():
    ledger = FakeLedger(balance=200_000_000, result={"Ok": 7})

    receipt = orchestrator(ledger).execute(KEY, RECEIVER_ACCOUNT, "1.0", "12345")

    assert receipt.amount_e8s == 100_000_000
    assert receipt.fee == 10_000
    assert receipt.memo == 12345
    assert receipt.block_index == 7
    assert receipt.to_dict()["block_index"] == "7"
    assert receipt.sender_account == SENDER_ACCOUNT
    assert receipt.receiver_account == RECEIVER_ACCOUNT
    assert receipt.receiver_kind == AddressKind.ACCOUNT_IDENTIFIER
    assert receipt.amount == "1.0"
    assert receipt.network == "local"
    assert receipt.timestamp == "2023-11-14T22:13:20.500000+00:00"


def test_transfer_submits_request_once():
    ledger = FakeLedger()

    orchestrator(ledger).execute(KEY, RECEIVER_ACCOUNT, "1.0", "12345")

    (request,) = ledger.requests
    assert request.to.to_hex() == RECEIVER_ACCOUNT
    assert request.amount == 100_000_000
    assert request.fee == 10_000
    assert request.memo == 12345
    assert request.from_subaccount is None
    assert request.created_at_time is None
    assert request.sender.account_identifier().to_hex() == SENDER_ACCOUNT
    assert [a.to_hex() for a in ledger.balance_queries] == [SENDER_ACCOUNT]


def test_receipt_to_dict_is_all_strings():
    receipt = orchestrator(FakeLedger(result=2**64 - 1)).execute(KEY, "2vxsx-fae", 1, None)

    as_dict = receipt.to_dict()

    assert all(isinstance(v, str) for v in as_dict.values())
    assert as_dict["block_index"] == str(2**64 - 1)
    assert as_dict["receiver_kind"] == "principal"
    assert as_dict["memo"] == "1700000000500"


def test_insufficient_balance_fails_before_submission():
    ledger = FakeLedger(balance=50_000_000)

    with pytest.raises(InsufficientBalance) as e:
        orchestrator(ledger).execute(KEY, RECEIVER_ACCOUNT, "1.0", "12345")

    assert e.value.required == 100_010_000
    assert e.value.available == 50_000_000
    assert ledger.requests == []


def test_balance_equal_to_required_is_enough():
    ledger = FakeLedger(balance=100_010_000)

    orchestrator(ledger).execute(KEY, RECEIVER_ACCOUNT, "1.0")

    assert len(ledger.requests) == 1


def test_unknown_balance_still_submits(events):
    ledger = FakeLedger(balance=LedgerTransportError("connection refused"))

    receipt = orchestrator(ledger, events).execute(KEY, RECEIVER_ACCOUNT, "1.0", "12345")

    assert receipt.block_index == 7
    assert len(ledger.requests) == 1
    assert ("transfer.balance_unknown", {"sender": SENDER_ACCOUNT}) in events


def test_balance_check_can_be_disabled():
    ledger = FakeLedger(balance=0)

    orchestrator(ledger, check_balance=False).execute(KEY, RECEIVER_ACCOUNT, "1.0")

    assert ledger.balance_queries == []
    assert len(ledger.requests) == 1


def test_bad_fee_is_echoed():
    ledger = FakeLedger(result={"Err": {"BadFee": {"expected_fee": {"e8s": 10_000}}}})

    with pytest.raises(BadFee) as e:
        orchestrator(ledger).execute(KEY, RECEIVER_ACCOUNT, "1.0", "12345")

    assert e.value.expected == 10_000


def test_ledger_insufficient_funds_is_authoritative():
    ledger = FakeLedger(balance=200_000_000, result={"Err": {"InsufficientFunds": {"balance": {"e8s": 3}}}})

    with pytest.raises(InsufficientFunds) as e:
        orchestrator(ledger).execute(KEY, RECEIVER_ACCOUNT, "1.0")

    assert e.value.balance == 3


def test_duplicate_transaction():
    ledger = FakeLedger(result={"Rejected": {"DuplicateTransaction": {"ofBlock": 6}}})

    with pytest.raises(DuplicateTransaction) as e:
        orchestrator(ledger).execute(KEY, RECEIVER_ACCOUNT, "1.0", 12345)

    assert e.value.of_block == 6


def test_unrecognized_ledger_error():
    ledger = FakeLedger(result={"Err": {"TemporarilyUnavailable": None}})

    with pytest.raises(UnrecognizedLedgerError) as e:
        orchestrator(ledger).execute(KEY, RECEIVER_ACCOUNT, "1.0")

    assert e.value.raw == {"TemporarilyUnavailable": None}


def test_malformed_response(events):
    ledger = FakeLedger(result={"status": "maybe"})

    with pytest.raises(MalformedLedgerResponse):
        orchestrator(ledger, events).execute(KEY, RECEIVER_ACCOUNT, "1.0")

    assert [name for name, _ in events] == ["transfer.prepared", "transfer.submitted", "transfer.rejected"]


def test_submission_timeout_propagates_without_retry():
    ledger = FakeLedger(result=SubmissionTimedOut("timed out"))

    with pytest.raises(SubmissionTimedOut):
        orchestrator(ledger).execute(KEY, RECEIVER_ACCOUNT, "1.0")

    assert len(ledger.requests) == 1


def test_missing_ledger():
    with pytest.raises(LedgerNotInitialized):
        TransferOrchestrator(None).execute(KEY, RECEIVER_ACCOUNT, "1.0")


def test_uninitialized_ledger_during_balance_check_is_not_ignored():
    ledger = FakeLedger(balance=LedgerNotInitialized())

    with pytest.raises(LedgerNotInitialized):
        orchestrator(ledger).execute(KEY, RECEIVER_ACCOUNT, "1.0")

    assert ledger.requests == []


def test_validation_order_key_first():
    ledger = FakeLedger()

    with pytest.raises(InvalidKeyFormat):
        orchestrator(ledger).execute("abc", "not an address", "-1")

    assert ledger.balance_queries == []


def test_validation_order_receiver_before_amount():
    with pytest.raises(InvalidAddress):
        orchestrator(FakeLedger()).execute(KEY, "af58f8c252e5070f7525d41aaca49c420a94949ce258fc85bd6ec5314e1c", "-1")


def test_invalid_amount_never_reaches_ledger():
    ledger = FakeLedger()

    with pytest.raises(InvalidAmount):
        orchestrator(ledger).execute(KEY, RECEIVER_ACCOUNT, "0")

    assert ledger.balance_queries == []
    assert ledger.requests == []


def test_invalid_memo_falls_back_to_clock():
    ledger = FakeLedger()

    receipt = orchestrator(ledger).execute(KEY, RECEIVER_ACCOUNT, "1.0", -1)

    assert receipt.memo == 1_700_000_000_500


def test_events_never_carry_key_material(events):
    orchestrator(FakeLedger(), events).execute(KEY, RECEIVER_ACCOUNT, "1.0", "12345")

    assert [name for name, _ in events] == ["transfer.prepared", "transfer.submitted", "transfer.confirmed"]
    assert events[0][1] == {
        "sender": SENDER_ACCOUNT,
        "receiver": RECEIVER_ACCOUNT,
        "amount_e8s": 100_000_000,
        "fee": 10_000,
        "memo": 12345,
    }
    assert KEY not in repr(events)


def test_logs_never_carry_private_key(caplog):
    caplog.set_level("DEBUG")

    orchestrator(FakeLedger()).execute(KEY, RECEIVER_ACCOUNT, "1.0", "12345")

    assert SENDER_ACCOUNT in caplog.text
    assert KEY not in caplog.text
