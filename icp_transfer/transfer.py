import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Union

from icp_transfer.address import AddressKind, resolve_receiver
from icp_transfer.amount import TRANSFER_FEE_E8S, e8s_to_icp, icp_to_e8s, total_required
from icp_transfer.errors import InsufficientBalance, LedgerNotInitialized, LedgerTransportError
from icp_transfer.identity import ED25519, derive_identity
from icp_transfer.ledger import LedgerClient, TransferRequest
from icp_transfer.memo import normalize_memo
from icp_transfer.outcome import Confirmed, classify_outcome

logger = logging.getLogger(__name__)

EventHook = Callable[[str, Dict[str, Any]], None]


@dataclass(frozen=True)
class TransferReceipt:
    sender_account: str
    receiver_account: str
    receiver_kind: AddressKind
    amount: str
    amount_e8s: int
    fee: int
    memo: int
    network: str
    timestamp: str
    block_index: int

    def to_dict(self) -> Dict[str, str]:
        """JSON friendly view; integers are rendered as decimal strings so u64 values survive any JSON reader."""
        return {
            "block_index": str(self.block_index),
            "sender_account": self.sender_account,
            "receiver_account": self.receiver_account,
            "receiver_kind": self.receiver_kind.value,
            "amount": self.amount,
            "amount_e8s": str(self.amount_e8s),
            "fee": str(self.fee),
            "memo": str(self.memo),
            "network": self.network,
            "timestamp": self.timestamp,
        }


class TransferOrchestrator:
    """
    Validates a transfer, submits it once and turns the ledger's answer into a receipt.

    Validation runs in a fixed order (key, receiver, amount) and fails on the
    first bad input before the ledger is contacted. The balance pre-check only
    fails fast on a known shortfall; if the balance can't be read the transfer
    is submitted anyway and the ledger decides. A submission is never retried.
    """

    def __init__(
        self,
        ledger: Optional[LedgerClient],
        network: str = "local",
        key_type: str = ED25519,
        check_balance: bool = True,
        on_event: Optional[EventHook] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.ledger = ledger
        self.network = network
        self.key_type = key_type
        self.check_balance = check_balance
        self.on_event = on_event
        self.clock = clock

    def _emit(self, name: str, **fields):
        if self.on_event is not None:
            self.on_event(name, fields)

    def execute(
        self,
        hex_key: str,
        receiver: str,
        amount: Union[str, int, float],
        memo: Optional[Union[str, int]] = None,
    ) -> TransferReceipt:
        if self.ledger is None:
            raise LedgerNotInitialized()

        identity = derive_identity(hex_key, self.key_type)
        sender_account = identity.account_identifier()
        resolved = resolve_receiver(receiver)
        amount_e8s = icp_to_e8s(amount)
        fee = TRANSFER_FEE_E8S
        required = total_required(amount_e8s, fee)

        logger.info("Sender: %s", sender_account)
        logger.info("Receiver: %s (%s)", resolved.account, resolved.kind.value)
        logger.info(
            "Amount: %s ICP, Fee: %s ICP, Total: %s ICP", e8s_to_icp(amount_e8s), e8s_to_icp(fee), e8s_to_icp(required)
        )

        if self.check_balance:
            self._check_balance(sender_account, required)

        request = TransferRequest(
            sender=identity,
            to=resolved.account,
            amount=amount_e8s,
            fee=fee,
            memo=normalize_memo(memo, self.clock),
        )
        self._emit(
            "transfer.prepared",
            sender=sender_account.to_hex(),
            receiver=resolved.account.to_hex(),
            amount_e8s=amount_e8s,
            fee=fee,
            memo=request.memo,
        )

        logger.info("Executing transfer with memo %d", request.memo)
        raw = self.ledger.transfer(request)
        self._emit("transfer.submitted", memo=request.memo)

        outcome = classify_outcome(raw)
        if not isinstance(outcome, Confirmed):
            logger.error("Transfer with memo %d failed: %s", request.memo, outcome)
            self._emit("transfer.rejected", memo=request.memo, outcome=outcome)
            outcome.raise_for_outcome()

        logger.info("Transaction successful! Block: %d", outcome.block_index)
        self._emit("transfer.confirmed", memo=request.memo, block_index=outcome.block_index)
        return TransferReceipt(
            sender_account=sender_account.to_hex(),
            receiver_account=resolved.account.to_hex(),
            receiver_kind=resolved.kind,
            amount=str(amount),
            amount_e8s=amount_e8s,
            fee=fee,
            memo=request.memo,
            network=self.network,
            timestamp=datetime.fromtimestamp(self.clock(), tz=timezone.utc).isoformat(),
            block_index=outcome.block_index,
        )

    def _check_balance(self, sender_account, required: int):
        try:
            balance = self.ledger.account_balance(sender_account)
        except LedgerTransportError as e:
            logger.warning("Could not read sender balance, submitting anyway: %s", e)
            self._emit("transfer.balance_unknown", sender=sender_account.to_hex())
            return
        logger.debug("Sender balance: %d e8s", balance)
        if balance < required:
            raise InsufficientBalance(required=required, available=balance)
