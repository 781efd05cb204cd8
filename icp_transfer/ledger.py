import abc
from dataclasses import dataclass
from typing import Any, Optional

from icp_transfer.account_identifier import AccountIdentifier
from icp_transfer.identity import Identity


@dataclass(frozen=True)
class TransferRequest:
    sender: Identity
    to: AccountIdentifier
    amount: int
    fee: int
    memo: int
    from_subaccount: Optional[bytes] = None
    created_at_time: Optional[int] = None


class LedgerClient(abc.ABC):
    """Access to an ICP ledger, implemented outside of the transfer core."""

    @abc.abstractmethod
    def account_balance(self, account: AccountIdentifier) -> int:
        """Return the balance of the account in e8s. Raises LedgerTransportError if the ledger can't be reached."""
        raise NotImplementedError

    @abc.abstractmethod
    def transfer(self, request: TransferRequest) -> Any:
        """
        Submit the transfer once and return the ledger's raw answer.

        The answer is a block index, ``{"Ok": block_index}`` or
        ``{"Err": {...}}``; see outcome.classify_outcome. Implementations must
        not resubmit on timeout and raise SubmissionTimedOut instead.
        """
        raise NotImplementedError
