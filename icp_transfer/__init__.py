from icp_transfer.account_identifier import AccountIdentifier
from icp_transfer.address import AddressKind, ResolvedAddress, resolve_address, resolve_receiver
from icp_transfer.amount import E8S_PER_ICP, TRANSFER_FEE_E8S, e8s_to_icp, icp_to_e8s, total_required
from icp_transfer.identity import Identity, derive_identity, generate_key_pair
from icp_transfer.ledger import LedgerClient, TransferRequest
from icp_transfer.memo import normalize_memo
from icp_transfer.outcome import Confirmed, Malformed, Rejected, classify_outcome
from icp_transfer.principal import Principal
from icp_transfer.rosetta_client import RosettaLedgerClient
from icp_transfer.transfer import TransferOrchestrator, TransferReceipt

__all__ = [
    "AccountIdentifier",
    "AddressKind",
    "Confirmed",
    "E8S_PER_ICP",
    "Identity",
    "LedgerClient",
    "Malformed",
    "Principal",
    "Rejected",
    "ResolvedAddress",
    "RosettaLedgerClient",
    "TRANSFER_FEE_E8S",
    "TransferOrchestrator",
    "TransferReceipt",
    "TransferRequest",
    "classify_outcome",
    "derive_identity",
    "e8s_to_icp",
    "generate_key_pair",
    "icp_to_e8s",
    "normalize_memo",
    "resolve_address",
    "resolve_receiver",
    "total_required",
]
