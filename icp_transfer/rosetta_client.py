import json
import logging
import re
from typing import Any, Dict, List, Optional

import requests

from icp_transfer.account_identifier import AccountIdentifier
from icp_transfer.errors import LedgerNotInitialized, LedgerTransportError, MalformedLedgerResponse, SubmissionTimedOut
from icp_transfer.ledger import LedgerClient, TransferRequest

logger = logging.getLogger(__name__)

BLOCKCHAIN = "Internet Computer"

# statuses a proxy answers with when the node did not reply in time
TIMEOUT_STATUS_CODES = (408, 504)

# Debug renderings of the ledger's TransferError variants as they appear in Rosetta error details.
_TRANSFER_ERROR_PATTERNS = [
    (re.compile(r"BadFee \{ expected_fee: (?:Tokens \{ e8s: )?(\d+)"), lambda n: {"BadFee": {"expected_fee": {"e8s": n}}}),
    (
        re.compile(r"InsufficientFunds \{ balance: (?:Tokens \{ e8s: )?(\d+)"),
        lambda n: {"InsufficientFunds": {"balance": {"e8s": n}}},
    ),
    (re.compile(r"TxTooOld \{ allowed_window_nanos: (\d+)"), lambda n: {"TxTooOld": {"allowed_window_nanos": n}}),
    (re.compile(r"TxCreatedInFuture"), lambda _: {"TxCreatedInFuture": None}),
    (re.compile(r"TxDuplicate \{ duplicate_of: (\d+)"), lambda n: {"TxDuplicate": {"duplicate_of": n}}),
]


class RosettaApiError(LedgerTransportError):
    """The Rosetta node answered with a non-200 status."""

    kind = "RosettaApiError"

    def __init__(self, command: str, status_code: int, body: Any):
        super().__init__(f"Rosetta {command} failed with status {status_code}: {body}")
        self.command = command
        self.status_code = status_code
        self.body = body


class RosettaDecodeError(LedgerTransportError):
    """The Rosetta node answered 200 with a body that is not JSON."""

    kind = "RosettaDecodeError"

    def __init__(self, command: str, text: str):
        super().__init__(f"Rosetta {command} returned a non-JSON body: {text!r}")
        self.command = command
        self.text = text


def is_rosetta_error(body: Any) -> bool:
    return isinstance(body, dict) and "code" in body


def parse_transfer_error(body: Any) -> Any:
    """
    Recover the ledger's TransferError from a Rosetta error body.

    Returns the candid-shaped variant when the error text names one, the
    untouched body otherwise.
    """
    text = body if isinstance(body, str) else json.dumps(body)
    for pattern, build in _TRANSFER_ERROR_PATTERNS:
        m = pattern.search(text)
        if m:
            return build(int(m.group(1)) if m.groups() else None)
    return body


class RosettaLedgerClient(LedgerClient):
    """
    A LedgerClient talking to an ICP Rosetta node.

    connect() must be called once before any other operation; it discovers the
    network identifier the node serves.
    """

    CURRENCY = {"symbol": "ICP", "decimals": 8}

    def __init__(self, node_address: str, timeout: float = 30, session: Optional[requests.Session] = None):
        self.node_address = node_address.rstrip("/")
        self.timeout = timeout
        self.session = session if session is not None else requests.Session()
        self.network: Optional[str] = None

    def connect(self) -> "RosettaLedgerClient":
        try:
            networks = self._send("network/list", {})["network_identifiers"]
        except LedgerTransportError as e:
            if self.is_local():
                raise LedgerTransportError(
                    f"Cannot connect to the local Rosetta node at {self.node_address}. Please ensure it is running:\n\n"
                    "1. Start a local replica: dfx start --clean --background\n"
                    "2. Start ic-rosetta-api pointed at the local ledger canister\n\n"
                    "Or use the 'mainnet' network instead."
                ) from e
            raise
        except (KeyError, TypeError) as e:
            raise LedgerTransportError(f"Unexpected network/list response from {self.node_address}") from e
        if not networks:
            raise LedgerTransportError(f"Rosetta node {self.node_address} serves no network")
        try:
            self.network = networks[0]["network"]
        except (KeyError, TypeError) as e:
            raise LedgerTransportError(f"Unexpected network/list response from {self.node_address}") from e
        logger.info("Connected to Rosetta node %s, network %s", self.node_address, self.network)
        return self

    def is_local(self) -> bool:
        return "localhost" in self.node_address or "127.0.0.1" in self.node_address

    def _network_identifier(self) -> Dict[str, str]:
        if self.network is None:
            raise LedgerNotInitialized()
        return {"blockchain": BLOCKCHAIN, "network": self.network}

    def _send(self, command: str, payload: dict) -> dict:
        url = f"{self.node_address}/{command}"
        logger.debug("Sending %s", command)
        try:
            response = self.session.post(url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise LedgerTransportError(f"Rosetta request {command} failed: {e}") from e
        if response.status_code != 200:
            try:
                body = response.json()
            except ValueError:
                body = response.text
            raise RosettaApiError(command, response.status_code, body)
        logger.debug("Received %s response", command)
        try:
            return response.json()
        except ValueError as e:
            raise RosettaDecodeError(command, response.text) from e

    def account_balance(self, account: AccountIdentifier) -> int:
        payload = {
            "network_identifier": self._network_identifier(),
            "account_identifier": {"address": account.to_hex()},
        }
        res = self._send("account/balance", payload)
        try:
            return int(res["balances"][0]["value"])
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise LedgerTransportError(f"Unexpected account/balance response: {res}") from e

    def _operations(self, from_account: str, to_account: str, amount: int, fee: int) -> List[dict]:
        return [
            {
                "operation_identifier": {"index": 0},
                "type": "TRANSACTION",
                "account": {"address": from_account},
                "amount": {"value": f"-{amount}", "currency": self.CURRENCY},
            },
            {
                "operation_identifier": {"index": 1},
                "type": "TRANSACTION",
                "account": {"address": to_account},
                "amount": {"value": str(amount), "currency": self.CURRENCY},
            },
            {
                "operation_identifier": {"index": 2},
                "type": "FEE",
                "account": {"address": from_account},
                "amount": {"value": f"-{fee}", "currency": self.CURRENCY},
            },
        ]

    def _signatures(self, identity, from_account: str, public_key: dict, payloads: List[dict]) -> List[dict]:
        signatures = []
        for payload in payloads:
            signature = identity.sign(bytes.fromhex(payload["hex_bytes"]))
            signatures.append(
                {
                    "hex_bytes": signature.hex(),
                    "signing_payload": {
                        "account_identifier": {"address": from_account},
                        "hex_bytes": payload["hex_bytes"],
                        "signature_type": identity.signature_type,
                    },
                    "public_key": public_key,
                    "signature_type": identity.signature_type,
                }
            )
        return signatures

    def transfer(self, request: TransferRequest) -> Any:
        """
        Run the construction flow (payloads, sign, combine, submit) for one transfer.

        Only the final submit can apply the transfer; it is sent exactly once.
        """
        network_identifier = self._network_identifier()
        identity = request.sender
        from_account = AccountIdentifier.from_principal(identity.principal(), request.from_subaccount).to_hex()
        public_key = {"hex_bytes": identity.public_key_hex, "curve_type": identity.curve_type}

        metadata = {"memo": request.memo}
        if request.created_at_time is not None:
            metadata["created_at_time"] = request.created_at_time

        payloads_response = self._send(
            "construction/payloads",
            {
                "network_identifier": network_identifier,
                "public_keys": [public_key],
                "operations": self._operations(from_account, request.to.to_hex(), request.amount, request.fee),
                "metadata": metadata,
            },
        )
        try:
            signatures = self._signatures(identity, from_account, public_key, payloads_response["payloads"])
            unsigned_transaction = payloads_response["unsigned_transaction"]
        except (KeyError, TypeError, ValueError) as e:
            raise LedgerTransportError(f"Unexpected construction/payloads response: {e!r}") from e

        combine_response = self._send(
            "construction/combine",
            {
                "network_identifier": network_identifier,
                "unsigned_transaction": unsigned_transaction,
                "signatures": signatures,
            },
        )
        try:
            signed_transaction = combine_response["signed_transaction"]
        except (KeyError, TypeError) as e:
            raise LedgerTransportError(f"Unexpected construction/combine response: {e!r}") from e
        return self._submit(network_identifier, signed_transaction)

    def _submit(self, network_identifier: Dict[str, str], signed_transaction: str) -> Any:
        try:
            res = self._send(
                "construction/submit",
                {"network_identifier": network_identifier, "signed_transaction": signed_transaction},
            )
        except RosettaDecodeError as e:
            raise MalformedLedgerResponse(e.text) from e
        except RosettaApiError as e:
            if e.status_code in TIMEOUT_STATUS_CODES:
                raise self._submission_timed_out(f"got status {e.status_code}") from e
            if not is_rosetta_error(e.body):
                # a proxy or gateway page, the node itself never judged the transfer
                raise
            logger.debug("construction/submit rejected: %s", e.body)
            return {"Err": parse_transfer_error(e.body)}
        except LedgerTransportError as e:
            if isinstance(e.__cause__, requests.Timeout):
                raise self._submission_timed_out(f"timed out after {self.timeout}s") from e.__cause__
            raise

        metadata = res.get("metadata") if isinstance(res, dict) else None
        if not isinstance(metadata, dict) or "block_index" not in metadata:
            return res
        return {"Ok": metadata["block_index"]}

    @staticmethod
    def _submission_timed_out(reason: str) -> SubmissionTimedOut:
        return SubmissionTimedOut(
            f"construction/submit {reason}; the transfer may still be applied. "
            "Check the ledger before retrying with the same memo."
        )
