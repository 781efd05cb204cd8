import re
from dataclasses import dataclass
from enum import Enum

from icp_transfer.account_identifier import ACCOUNT_ID_LENGTH, AccountIdentifier, AccountIdentifierFormatError
from icp_transfer.errors import InvalidAddress, MissingAddress
from icp_transfer.principal import Principal, PrincipalFormatError

_HEX_ACCOUNT_ID = re.compile(r"[0-9a-fA-F]{64}")


class AddressKind(Enum):
    ACCOUNT_IDENTIFIER = "account_identifier"
    PRINCIPAL = "principal"


@dataclass(frozen=True)
class ResolvedAddress:
    account: AccountIdentifier
    kind: AddressKind


def resolve_receiver(raw: str) -> ResolvedAddress:
    """
    Parse a receiver given either as a 64 character hex account identifier or as
    a principal, which maps to its default account.

    Strings of 64 hex characters are always read as account identifiers.
    """
    if not isinstance(raw, str) or not raw.strip():
        raise MissingAddress()
    address = raw.strip()

    if _HEX_ACCOUNT_ID.fullmatch(address):
        try:
            return ResolvedAddress(AccountIdentifier.from_hex(address), AddressKind.ACCOUNT_IDENTIFIER)
        except AccountIdentifierFormatError as e:
            raise InvalidAddress(f"Invalid account identifier '{address}': {e}") from e

    account_error = f"not {2 * ACCOUNT_ID_LENGTH} hex characters (got {len(address)} characters)"
    try:
        principal = Principal.from_text(address)
    except PrincipalFormatError as e:
        raise InvalidAddress(
            f"Receiver '{address}' is neither an account identifier ({account_error}) nor a principal ({e})"
        ) from e
    return ResolvedAddress(AccountIdentifier.from_principal(principal), AddressKind.PRINCIPAL)


def resolve_address(raw: str) -> AccountIdentifier:
    return resolve_receiver(raw).account
