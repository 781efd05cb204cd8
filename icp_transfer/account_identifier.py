import hashlib
from typing import Optional

from icp_transfer.principal import CRC_LENGTH_IN_BYTES, Principal, crc32_be

ACCOUNT_ID_LENGTH = 32
SUBACCOUNT_LENGTH = 32
DOMAIN_SEPARATOR = b"\x0aaccount-id"
DEFAULT_SUBACCOUNT = bytes(SUBACCOUNT_LENGTH)


class AccountIdentifierFormatError(ValueError):
    pass


class AccountIdentifier:
    """
    A 32 byte ICP ledger account identifier.

    Layout: big-endian CRC32 of the hash (4 bytes) followed by
    SHA-224("\\x0aaccount-id" || principal || subaccount) (28 bytes).
    """

    def __init__(self, raw: bytes):
        if len(raw) != ACCOUNT_ID_LENGTH:
            raise AccountIdentifierFormatError(f"account identifier must be {ACCOUNT_ID_LENGTH} bytes, got {len(raw)}")
        checksum, digest = raw[:CRC_LENGTH_IN_BYTES], raw[CRC_LENGTH_IN_BYTES:]
        if crc32_be(digest) != checksum:
            raise AccountIdentifierFormatError("account identifier checksum does not match")
        self._raw = bytes(raw)

    @staticmethod
    def from_principal(principal: Principal, subaccount: Optional[bytes] = None) -> "AccountIdentifier":
        subaccount = DEFAULT_SUBACCOUNT if subaccount is None else subaccount
        if len(subaccount) != SUBACCOUNT_LENGTH:
            raise AccountIdentifierFormatError(f"subaccount must be {SUBACCOUNT_LENGTH} bytes, got {len(subaccount)}")
        digest = hashlib.sha224(DOMAIN_SEPARATOR + principal.bytes + subaccount).digest()
        return AccountIdentifier(crc32_be(digest) + digest)

    @staticmethod
    def from_hex(text: str) -> "AccountIdentifier":
        if len(text) != 2 * ACCOUNT_ID_LENGTH:
            raise AccountIdentifierFormatError(f"account identifier must be {2 * ACCOUNT_ID_LENGTH} hex characters")
        try:
            raw = bytes.fromhex(text)
        except ValueError as e:
            raise AccountIdentifierFormatError(f"account identifier is not hex: {e}") from e
        return AccountIdentifier(raw)

    @property
    def raw(self) -> bytes:
        return self._raw

    def to_hex(self) -> str:
        return self._raw.hex()

    def __str__(self):
        return self.to_hex()

    def __repr__(self):
        return f"AccountIdentifier({self.to_hex()})"

    def __eq__(self, other):
        return isinstance(other, AccountIdentifier) and self._raw == other._raw

    def __hash__(self):
        return hash(self._raw)
