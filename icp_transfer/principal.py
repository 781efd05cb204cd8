import base64
import hashlib
import math
import zlib

CRC_LENGTH_IN_BYTES = 4
MAX_LENGTH_IN_BYTES = 29
SELF_AUTHENTICATING_SUFFIX = b"\x02"
ANONYMOUS_SUFFIX = b"\x04"

_BASE32_ALPHABET = set("abcdefghijklmnopqrstuvwxyz234567")


class PrincipalFormatError(ValueError):
    pass


def crc32_be(data: bytes) -> bytes:
    return (zlib.crc32(data) & 0xFFFFFFFF).to_bytes(CRC_LENGTH_IN_BYTES, byteorder="big")


class Principal:
    """
    An Internet Computer principal.

    The textual form is the lowercase base32 encoding (without padding) of the
    big-endian CRC32 of the raw bytes followed by the bytes themselves, split
    into groups of five characters joined by dashes, e.g. ``2vxsx-fae``.
    """

    def __init__(self, raw: bytes):
        if len(raw) > MAX_LENGTH_IN_BYTES:
            raise PrincipalFormatError(f"principal is {len(raw)} bytes long, at most {MAX_LENGTH_IN_BYTES} allowed")
        self._raw = bytes(raw)

    @staticmethod
    def anonymous() -> "Principal":
        return Principal(ANONYMOUS_SUFFIX)

    @staticmethod
    def self_authenticating(der_public_key: bytes) -> "Principal":
        digest = hashlib.sha224(der_public_key).digest()
        return Principal(digest + SELF_AUTHENTICATING_SUFFIX)

    @staticmethod
    def from_text(text: str) -> "Principal":
        if not isinstance(text, str):
            raise PrincipalFormatError("principal text must be a string")
        compact = text.replace("-", "")
        if not compact or any(c not in _BASE32_ALPHABET for c in compact):
            raise PrincipalFormatError(f"'{text}' is not lowercase base32")
        pad_len = math.ceil(len(compact) / 8) * 8 - len(compact)
        try:
            decoded = base64.b32decode(compact.upper() + "=" * pad_len)
        except ValueError as e:
            raise PrincipalFormatError(f"'{text}' cannot be decoded: {e}") from e
        if len(decoded) < CRC_LENGTH_IN_BYTES:
            raise PrincipalFormatError(f"'{text}' is too short to carry a checksum")
        checksum, raw = decoded[:CRC_LENGTH_IN_BYTES], decoded[CRC_LENGTH_IN_BYTES:]
        if crc32_be(raw) != checksum:
            raise PrincipalFormatError(f"'{text}' has an invalid checksum")
        principal = Principal(raw)
        if principal.to_text() != text:
            raise PrincipalFormatError(f"'{text}' is not in canonical form, expected '{principal.to_text()}'")
        return principal

    @property
    def bytes(self) -> bytes:
        return self._raw

    def is_anonymous(self) -> bool:
        return self._raw == ANONYMOUS_SUFFIX

    def to_text(self) -> str:
        encoded = base64.b32encode(crc32_be(self._raw) + self._raw).decode("ascii").lower().rstrip("=")
        return "-".join(encoded[i : i + 5] for i in range(0, len(encoded), 5))

    def __str__(self):
        return self.to_text()

    def __repr__(self):
        return f"Principal({self.to_text()})"

    def __eq__(self, other):
        return isinstance(other, Principal) and self._raw == other._raw

    def __hash__(self):
        return hash(self._raw)
