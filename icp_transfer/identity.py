import re
from typing import Dict

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, utils
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from icp_transfer.account_identifier import AccountIdentifier
from icp_transfer.errors import InvalidKeyFormat, InvalidKeyMaterial
from icp_transfer.principal import Principal

ED25519 = "ed25519"
SECP256K1 = "secp256k1"
KEY_TYPES = (ED25519, SECP256K1)

SECP256K1_ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141

_HEX_KEY = re.compile(r"[0-9a-fA-F]{64}")


class Identity:
    """
    A signing identity backed by a private key.

    Only public material is ever exposed; the private key stays inside the
    instance and is not part of its repr.
    """

    def __init__(self, private_key, key_type: str):
        self._private_key = private_key
        self.key_type = key_type
        public_key = private_key.public_key()
        self.der_public_key = public_key.public_bytes(Encoding.DER, PublicFormat.SubjectPublicKeyInfo)
        if key_type == ED25519:
            self.public_key_hex = public_key.public_bytes_raw().hex()
        else:
            self.public_key_hex = public_key.public_bytes(Encoding.X962, PublicFormat.CompressedPoint).hex()
        self._principal = Principal.self_authenticating(self.der_public_key)

    @property
    def curve_type(self) -> str:
        """Curve name as understood by the Rosetta API."""
        return "edwards25519" if self.key_type == ED25519 else "secp256k1"

    @property
    def signature_type(self) -> str:
        return "ed25519" if self.key_type == ED25519 else "ecdsa"

    def principal(self) -> Principal:
        return self._principal

    def account_identifier(self) -> AccountIdentifier:
        return AccountIdentifier.from_principal(self._principal)

    def sign(self, payload: bytes) -> bytes:
        if self.key_type == ED25519:
            return self._private_key.sign(payload)
        der_sig = self._private_key.sign(payload, ec.ECDSA(hashes.SHA256()))
        r, s = utils.decode_dss_signature(der_sig)
        return r.to_bytes(32, byteorder="big") + s.to_bytes(32, byteorder="big")

    def __repr__(self):
        return f"Identity({self.key_type}, principal={self._principal})"


def _decode_hex_key(hex_key) -> bytes:
    if not isinstance(hex_key, str) or not hex_key:
        raise InvalidKeyFormat("Private key is required and must be a string")
    clean_hex = hex_key[2:] if hex_key[:2] in ("0x", "0X") else hex_key
    if not _HEX_KEY.fullmatch(clean_hex):
        raise InvalidKeyFormat()
    try:
        return bytes.fromhex(clean_hex)
    except ValueError as e:
        raise InvalidKeyFormat() from e


def derive_identity(hex_key: str, key_type: str = ED25519) -> Identity:
    """
    Build a signing identity from a 64 character hex private key.

    The key may carry a ``0x`` prefix. Format problems raise InvalidKeyFormat,
    bytes the signature scheme refuses raise InvalidKeyMaterial. Neither error
    repeats the key.
    """
    secret = _decode_hex_key(hex_key)

    if key_type == ED25519:
        try:
            private_key = ed25519.Ed25519PrivateKey.from_private_bytes(secret)
        except ValueError:
            raise InvalidKeyMaterial() from None
    elif key_type == SECP256K1:
        scalar = int.from_bytes(secret, byteorder="big")
        if not 0 < scalar < SECP256K1_ORDER:
            raise InvalidKeyMaterial("Private key is not a valid secp256k1 scalar")
        try:
            private_key = ec.derive_private_key(scalar, ec.SECP256K1())
        except ValueError:
            raise InvalidKeyMaterial("Private key is not a valid secp256k1 scalar") from None
    else:
        raise InvalidKeyMaterial(f"Unsupported key type '{key_type}'. Supported types: {', '.join(KEY_TYPES)}")

    return Identity(private_key, key_type)


def generate_key_pair(key_type: str = ED25519) -> Dict[str, str]:
    """Generate a fresh key pair and return its hex encoded keys, principal and account identifier."""
    if key_type == ED25519:
        private_key = ed25519.Ed25519PrivateKey.generate()
        secret = private_key.private_bytes_raw()
    elif key_type == SECP256K1:
        private_key = ec.generate_private_key(ec.SECP256K1())
        secret = private_key.private_numbers().private_value.to_bytes(32, byteorder="big")
    else:
        raise InvalidKeyMaterial(f"Unsupported key type '{key_type}'. Supported types: {', '.join(KEY_TYPES)}")

    identity = Identity(private_key, key_type)
    return {
        "private_key": f"0x{secret.hex()}",
        "public_key": f"0x{identity.public_key_hex}",
        "principal": identity.principal().to_text(),
        "account_identifier": identity.account_identifier().to_hex(),
    }
