"""
Transaction Signer - handles header signing.

Manages the secp256k1 signing key of the submitting agent. Keys are stored
the way the ledger's own tooling stores them: a hex private key in
<key_dir>/<name>.priv and the compressed public key in <key_dir>/<name>.pub.
"""

import getpass
from pathlib import Path
from typing import Optional

import structlog

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import (
    decode_dss_signature,
    encode_dss_signature,
)

from consensource.config import ClientConfig, get_config
from consensource.errors import SigningError, UserInputError

logger = structlog.get_logger(__name__)

_CURVE = ec.SECP256K1()
_CURVE_ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
_SCALAR_SIZE = 32


def key_file_path(name: Optional[str] = None, key_dir: Optional[Path] = None) -> Path:
    """
    Resolve the private key file for a key name.

    Args:
        name: Key name; defaults to the current OS user
        key_dir: Key directory; defaults to the configured key directory

    Returns:
        Path to <key_dir>/<name>.priv
    """
    name = name or getpass.getuser()
    key_dir = Path(key_dir) if key_dir else get_config().key_dir
    return Path(key_dir).expanduser() / f"{name}.priv"


def _public_key_hex(public_key: ec.EllipticCurvePublicKey) -> str:
    return public_key.public_bytes(
        serialization.Encoding.X962,
        serialization.PublicFormat.CompressedPoint,
    ).hex()


def verify_signature(public_key: str, signature: str, data: bytes) -> bool:
    """
    Check a compact hex signature against a compressed hex public key.

    Args:
        public_key: Compressed SEC1 public key in hex
        signature: 64 byte r || s signature in hex
        data: The exact bytes that were signed

    Returns:
        True if the signature is valid for data
    """
    try:
        raw = bytes.fromhex(signature)
        if len(raw) != 2 * _SCALAR_SIZE:
            return False
        key = ec.EllipticCurvePublicKey.from_encoded_point(_CURVE, bytes.fromhex(public_key))
        der = encode_dss_signature(
            int.from_bytes(raw[:_SCALAR_SIZE], "big"),
            int.from_bytes(raw[_SCALAR_SIZE:], "big"),
        )
        key.verify(der, data, ec.ECDSA(hashes.SHA256()))
        return True
    except (InvalidSignature, ValueError):
        return False


class TransactionSigner:
    """
    Signs transaction and batch headers with an agent's key.

    Supports loading keys from:
    - Key name in the key directory (ledger CLI convention)
    - Explicit key file path
    - Hex encoded private key

    The signer is read-only once loaded and may sign any number of headers.
    Signatures are deterministic (RFC 6979) and low-S normalized, so the
    same bytes always produce the same signature under the same key.
    """

    def __init__(self, config: Optional[ClientConfig] = None):
        """
        Initialize the transaction signer.

        Args:
            config: Client configuration
        """
        self.config = config or get_config()
        self._private_key: Optional[ec.EllipticCurvePrivateKey] = None
        self._public_key: Optional[str] = None

    def load_key_from_hex(self, private_key_hex: str) -> None:
        """
        Load a signing key from its hex encoded private scalar.

        Args:
            private_key_hex: 32 byte private key in hex
        """
        try:
            value = int(private_key_hex.strip(), 16)
            if len(private_key_hex.strip()) != 2 * _SCALAR_SIZE:
                raise ValueError("expected 64 hex characters")
            if not 0 < value < _CURVE_ORDER:
                raise ValueError("value out of range for secp256k1")
            private_key = ec.derive_private_key(value, _CURVE)
        except ValueError as e:
            raise SigningError(f"Invalid private key: {e}") from e

        self._private_key = private_key
        self._public_key = _public_key_hex(private_key.public_key())

    def load_key_from_file(self, key_path: str) -> None:
        """
        Load a signing key from a file.

        Args:
            key_path: Path to the private key file
        """
        path = Path(key_path).expanduser()
        if not path.exists():
            raise UserInputError(f"No such key file: {path}")

        try:
            contents = path.read_text().strip()
        except OSError as e:
            raise UserInputError(f"Unable to read key file {path}: {e}") from e

        self.load_key_from_hex(contents)
        logger.info("signing_key_loaded", path=str(path), public_key=self._public_key[:16] + "...")

    def load_from_config(self) -> None:
        """Load the configured key name from the configured key directory."""
        self.load_key_from_file(str(key_file_path(self.config.key_name, self.config.key_dir)))

    @property
    def is_loaded(self) -> bool:
        return self._private_key is not None

    @property
    def public_key(self) -> str:
        """Compressed public key in hex."""
        if not self._public_key:
            raise SigningError("No signing key loaded")
        return self._public_key

    @property
    def private_key_hex(self) -> str:
        if not self._private_key:
            raise SigningError("No signing key loaded")
        value = self._private_key.private_numbers().private_value
        return value.to_bytes(_SCALAR_SIZE, "big").hex()

    def sign(self, data: bytes) -> str:
        """
        Sign bytes.

        Args:
            data: Serialized header bytes

        Returns:
            64 byte compact signature in hex
        """
        if not self._private_key:
            raise SigningError("No signing key loaded")

        try:
            der = self._private_key.sign(
                data,
                ec.ECDSA(hashes.SHA256(), deterministic_signing=True),
            )
        except (TypeError, ValueError, UnsupportedAlgorithm) as e:
            raise SigningError(f"Unable to sign: {e}") from e

        r, s = decode_dss_signature(der)
        if s > _CURVE_ORDER // 2:
            s = _CURVE_ORDER - s

        return (r.to_bytes(_SCALAR_SIZE, "big") + s.to_bytes(_SCALAR_SIZE, "big")).hex()

    def save(
        self,
        name: Optional[str] = None,
        key_dir: Optional[Path] = None,
        force: bool = False,
    ) -> Path:
        """
        Write the key pair to <key_dir>/<name>.priv and <name>.pub.

        Args:
            name: Key name; defaults to the current OS user
            key_dir: Target directory; defaults to the configured one
            force: Overwrite existing key files

        Returns:
            Path of the written private key file
        """
        priv_path = key_file_path(name, key_dir or self.config.key_dir)
        pub_path = priv_path.with_suffix(".pub")

        if not force:
            for path in (priv_path, pub_path):
                if path.exists():
                    raise UserInputError(f"File already exists: {path}")

        try:
            priv_path.parent.mkdir(parents=True, exist_ok=True)
            priv_path.write_text(self.private_key_hex + "\n")
            priv_path.chmod(0o600)
            pub_path.write_text(self.public_key + "\n")
        except OSError as e:
            raise UserInputError(f"Unable to write key files: {e}") from e

        logger.info("signing_key_saved", path=str(priv_path))
        return priv_path


def generate_key(config: Optional[ClientConfig] = None) -> TransactionSigner:
    """
    Generate a new random signing key.

    Returns:
        TransactionSigner holding the new key (not persisted)
    """
    signer = TransactionSigner(config)
    private_key = ec.generate_private_key(_CURVE)
    value = private_key.private_numbers().private_value
    signer.load_key_from_hex(value.to_bytes(_SCALAR_SIZE, "big").hex())

    logger.debug("signing_key_generated", public_key=signer.public_key[:16] + "...")

    return signer
