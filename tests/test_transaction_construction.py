"""
Test suite for signing and transaction construction.

Tests key handling, header contents and signature integrity.
"""

import hashlib

import pytest

from consensource.core.addressing import FAMILY_NAME, FAMILY_VERSION, agent_create_addresses
from consensource.core.transaction import Transaction, TransactionHeader
from consensource.errors import SerializationError, SigningError, UserInputError
from consensource.tx.builder import NonceSource, assemble_transaction, create_nonce
from consensource.tx.signer import (
    TransactionSigner,
    generate_key,
    key_file_path,
    verify_signature,
)


def flip_bit(data: bytes, bit: int) -> bytes:
    flipped = bytearray(data)
    flipped[bit // 8] ^= 1 << (bit % 8)
    return bytes(flipped)


# ============================================================================
# Test Transaction Signer
# ============================================================================

class TestTransactionSigner:
    """Tests for key handling and signing."""

    def test_generate_key(self, test_config):
        signer = generate_key(test_config)

        assert signer.is_loaded is True
        assert len(signer.public_key) == 66
        assert signer.public_key[:2] in ("02", "03")
        assert len(signer.private_key_hex) == 64

    def test_signer_not_loaded(self, test_config):
        """Test that an unloaded signer refuses to sign."""
        signer = TransactionSigner(test_config)

        assert signer.is_loaded is False
        with pytest.raises(SigningError, match="No signing key loaded"):
            signer.sign(b"header")
        with pytest.raises(SigningError):
            signer.public_key

    def test_sign_and_verify(self, test_signer):
        signature = test_signer.sign(b"header bytes")

        assert len(signature) == 128
        assert verify_signature(test_signer.public_key, signature, b"header bytes")
        assert not verify_signature(test_signer.public_key, signature, b"other bytes")

    def test_signature_is_deterministic(self, test_signer):
        assert test_signer.sign(b"same") == test_signer.sign(b"same")

    def test_signature_is_low_s(self, test_signer):
        order = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
        for i in range(20):
            s = int(test_signer.sign(f"message-{i}".encode())[64:], 16)
            assert s <= order // 2

    def test_wrong_key_does_not_verify(self, test_signer, test_config):
        other = generate_key(test_config)
        signature = test_signer.sign(b"data")

        assert not verify_signature(other.public_key, signature, b"data")

    def test_malformed_signature_does_not_verify(self, test_signer):
        assert not verify_signature(test_signer.public_key, "zz", b"data")
        assert not verify_signature(test_signer.public_key, "ab" * 10, b"data")

    @pytest.mark.parametrize("value", ["", "not-hex", "00" * 32, "ff" * 32, "ab" * 16])
    def test_invalid_private_key(self, test_config, value):
        signer = TransactionSigner(test_config)

        with pytest.raises(SigningError):
            signer.load_key_from_hex(value)

    def test_save_and_load_key_file(self, test_signer, test_config):
        path = test_signer.save("alice", test_config.key_dir)

        assert path == key_file_path("alice", test_config.key_dir)
        assert path.with_suffix(".pub").read_text().strip() == test_signer.public_key

        loaded = TransactionSigner(test_config)
        loaded.load_key_from_file(str(path))
        assert loaded.public_key == test_signer.public_key

    def test_save_refuses_overwrite(self, test_signer, test_config):
        test_signer.save("alice", test_config.key_dir)

        with pytest.raises(UserInputError, match="already exists"):
            generate_key(test_config).save("alice", test_config.key_dir)

        generate_key(test_config).save("alice", test_config.key_dir, force=True)

    def test_load_from_config(self, test_signer, test_config):
        test_signer.save(test_config.key_name, test_config.key_dir)

        loaded = TransactionSigner(test_config)
        loaded.load_from_config()
        assert loaded.public_key == test_signer.public_key

    def test_missing_key_file(self, test_config):
        signer = TransactionSigner(test_config)

        with pytest.raises(UserInputError, match="No such key file"):
            signer.load_key_from_file(str(test_config.key_dir / "missing.priv"))


# ============================================================================
# Test Nonce Generation
# ============================================================================

class TestNonce:
    """Tests for clock derived nonces."""

    def test_nonce_format(self):
        source = NonceSource(clock=lambda: 1_700_000_000_000_000_123)

        assert source.next() == "1700000000000000123"

    def test_nonce_strictly_increases_on_stalled_clock(self):
        source = NonceSource(clock=lambda: 5_000_000_000)
        nonces = [int(source.next()) for _ in range(5)]

        assert nonces == sorted(set(nonces))

    def test_create_nonce_unique(self):
        nonces = {create_nonce() for _ in range(1000)}
        assert len(nonces) == 1000


# ============================================================================
# Test Transaction Assembly
# ============================================================================

class TestAssembleTransaction:
    """Tests for building and signing a transaction."""

    def test_header_fields(self, test_signer, sample_payload):
        addresses = agent_create_addresses(test_signer.public_key)
        txn = assemble_transaction(
            sample_payload, test_signer, addresses.inputs, addresses.outputs, nonce="42"
        )
        header = txn.decode_header()

        assert header.family_name == FAMILY_NAME
        assert header.family_version == FAMILY_VERSION
        assert header.nonce == "42"
        assert header.signer_public_key == test_signer.public_key
        assert header.batcher_public_key == test_signer.public_key
        assert list(header.inputs) == addresses.inputs
        assert list(header.outputs) == addresses.outputs
        assert header.payload_sha512 == hashlib.sha512(sample_payload).hexdigest()

    def test_payload_untouched(self, sample_transaction, sample_payload):
        assert sample_transaction.payload == sample_payload

    def test_transaction_id_is_header_signature(self, sample_transaction, test_signer):
        assert sample_transaction.transaction_id == sample_transaction.header_signature
        assert verify_signature(
            test_signer.public_key,
            sample_transaction.transaction_id,
            sample_transaction.header,
        )

    def test_identical_payloads_get_distinct_ids(self, test_signer, sample_payload):
        """Test that the nonce separates rapid identical submissions."""
        addresses = agent_create_addresses(test_signer.public_key)
        first = assemble_transaction(sample_payload, test_signer, addresses.inputs, addresses.outputs)
        second = assemble_transaction(sample_payload, test_signer, addresses.inputs, addresses.outputs)

        assert first.transaction_id != second.transaction_id

    def test_header_bit_flip_invalidates_signature(self, sample_transaction, test_signer):
        """Test that changing any bit of the header breaks verification."""
        header = sample_transaction.header
        for bit in range(len(header) * 8):
            assert not verify_signature(
                test_signer.public_key,
                sample_transaction.header_signature,
                flip_bit(header, bit),
            )

    def test_header_field_change_invalidates_signature(self, sample_transaction, test_signer):
        header = sample_transaction.decode_header()
        changed = TransactionHeader(
            family_name=header.family_name,
            family_version=header.family_version,
            nonce=header.nonce + "0",
            signer_public_key=header.signer_public_key,
            batcher_public_key=header.batcher_public_key,
            inputs=header.inputs,
            outputs=header.outputs,
            payload_sha512=header.payload_sha512,
        )

        assert not verify_signature(
            test_signer.public_key,
            sample_transaction.header_signature,
            changed.to_bytes(),
        )

    def test_header_round_trip(self, sample_transaction):
        header = sample_transaction.decode_header()
        assert header.to_bytes() == sample_transaction.header

    def test_rejects_non_bytes_payload(self, test_signer):
        with pytest.raises(SerializationError, match="Payload must be bytes"):
            assemble_transaction("text payload", test_signer, [], [])

    def test_rejects_non_string_address(self, test_signer):
        with pytest.raises(SerializationError):
            assemble_transaction(b"payload", test_signer, [123], [])

    def test_unloaded_signer_fails(self, test_config):
        with pytest.raises(SigningError):
            assemble_transaction(b"payload", TransactionSigner(test_config), [], [])

    def test_corrupt_header_fails_to_decode(self, sample_transaction):
        broken = Transaction(
            header=b"\xff\xff\xff",
            header_signature=sample_transaction.header_signature,
            payload=sample_transaction.payload,
        )
        with pytest.raises(SerializationError):
            broken.decode_header()
