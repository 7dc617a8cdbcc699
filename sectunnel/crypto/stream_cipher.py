"""
Stream cipher for tunnel traffic.

Uses `cryptography` for the keystream (ChaCha20 or AES-256-CTR) and
PyNaCl's BLAKE2b to derive per-direction keys and nonces from the secret
agreed during the handshake.
"""

import logging
from typing import Optional, Tuple

import nacl.utils
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from nacl.encoding import HexEncoder, RawEncoder
from nacl.hash import blake2b

from ..config import get_settings

logger = logging.getLogger("sectunnel.crypto")

__all__ = ['StreamCipher', 'derive_key', 'generate_secret', 'ALGORITHMS']

ALGORITHMS = ("chacha20", "aes-256-ctr")

MIN_SECRET_SIZE = 16
SECRET_SIZE = 32

# Direction labels, used as BLAKE2b personalization (at most 16 bytes).
_INITIATOR_TO_RESPONDER = b"sectunnel-i2r"
_RESPONDER_TO_INITIATOR = b"sectunnel-r2i"


def generate_secret(size: int = SECRET_SIZE) -> bytes:
    """Random secret, for tests and for peers sharing a pre-set key."""
    return nacl.utils.random(size)


def derive_key(secret: bytes, context: bytes, size: int = 32) -> bytes:
    """Derive ``size`` bytes from ``secret`` bound to ``context``."""
    return blake2b(secret, digest_size=size, person=context, encoder=RawEncoder)


def _build_cipher(secret: bytes, algorithm: str, direction: bytes) -> Cipher:
    key = derive_key(secret, direction + b"-k", 32)
    nonce = derive_key(secret, direction + b"-iv", 16)
    if algorithm == "chacha20":
        return Cipher(algorithms.ChaCha20(key, nonce), mode=None)
    if algorithm == "aes-256-ctr":
        return Cipher(algorithms.AES(key), modes.CTR(nonce))
    raise ValueError(f"Unsupported cipher algorithm: {algorithm}")


class StreamCipher:
    """
    In-place stream cipher with one keystream per direction.

    The initiator encrypts with the keystream the responder decrypts with,
    and the other way round, so two peers built from the same secret with
    opposite roles interoperate. Keystream state advances per byte, so
    chunk boundaries do not matter.

    Example:
        client, server = StreamCipher.pair(secret)
        buf = bytearray(b"hello")
        client.encrypt(buf)
        server.decrypt(buf)
        assert buf == b"hello"
    """

    def __init__(
        self,
        secret: bytes,
        algorithm: Optional[str] = None,
        initiator: bool = True
    ):
        """
        Args:
            secret: Shared secret from the handshake (16 bytes or more)
            algorithm: One of ALGORITHMS, defaults to the configured cipher
            initiator: True on the side that opened the tunnel
        """
        if len(secret) < MIN_SECRET_SIZE:
            raise ValueError(
                f"Invalid secret size: {len(secret)} (need {MIN_SECRET_SIZE}+)"
            )
        self.algorithm = algorithm or get_settings().cipher_algorithm
        if initiator:
            outbound, inbound = _INITIATOR_TO_RESPONDER, _RESPONDER_TO_INITIATOR
        else:
            outbound, inbound = _RESPONDER_TO_INITIATOR, _INITIATOR_TO_RESPONDER
        self._encryptor = _build_cipher(secret, self.algorithm, outbound).encryptor()
        self._decryptor = _build_cipher(secret, self.algorithm, inbound).decryptor()
        self._key_id = blake2b(secret, digest_size=16, encoder=HexEncoder).decode()[:8]
        logger.debug(f"Stream cipher ready ({self.algorithm}, key {self._key_id}...)")

    @classmethod
    def pair(
        cls,
        secret: bytes,
        algorithm: Optional[str] = None
    ) -> Tuple["StreamCipher", "StreamCipher"]:
        """Matching (initiator, responder) ciphers."""
        return (
            cls(secret, algorithm, initiator=True),
            cls(secret, algorithm, initiator=False)
        )

    def encrypt(self, buffer):
        """Encrypt a writable buffer in place."""
        buffer[:] = self._encryptor.update(buffer)

    def decrypt(self, buffer):
        """Decrypt a writable buffer in place."""
        buffer[:] = self._decryptor.update(buffer)

    @property
    def key_id(self) -> str:
        """Short key fingerprint for logging."""
        return self._key_id

    def __repr__(self) -> str:
        return f"StreamCipher({self.algorithm}, key={self._key_id})"
