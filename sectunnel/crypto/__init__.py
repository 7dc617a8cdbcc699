"""
Cryptographic utilities for sectunnel.

The keystream comes from `cryptography`; key derivation uses PyNaCl.
"""

from .stream_cipher import ALGORITHMS, StreamCipher, derive_key, generate_secret

__all__ = ['ALGORITHMS', 'StreamCipher', 'derive_key', 'generate_secret']
