"""
Object names are SHA-1 digests, the same ones git uses, so objects written here can be
read by git and the other way round.

Inside the repository a digest travels as a 40 char lowercase hex string. Only tree
payloads store the raw 20 bytes.
"""

import hashlib
import re

from errors import MalformedDigest

DIGEST_SIZE = 20
HEX_DIGEST_SIZE = 2 * DIGEST_SIZE

hashRE = re.compile(f"[0-9A-Fa-f]{{{HEX_DIGEST_SIZE}}}")


def digest(data: bytes) -> bytes:
    return hashlib.sha1(data).digest()


def to_hex(raw: bytes) -> str:
    """
    Render raw digest bytes as hex, padded to 40 chars with zeroes if needed.
    """
    if len(raw) != DIGEST_SIZE:
        raise MalformedDigest(f"Expected {DIGEST_SIZE} digest bytes, got {len(raw)}")
    return format(int.from_bytes(raw, "big"), f"0{HEX_DIGEST_SIZE}x")


def from_hex(sha: str) -> bytes:
    if not is_hex_digest(sha):
        raise MalformedDigest(f"Not a valid object name {sha!r}")
    return int(sha, 16).to_bytes(DIGEST_SIZE, byteorder="big")


def sha_hex(data: bytes) -> str:
    """
    Digest of `data` as hex. This is the name of an object whose encoded bytes are `data`.
    """
    return to_hex(digest(data))


def is_hex_digest(sha) -> bool:
    return isinstance(sha, str) and hashRE.fullmatch(sha) is not None
