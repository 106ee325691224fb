from __future__ import annotations
from typing import Tuple, Optional
from argon2.low_level import hash_secret_raw, Type as Argon2Type
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.asymmetric import x25519
from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
import os, struct, hashlib
from .constants import (
    CURRENT_MAGIC, LEGACY_MAGIC, PRIVATE_KEY_MAGIC, NONCE_SIZE, SALT_SIZE,
    FILE_KEY_SIZE, X25519_KEY_SIZE, HKDF_INFO, LEGACY_PBKDF2_ITERATIONS,
    DEFAULT_ARGON2_T_COST, DEFAULT_ARGON2_M_COST_KIB, DEFAULT_ARGON2_PARALLELISM,
)
from .errors import CryptoError, KeyPairGenerationFailed
from .models import KeyPair, KeyfileResult
"""
filecrypt_core.crypto
---------------------
Default crypto provider for keyfile (envelope) encryption:

- X25519 keypair per user
- per-file AES-256-GCM key, wrapped to the user's public key with an
  ephemeral X25519 exchange + HKDF-SHA256
- private key wrapped under the user's passphrase with
  Argon2id(SHA3-512(passphrase)) + AES-256-GCM
- legacy format: passphrase-only PBKDF2 + AES-GCM content, detected by marker

Formats:
    file content      FCK1 || nonce(12) || ct
    wrapped file key  eph_pub(32) || nonce(12) || ct
    wrapped priv key  header(">5sIII16s12s") || ct
    legacy content    FCL0 || salt(16) || nonce(12) || ct
"""

PRIVATE_KEY_HDR_FMT = ">5sIII16s12s"  # magic, t, m, p, salt(16), nonce(12)
PRIVATE_KEY_HDR_SIZE = struct.calcsize(PRIVATE_KEY_HDR_FMT)

# --------- X25519 ----------
def x25519_generate() -> Tuple[bytes, bytes]:
    sk = x25519.X25519PrivateKey.generate()
    pk = sk.public_key()
    return sk.private_bytes_raw(), pk.public_bytes_raw()

def derive_key(sender_priv: bytes, recipient_pub: bytes, salt: Optional[bytes] = None, info: bytes = HKDF_INFO) -> bytes:
    sk = x25519.X25519PrivateKey.from_private_bytes(sender_priv)
    shared = sk.exchange(x25519.X25519PublicKey.from_public_bytes(recipient_pub))
    hkdf = HKDF(algorithm=hashes.SHA256(), length=32, salt=salt, info=info)
    return hkdf.derive(shared)  # 256-bit AEAD key

# --------- AES-GCM ----------
def aead_encrypt(key: bytes, plaintext: bytes, aad: Optional[bytes] = None) -> Tuple[bytes, bytes]:
    aes = AESGCM(key)
    nonce = os.urandom(NONCE_SIZE)
    ct = aes.encrypt(nonce, plaintext, aad)
    return nonce, ct

def aead_decrypt(key: bytes, nonce: bytes, ciphertext: bytes, aad: Optional[bytes] = None) -> bytes:
    aes = AESGCM(key)
    try:
        return aes.decrypt(nonce, ciphertext, aad)
    except InvalidTag as e:
        raise CryptoError("authentication failed (wrong key or corrupt data)") from e

# --------- Passphrase KDFs ----------
def sha3_512_bytes(data: bytes) -> bytes:
    digest = hashes.Hash(hashes.SHA3_512())
    digest.update(data)
    return digest.finalize()

def derive_passphrase_key(passphrase: str, salt: bytes, t_cost: int, m_cost_kib: int, parallelism: int) -> bytes:
    """KEK = Argon2id(SHA3-512(passphrase)) -> 32 bytes"""
    prehash = sha3_512_bytes(passphrase.encode("utf-8"))
    return hash_secret_raw(
        secret=prehash,
        salt=salt,
        time_cost=t_cost,
        memory_cost=m_cost_kib,
        parallelism=parallelism,
        hash_len=32,
        type=Argon2Type.ID,
    )

def derive_legacy_key(passphrase: str, salt: bytes, iterations: int = LEGACY_PBKDF2_ITERATIONS) -> bytes:
    kdf = PBKDF2HMAC(algorithm=hashes.SHA256(), length=32, salt=salt, iterations=iterations)
    return kdf.derive(passphrase.encode("utf-8"))

def compute_pubkey_fingerprint(public_key: bytes) -> str:
    """Hex SHA256 of the raw public key, truncated to 32 chars."""
    return hashlib.sha256(public_key).hexdigest()[:32]


class CryptoProvider:
    """Keyfile encryption primitives consumed by the setup and transform stages."""

    def __init__(self, t_cost: int = DEFAULT_ARGON2_T_COST, m_cost_kib: int = DEFAULT_ARGON2_M_COST_KIB,
                 parallelism: int = DEFAULT_ARGON2_PARALLELISM,
                 legacy_iterations: int = LEGACY_PBKDF2_ITERATIONS):
        self.t_cost = t_cost
        self.m_cost_kib = m_cost_kib
        self.parallelism = parallelism
        self.legacy_iterations = legacy_iterations

    @classmethod
    def from_config(cls, config) -> "CryptoProvider":
        return cls(t_cost=config.argon2_t_cost, m_cost_kib=config.argon2_m_cost_kib,
                   parallelism=config.argon2_parallelism)

    # --- keypair ---
    def create_keypair(self) -> KeyPair:
        try:
            priv, pub = x25519_generate()
        except Exception as e:
            raise KeyPairGenerationFailed(f"X25519 keypair generation failed: {e}") from e
        return KeyPair(public_key=pub, private_key=priv)

    def wrap_private_key(self, private_key: bytes, passphrase: Optional[str]) -> bytes:
        salt = os.urandom(SALT_SIZE)
        kek = derive_passphrase_key(passphrase or "", salt, self.t_cost, self.m_cost_kib, self.parallelism)
        nonce, ct = aead_encrypt(kek, private_key, aad=PRIVATE_KEY_MAGIC)
        header = struct.pack(PRIVATE_KEY_HDR_FMT, PRIVATE_KEY_MAGIC, self.t_cost, self.m_cost_kib,
                             self.parallelism, salt, nonce)
        return header + ct

    def unwrap_private_key(self, wrapped: bytes, passphrase: Optional[str]) -> bytes:
        if len(wrapped) < PRIVATE_KEY_HDR_SIZE:
            raise CryptoError("wrapped private key is too small or corrupt")
        magic, t, m, p, salt, nonce = struct.unpack(PRIVATE_KEY_HDR_FMT, wrapped[:PRIVATE_KEY_HDR_SIZE])
        if magic != PRIVATE_KEY_MAGIC:
            raise CryptoError("invalid private key magic")
        kek = derive_passphrase_key(passphrase or "", salt, t, m, p)
        return aead_decrypt(kek, nonce, wrapped[PRIVATE_KEY_HDR_SIZE:], aad=PRIVATE_KEY_MAGIC)

    # --- file keys ---
    def wrap_file_key(self, file_key: bytes, public_key: bytes) -> bytes:
        eph_priv, eph_pub = x25519_generate()
        kek = derive_key(eph_priv, public_key, salt=eph_pub)
        nonce, ct = aead_encrypt(kek, file_key)
        return eph_pub + nonce + ct

    def unwrap_file_key(self, wrapped_key: bytes, private_key: bytes) -> bytes:
        if len(wrapped_key) < X25519_KEY_SIZE + NONCE_SIZE:
            raise CryptoError("wrapped file key is too small or corrupt")
        eph_pub = wrapped_key[:X25519_KEY_SIZE]
        nonce = wrapped_key[X25519_KEY_SIZE:X25519_KEY_SIZE + NONCE_SIZE]
        kek = derive_key(private_key, eph_pub, salt=eph_pub)
        return aead_decrypt(kek, nonce, wrapped_key[X25519_KEY_SIZE + NONCE_SIZE:])

    def encrypt_to_keyfile(self, data: bytes, public_key: bytes) -> KeyfileResult:
        file_key = AESGCM.generate_key(bit_length=FILE_KEY_SIZE * 8)
        nonce, ct = aead_encrypt(file_key, data, aad=CURRENT_MAGIC)
        return KeyfileResult(wrapped_key=self.wrap_file_key(file_key, public_key),
                             content=CURRENT_MAGIC + nonce + ct)

    def decrypt_keyfile(self, content: bytes, wrapped_key: bytes, private_key: bytes) -> bytes:
        if not self.is_current_format(content):
            raise CryptoError("content is not in the current envelope format")
        file_key = self.unwrap_file_key(wrapped_key, private_key)
        body = content[len(CURRENT_MAGIC):]
        if len(body) < NONCE_SIZE:
            raise CryptoError("envelope content is truncated")
        return aead_decrypt(file_key, body[:NONCE_SIZE], body[NONCE_SIZE:], aad=CURRENT_MAGIC)

    # --- legacy ---
    def legacy_encrypt(self, data: bytes, passphrase: str) -> bytes:
        salt = os.urandom(SALT_SIZE)
        key = derive_legacy_key(passphrase, salt, self.legacy_iterations)
        nonce, ct = aead_encrypt(key, data)
        return LEGACY_MAGIC + salt + nonce + ct

    def legacy_decrypt(self, content: bytes, passphrase: str) -> bytes:
        if not self.is_legacy_format(content):
            raise CryptoError("content is not in the legacy format")
        body = content[len(LEGACY_MAGIC):]
        if len(body) < SALT_SIZE + NONCE_SIZE:
            raise CryptoError("legacy content is truncated")
        salt, nonce, ct = body[:SALT_SIZE], body[SALT_SIZE:SALT_SIZE + NONCE_SIZE], body[SALT_SIZE + NONCE_SIZE:]
        key = derive_legacy_key(passphrase, salt, self.legacy_iterations)
        return aead_decrypt(key, nonce, ct)

    def reencrypt_legacy_keyfile(self, content: bytes, old_passphrase: str, public_key: bytes,
                                 new_passphrase: str = "") -> KeyfileResult:
        # new_passphrase is unused here: current file keys are wrapped to the
        # public key, not to the login passphrase.
        plaintext = self.legacy_decrypt(content, old_passphrase)
        return self.encrypt_to_keyfile(plaintext, public_key)

    # --- format detection ---
    def is_legacy_format(self, data: bytes) -> bool:
        return data[:len(LEGACY_MAGIC)] == LEGACY_MAGIC

    def is_current_format(self, data: bytes) -> bool:
        return data[:len(CURRENT_MAGIC)] == CURRENT_MAGIC
