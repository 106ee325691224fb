# filecrypt_core/constants.py
# Layout names are part of the on-disk contract: changing any of them
# requires a migration of existing user trees.

USER_FILES_DIRNAME = "files"
ENCRYPTION_DIRNAME = "files_encryption"
KEYFILES_DIRNAME = "keyfiles"
SHARE_KEYS_DIRNAME = "share-keys"
PUBLIC_KEYS_DIRNAME = "public-keys"

PUBLIC_KEY_SUFFIX = ".public.key"
PRIVATE_KEY_SUFFIX = ".private.key"
KEYFILE_SUFFIX = ".key"

# Staging files written next to the target during a bulk transform
STAGING_PREFIX = "."
STAGING_SUFFIX = ".fcstage"

# Envelope markers
CURRENT_MAGIC = b"FCK1"
LEGACY_MAGIC = b"FCL0"
PRIVATE_KEY_MAGIC = b"FCPK1"

NONCE_SIZE = 12
SALT_SIZE = 16
FILE_KEY_SIZE = 32
X25519_KEY_SIZE = 32

HKDF_INFO = b"filecrypt-keyfile-v1"
LEGACY_PBKDF2_ITERATIONS = 100_000

DEFAULT_ARGON2_T_COST = 3
DEFAULT_ARGON2_M_COST_KIB = 65536  # 64 MiB
DEFAULT_ARGON2_PARALLELISM = 2
