"""
filecrypt Core Package
======================
Server-side keyfile encryption for per-user file trees.

Provides:
- Canonical key layout per user and readiness checks
- Bootstrap of directories and a passphrase-protected X25519 keypair
- Plain / encrypted / legacy classification of a storage tree
- Bulk transform of plain and legacy files into the current keyfile format
- Pluggable key registries (storage tree, SQLite, in-memory)
"""
