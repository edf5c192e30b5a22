# cloudos/core/security_password.py
from __future__ import annotations
from typing import Optional, Tuple
from passlib.context import CryptContext

pwd_context = CryptContext(
    schemes=["argon2", "bcrypt_sha256", "bcrypt"],
    deprecated="auto",
    argon2__time_cost=2,
    argon2__memory_cost=19456,
    argon2__parallelism=1,
)

def hash_password(plain: str) -> str:
    return pwd_context.hash(plain)

def verify_and_maybe_upgrade(plain: str, stored_hash: Optional[str]) -> Tuple[bool, str | None]:
    """Returns (ok, new_hash). new_hash is set when the stored scheme is outdated."""
    if not stored_hash:
        # SSO-only account: burn the same time as a real verify
        pwd_context.dummy_verify()
        return False, None
    try:
        ok = pwd_context.verify(plain, stored_hash)
    except ValueError:
        # unrecognised hash format (e.g. a legacy plaintext value): never a match
        return False, None
    if not ok:
        return False, None
    if pwd_context.needs_update(stored_hash):
        return True, pwd_context.hash(plain)
    return True, None

def dummy_verify() -> None:
    pwd_context.dummy_verify()
