"""Salted PBKDF2 password hashing shared by the API and the seed script."""

import hashlib
import hmac
import secrets
from typing import Optional, Tuple


def hash_password(password: str, salt: Optional[str] = None) -> Tuple[str, str]:
    if salt is None:
        salt = secrets.token_hex(16)
    pwd_hash = hashlib.pbkdf2_hmac(
        'sha256', password.encode('utf-8'), salt.encode('utf-8'), 100000
    ).hex()
    return pwd_hash, salt


def verify_password(password: str, user: dict) -> bool:
    # accounts seeded without a hash cannot log in
    if not user.get('password_hash') or not user.get('salt'):
        return False
    pwd_hash, _ = hash_password(password, user['salt'])
    return hmac.compare_digest(pwd_hash, user['password_hash'])
