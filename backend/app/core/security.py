from datetime import datetime, timedelta
from threading import Lock
from typing import Any, Dict, Optional
import time
import uuid

from jose import jwt, JWTError
from passlib.context import CryptContext

from app.core.config import settings

# JWT Configuration
ALGORITHM = "HS256"

_pwd_context = CryptContext(schemes=["pbkdf2_sha256", "bcrypt"], deprecated="auto")

# ============================================================================
# 已注销 token 的 jti 黑名单 (内存缓存，生产环境建议使用 Redis)
# ============================================================================
_revoked_tokens: Dict[str, float] = {}
_revoked_tokens_lock = Lock()


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return _pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        return False


def get_password_hash(password: str) -> str:
    return _pwd_context.hash(password)


def create_access_token(
    subject: Any,
    expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create JWT access token.

    Args:
        subject: The subject to encode (typically user id)
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string
    """
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode = {"exp": expire, "sub": str(subject), "jti": uuid.uuid4().hex}
    encoded_jwt = jwt.encode(to_encode, settings.SECRET_KEY, algorithm=ALGORITHM)
    return encoded_jwt


def decode_token(token: str) -> Optional[Dict[str, Any]]:
    """解码 token，签名无效、过期或已注销时返回 None"""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None

    jti = payload.get("jti")
    if jti and is_token_revoked(jti):
        return None
    return payload


def verify_token(token: str) -> Optional[str]:
    """
    Verify JWT token and extract subject.

    Args:
        token: JWT token string

    Returns:
        Subject (user id) if valid, None otherwise
    """
    payload = decode_token(token)
    if payload is None:
        return None
    return payload.get("sub")


def revoke_token(token: str) -> bool:
    """注销 token：将其 jti 加入黑名单直到过期

    Returns:
        token 是否有效并已被注销
    """
    payload = decode_token(token)
    if payload is None or not payload.get("jti"):
        return False

    with _revoked_tokens_lock:
        _cleanup_revoked_tokens()
        _revoked_tokens[payload["jti"]] = float(payload.get("exp", 0))
    return True


def is_token_revoked(jti: str) -> bool:
    with _revoked_tokens_lock:
        return jti in _revoked_tokens


def _cleanup_revoked_tokens() -> None:
    """清理已过期的黑名单条目"""
    now = time.time()
    expired = [k for k, exp in _revoked_tokens.items() if exp and exp < now]
    for k in expired:
        del _revoked_tokens[k]
