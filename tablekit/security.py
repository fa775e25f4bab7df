# File: /tablekit/security.py | Version: 2.0 | Title: Signing, state encryption and optional bearer identity (python-jose)
import hashlib
import hmac
import logging
import time
from datetime import UTC, datetime, timedelta
from typing import Iterable, List, Optional, Sequence, Tuple
from urllib.parse import urlencode

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwe, jws, jwt
from jose.exceptions import JOSEError

from tablekit.core.config import settings

log = logging.getLogger(__name__)

SIGNATURE_PARAM = "signature"
EXPIRES_PARAM = "expires"

# Bearer is optional: tables work anonymously, saved views are scoped by "sub"
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)


def _jwt_encode(claims: dict) -> str:
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def _jwt_decode(token: str) -> dict:
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(UTC) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire, "type": "access"})
    return _jwt_encode(to_encode)


def get_current_user_id(token: Optional[str] = Depends(oauth2_scheme)) -> Optional[str]:
    if not token:
        return None
    try:
        payload = _jwt_decode(token)
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if payload.get("type") not in (None, "access"):
        raise HTTPException(status_code=401, detail="Invalid token type")
    sub = payload.get("sub")
    return str(sub) if sub is not None else None


# ----------------------------
# Encrypted state
# ----------------------------
def _encryption_key() -> bytes:
    # A256GCM with "dir" needs exactly 32 bytes
    return hashlib.sha256(settings.SECRET_KEY.encode("utf-8")).digest()


def encrypt_payload(plaintext: bytes) -> str:
    token = jwe.encrypt(plaintext, _encryption_key(), algorithm="dir", encryption="A256GCM")
    return token.decode("ascii") if isinstance(token, bytes) else token


def decrypt_payload(token: str) -> bytes:
    """Raises ``ValueError`` for anything that is not a token we issued."""
    try:
        return jwe.decrypt(token, _encryption_key())
    except (JOSEError, ValueError, TypeError) as exc:
        raise ValueError("Unable to decrypt payload") from exc


# ----------------------------
# Signed URLs
# ----------------------------
def _canonical(path: str, params: Iterable[Tuple[str, str]], ignore: Sequence[str]) -> bytes:
    kept = sorted(
        (k, v)
        for k, v in params
        if k != SIGNATURE_PARAM and k not in ignore and not any(k.startswith(f"{i}[") for i in ignore)
    )
    return f"{path}?{urlencode(kept)}".encode("utf-8")


def _signature(message: bytes) -> str:
    token = jws.sign(message, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    return token.rsplit(".", 1)[-1]


def sign_path(
    path: str,
    params: Optional[List[Tuple[str, str]]] = None,
    ignore: Sequence[str] = (),
    expires_minutes: Optional[int] = None,
) -> str:
    params = list(params or [])
    minutes = settings.SIGNED_URL_TTL_MINUTES if expires_minutes is None else expires_minutes
    if minutes:
        params.append((EXPIRES_PARAM, str(int(time.time()) + minutes * 60)))
    params.append((SIGNATURE_PARAM, _signature(_canonical(path, params, ignore))))
    return f"{path}?{urlencode(params)}"


def has_valid_signature(path: str, params: List[Tuple[str, str]], ignore: Sequence[str] = ()) -> bool:
    provided = next((v for k, v in params if k == SIGNATURE_PARAM), None)
    if not provided:
        return False
    expected = _signature(_canonical(path, params, ignore))
    if not hmac.compare_digest(expected, provided):
        return False
    expires = next((v for k, v in params if k == EXPIRES_PARAM), None)
    return expires is None or (expires.isdigit() and int(expires) >= time.time())


def require_signature(request: Request, ignore: Sequence[str] = ()) -> None:
    from tablekit.tables.exceptions import InvalidSignature  # tables imports this module

    if not has_valid_signature(request.url.path, list(request.query_params.multi_items()), ignore):
        log.warning("Invalid or expired signature for %s", request.url.path)
        raise InvalidSignature()
