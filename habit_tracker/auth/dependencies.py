# habit_tracker/auth/dependencies.py
from __future__ import annotations

from typing import Optional

from fastapi import Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from habit_tracker.auth.identity import Identity
from habit_tracker.auth.token_verifier import identity_from_claims, verify_id_token
from habit_tracker.services.errors import Unauthenticated


bearer_scheme = HTTPBearer(auto_error=False)


def _extract_token(request: Request, bearer: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    # Authorization: Bearer <token> 우선, 없으면 헤더 직접 확인
    if bearer and getattr(bearer, "scheme", "").lower() == "bearer":
        return bearer.credentials

    auth = request.headers.get("Authorization")
    if not auth or not auth.startswith("Bearer "):
        return None
    return auth.replace("Bearer ", "", 1).strip() or None


def _resolve(token: str) -> Identity:
    payload = verify_id_token(token)
    if payload is None:
        raise Unauthenticated("Invalid or expired token.")

    identity = identity_from_claims(payload)
    if identity is None:
        raise Unauthenticated("Token has no email or subject.")
    return identity


def get_current_identity(
    request: Request,
    bearer: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
) -> Identity:
    token = _extract_token(request, bearer)
    if token is None:
        raise Unauthenticated("Access denied. No token provided or invalid format.")
    return _resolve(token)


def get_optional_identity(
    request: Request,
    bearer: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
) -> Optional[Identity]:
    """
    공개 라우트용: 토큰이 없으면 None (비로그인 조회)
    토큰을 보냈는데 유효하지 않으면 401
    """
    token = _extract_token(request, bearer)
    if token is None:
        return None
    return _resolve(token)
