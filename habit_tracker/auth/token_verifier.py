# habit_tracker/auth/token_verifier.py
import json
import logging
import time
from typing import Optional

import jwt
import requests
from jwt.algorithms import RSAAlgorithm

from habit_tracker.config.settings import settings
from habit_tracker.auth.identity import Identity

logger = logging.getLogger(__name__)

JWKS_TTL_SECONDS = 60 * 60  # 1시간 캐싱

jwks_cache = {
    "keys": None,
    "expires_at": 0,
}


def get_jwks(force_refresh: bool = False) -> dict:
    now = time.time()

    if not force_refresh and jwks_cache["keys"] and now < jwks_cache["expires_at"]:
        return jwks_cache["keys"]

    res = requests.get(settings.firebase_jwks_url, timeout=10)
    res.raise_for_status()
    res_json = res.json()

    keys = {k["kid"]: k for k in res_json["keys"]}

    jwks_cache["keys"] = keys
    jwks_cache["expires_at"] = now + JWKS_TTL_SECONDS
    return keys


def public_key_for(token: str):
    headers = jwt.get_unverified_header(token)
    kid = headers.get("kid")
    key = get_jwks().get(kid)
    if not key:
        # 구글 키 교체 직후일 수 있으니 캐시 무시하고 한 번만 다시 받아봄
        key = get_jwks(force_refresh=True).get(kid)
    if not key:
        return None
    return RSAAlgorithm.from_jwk(json.dumps(key))


def verify_id_token(token: str) -> Optional[dict]:
    """
    Firebase ID 토큰 검증
    - RS256 서명 / exp
    - iss == https://securetoken.google.com/<project_id>
    - aud == <project_id>
    실패하면 None
    """
    project_id = settings.firebase_project_id
    if not project_id:
        logger.warning("FIREBASE_PROJECT_ID is not set; rejecting token")
        return None

    try:
        public_key = public_key_for(token)
        if public_key is None:
            logger.warning("no matching JWKS key for token")
            return None
        return jwt.decode(
            token,
            public_key,
            algorithms=["RS256"],
            audience=project_id,
            issuer=f"https://securetoken.google.com/{project_id}",
        )
    except (jwt.PyJWTError, requests.RequestException) as e:
        logger.warning("id_token verification failed: %s", e.__class__.__name__)
        return None


def identity_from_claims(payload: dict) -> Optional[Identity]:
    email = payload.get("email")
    subject = payload.get("sub") or payload.get("user_id")
    if not email or not subject:
        return None

    # name 클레임이 없으면 이메일 앞부분을 표시 이름으로 사용
    name = payload.get("name") or email.split("@")[0]
    return Identity(email=email, display_name=name, subject_id=subject)
