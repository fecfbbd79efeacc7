import logging
from typing import Optional

from itsdangerous import BadSignature, URLSafeTimedSerializer
from passlib.context import CryptContext

from config import get_settings


logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    return pwd_context.verify(password, hashed)


def _serializer() -> URLSafeTimedSerializer:
    settings = get_settings()
    return URLSafeTimedSerializer(settings.identity_secret, salt="identity-token")


def issue_identity_token(user_id: str) -> str:
    """Seal a user id into a bearer token.

    Tokens are minted by the auth component sharing ``identity_secret``;
    this API only reads them.
    """
    return _serializer().dumps({"sub": user_id})


def read_identity_token(token: str) -> Optional[str]:
    settings = get_settings()
    try:
        data = _serializer().loads(
            token, max_age=settings.identity_max_age_hours * 3600
        )
    except BadSignature:
        logger.info("identity_rejected: reason=bad_signature")
        return None

    user_id = data.get("sub") if isinstance(data, dict) else None
    if not isinstance(user_id, str) or not user_id:
        logger.info("identity_rejected: reason=missing_subject")
        return None
    return user_id
