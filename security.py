import datetime

import jwt
from werkzeug.security import check_password_hash, generate_password_hash

from config import Settings
from errors import InvalidToken
from schemas import Identity


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password_hash: str, password: str) -> bool:
    return check_password_hash(password_hash, password)


def create_access_token(identity: Identity, settings: Settings) -> str:
    # the token is the whole session: identity and expiry travel inside it, signed
    now = datetime.datetime.now(datetime.timezone.utc)
    token_data = {
        "id": identity.id,
        "role": identity.role,
        "iat": now,
        "exp": now + datetime.timedelta(minutes=settings.access_token_expire_minutes),
    }
    return jwt.encode(token_data, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, settings: Settings) -> Identity:
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        raise InvalidToken("Token has expired.")
    except jwt.InvalidTokenError:
        raise InvalidToken()

    if not payload.get("id") or payload.get("role") is None:
        raise InvalidToken()
    return Identity(id=payload["id"], role=payload["role"])
