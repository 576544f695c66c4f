import logging

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError

from config import Settings
from errors import Conflict, Forbidden, Unauthorized
from models import validate_user
from schemas import Identity
from security import create_access_token, decode_access_token, hash_password, verify_password

logger = logging.getLogger(__name__)

# auto_error=False so a missing header reaches authenticate() and gets our 401 body
bearer_scheme = HTTPBearer(auto_error=False)


# ------------------------------------------------------------
# User registration and login
# ------------------------------------------------------------

class AuthService:
    def __init__(self, users: Collection, settings: Settings):
        self.users = users
        self.settings = settings

    def register(self, username: str, email: str, password: str, role: str | None = None) -> dict:
        data = validate_user({"username": username, "email": email, "password": password, "role": role})

        # Check if email already exists
        if self.users.find_one({"email": data["email"]}):
            raise Conflict("Email already exists")

        user_doc = {
            "username": data["username"],
            "email": data["email"],
            "password_hash": hash_password(data["password"]),
            "role": data["role"],
        }
        try:
            self.users.insert_one(user_doc)
        except DuplicateKeyError:
            # lost a race with another registration; the unique index caught it
            raise Conflict("Email already exists")

        logger.info("Registered %s user %s", data["role"], data["email"])
        return {"message": "User registered successfully"}

    def login(self, email: str, password: str) -> dict:
        user = self.users.find_one({"email": email.strip().lower()})

        # check if password is correct
        if not user or not verify_password(user["password_hash"], password):
            logger.info("Failed login for %s", email)
            raise Unauthorized("Invalid credentials")

        identity = Identity(id=str(user["_id"]), role=user["role"])
        return {"token": create_access_token(identity, self.settings)}


# ------------------------------------------------------------
# Auth gate (FastAPI dependencies)
# ------------------------------------------------------------

def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def authenticate(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Identity:
    """Verify the bearer token and attach the caller's identity to the request."""
    if credentials is None or not credentials.credentials:
        raise Unauthorized()

    identity = decode_access_token(credentials.credentials, request.app.state.settings)
    request.state.identity = identity
    return identity


def require_admin(identity: Identity = Depends(authenticate)) -> Identity:
    if not identity.is_admin:
        raise Forbidden()
    return identity
