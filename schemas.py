from pydantic import BaseModel, EmailStr, StrictFloat, StrictInt


# ----------------------------
# Pydantic Models
# ----------------------------
class RegisterRequest(BaseModel):
    username: str
    email: EmailStr
    password: str
    role: str = "user"

class LoginRequest(BaseModel):
    email: str
    password: str

# strict numbers: JSON true or "5" must not pass as a price or quantity
class SweetCreate(BaseModel):
    name: str
    category: str
    price: StrictFloat | StrictInt
    quantity: StrictInt = 0

class SweetUpdate(BaseModel):
    name: str | None = None
    category: str | None = None
    price: StrictFloat | StrictInt | None = None
    quantity: StrictInt | None = None

class RestockRequest(BaseModel):
    amount: StrictInt | None = None

class Identity(BaseModel):
    """Decoded token payload attached to an authenticated request."""
    id: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"
