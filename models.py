# ----------------------------
# MongoDB Setup
# ----------------------------

import math

from bson import ObjectId
from pymongo import ASCENDING, MongoClient
from pymongo.collection import Collection

from errors import ValidationError

ROLES = ("user", "admin")
INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1

def get_mongo_collections(client: MongoClient, database_name: str) -> tuple[Collection, Collection]:
    """Return the (users, sweets) collections, creating their indexes."""
    db = client[database_name]
    users = db["users"]  # user collection
    sweets = db["sweets"]  # inventory collection

    # MongoDB skips index creation if the index already exists
    users.create_index([("email", ASCENDING)], unique=True)
    sweets.create_index([("name", ASCENDING)])
    sweets.create_index([("category", ASCENDING)])

    return users, sweets

def parse_object_id(value: str) -> ObjectId | None:
    # ids that can't be ObjectIds can't match any document
    if not ObjectId.is_valid(value):
        return None
    return ObjectId(value)

# ----------------------------
# Validation (run before every write)
# ----------------------------

def _is_number(value) -> bool:
    # bool is an int subclass, but True is not a price
    return isinstance(value, (int, float)) and not isinstance(value, bool)

def _fits_bson(value) -> bool:
    # inf/nan can't be rendered as JSON, ints past int64 can't be encoded by bson
    if isinstance(value, float):
        return math.isfinite(value)
    return INT64_MIN <= value <= INT64_MAX

def _is_nonempty_string(value) -> bool:
    return isinstance(value, str) and value.strip() != ""

def validate_sweet(data: dict, partial: bool = False) -> dict:
    """Check sweet fields and return the cleaned document.

    With ``partial=True`` only the fields present in ``data`` are checked,
    which is what updates need. Unknown fields are dropped. Raises
    ValidationError naming every failing field.
    """
    errors = {}
    cleaned = {}

    for field in ("name", "category"):
        if field not in data:
            if not partial:
                errors[field] = "is required"
            continue
        if not _is_nonempty_string(data[field]):
            errors[field] = "must be a non-empty string"
        else:
            cleaned[field] = data[field].strip()

    if "price" in data:
        price = data["price"]
        if not _is_number(price) or not _fits_bson(price):
            errors["price"] = "must be a finite number"
        elif price < 0:
            errors["price"] = "must be greater than or equal to 0"
        else:
            cleaned["price"] = price
    elif not partial:
        errors["price"] = "is required"

    if "quantity" in data:
        quantity = data["quantity"]
        if isinstance(quantity, float) and quantity.is_integer():
            quantity = int(quantity)
        if not isinstance(quantity, int) or isinstance(quantity, bool):
            errors["quantity"] = "must be an integer"
        elif quantity < 0:
            errors["quantity"] = "must be greater than or equal to 0"
        elif quantity > INT64_MAX:
            errors["quantity"] = f"must be at most {INT64_MAX}"
        else:
            cleaned["quantity"] = quantity
    elif not partial:
        cleaned["quantity"] = 0

    if errors:
        raise ValidationError(errors)
    return cleaned

def validate_user(data: dict) -> dict:
    errors = {}
    for field in ("username", "email", "password"):
        if not _is_nonempty_string(data.get(field)):
            errors[field] = "is required"

    role = data.get("role") or "user"
    if role not in ROLES:
        errors["role"] = "must be one of: " + ", ".join(ROLES)

    if errors:
        raise ValidationError(errors)

    return {
        "username": data["username"].strip(),
        "email": data["email"].strip().lower(),
        "password": data["password"],
        "role": role,
    }

# ----------------------------
# Serialization
# ----------------------------

def serialize_sweet(doc: dict) -> dict:
    return {
        "id": str(doc["_id"]),  # convert ObjectId to string
        "name": doc["name"],
        "category": doc["category"],
        "price": doc["price"],
        "quantity": doc.get("quantity", 0),
    }

"""

Terminal code MongoDB:
mongosh
    use SweetShop
    db.sweets.find()
    db.users.getIndexes()
exit

"""
