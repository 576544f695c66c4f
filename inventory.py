import logging
import re

from pymongo import ReturnDocument
from pymongo.collection import Collection

from errors import InvalidAmount, NotFound, OutOfStock
from models import INT64_MAX, parse_object_id, serialize_sweet, validate_sweet

logger = logging.getLogger(__name__)


class InventoryService:
    """CRUD, search and stock changes over the sweets collection."""

    def __init__(self, sweets: Collection):
        self.sweets = sweets

    def _object_id(self, sweet_id: str):
        oid = parse_object_id(sweet_id)
        if oid is None:
            raise NotFound()
        return oid

    # ----------------------------
    # Reads
    # ----------------------------

    def list_all(self) -> list[dict]:
        return [serialize_sweet(doc) for doc in self.sweets.find()]

    def search(self, name: str | None = None, category: str | None = None,
               min_price: float | None = None, max_price: float | None = None) -> list[dict]:
        query = {}
        if name:
            # partial, case-insensitive match; the user's text is matched literally
            query["name"] = {"$regex": re.escape(name), "$options": "i"}
        if category:
            query["category"] = category
        if min_price is not None or max_price is not None:
            query["price"] = {}
            if min_price is not None:
                query["price"]["$gte"] = min_price
            if max_price is not None:
                query["price"]["$lte"] = max_price

        return [serialize_sweet(doc) for doc in self.sweets.find(query)]

    def get(self, sweet_id: str) -> dict:
        doc = self.sweets.find_one({"_id": self._object_id(sweet_id)})
        if not doc:
            raise NotFound()
        return serialize_sweet(doc)

    # ----------------------------
    # Admin writes
    # ----------------------------

    def add(self, fields: dict) -> dict:
        new_sweet = validate_sweet(fields)
        result = self.sweets.insert_one(new_sweet)
        new_sweet["_id"] = result.inserted_id
        logger.info("Added sweet %s (%s)", new_sweet["name"], result.inserted_id)
        return serialize_sweet(new_sweet)

    def update(self, sweet_id: str, fields: dict) -> dict:
        oid = self._object_id(sweet_id)
        update_data = validate_sweet(fields, partial=True)

        if not update_data:
            return self.get(sweet_id)

        doc = self.sweets.find_one_and_update(
            {"_id": oid},
            {"$set": update_data},
            return_document=ReturnDocument.AFTER,
        )
        if not doc:
            raise NotFound()
        logger.info("Updated sweet %s: %s", sweet_id, sorted(update_data))
        return serialize_sweet(doc)

    def remove(self, sweet_id: str) -> dict:
        result = self.sweets.delete_one({"_id": self._object_id(sweet_id)})
        if result.deleted_count == 0:
            raise NotFound()
        logger.info("Deleted sweet %s", sweet_id)
        return {"message": "Sweet deleted successfully"}

    # ----------------------------
    # Stock changes
    # ----------------------------

    def purchase(self, sweet_id: str) -> dict:
        oid = self._object_id(sweet_id)

        # the quantity filter makes check-and-decrement a single atomic write,
        # so concurrent purchases can't take stock below zero
        doc = self.sweets.find_one_and_update(
            {"_id": oid, "quantity": {"$gte": 1}},
            {"$inc": {"quantity": -1}},
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            if self.sweets.find_one({"_id": oid}) is None:
                raise NotFound()
            logger.info("Purchase rejected, sweet %s is out of stock", sweet_id)
            raise OutOfStock()

        logger.info("Purchased sweet %s, %d left", sweet_id, doc["quantity"])
        return {"message": "Purchase successful", "currentStock": doc["quantity"]}

    def restock(self, sweet_id: str, amount) -> dict:
        if not isinstance(amount, int) or isinstance(amount, bool) or not 0 < amount <= INT64_MAX:
            raise InvalidAmount()
        oid = self._object_id(sweet_id)

        # the quantity filter keeps the new total inside bson's int64 range
        doc = self.sweets.find_one_and_update(
            {"_id": oid, "quantity": {"$lte": INT64_MAX - amount}},
            {"$inc": {"quantity": amount}},
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            if self.sweets.find_one({"_id": oid}) is None:
                raise NotFound()
            raise InvalidAmount("Restock amount exceeds the maximum stock level")

        logger.info("Restocked sweet %s by %d, now %d", sweet_id, amount, doc["quantity"])
        return {"message": "Restock successful", "currentStock": doc["quantity"]}
