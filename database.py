"""
MongoDB access for the catalog/order service.

``CatalogStore`` wraps one shared ``MongoClient`` and exposes a method per
operation the API needs.  Every method targets a named collection; there is
no generic collection access.  Driver errors (``PyMongoError``) propagate to
the caller, which decides how to report them.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Iterable, List, Tuple

from pymongo import ASCENDING, DESCENDING, MongoClient

from schemas import AvailabilityItem

log = logging.getLogger(__name__)

PRODUCTS = "Products"
ORDERS = "Orders"

SEARCH_FIELDS = ("title", "description", "location")


def build_search_query(search: str) -> dict:
    """Case-insensitive substring match on any of ``SEARCH_FIELDS``.

    An empty search string matches every document.  The term is escaped so
    it is matched literally, not as a pattern.
    """
    if not search:
        return {}
    pattern = re.escape(search)
    return {"$or": [{f: {"$regex": pattern, "$options": "i"}} for f in SEARCH_FIELDS]}


class CatalogStore:
    def __init__(self, client: MongoClient, database_name: str):
        self.client = client
        self.db = client[database_name]

    def connect(self) -> None:
        """Block until the server answers; raises if it cannot be reached."""
        info = self.client.server_info()
        log.info("Connected to MongoDB %s, database %r", info.get("version", "?"), self.db.name)

    def ping(self) -> None:
        self.client.server_info()

    # ---------- Products ----------

    def find_products(self, search: str = "", sort_key: str = "title", descending: bool = False) -> List[dict]:
        query = build_search_query(search)
        direction = DESCENDING if descending else ASCENDING
        return list(self.db[PRODUCTS].find(query).sort(sort_key, direction))

    def delete_product_by_title(self, title: str) -> bool:
        result = self.db[PRODUCTS].delete_one({"title": title})
        return result.deleted_count > 0

    def decrement_availability(self, items: Iterable[AvailabilityItem]) -> Tuple[int, List[str]]:
        """Decrement ``availableInventory`` for each item, one update per item.

        Not transactional: if an update raises, earlier items stay applied.
        No floor is enforced, so inventory can go below zero.

        Returns the number of matched products and the titles that matched
        nothing.
        """
        matched = 0
        unmatched: List[str] = []
        for item in items:
            result = self.db[PRODUCTS].update_one(
                {"title": item.title},
                {"$inc": {"availableInventory": -item.quantity}},
            )
            if result.matched_count == 0:
                log.warning('Product with title "%s" not found', item.title)
                unmatched.append(item.title)
            else:
                matched += 1
        return matched, unmatched

    # ---------- Orders ----------

    def create_order(self, data: dict) -> str:
        """Insert an order stamped with ``createdAt``; returns the new id as a string."""
        document = dict(data)
        document["createdAt"] = datetime.now(timezone.utc)
        result = self.db[ORDERS].insert_one(document)
        return str(result.inserted_id)
