"""MongoDB repositories for tax profiles, closed orders and invoice counters."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Dict, List, Optional

from pymongo import MongoClient, ReturnDocument

from ..utils.config import Config
from ..utils.logging import get_logger
from .exceptions import ProfileNotFoundError
from .models import TaxProfile

logger = get_logger(__name__)


class MongoRepository:
    """Shared connection handling; subclasses name their collection key."""

    collection_key = ""

    def __init__(
        self,
        url: Optional[str] = None,
        db_name: Optional[str] = None,
        collection: Optional[str] = None,
        config: Optional[Config] = None,
    ) -> None:
        config = config or Config(".env")
        self._config = config
        self._url = url or config.get("mongo_url")
        self._db = db_name or config.get("mongo_db")
        self._collection = collection or config.get(self.collection_key)
        self._timeout_ms = config.get("server_selection_timeout_ms", 5000)
        if not self._url:
            raise ValueError("DB_CONNECTION_URL is required")
        self._client: Optional[MongoClient] = None

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.disconnect()

    def connect(self) -> None:
        if self._client is None:
            self._client = MongoClient(self._url, serverSelectionTimeoutMS=self._timeout_ms)

    def disconnect(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    @property
    def collection(self):
        if self._client is None:
            self.connect()
        return self._client[self._db][self._collection]


class TaxProfileRepository(MongoRepository):
    """Read-only access to tax profiles; the engine never writes them."""

    collection_key = "profile_collection"

    def get_profile_document(self, profile_id: str) -> Optional[Dict[str, Any]]:
        return self.collection.find_one({"_id": profile_id})

    def get_active_profile(self) -> TaxProfile:
        profile_id = self._config.get("active_profile_id", "active")
        doc = self.get_profile_document(profile_id)
        if not doc:
            raise ProfileNotFoundError(f"Tax profile {profile_id!r} not found")
        logger.info(f"Loaded tax profile {profile_id!r}")
        return TaxProfile.from_dict(doc)

    def list_profiles(self) -> List[Dict[str, Any]]:
        """All profile documents, active ones first."""
        docs = list(self.collection.find({}))
        return sorted(docs, key=lambda d: 0 if d.get("active") else 1)


def _day_bounds(start: Optional[date], end: Optional[date]):
    """Inclusive start day to exclusive day after ``end``, in UTC."""
    start_dt = datetime.combine(start, time.min, tzinfo=timezone.utc) if start else None
    end_dt = (
        datetime.combine(end + timedelta(days=1), time.min, tzinfo=timezone.utc) if end else None
    )
    return start_dt, end_dt


class OrderRepository(MongoRepository):
    collection_key = "orders_collection"

    def get_order(self, order_id: str) -> Optional[Dict[str, Any]]:
        return self.collection.find_one({"_id": order_id})

    def set_invoice_number(
        self, order_id: str, invoice_number: str, series: Optional[str], issued_at: datetime
    ) -> bool:
        """Write invoice fields unless the order already has a number."""
        result = self.collection.update_one(
            {"_id": order_id, "invoiceNumber": {"$in": [None, ""]}},
            {
                "$set": {
                    "invoiceNumber": invoice_number,
                    "invoiceSeries": series,
                    "invoiceIssuedAt": issued_at,
                }
            },
        )
        return result.modified_count == 1

    def find_closed_orders(
        self,
        start: Optional[date] = None,
        end: Optional[date] = None,
        order_type: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Closed orders created within ``[start, end]`` (whole days, UTC).

        Args:
            start: First day included
            end: Last day included
            order_type: Restrict to one order type

        Returns:
            Order documents with ``id`` set from ``_id``
        """
        query: Dict[str, Any] = {"status": "closed"}
        start_dt, end_dt = _day_bounds(start, end)
        created: Dict[str, Any] = {}
        if start_dt:
            created["$gte"] = start_dt
        if end_dt:
            created["$lt"] = end_dt
        if created:
            query["createdAt"] = created
        if order_type:
            query["orderType"] = order_type

        orders = []
        for doc in self.collection.find(query):
            doc["id"] = str(doc.get("_id", ""))
            orders.append(doc)
        logger.info(f"Fetched {len(orders)} closed order(s)")
        return orders


class InvoiceCounterRepository(MongoRepository):
    collection_key = "invoice_counter_collection"

    def next_sequence(self, key: str) -> int:
        """Atomically increment and return the counter for ``key``."""
        doc = self.collection.find_one_and_update(
            {"_id": key},
            {"$inc": {"seq": 1}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return int(doc["seq"])
