"""
Collection access, one repository per entity.

Repositories are built once at startup from the shared database handle and
handed to the resources that need them.
"""

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from bson import ObjectId
from pymongo.database import Database
from pymongo.results import InsertManyResult, InsertOneResult, UpdateResult

import database
import pipelines
from helpers import utc_now

logger = logging.getLogger(__name__)


def stamp(document: dict, id_field: str) -> dict:
    """Assign storage key, domain identifier and timestamps to a new document.

    Already stamped documents are returned untouched.
    """
    if "_id" in document:
        return document
    now = utc_now()
    object_id = ObjectId()
    document["_id"] = object_id
    document[id_field] = str(object_id)
    document["created_at"] = now
    document["updated_at"] = now
    return document


class Repository:
    collection_name: str
    id_field: str
    hidden_fields: tuple = ()

    def __init__(self, db: Database):
        self.collection = database.open_collection(db, self.collection_name)

    @property
    def _projection(self) -> Optional[dict]:
        if not self.hidden_fields:
            return None
        return {field: 0 for field in self.hidden_fields}

    def find_all(self) -> list[dict]:
        return list(self.collection.find({}, self._projection))

    def find_by_id(self, entity_id: str) -> Optional[dict]:
        return self.collection.find_one({self.id_field: entity_id}, self._projection)

    def exists(self, entity_id: str) -> bool:
        return self.collection.count_documents({self.id_field: entity_id}, limit=1) > 0

    def insert(self, document: dict) -> tuple[InsertOneResult, dict]:
        document = stamp(dict(document), self.id_field)
        result = self.collection.insert_one(document)
        logger.info(f"Created {self.collection_name} {document[self.id_field]}")
        return result, document

    def insert_many(self, documents: Iterable[dict]) -> InsertManyResult:
        stamped = [stamp(dict(d), self.id_field) for d in documents]
        result = self.collection.insert_many(stamped)
        logger.info(f"Created {len(stamped)} {self.collection_name} documents")
        return result

    def upsert(self, entity_id: str, fields: dict, defaults: Optional[dict] = None) -> UpdateResult:
        """
        Merge `fields` into the document with the given domain identifier,
        inserting it when missing. `defaults` are written only on insert.
        """
        on_insert = dict(defaults or {}, created_at=utc_now())
        update: dict[str, Any] = {
            "$set": fields,
            "$setOnInsert": {k: v for k, v in on_insert.items() if k not in fields},
        }
        result = self.collection.update_one({self.id_field: entity_id}, update, upsert=True)
        logger.info(
            f"Upserted {self.collection_name} {entity_id} "
            f"(matched={result.matched_count}, upserted={result.upserted_id is not None})"
        )
        return result

    def paginate(self, start_index: int, record_per_page: int) -> dict:
        pipeline = pipelines.paginate(start_index, record_per_page, self.hidden_fields)
        pages = list(self.collection.aggregate(pipeline))
        if not pages:
            # An empty collection yields no bucket at all
            return {"total_count": 0, "data": []}
        return pages[0]


class MenuRepository(Repository):
    collection_name = database.MENU
    id_field = "menu_id"


class FoodRepository(Repository):
    collection_name = database.FOOD
    id_field = "food_id"


class TableRepository(Repository):
    collection_name = database.TABLE
    id_field = "table_id"


class OrderRepository(Repository):
    collection_name = database.ORDER
    id_field = "order_id"


class OrderItemRepository(Repository):
    collection_name = database.ORDER_ITEM
    id_field = "order_item_id"

    def items_by_order(self, order_id: str) -> list[dict]:
        return list(self.collection.aggregate(pipelines.order_items_by_order(order_id)))


class InvoiceRepository(Repository):
    collection_name = database.INVOICE
    id_field = "invoice_id"


class UserRepository(Repository):
    collection_name = database.USER
    id_field = "user_id"
    hidden_fields = ("password", "token", "refresh_token")

    def ensure_indexes(self) -> None:
        """Unique email and phone, so concurrent signups cannot both land."""
        self.collection.create_index("email", unique=True)
        self.collection.create_index("phone", unique=True)

    def find_by_email(self, email: str) -> Optional[dict]:
        """Full user document, password hash included."""
        return self.collection.find_one({"email": email})

    def email_or_phone_taken(self, email: str, phone: str) -> bool:
        return (
            self.collection.count_documents({"email": email}, limit=1) > 0
            or self.collection.count_documents({"phone": phone}, limit=1) > 0
        )

    def update_tokens(self, token: str, refresh_token: str, user_id: str) -> UpdateResult:
        return self.upsert(
            user_id,
            {"token": token, "refresh_token": refresh_token, "updated_at": utc_now()},
        )


@dataclass
class Repositories:
    menus: MenuRepository
    foods: FoodRepository
    tables: TableRepository
    orders: OrderRepository
    order_items: OrderItemRepository
    invoices: InvoiceRepository
    users: UserRepository

    def ensure_indexes(self) -> None:
        self.users.ensure_indexes()


def build_repositories(db: Database) -> Repositories:
    return Repositories(
        menus=MenuRepository(db),
        foods=FoodRepository(db),
        tables=TableRepository(db),
        orders=OrderRepository(db),
        order_items=OrderItemRepository(db),
        invoices=InvoiceRepository(db),
        users=UserRepository(db),
    )
