"""
Resource handlers.

Each resource class exposes list/get/create/update and binds them onto a
router in `register`. Handlers are plain (sync) functions, FastAPI runs them
in its threadpool next to the shared MongoClient.
"""

import logging
from abc import ABC, abstractmethod
from datetime import timedelta
from typing import List, Optional

from fastapi import APIRouter, Query
from pymongo.errors import DuplicateKeyError, PyMongoError
from pymongo.results import InsertOneResult, UpdateResult

from database import to_json
from errors import BadRequest, Conflict, InternalError, NotFound, Unauthorized
from helpers import page_bounds, to_fixed, utc_now, window_contains
from repositories import Repositories, Repository, stamp
from schemas import (
    DEFAULT_PAYMENT_STATUS,
    FoodCreate,
    FoodPatch,
    InvoiceCreate,
    InvoicePatch,
    InvoiceView,
    Login,
    MenuCreate,
    MenuPatch,
    OrderCreate,
    OrderItemPack,
    OrderItemPatch,
    OrderPatch,
    SignUp,
    TableCreate,
    TablePatch,
    patch_fields,
)
from security import TokenService, get_password_hash, verify_password

logger = logging.getLogger(__name__)


def insert_response(result: InsertOneResult) -> dict:
    return {"inserted_id": str(result.inserted_id)}


def update_response(result: UpdateResult) -> dict:
    return to_json({
        "matched_count": result.matched_count,
        "modified_count": result.modified_count,
        "upserted_id": result.upserted_id,
    })


class Resource(ABC):
    """One collection exposed as GET/POST on `prefix` and GET/PATCH on `prefix/{id}`."""

    prefix: str
    id_param: str
    label: str

    def __init__(self, repository: Repository):
        self.repository = repository

    @abstractmethod
    def list(self, *args, **kwargs):
        ...

    @abstractmethod
    def get(self, *args, **kwargs):
        ...

    @abstractmethod
    def create(self, *args, **kwargs):
        ...

    @abstractmethod
    def update(self, *args, **kwargs):
        ...

    def register(self, router: APIRouter) -> None:
        item_path = f"{self.prefix}/{{{self.id_param}}}"
        router.add_api_route(self.prefix, self.list, methods=["GET"])
        router.add_api_route(item_path, self.get, methods=["GET"])
        router.add_api_route(self.prefix, self.create, methods=["POST"])
        router.add_api_route(item_path, self.update, methods=["PATCH"])

    def _fetch(self, entity_id: str) -> dict:
        document = self.repository.find_by_id(entity_id)
        if document is None:
            raise NotFound(f"{self.label} was not found")
        return document

    def _list_all(self) -> List[dict]:
        try:
            return to_json(self.repository.find_all())
        except PyMongoError as exc:
            raise InternalError(f"error occurred while listing {self.label} items - {exc}")

    def _insert(self, document: dict) -> dict:
        try:
            result, _ = self.repository.insert(document)
        except PyMongoError as exc:
            raise InternalError(f"{self.label} item was not created - {exc}")
        return insert_response(result)

    def _upsert(self, entity_id: str, fields: dict, defaults: Optional[dict] = None) -> dict:
        try:
            result = self.repository.upsert(entity_id, fields, defaults)
        except PyMongoError as exc:
            raise InternalError(f"{self.label.capitalize()} update failed - {exc}")
        return update_response(result)


class MenuResource(Resource):
    prefix = "/menus"
    id_param = "menu_id"
    label = "menu"

    def list(self):
        return self._list_all()

    def get(self, menu_id: str):
        return to_json(self._fetch(menu_id))

    def create(self, body: MenuCreate):
        return self._insert(body.model_dump())

    def update(self, menu_id: str, body: MenuPatch):
        if (body.start_date is None) != (body.end_date is None):
            raise BadRequest("start_date and end_date must be supplied together")
        if body.start_date is not None and not window_contains(
            body.start_date, body.end_date, utc_now()
        ):
            raise BadRequest("kindly retype the time")
        return self._upsert(menu_id, patch_fields(body))


class FoodResource(Resource):
    prefix = "/foods"
    id_param = "food_id"
    label = "food"

    def __init__(self, repositories: Repositories):
        super().__init__(repositories.foods)
        self.menus = repositories.menus

    def _check_menu(self, menu_id: str) -> None:
        if not self.menus.exists(menu_id):
            raise NotFound("menu was not found")

    def list(
        self,
        record_per_page: Optional[str] = Query(None, alias="recordPerPage"),
        page: Optional[str] = Query(None),
    ):
        start_index, per_page = page_bounds(record_per_page, page)
        try:
            return to_json(self.repository.paginate(start_index, per_page))
        except PyMongoError as exc:
            raise InternalError(f"Can't get listing food items - {exc}")

    def get(self, food_id: str):
        return to_json(self._fetch(food_id))

    def create(self, body: FoodCreate):
        self._check_menu(body.menu_id)
        document = body.model_dump()
        document["price"] = to_fixed(body.price, 2)
        return self._insert(document)

    def update(self, food_id: str, body: FoodPatch):
        fields = patch_fields(body)
        if body.menu_id is not None:
            self._check_menu(body.menu_id)
        if body.price is not None:
            fields["price"] = to_fixed(body.price, 2)
        return self._upsert(food_id, fields)


class TableResource(Resource):
    prefix = "/tables"
    id_param = "table_id"
    label = "table"

    def list(self):
        return self._list_all()

    def get(self, table_id: str):
        return to_json(self._fetch(table_id))

    def create(self, body: TableCreate):
        return self._insert(body.model_dump())

    def update(self, table_id: str, body: TablePatch):
        return self._upsert(table_id, patch_fields(body))


class OrderResource(Resource):
    prefix = "/orders"
    id_param = "order_id"
    label = "order"

    def __init__(self, repositories: Repositories):
        super().__init__(repositories.orders)
        self.tables = repositories.tables

    def _check_table(self, table_id: Optional[str]) -> None:
        if table_id is not None and not self.tables.exists(table_id):
            raise NotFound("table was not found")

    def list(self):
        return self._list_all()

    def get(self, order_id: str):
        return to_json(self._fetch(order_id))

    def create(self, body: OrderCreate):
        self._check_table(body.table_id)
        return self._insert(body.model_dump())

    def update(self, order_id: str, body: OrderPatch):
        self._check_table(body.table_id)
        return self._upsert(order_id, patch_fields(body))


class OrderItemResource(Resource):
    prefix = "/orderItems"
    id_param = "order_item_id"
    label = "order item"

    def __init__(self, repositories: Repositories):
        super().__init__(repositories.order_items)
        self.orders = repositories.orders
        self.tables = repositories.tables

    def register(self, router: APIRouter) -> None:
        router.add_api_route(f"{self.prefix}/order/{{order_id}}", self.by_order, methods=["GET"])
        super().register(router)

    def list(self):
        return self._list_all()

    def get(self, order_item_id: str):
        return to_json(self._fetch(order_item_id))

    def by_order(self, order_id: str):
        try:
            return to_json(self.repository.items_by_order(order_id))
        except PyMongoError as exc:
            raise InternalError(f"error occurred while listing order items by order id - {exc}")

    def create(self, body: OrderItemPack):
        if body.table_id is not None and not self.tables.exists(body.table_id):
            raise NotFound("table was not found")

        try:
            _, order = self.orders.insert({"order_date": utc_now(), "table_id": body.table_id})
            order_id = order["order_id"]
            result = self.repository.insert_many(
                {
                    "quantity": item.quantity,
                    "unit_price": to_fixed(item.unit_price, 2),
                    "food_id": item.food_id,
                    "order_id": order_id,
                }
                for item in body.order_items
            )
        except PyMongoError as exc:
            raise InternalError(f"Insert list order items failed - {exc}")

        return {"order_id": order_id, "inserted_ids": [str(i) for i in result.inserted_ids]}

    def update(self, order_item_id: str, body: OrderItemPatch):
        fields = patch_fields(body)
        if body.unit_price is not None:
            fields["unit_price"] = to_fixed(body.unit_price, 2)
        return self._upsert(order_item_id, fields)


class InvoiceResource(Resource):
    prefix = "/invoices"
    id_param = "invoice_id"
    label = "invoice"

    def __init__(self, repositories: Repositories):
        super().__init__(repositories.invoices)
        self.orders = repositories.orders
        self.order_items = repositories.order_items

    def list(self):
        return self._list_all()

    def get(self, invoice_id: str):
        invoice = self._fetch(invoice_id)
        try:
            groups = self.order_items.items_by_order(invoice["order_id"])
        except PyMongoError as exc:
            raise InternalError(f"error occurred while listing order items by order id - {exc}")

        view = InvoiceView(
            invoice_id=invoice["invoice_id"],
            order_id=invoice["order_id"],
            payment_method=invoice.get("payment_method"),
            payment_status=invoice.get("payment_status"),
            payment_due_date=invoice.get("payment_due_date"),
        )
        if groups:
            summary = groups[0]
            view.payment_due = summary.get("payment_due") or 0
            view.table_number = summary.get("table_number")
            view.order_details = summary.get("order_items", 0)
        return to_json(view)

    def create(self, body: InvoiceCreate):
        order = self.orders.find_by_id(body.order_id)
        if order is None:
            raise NotFound("order not found")

        document = body.model_dump()
        document["payment_due_date"] = (order.get("order_date") or utc_now()) + timedelta(days=1)
        return self._insert(document)

    def update(self, invoice_id: str, body: InvoicePatch):
        return self._upsert(
            invoice_id,
            patch_fields(body),
            defaults={"payment_status": DEFAULT_PAYMENT_STATUS},
        )


class UserResource:
    """Public user endpoints: listing, lookup, signup and login."""

    prefix = "/users"

    def __init__(self, repositories: Repositories, token_service: TokenService):
        self.users = repositories.users
        self.token_service = token_service

    def register(self, router: APIRouter) -> None:
        router.add_api_route(self.prefix, self.list, methods=["GET"])
        router.add_api_route(f"{self.prefix}/signup", self.signup, methods=["POST"])
        router.add_api_route(f"{self.prefix}/login", self.login, methods=["POST"])
        router.add_api_route(f"{self.prefix}/{{user_id}}", self.get, methods=["GET"])

    def list(
        self,
        record_per_page: Optional[str] = Query(None, alias="recordPerPage"),
        page: Optional[str] = Query(None),
    ):
        start_index, per_page = page_bounds(record_per_page, page)
        try:
            return to_json(self.users.paginate(start_index, per_page))
        except PyMongoError as exc:
            raise InternalError(f"Can't get listing user items - {exc}")

    def get(self, user_id: str):
        user = self.users.find_by_id(user_id)
        if user is None:
            raise NotFound("user was not found")
        return to_json(user)

    def signup(self, body: SignUp):
        try:
            taken = self.users.email_or_phone_taken(body.email, body.phone)
        except PyMongoError as exc:
            raise InternalError(f"error occurred while checking for the email or phone - {exc}")
        if taken:
            raise Conflict("this email or phone already exists")

        user = stamp(body.model_dump(), self.users.id_field)
        user["password"] = get_password_hash(body.password)
        user["token"], user["refresh_token"] = self.token_service.generate_all_tokens(
            user["email"], user["first_name"], user["last_name"], user["user_id"]
        )
        try:
            result, _ = self.users.insert(user)
        except DuplicateKeyError:
            raise Conflict("this email or phone already exists")
        except PyMongoError as exc:
            raise InternalError(f"User item was not created - {exc}")
        return insert_response(result)

    def login(self, body: Login):
        found = self.users.find_by_email(body.email)
        if found is None:
            raise NotFound("user not found, login seems to be incorrect")
        if not verify_password(body.password, found["password"]):
            logger.info(f"Failed login for {body.email}")
            raise Unauthorized("login or password is incorrect")

        token, refresh_token = self.token_service.generate_all_tokens(
            found["email"], found["first_name"], found["last_name"], found["user_id"]
        )
        self.users.update_tokens(token, refresh_token, found["user_id"])

        found.pop("password", None)
        found["token"] = token
        found["refresh_token"] = refresh_token
        return to_json(found)
