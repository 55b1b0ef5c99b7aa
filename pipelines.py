"""
Aggregation pipelines.

The invoice view is built by one `$lookup` pipeline rather than a query per
order item.
"""

from typing import Iterable

from database import FOOD, ORDER, TABLE


def _join(collection: str, local_field: str, foreign_field: str, as_field: str) -> list[dict]:
    """Left join: `$lookup` followed by an `$unwind` that keeps unmatched rows."""
    return [
        {
            "$lookup": {
                "from": collection,
                "localField": local_field,
                "foreignField": foreign_field,
                "as": as_field,
            }
        },
        {"$unwind": {"path": f"${as_field}", "preserveNullAndEmptyArrays": True}},
    ]


def order_items_by_order(order_id: str) -> list[dict]:
    """
    Group the items of one order into invoice-ready totals.

    Each output document holds `payment_due` (sum of food prices),
    `total_count`, `order_items` and `table_number`, one per distinct
    (order, table) pair.
    """
    return [
        {"$match": {"order_id": order_id}},
        *_join(FOOD, "food_id", "food_id", "food"),
        *_join(ORDER, "order_id", "order_id", "order"),
        *_join(TABLE, "order.table_id", "table_id", "table"),
        {
            "$project": {
                "_id": 0,
                "amount": "$food.price",
                "food_name": "$food.name",
                "food_image": "$food.food_image",
                "table_number": "$table.table_number",
                "table_id": "$table.table_id",
                "order_id": "$order.order_id",
                "price": "$food.price",
                "quantity": 1,
            }
        },
        {
            "$group": {
                "_id": {
                    "order_id": "$order_id",
                    "table_id": "$table_id",
                    "table_number": "$table_number",
                },
                "payment_due": {"$sum": "$amount"},
                "total_count": {"$sum": 1},
                "order_items": {"$sum": 1},
            }
        },
        {
            "$project": {
                "_id": 0,
                "payment_due": 1,
                "total_count": 1,
                "table_number": "$_id.table_number",
                "order_items": 1,
            }
        },
    ]


def paginate(start_index: int, record_per_page: int, hidden: Iterable[str] = ()) -> list[dict]:
    """Collect every document into one bucket and slice a page out of it."""
    pipeline: list[dict] = [{"$match": {}}]
    hidden = list(hidden)
    if hidden:
        pipeline.append({"$project": {field: 0 for field in hidden}})
    pipeline += [
        {
            "$group": {
                "_id": None,
                "total_count": {"$sum": 1},
                "data": {"$push": "$$ROOT"},
            }
        },
        {
            "$project": {
                "_id": 0,
                "total_count": 1,
                "data": {"$slice": ["$data", start_index, record_per_page]},
            }
        },
    ]
    return pipeline
