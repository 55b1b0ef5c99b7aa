from datetime import datetime, timezone


class TestTables:
    def test_create_and_list(self, api, make_table):
        table_id = make_table(table_number=3, number_of_guests=2)
        tables = api.get("/tables").json()
        assert [t["table_id"] for t in tables] == [table_id]
        assert tables[0]["number_of_guests"] == 2

    def test_create_requires_fields(self, api):
        response = api.post("/tables", json={"table_number": 3})
        assert response.status_code == 400

    def test_update_leaves_other_fields(self, api, db, make_table):
        table_id = make_table(table_number=3, number_of_guests=2)

        response = api.patch(f"/tables/{table_id}", json={"number_of_guests": 6})
        assert response.status_code == 200
        assert response.json()["upserted_id"] is None

        stored = db["table"].find_one({"table_id": table_id})
        assert stored["number_of_guests"] == 6
        assert stored["table_number"] == 3

    def test_get_unknown(self, api):
        assert api.get("/tables/nope").status_code == 404


class TestOrders:
    def test_create_without_table(self, api, db):
        response = api.post("/orders", json={})
        assert response.status_code == 200
        order_id = response.json()["inserted_id"]

        stored = db["order"].find_one({"order_id": order_id})
        assert stored["table_id"] is None
        assert stored["order_date"] is not None

    def test_create_on_table(self, api, make_table):
        table_id = make_table()
        order_date = datetime(2026, 10, 19, 18, 30, tzinfo=timezone.utc)
        response = api.post(
            "/orders", json={"table_id": table_id, "order_date": order_date.isoformat()}
        )
        order_id = response.json()["inserted_id"]

        body = api.get(f"/orders/{order_id}").json()
        assert body["table_id"] == table_id
        assert datetime.fromisoformat(body["order_date"]) == order_date

    def test_create_on_unknown_table(self, api, db):
        response = api.post("/orders", json={"table_id": "ffffffffffffffffffffffff"})
        assert response.status_code == 404
        assert response.json() == {"error": "table was not found"}
        assert db["order"].count_documents({}) == 0

    def test_move_order_to_other_table(self, api, db, make_table):
        first, second = make_table(table_number=1), make_table(table_number=2)
        order_id = api.post("/orders", json={"table_id": first}).json()["inserted_id"]

        assert api.patch(f"/orders/{order_id}", json={"table_id": second}).status_code == 200
        assert db["order"].find_one({"order_id": order_id})["table_id"] == second

    def test_move_order_to_unknown_table(self, api, make_table):
        order_id = api.post("/orders", json={"table_id": make_table()}).json()["inserted_id"]
        response = api.patch(f"/orders/{order_id}", json={"table_id": "missing"})
        assert response.status_code == 404

    def test_list(self, api):
        api.post("/orders", json={})
        api.post("/orders", json={})
        assert len(api.get("/orders").json()) == 2
