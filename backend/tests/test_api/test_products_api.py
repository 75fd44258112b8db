"""
Tests for the products endpoints and the shared listing envelope
"""
import asyncio
import time
import uuid

import httpx


class TestListProducts:

    def test_envelope_and_pagination(self, client, mock_cursor, make_product_row):
        # Arrange: 12 matching products, page 2 of size 1
        row = make_product_row(price="1500", discount="10")
        mock_cursor.fetchone.return_value = {"total": 12}
        mock_cursor.fetchall.return_value = [row]

        # Act
        response = client.get("/api/products", params={"page": 2, "limit": 1})

        # Assert
        assert response.status_code == 200
        body = response.json()
        assert body["error"] is False
        assert body["count"] == 1
        assert body["total"] == 12
        assert body["pagination"] == {"next": {"page": 3, "limit": 1}, "prev": {"page": 1, "limit": 1}}
        assert body["data"][0]["id"] == str(row["id"])
        assert body["data"][0]["actual_price"] == 1350.0

        count_call, page_call = mock_cursor.execute.call_args_list
        assert page_call.args[1][-2:] == [1, 1]

    def test_price_filter_reaches_sql(self, client, mock_cursor):
        mock_cursor.fetchone.return_value = {"total": 0}
        mock_cursor.fetchall.return_value = []

        response = client.get("/api/products", params={"price": "gte:100"})

        assert response.status_code == 200
        count_sql, count_params = mock_cursor.execute.call_args_list[0].args
        assert "pricing->>'price'" in count_sql
        assert ">=" in count_sql
        assert len(count_params) == 1

    def test_unknown_filter_field_is_a_bad_request(self, client, mock_cursor):
        response = client.get("/api/products", params={"colour": "red"})

        assert response.status_code == 400
        body = response.json()
        assert body["error"] is True
        assert body["status"] == 400
        mock_cursor.execute.assert_not_called()


class TestProductWrites:

    def test_create_requires_authentication(self, client):
        response = client.post("/api/products", json={"name": "Paracetamol", "store": str(uuid.uuid4())})

        assert response.status_code == 401
        assert response.json()["error"] is True

    def test_missing_product_is_not_found(self, client, mock_cursor):
        mock_cursor.fetchone.return_value = None

        response = client.get(f"/api/products/{uuid.uuid4()}")

        assert response.status_code == 404


class TestBlockingQueries:

    def test_slow_queries_do_not_serialize_requests(self, app, mock_cursor):
        # Each listing runs a count and a page query; 0.2s each makes one request take 0.4s
        mock_cursor.execute.side_effect = lambda *args, **kwargs: time.sleep(0.2)
        mock_cursor.fetchone.return_value = {"total": 0}
        mock_cursor.fetchall.return_value = []

        async def fetch_twice():
            transport = httpx.ASGITransport(app=app)
            async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
                return await asyncio.gather(http.get("/api/products"), http.get("/api/products"))

        started = time.perf_counter()
        responses = asyncio.run(fetch_twice())
        elapsed = time.perf_counter() - started

        assert [response.status_code for response in responses] == [200, 200]
        assert elapsed < 0.7
