"""Catalog item API tests."""

import uuid
from decimal import Decimal

from fastapi.testclient import TestClient


def _create(client: TestClient, **overrides):  # type: ignore[no-untyped-def]
    body = {
        "item_name": "Brake pad set",
        "part_no": "BP-100",
        "item_code": "BRK-01",
        "default_unit_price_jpy": "4500",
    }
    body.update(overrides)
    return client.post("/v1/catalog_items/", json=body)


class TestCreateCatalogItem:
    def test_create(self, client: TestClient):
        response = _create(client, item_name="  Brake pad set ")
        assert response.status_code == 201
        data = response.json()
        assert data["item_name"] == "Brake pad set"
        assert data["is_active"] is True
        assert Decimal(data["default_unit_price_jpy"]) == Decimal("4500")

    def test_duplicate_ignores_case_and_whitespace(self, client: TestClient):
        _create(client)
        response = _create(client, item_name=" BRAKE PAD SET", part_no="bp-100 ", item_code="brk-01")
        assert response.status_code == 400
        assert "already exists" in response.json()["detail"]

    def test_same_name_with_other_part_no_is_allowed(self, client: TestClient):
        _create(client)
        assert _create(client, part_no="BP-200").status_code == 201

    def test_missing_part_no_matches_blank(self, client: TestClient):
        _create(client, part_no=None, item_code=None)
        assert _create(client, part_no="", item_code="  ").status_code == 400

    def test_negative_price_is_rejected(self, client: TestClient):
        assert _create(client, default_unit_price_jpy="-1").status_code == 422


class TestListCatalogItems:
    def test_search_matches_name_part_no_and_code(self, client: TestClient):
        _create(client)
        _create(client, item_name="Oil filter", part_no="OF-7", item_code="ENG-22")
        _create(client, item_name="Wiper blade", part_no="WB-3", item_code="BDY-5")

        def names(search: str) -> list[str]:
            response = client.get("/v1/catalog_items/", params={"search": search})
            return [i["item_name"] for i in response.json()]

        assert names("filter") == ["Oil filter"]
        assert names("wb-") == ["Wiper blade"]
        assert names("eng") == ["Oil filter"]
        assert names("zzz") == []

    def test_active_only(self, client: TestClient):
        kept = _create(client).json()
        hidden = _create(client, item_name="Old gasket").json()
        client.post(f"/v1/catalog_items/{hidden['id']}/deactivate")

        response = client.get("/v1/catalog_items/", params={"active_only": "true"})
        assert [i["id"] for i in response.json()] == [kept["id"]]
        assert len(client.get("/v1/catalog_items/").json()) == 2


class TestUpdateCatalogItem:
    def test_update(self, client: TestClient):
        item = _create(client).json()
        response = client.put(
            f"/v1/catalog_items/{item['id']}", json={"default_unit_price_jpy": "5000"}
        )
        assert response.status_code == 200
        assert Decimal(response.json()["default_unit_price_jpy"]) == Decimal("5000")

    def test_update_into_duplicate(self, client: TestClient):
        _create(client)
        other = _create(client, part_no="BP-200").json()
        response = client.put(f"/v1/catalog_items/{other['id']}", json={"part_no": "BP-100"})
        assert response.status_code == 400

    def test_update_keeping_own_key_is_allowed(self, client: TestClient):
        item = _create(client).json()
        response = client.put(
            f"/v1/catalog_items/{item['id']}", json={"item_name": "Brake pad set"}
        )
        assert response.status_code == 200

    def test_activate_and_deactivate(self, client: TestClient):
        item = _create(client).json()
        response = client.post(f"/v1/catalog_items/{item['id']}/deactivate")
        assert response.json()["is_active"] is False
        response = client.post(f"/v1/catalog_items/{item['id']}/activate")
        assert response.json()["is_active"] is True

    def test_not_found(self, client: TestClient):
        missing = uuid.uuid4()
        assert client.get(f"/v1/catalog_items/{missing}").status_code == 404
        assert client.put(f"/v1/catalog_items/{missing}", json={}).status_code == 404
        assert client.post(f"/v1/catalog_items/{missing}/activate").status_code == 404
        assert client.delete(f"/v1/catalog_items/{missing}").status_code == 404


def test_delete_catalog_item(client: TestClient):
    item = _create(client).json()
    assert client.delete(f"/v1/catalog_items/{item['id']}").status_code == 204
    assert client.get(f"/v1/catalog_items/{item['id']}").status_code == 404
