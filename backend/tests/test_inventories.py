"""
Tests for inventory sessions: ownership, status lifecycle and deletion.
"""
from stockcount.models import Inventory, InventoryItem, Item


def _create(client, headers, **payload):
    payload.setdefault("name", "Weekly count")
    resp = client.post("/inventories", json=payload, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


class TestCreateInventory:
    def test_defaults_to_draft(self, client, alice, headers_for):
        body = _create(client, headers_for(alice))
        assert body["status"] == "draft"
        assert body["user_id"] == alice.id
        assert body["settings"] is None

    def test_settings_are_stored_verbatim(self, client, alice, headers_for):
        settings = {"location": "Back store", "columns": ["name", "counted_units"]}
        body = _create(client, headers_for(alice), settings=settings)
        fetched = client.get(f"/inventories/{body['id']}", headers=headers_for(alice)).json()
        assert fetched["settings"] == settings

    def test_cannot_create_deleted_inventory(self, client, alice, headers_for):
        resp = client.post("/inventories", json={"name": "x", "status": "deleted"}, headers=headers_for(alice))
        assert resp.status_code == 400

    def test_name_is_required(self, client, alice, headers_for):
        resp = client.post("/inventories", json={"name": "  "}, headers=headers_for(alice))
        assert resp.status_code == 400


class TestListInventories:
    def test_lists_own_inventories_newest_first(self, client, alice, bob, headers_for):
        first = _create(client, headers_for(alice), name="First")
        second = _create(client, headers_for(alice), name="Second")
        _create(client, headers_for(bob), name="Bob's")

        resp = client.get("/inventories", headers=headers_for(alice))
        assert resp.status_code == 200
        assert [i["id"] for i in resp.json()] == [second["id"], first["id"]]

    def test_status_filter(self, client, alice, headers_for):
        _create(client, headers_for(alice), name="Open")
        done = _create(client, headers_for(alice), name="Done", status="completed")

        resp = client.get("/inventories", params={"status": "completed"}, headers=headers_for(alice))
        assert [i["id"] for i in resp.json()] == [done["id"]]

    def test_unknown_status_filter_is_400(self, client, alice, headers_for):
        resp = client.get("/inventories", params={"status": "archived"}, headers=headers_for(alice))
        assert resp.status_code == 400


class TestInventoryOwnership:
    def test_foreign_inventory_is_not_found(self, client, alice, bob, headers_for):
        inventory = _create(client, headers_for(bob))
        for method in ("get", "delete"):
            resp = getattr(client, method)(f"/inventories/{inventory['id']}", headers=headers_for(alice))
            assert resp.status_code == 404
        resp = client.patch(f"/inventories/{inventory['id']}", json={"name": "Mine"}, headers=headers_for(alice))
        assert resp.status_code == 404

    def test_foreign_and_missing_look_the_same(self, client, alice, bob, headers_for):
        inventory = _create(client, headers_for(bob))
        foreign = client.get(f"/inventories/{inventory['id']}", headers=headers_for(alice))
        missing = client.get("/inventories/99999", headers=headers_for(alice))
        assert foreign.json() == missing.json()


class TestStatusTransitions:
    def test_draft_to_completed(self, client, alice, headers_for):
        inventory = _create(client, headers_for(alice))
        resp = client.patch(
            f"/inventories/{inventory['id']}", json={"status": "completed"}, headers=headers_for(alice)
        )
        assert resp.status_code == 200
        assert resp.json()["status"] == "completed"

    def test_completed_cannot_return_to_draft(self, client, alice, headers_for):
        inventory = _create(client, headers_for(alice), status="completed")
        resp = client.patch(f"/inventories/{inventory['id']}", json={"status": "draft"}, headers=headers_for(alice))
        assert resp.status_code == 400

    def test_deleted_is_terminal(self, client, alice, headers_for):
        inventory = _create(client, headers_for(alice))
        client.patch(f"/inventories/{inventory['id']}", json={"status": "deleted"}, headers=headers_for(alice))
        resp = client.patch(
            f"/inventories/{inventory['id']}", json={"status": "completed"}, headers=headers_for(alice)
        )
        assert resp.status_code == 400

    def test_rename_keeps_status(self, client, alice, headers_for):
        inventory = _create(client, headers_for(alice))
        resp = client.patch(f"/inventories/{inventory['id']}", json={"name": "Renamed"}, headers=headers_for(alice))
        assert resp.status_code == 200
        assert resp.json()["name"] == "Renamed"
        assert resp.json()["status"] == "draft"


class TestDeleteInventory:
    def test_delete_removes_rows_but_keeps_items(self, client, db, alice, make_item, headers_for):
        item = make_item(alice, "Tea")
        item_id = item.id
        inventory = _create(client, headers_for(alice))
        client.post(f"/inventories/{inventory['id']}/items", json={"item_id": item_id}, headers=headers_for(alice))

        resp = client.delete(f"/inventories/{inventory['id']}", headers=headers_for(alice))
        assert resp.status_code == 200

        db.expire_all()
        assert db.query(Inventory).filter(Inventory.id == inventory["id"]).first() is None
        assert db.query(InventoryItem).filter(InventoryItem.inventory_id == inventory["id"]).count() == 0
        assert db.query(Item).filter(Item.id == item_id).first() is not None
