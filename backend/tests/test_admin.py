"""
Tests for the admin endpoints: role gate, user management and catalog copy.
"""
from stockcount.models import Inventory, InventoryItem, Item, Role, User

from tests.conftest import PASSWORD


class TestAdminGate:
    def test_team_member_is_forbidden(self, client, alice, headers_for):
        for method, path in (
            ("get", "/admin/users"),
            ("get", f"/admin/users/{alice.id}/items"),
        ):
            resp = getattr(client, method)(path, headers=headers_for(alice))
            assert resp.status_code == 403

        resp = client.post(
            "/admin/transfer-items",
            json={"source_user_id": alice.id, "target_user_id": alice.id},
            headers=headers_for(alice),
        )
        assert resp.status_code == 403

    def test_role_comes_from_database_not_token(self, client, db, alice, headers_for):
        """A token issued while ADMIN stops working once the role is revoked."""
        alice.role = Role.ADMIN
        db.commit()
        headers = headers_for(alice)
        alice.role = Role.TEAM_MEMBER
        db.commit()

        assert client.get("/admin/users", headers=headers).status_code == 403

    def test_anonymous_is_401(self, client):
        assert client.get("/admin/users").status_code == 401


class TestUserManagement:
    def test_list_users(self, client, admin, alice, bob, headers_for):
        resp = client.get("/admin/users", headers=headers_for(admin))
        assert resp.status_code == 200
        assert {u["email"] for u in resp.json()} == {"admin@example.com", "alice@example.com", "bob@example.com"}

    def test_create_user_with_role(self, client, admin, headers_for):
        resp = client.post("/admin/users", headers=headers_for(admin), json={
            "name": "Manager",
            "email": "Manager@Example.com",
            "password": PASSWORD,
            "role": "ADMIN",
        })
        assert resp.status_code == 201
        assert resp.json()["email"] == "manager@example.com"
        assert resp.json()["role"] == "ADMIN"

        login = client.post("/auth/login", json={"email": "manager@example.com", "password": PASSWORD})
        assert login.status_code == 200

    def test_create_duplicate_email_conflicts(self, client, admin, alice, headers_for):
        resp = client.post("/admin/users", headers=headers_for(admin), json={
            "name": "Alice Again",
            "email": "alice@example.com",
            "password": PASSWORD,
            "role": "TEAM_MEMBER",
        })
        assert resp.status_code == 409

    def test_create_with_unknown_role_is_400(self, client, admin, headers_for):
        resp = client.post("/admin/users", headers=headers_for(admin), json={
            "name": "X",
            "email": "x@example.com",
            "password": PASSWORD,
            "role": "OWNER",
        })
        assert resp.status_code == 400

    def test_change_role(self, client, admin, alice, headers_for):
        resp = client.patch(f"/admin/users/{alice.id}", json={"role": "ADMIN"}, headers=headers_for(admin))
        assert resp.status_code == 200
        assert resp.json()["role"] == "ADMIN"

    def test_cannot_change_own_role(self, client, admin, headers_for):
        resp = client.patch(f"/admin/users/{admin.id}", json={"role": "TEAM_MEMBER"}, headers=headers_for(admin))
        assert resp.status_code == 400

    def test_change_role_of_missing_user_is_404(self, client, admin, headers_for):
        resp = client.patch("/admin/users/99999", json={"role": "ADMIN"}, headers=headers_for(admin))
        assert resp.status_code == 404

    def test_cannot_delete_self(self, client, admin, headers_for):
        resp = client.delete(f"/admin/users/{admin.id}", headers=headers_for(admin))
        assert resp.status_code == 400

    def test_delete_user_removes_their_data(self, client, db, admin, alice, make_item, headers_for):
        item = make_item(alice, "Tea")
        inventory = Inventory(user_id=alice.id, name="Weekly", status="draft")
        db.add(inventory)
        db.flush()
        db.add(InventoryItem(inventory_id=inventory.id, item_id=item.id))
        db.commit()
        alice_id = alice.id

        resp = client.delete(f"/admin/users/{alice_id}", headers=headers_for(admin))
        assert resp.status_code == 200

        db.expire_all()
        assert db.query(User).filter(User.id == alice_id).first() is None
        assert db.query(Item).filter(Item.user_id == alice_id).count() == 0
        assert db.query(Inventory).filter(Inventory.user_id == alice_id).count() == 0
        assert db.query(InventoryItem).count() == 0

    def test_list_user_items(self, client, admin, alice, make_item, headers_for):
        make_item(alice, "Tea")
        make_item(alice, "Coffee")
        resp = client.get(f"/admin/users/{alice.id}/items", headers=headers_for(admin))
        assert resp.status_code == 200
        assert [i["name"] for i in resp.json()] == ["Coffee", "Tea"]


class TestTransferItems:
    def test_copies_catalog_and_keeps_source(self, client, db, admin, alice, bob, make_item, headers_for):
        make_item(alice, "Tea", upc_number="1", brand="Leafy")
        make_item(alice, "Cheddar", unit_type="weight", average_weight_per_unit=2.0)

        resp = client.post(
            "/admin/transfer-items",
            json={"source_user_id": alice.id, "target_user_id": bob.id},
            headers=headers_for(admin),
        )
        assert resp.status_code == 200
        assert resp.json()["count"] == 2
        assert resp.json()["skipped"] == 0

        db.expire_all()
        assert db.query(Item).filter(Item.user_id == alice.id).count() == 2
        copied = {i.name: i for i in db.query(Item).filter(Item.user_id == bob.id)}
        assert copied["Tea"].brand == "Leafy"
        assert copied["Cheddar"].average_weight_per_unit == 2.0

    def test_skips_upcs_the_target_already_has(self, client, admin, alice, bob, make_item, headers_for):
        make_item(alice, "Tea", upc_number="1")
        make_item(alice, "Coffee", upc_number="2")
        make_item(bob, "Bob's Tea", upc_number="1")

        resp = client.post(
            "/admin/transfer-items",
            json={"source_user_id": alice.id, "target_user_id": bob.id},
            headers=headers_for(admin),
        )
        body = resp.json()
        assert resp.status_code == 200
        assert body["count"] == 1
        assert body["skipped"] == 1
        assert "skipped" in body["message"]

    def test_same_source_and_target_is_400(self, client, admin, alice, headers_for):
        resp = client.post(
            "/admin/transfer-items",
            json={"source_user_id": alice.id, "target_user_id": alice.id},
            headers=headers_for(admin),
        )
        assert resp.status_code == 400

    def test_missing_user_is_404(self, client, admin, alice, headers_for):
        resp = client.post(
            "/admin/transfer-items",
            json={"source_user_id": alice.id, "target_user_id": 99999},
            headers=headers_for(admin),
        )
        assert resp.status_code == 404

    def test_empty_source_copies_nothing(self, client, admin, alice, bob, headers_for):
        resp = client.post(
            "/admin/transfer-items",
            json={"source_user_id": alice.id, "target_user_id": bob.id},
            headers=headers_for(admin),
        )
        assert resp.status_code == 200
        assert resp.json()["count"] == 0
