"""Admin category and attribute endpoints."""

from storefront.models.product import Attribute, product_attributes


class TestCategories:
    def test_create_and_list(self, client, admin, auth_headers):
        headers = auth_headers(admin)

        created = client.post("/api/admin/categories/", json={"name": "Dresses"}, headers=headers)

        assert created.status_code == 201
        assert [c["name"] for c in client.get("/api/admin/categories/", headers=headers).json()] == ["Dresses"]

    def test_duplicate_name_is_400(self, client, admin, category, auth_headers):
        resp = client.post("/api/admin/categories/", json={"name": category.name}, headers=auth_headers(admin))

        assert resp.status_code == 400

    def test_blank_name_is_400(self, client, admin, auth_headers):
        resp = client.post("/api/admin/categories/", json={"name": "   "}, headers=auth_headers(admin))

        assert resp.status_code == 400
        assert resp.json()["kind"] == "validation"

    def test_category_in_use_cannot_be_deleted(self, client, admin, product, auth_headers):
        resp = client.delete(f"/api/admin/categories/{product.category_id}", headers=auth_headers(admin))

        assert resp.status_code == 409
        assert resp.json()["kind"] == "conflict"

    def test_unused_category_is_deleted(self, client, admin, category, auth_headers):
        headers = auth_headers(admin)

        assert client.delete(f"/api/admin/categories/{category.id}", headers=headers).json() == {"success": True}
        assert client.get("/api/admin/categories/", headers=headers).json() == []

    def test_requires_admin(self, client, user, auth_headers):
        assert client.get("/api/admin/categories/", headers=auth_headers(user)).status_code == 403


class TestAttributes:
    def test_delete_removes_product_links(self, client, db, admin, product, attribute, auth_headers):
        db.execute(product_attributes.insert().values(product_id=product.id, attribute_id=attribute.id))
        db.commit()
        attribute_id = attribute.id

        resp = client.delete(f"/api/admin/attributes/{attribute_id}", headers=auth_headers(admin))

        assert resp.json() == {"success": True}
        db.expire_all()
        assert db.query(Attribute).filter(Attribute.id == attribute_id).first() is None
        assert db.execute(product_attributes.select()).fetchall() == []
        assert client.get(f"/api/products/{product.id}").json()["attributes"] == []

    def test_missing_attribute_is_404(self, client, admin, auth_headers):
        assert client.delete("/api/admin/attributes/999", headers=auth_headers(admin)).status_code == 404

    def test_create(self, client, admin, auth_headers):
        resp = client.post("/api/admin/attributes/", json={"name": "Linen"}, headers=auth_headers(admin))

        assert resp.status_code == 201
        assert resp.json()["name"] == "Linen"


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
