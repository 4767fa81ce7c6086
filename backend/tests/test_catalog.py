"""
Catalog, price-quote and CLI tests.
"""

import pytest

from farmstore.catalog_data import CATALOG
from farmstore.extensions import db
from farmstore.models import Product, User
from farmstore.services import catalog_service
from farmstore.validation import ValidationError

from conftest import auth_headers


CATALOG_SIZE = sum(len(products) for products in CATALOG.values())


class TestSeeding:

    def test_seed_is_idempotent(self, db_session):
        created, skipped = catalog_service.seed_catalog(CATALOG)
        assert (created, skipped) == (CATALOG_SIZE, 0)

        # live stock survives a re-seed
        product = db.session.get(Product, 1)
        product.stock = 3
        db.session.commit()

        created, skipped = catalog_service.seed_catalog(CATALOG)
        assert (created, skipped) == (0, CATALOG_SIZE)
        assert db.session.get(Product, 1).stock == 3

    def test_seeded_tiers_are_ordered(self, db_session):
        catalog_service.seed_catalog(CATALOG)
        tiers = [(t.min_quantity, t.price_per_unit) for t in db.session.get(Product, 1).bulk_tiers]
        assert tiers == [(10, 6500), (50, 6000)]

    def test_bad_tiers_rejected(self, db_session):
        catalog = {"vegetables": [{
            "id": 99, "name": "Okra", "price": 1000,
            "bulk_pricing": [{"min_quantity": 10, "price_per_unit": 900}, {"min_quantity": 5, "price_per_unit": 800}],
        }]}
        with pytest.raises(ValidationError):
            catalog_service.seed_catalog(catalog)


class TestProductRoutes:

    def test_list_and_filter(self, client, db_session):
        catalog_service.seed_catalog(CATALOG)

        everything = client.get("/api/v1/products").get_json()["data"]
        assert len(everything) == CATALOG_SIZE

        tubers = client.get("/api/v1/products?category=tubers").get_json()["data"]
        assert {p["category"] for p in tubers} == {"tubers"}

        sold_out = client.get("/api/v1/products?in_stock=false").get_json()["data"]
        assert [p["id"] for p in sold_out] == [21]
        assert sold_out[0]["inStock"] is False

    def test_bad_in_stock_flag(self, client, db_session):
        assert client.get("/api/v1/products?in_stock=maybe").status_code == 400

    def test_categories(self, client, db_session):
        catalog_service.seed_catalog(CATALOG)
        categories = client.get("/api/v1/products/categories").get_json()["data"]
        by_name = {c["category"]: c for c in categories}
        assert set(by_name) == set(CATALOG)
        assert by_name["tubers"]["inStockCount"] == by_name["tubers"]["productCount"] - 1

    def test_unknown_product(self, client, db_session):
        assert client.get("/api/v1/products/404").status_code == 404

    def test_availability(self, client, make_product):
        make_product(1, stock=5)
        data = client.get("/api/v1/products/1/availability?quantity=6").get_json()["data"]
        assert data == {"available": False, "currentStock": 5, "requested": 6}

    @pytest.mark.parametrize("quantity", ["0", "-1", "abc"])
    def test_availability_bad_quantity(self, client, tomatoes, quantity):
        assert client.get(f"/api/v1/products/1/availability?quantity={quantity}").status_code == 400

    def test_anonymous_quote_is_retail(self, client, tomatoes):
        data = client.get("/api/v1/products/1/price?quantity=60").get_json()["data"]
        assert data["unitPrice"] == 7500
        assert data["userType"] == "retail"

    def test_wholesale_quote(self, client, tomatoes, wholesale_headers):
        data = client.get("/api/v1/products/1/price?quantity=60", headers=wholesale_headers).get_json()["data"]
        assert data["unitPrice"] == 6000
        assert data["tierMinQuantity"] == 50
        assert data["savings"] == 90_000

    def test_restock_subscription_routes(self, client, make_product, retail_user):
        make_product(1, stock=0)
        headers = auth_headers(retail_user)

        assert client.post("/api/v1/products/1/restock-subscription", headers=headers).status_code == 201
        assert client.post("/api/v1/products/1/restock-subscription", headers=headers).status_code == 409
        status = client.get("/api/v1/products/1/restock-subscription", headers=headers).get_json()["data"]
        assert status == {"subscribed": True}
        assert client.delete("/api/v1/products/1/restock-subscription", headers=headers).status_code == 200
        assert client.delete("/api/v1/products/1/restock-subscription", headers=headers).status_code == 404


class TestHealth:

    def test_health(self, client, db_session):
        resp = client.get("/api/v1/health")
        assert resp.status_code == 200
        assert resp.get_json()["data"]["checks"]["database"]["status"] == "healthy"


class TestCli:

    def test_system_init(self, app, db_session):
        runner = app.test_cli_runner()
        result = runner.invoke(args=["system", "init", "--admin-email", "ops@farm.test"])
        assert result.exit_code == 0, result.output
        assert "PASS Created super admin: ops@farm.test" in result.output

        admin = db.session.query(User).filter_by(email="ops@farm.test").one()
        assert admin.role == "super_admin"
        assert db.session.query(Product).count() == CATALOG_SIZE

        again = runner.invoke(args=["system", "init", "--admin-email", "ops@farm.test"])
        assert again.exit_code == 0
        assert "Using existing admin" in again.output

    def test_catalog_list(self, app, db_session):
        runner = app.test_cli_runner()
        runner.invoke(args=["catalog", "seed"])
        result = runner.invoke(args=["catalog", "list", "--category", "tubers"])
        assert result.exit_code == 0
        assert "OUT" in result.output

    def test_create_admin_rejects_weak_password(self, app, db_session):
        runner = app.test_cli_runner()
        result = runner.invoke(args=["users", "create-admin", "--email", "a@farm.test", "--password", "weak"])
        assert result.exit_code != 0
        assert db.session.query(User).count() == 0
