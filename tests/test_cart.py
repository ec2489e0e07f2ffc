"""Tests for the per-customer cart."""

import pytest

from food_ordering import cart
from food_ordering.errors import NotFound, ValidationError
from food_ordering.models import Role


@pytest.fixture
def menu(seed):
    vendor = seed.vendor()
    return seed.food(vendor, name="Dosa"), seed.food(vendor, name="Idli")


class TestUpsertCartItem:
    def test_units_accumulate(self, db_sess, seed, menu):
        customer = seed.customer()
        dosa, _ = menu

        cart.upsert_cart_item(db_sess, customer.id, dosa.id, 2)
        items, total = cart.upsert_cart_item(db_sess, customer.id, dosa.id, 3)

        assert len(items) == 1
        assert items[0].food_id == dosa.id
        assert items[0].unit == 5
        assert total == 5

    def test_total_units_spans_entries(self, db_sess, seed, menu):
        customer = seed.customer()
        dosa, idli = menu

        cart.upsert_cart_item(db_sess, customer.id, dosa.id, 2)
        items, total = cart.upsert_cart_item(db_sess, customer.id, idli.id, 4)

        assert [i.food_id for i in items] == [dosa.id, idli.id]
        assert total == 6

    def test_zero_unit_removes_entry(self, db_sess, seed, menu):
        customer = seed.customer()
        dosa, idli = menu
        cart.upsert_cart_item(db_sess, customer.id, dosa.id, 1)
        cart.upsert_cart_item(db_sess, customer.id, idli.id, 1)

        items, total = cart.upsert_cart_item(db_sess, customer.id, dosa.id, 0)

        assert [i.food_id for i in items] == [idli.id]
        assert total == 1

    def test_negative_unit_removes_entry(self, db_sess, seed, menu):
        customer = seed.customer()
        dosa, _ = menu
        cart.upsert_cart_item(db_sess, customer.id, dosa.id, 3)

        items, total = cart.upsert_cart_item(db_sess, customer.id, dosa.id, -1)

        assert items == []
        assert total == 0

    def test_zero_unit_without_entry_is_noop(self, db_sess, seed, menu):
        customer = seed.customer()
        dosa, idli = menu
        cart.upsert_cart_item(db_sess, customer.id, idli.id, 2)

        items, total = cart.upsert_cart_item(db_sess, customer.id, dosa.id, 0)

        assert [i.food_id for i in items] == [idli.id]
        assert total == 2

    def test_unknown_food(self, db_sess, seed):
        customer = seed.customer()
        with pytest.raises(NotFound):
            cart.upsert_cart_item(db_sess, customer.id, 999, 1)

    def test_non_integer_unit(self, db_sess, seed, menu):
        customer = seed.customer()
        with pytest.raises(ValidationError):
            cart.upsert_cart_item(db_sess, customer.id, menu[0].id, 1.5)


class TestGetAndClearCart:
    def test_empty_cart(self, db_sess, seed):
        customer = seed.customer()
        assert cart.get_cart(db_sess, customer.id) == []

    def test_get_cart_joins_food(self, db_sess, seed, menu):
        customer = seed.customer()
        cart.upsert_cart_item(db_sess, customer.id, menu[0].id, 2)

        items = cart.get_cart(db_sess, customer.id)

        assert items[0].food.name == "Dosa"

    def test_clear_twice(self, db_sess, seed, menu):
        customer = seed.customer()
        cart.upsert_cart_item(db_sess, customer.id, menu[0].id, 2)

        assert cart.clear_cart(db_sess, customer.id) == []
        assert cart.clear_cart(db_sess, customer.id) == []
        assert cart.get_cart(db_sess, customer.id) == []


class TestCartApi:
    def test_put_and_get(self, client, seed, menu, auth_headers):
        customer = seed.customer()
        headers = auth_headers(Role.CUSTOMER, customer)

        client.put("/customer/cart", json={"_id": menu[0].id, "unit": 2}, headers=headers)
        response = client.put("/customer/cart", json={"_id": menu[0].id, "unit": 3}, headers=headers)

        assert response.status_code == 200
        data = response.json()
        assert data["total_units"] == 5
        assert data["cart"][0]["unit"] == 5

        response = client.get("/customer/cart", headers=headers)
        assert response.status_code == 200
        assert response.json()[0]["food"]["name"] == "Dosa"

    def test_non_integer_unit_is_validation_error(self, client, seed, menu, auth_headers):
        customer = seed.customer()
        response = client.put(
            "/customer/cart",
            json={"_id": menu[0].id, "unit": "two"},
            headers=auth_headers(Role.CUSTOMER, customer),
        )
        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "VALIDATION_ERROR"

    def test_unknown_food_is_404(self, client, seed, auth_headers):
        customer = seed.customer()
        response = client.put(
            "/customer/cart", json={"_id": 404, "unit": 1}, headers=auth_headers(Role.CUSTOMER, customer)
        )
        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "NOT_FOUND"

    def test_delete_twice(self, client, seed, menu, auth_headers):
        customer = seed.customer()
        headers = auth_headers(Role.CUSTOMER, customer)
        client.put("/customer/cart", json={"_id": menu[0].id, "unit": 1}, headers=headers)

        assert client.delete("/customer/cart", headers=headers).json() == []
        second = client.delete("/customer/cart", headers=headers)
        assert second.status_code == 200
        assert second.json() == []
