"""Tests for transaction creation."""

import pytest

from food_ordering import payments
from food_ordering.errors import NotFound
from food_ordering.models import Role, TransactionStatus


class TestCreateTransaction:
    def test_without_offer(self, db_sess, seed):
        customer = seed.customer()

        txn = payments.create_transaction(db_sess, customer.id, 100, "COD")

        assert txn.payable_amount == 100
        assert txn.offer_used == "NA"
        assert txn.status == TransactionStatus.OPEN.value
        assert txn.order_ref is None
        assert txn.payment_mode == "COD"
        assert txn.payment_response == "Payment is cash on delivery"

    def test_active_offer_discount(self, db_sess, seed):
        customer = seed.customer()
        offer = seed.offer(offer_amount=20)

        txn = payments.create_transaction(db_sess, customer.id, 100, "COD", offer.id)

        assert txn.payable_amount == 80
        assert txn.offer_used == str(offer.id)

    def test_inactive_offer_ignored(self, db_sess, seed):
        customer = seed.customer()
        offer = seed.offer(offer_amount=20, is_active=False)

        txn = payments.create_transaction(db_sess, customer.id, 100, "COD", offer.id)

        assert txn.payable_amount == 100
        assert txn.offer_used == "NA"

    def test_unknown_offer_ignored(self, db_sess, seed):
        customer = seed.customer()
        txn = payments.create_transaction(db_sess, customer.id, 100, "COD", 12345)
        assert txn.payable_amount == 100

    def test_discount_larger_than_amount_clamps_to_zero(self, db_sess, seed):
        customer = seed.customer()
        offer = seed.offer(offer_amount=150)

        txn = payments.create_transaction(db_sess, customer.id, 100, "COD", offer.id)

        assert txn.payable_amount == 0

    def test_discount_fixed_at_payment_time(self, db_sess, seed):
        customer = seed.customer()
        offer = seed.offer(offer_amount=20)
        txn = payments.create_transaction(db_sess, customer.id, 100, "COD", offer.id)

        offer.offer_amount = 50
        offer.is_active = False
        db_sess.commit()
        db_sess.refresh(txn)

        assert txn.payable_amount == 80

    def test_unknown_customer(self, db_sess):
        with pytest.raises(NotFound):
            payments.create_transaction(db_sess, 999, 100, "COD")


class TestPaymentApi:
    def test_create_payment(self, client, seed, auth_headers):
        customer = seed.customer()
        offer = seed.offer(offer_amount=20)

        response = client.post(
            "/customer/create-payment",
            json={"amount": 100, "paymentMode": "COD", "offerId": offer.id},
            headers=auth_headers(Role.CUSTOMER, customer),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["payable_amount"] == 80
        assert data["status"] == "OPEN"
        assert data["customer_id"] == customer.id

    def test_requires_customer(self, client):
        response = client.post("/customer/create-payment", json={"amount": 100})
        assert response.status_code == 401
        assert response.json()["detail"]["code"] == "UNAUTHORIZED"
