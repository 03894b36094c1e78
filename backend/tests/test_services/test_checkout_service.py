"""
Tests for CheckoutService

Runs the whole order creation flow against the in-memory tenant database
from conftest (StorefrontResponder + FakePool).

Author: TM3
Date: 2026-10-19
"""
import re
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import patch

import psycopg
import pytest

from app.core.exceptions import ConflictError, NotFoundError, TransactionError, ValidationError
from app.repositories.order_repository import ORDER_COLUMNS, ORDER_PRODUCT_COLUMNS, STATUS_HISTORY_COLUMNS
from app.services.checkout_service import CheckoutService, generate_order_code


def as_row(columns, params):
    return dict(zip(columns, params))


class TestGenerateOrderCode:

    def test_format(self):
        code = generate_order_code(datetime(2026, 10, 19, 23, 59, tzinfo=timezone.utc))

        assert re.fullmatch(r"ORD-20261019-\d{4}", code)
        assert 1000 <= int(code[-4:]) <= 9999

    def test_uses_utc_date_by_default(self):
        code = generate_order_code()

        assert code.startswith(f"ORD-{datetime.now(timezone.utc).strftime('%Y%m%d')}-")


class TestCreateOrder:

    @pytest.mark.asyncio
    async def test_cod_order_is_written_atomically(self, db, fake_pool, storefront, sample_checkout_payload):
        result = await CheckoutService(db).create_order('shop1', sample_checkout_payload)

        assert result.success is True
        assert result.price == Decimal('200000')
        assert result.shipping_fee == Decimal('15000')
        assert result.final_price == Decimal('215000')
        assert result.status == 'new'
        assert result.payment_status == 'pending'
        assert re.fullmatch(r"ORD-\d{8}-\d{4}", result.order_code)

        orders = fake_pool.written('orders')
        history = fake_pool.written('order_status_history')
        lines = fake_pool.written('order_products')
        assert len(orders) == 1
        assert len(history) == 1
        assert len(lines) == 1

        order = as_row(ORDER_COLUMNS, orders[0][1])
        assert order['id'] == result.order_id
        assert order['order_code'] == result.order_code
        assert order['shop_id'] == 'shop1'
        assert order['buyer_name'] == 'Nguyen Van A'
        assert order['final_price'] == Decimal('215000')

        status_row = as_row(STATUS_HISTORY_COLUMNS, history[0][1])
        assert status_row['order_id'] == result.order_id
        assert status_row['status'] == 'new'
        assert status_row['updated_by'] == 'system'

        line = as_row(ORDER_PRODUCT_COLUMNS, lines[0][1])
        assert line['product_id'] == 'p1'
        assert line['quantity'] == 2
        assert line['listed_price'] == line['sales_price'] == Decimal('100000')
        assert line['item_name'] == 'Áo thun basic'
        assert line['item_variant'] == 'M / White'

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", ["VietQR", "Payoo", "Fundiin"])
    async def test_prepaid_methods_are_paid(self, db, storefront, sample_checkout_payload, method):
        payload = {**sample_checkout_payload, 'paymentMethod': method}

        result = await CheckoutService(db).create_order('shop1', payload)

        assert result.payment_status == 'paid'

    @pytest.mark.asyncio
    async def test_snake_case_payload_is_accepted(self, db, storefront):
        payload = {
            'buyer_name': 'Tran Thi B',
            'buyer_address': '45 Nguyen Hue, HCMC',
            'buyer_phone': '0912345678',
            'payment_method': 'COD',
            'products': [{'id': 'p2', 'quantity': 1}],
        }

        result = await CheckoutService(db).create_order('shop1', payload)

        assert result.price == Decimal('350000')
        assert result.shipping_fee == Decimal('0')
        assert result.final_price == Decimal('350000')

    @pytest.mark.asyncio
    async def test_missing_product_aborts_before_writing(self, db, fake_pool, storefront, sample_checkout_payload):
        payload = {
            **sample_checkout_payload,
            'products': [{'id': 'p1', 'quantity': 1}, {'id': 'p404', 'quantity': 1}],
        }

        with pytest.raises(NotFoundError) as exc_info:
            await CheckoutService(db).create_order('shop1', payload)

        assert exc_info.value.missing_ids == ['p404']
        assert fake_pool.written('orders') == []
        assert fake_pool.written('order_products') == []

    @pytest.mark.asyncio
    async def test_invalid_payload_never_touches_database(self, db, fake_pool, registry, storefront):
        payload = {
            'buyerName': 'A',
            'buyerAddress': '12 Le Loi',
            'buyerPhone': '123',
            'paymentMethod': 'Bitcoin',
            'products': [],
        }

        with pytest.raises(ValidationError) as exc_info:
            await CheckoutService(db).create_order('shop1', payload)

        fields = {error['field'] for error in exc_info.value.errors}
        assert {'buyerName', 'buyerPhone', 'paymentMethod', 'products'} <= fields
        assert fake_pool.queries == []
        assert registry.stats()['open_connections'] == 0

    @pytest.mark.asyncio
    async def test_zero_quantity_is_rejected(self, db, fake_pool, storefront, sample_checkout_payload):
        payload = {**sample_checkout_payload, 'products': [{'id': 'p1', 'quantity': 0}]}

        with pytest.raises(ValidationError):
            await CheckoutService(db).create_order('shop1', payload)

        assert fake_pool.queries == []

    @pytest.mark.asyncio
    async def test_string_quantity_is_rejected(self, db, fake_pool, storefront, sample_checkout_payload):
        payload = {**sample_checkout_payload, 'products': [{'id': 'p1', 'quantity': '2'}]}

        with pytest.raises(ValidationError) as exc_info:
            await CheckoutService(db).create_order('shop1', payload)

        assert [error['field'] for error in exc_info.value.errors] == ['products.0.quantity']
        assert fake_pool.queries == []

    @pytest.mark.asyncio
    async def test_missing_shop_is_created_first(self, db, fake_pool, storefront, sample_checkout_payload):
        storefront.shop_exists = False

        await CheckoutService(db).create_order('shop1', sample_checkout_payload)

        shop_inserts = [p for q, p in fake_pool.committed if 'INSERT INTO shops' in q]
        assert shop_inserts == [['shop1', 'Shop SHOP1']]

    @pytest.mark.asyncio
    async def test_existing_shop_is_not_recreated(self, db, fake_pool, storefront, sample_checkout_payload):
        await CheckoutService(db).create_order('shop1', sample_checkout_payload)

        assert not any('INSERT INTO shops' in q for q, _ in fake_pool.committed)

    @pytest.mark.asyncio
    async def test_colliding_order_code_is_regenerated(self, db, storefront, sample_checkout_payload):
        storefront.order_codes.add('ORD-20261019-1111')

        with patch('app.services.checkout_service.generate_order_code',
                   side_effect=['ORD-20261019-1111', 'ORD-20261019-2222']):
            result = await CheckoutService(db).create_order('shop1', sample_checkout_payload)

        assert result.order_code == 'ORD-20261019-2222'

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self, db, fake_pool, storefront, sample_checkout_payload):
        storefront.order_codes.add('ORD-20261019-1111')

        with patch('app.services.checkout_service.generate_order_code',
                   return_value='ORD-20261019-1111') as mock_generate:
            with pytest.raises(ConflictError):
                await CheckoutService(db, max_attempts=3).create_order('shop1', sample_checkout_payload)

        assert mock_generate.call_count == 3
        assert fake_pool.written('orders') == []

    @pytest.mark.asyncio
    async def test_colliding_order_id_is_regenerated(self, db, storefront, sample_checkout_payload):
        storefront.order_ids.add('taken')

        with patch('app.services.checkout_service.generate_order_id', side_effect=['taken', 'fresh']):
            result = await CheckoutService(db).create_order('shop1', sample_checkout_payload)

        assert result.order_id == 'fresh'

    @pytest.mark.asyncio
    async def test_sequential_orders_get_distinct_identifiers(self, db, storefront, sample_checkout_payload):
        service = CheckoutService(db)

        first = await service.create_order('shop1', sample_checkout_payload)
        second = await service.create_order('shop1', sample_checkout_payload)

        assert first.order_id != second.order_id
        assert first.order_code != second.order_code

    @pytest.mark.asyncio
    async def test_rejected_batch_writes_nothing(self, db, fake_pool, storefront, sample_checkout_payload):
        def responder(query, params):
            if query.startswith('INSERT INTO order_products'):
                raise psycopg.IntegrityError('order_products violates check constraint')
            return storefront(query, params)

        fake_pool.responder = responder

        with pytest.raises(TransactionError):
            await CheckoutService(db).create_order('shop1', sample_checkout_payload)

        assert fake_pool.written('orders') == []
        assert fake_pool.written('order_status_history') == []

    @pytest.mark.asyncio
    async def test_new_order_invalidates_order_lookups(self, db, query_cache, storefront, sample_checkout_payload):
        query_cache.set('shop1:order:lookup::0901234567', [])
        query_cache.set('shop1:product:section:s1:20', [])

        await CheckoutService(db).create_order('shop1', sample_checkout_payload)

        assert query_cache.keys() == ['shop1:product:section:s1:20']

    @pytest.mark.asyncio
    async def test_prices_come_from_database_not_payload(self, db, storefront, sample_checkout_payload):
        payload = {
            **sample_checkout_payload,
            'price': 1,
            'products': [{'id': 'p1', 'quantity': 1, 'price': 1}],
        }

        result = await CheckoutService(db).create_order('shop1', payload)

        assert result.price == Decimal('100000')
