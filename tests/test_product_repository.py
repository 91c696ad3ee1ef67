from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from pricesync.domain.models import Product
from pricesync.domain.repositories.product_repository import SaveOptions
from pricesync.domain.schemas.product import ProductFilter
from pricesync.domain.schemas.sync import PullFilters, PullOptions
from pricesync.infrastructure.repositories.product_repository import SQLAlchemyProductRepository
from pricesync.scheduler.jobs import InlinePushDispatcher, run_push


class TestSaveHook:

    def test_new_product_is_priced_and_scheduled(self, product_repo, dispatcher):
        product = product_repo.save(Product(sku="SKU-1001", cost_price=Decimal("10"), markup_percent=Decimal("50")))

        assert product.sale_price == Decimal("15.00")
        assert product.currency == "USD"
        assert product.origin_system == "local"
        assert product.last_sync_status == "pending"
        assert product.last_sync_direction == "push"
        assert product.last_sync_message == "Awaiting push to Odoo."
        assert dispatcher.pushed == [product.id]

    def test_changing_sale_price_updates_markup_only(self, make_product, product_repo):
        product = make_product(cost="10", markup="50")

        product.sale_price = Decimal("20")
        product_repo.save(product)

        assert product.cost_price == Decimal("10.00")
        assert product.sale_price == Decimal("20.00")
        assert product.markup_percent == Decimal("100.00")

    def test_changing_cost_recomputes_sale(self, make_product, product_repo):
        product = make_product(cost="10", markup="50")

        product.cost_price = Decimal("20")
        product_repo.save(product)

        assert product.sale_price == Decimal("30.00")
        assert product.markup_percent == Decimal("50.00")

    def test_changing_markup_recomputes_sale(self, make_product, product_repo):
        product = make_product(cost="10", markup="50")

        product.markup_percent = Decimal("25")
        product_repo.save(product)

        assert product.sale_price == Decimal("12.50")

    @pytest.mark.parametrize("field, value", [
        ("cost_price", Decimal("11")),
        ("markup_percent", Decimal("60")),
        ("currency", "EUR"),
        ("sale_price", Decimal("99")),
    ])
    def test_sync_field_change_schedules_exactly_one_push(self, make_product, product_repo, dispatcher, field, value):
        product = make_product()
        product.last_sync_status = "success"
        product_repo.save(product, SaveOptions.internal())
        assert dispatcher.pushed == []

        setattr(product, field, value)
        product_repo.save(product)

        assert product.last_sync_status == "pending"
        assert dispatcher.pushed == [product.id]

    def test_unrelated_change_does_not_schedule(self, make_product, product_repo, dispatcher):
        product = make_product()

        product.name = "Renamed bottle"
        product_repo.save(product)

        assert product.last_sync_status == "never"
        assert dispatcher.pushed == []

    def test_same_value_is_not_a_change(self, make_product, product_repo, dispatcher):
        product = make_product(cost="10")

        product.cost_price = Decimal("10.00")
        product_repo.save(product)

        assert dispatcher.pushed == []

    def test_internal_save_skips_hook(self, make_product, product_repo, dispatcher):
        product = make_product()

        product.cost_price = Decimal("12")
        product_repo.save(product, SaveOptions.internal())

        assert product.sale_price == Decimal("18.00")
        assert product.last_sync_status == "never"
        assert dispatcher.pushed == []

    def test_currency_is_normalized(self, product_repo):
        product = product_repo.save(Product(sku="SKU-2", cost_price=1, markup_percent=0, currency="eur"))

        assert product.currency == "EUR"

    def test_values_survive_reload(self, make_product, product_repo, db):
        product = make_product(cost="4.50", markup="120")
        db.expire_all()

        stored = product_repo.get_by_sku("SKU-1001")
        assert stored.sale_price == Decimal("9.90")
        assert stored.markup_percent == Decimal("120.00")

    @pytest.mark.parametrize("outcome, status", [(None, "success"), (RuntimeError("Boom"), "failed")])
    def test_inline_push_result_is_visible_on_saved_product(self, db, session_factory, stub_client, outcome, status):
        if outcome is not None:
            stub_client.outcomes["SKU-1001"] = outcome
        inline = InlinePushDispatcher(
            runner=lambda product_id: run_push(product_id, session_factory=session_factory, client=stub_client),
        )
        repo = SQLAlchemyProductRepository(db, Product, dispatcher=inline, default_currency="USD")

        product = repo.save(Product(sku="SKU-1001", cost_price=Decimal("10"), markup_percent=Decimal("50")))

        assert len(stub_client.pushed) == 1
        assert product.last_sync_status == status
        assert product.last_sync_direction == "push"


class TestQueries:

    @pytest.fixture(autouse=True)
    def catalog(self, make_product):
        self.products = [
            make_product("SKU-1001", cost="4.50", markup="120"),
            make_product("SKU-1002", cost="28.25", markup="70"),
            make_product("SKU-2001", cost="11.75", markup="80", origin_system="odoo"),
        ]

    def test_get_many_keeps_id_order(self, product_repo):
        ids = [p.id for p in reversed(self.products)]
        assert [p.sku for p in product_repo.get_many(ids)] == ["SKU-1001", "SKU-1002", "SKU-2001"]
        assert product_repo.get_many([]) == []

    def test_filters_by_sku_fragment_and_cost(self, product_repo):
        result = product_repo.get_with_filters(ProductFilter(sku="sku-10", cost_min=Decimal("5")))

        assert result["total"] == 1
        assert result["items"][0].sku == "SKU-1002"

    def test_filters_by_origin(self, product_repo):
        result = product_repo.get_with_filters(ProductFilter(origin_system="odoo"))

        assert [p.sku for p in result["items"]] == ["SKU-2001"]

    def test_pagination(self, product_repo):
        result = product_repo.get_with_filters(ProductFilter(page=2, page_size=2))

        assert result["total"] == 3
        assert result["total_pages"] == 2
        assert [p.sku for p in result["items"]] == ["SKU-2001"]

    def test_search_catalog_by_skus(self, product_repo):
        found = product_repo.search_catalog(PullFilters(skus="SKU-1001, SKU-2001"), PullOptions())

        assert sorted(p.sku for p in found) == ["SKU-1001", "SKU-2001"]

    def test_search_catalog_limit(self, product_repo):
        assert len(product_repo.search_catalog(PullFilters(), PullOptions(limit=2))) == 2

    def test_search_catalog_future_window_is_empty(self, product_repo):
        future = datetime.now(timezone.utc) + timedelta(days=1)
        assert product_repo.search_catalog(PullFilters(updated_after=future), PullOptions()) == []

    def test_count_by(self, product_repo):
        assert product_repo.count_by("origin_system") == {"local": 2, "odoo": 1}
        assert product_repo.count_by("last_sync_status") == {"never": 3}
