from datetime import date

import pytest

from stockbook.domain.errors import InvalidDateRangeError, ValidationError
from stockbook.services.reporting_service import ReportingService


class ExplodingRepo:
    def __getattr__(self, name):
        raise AssertionError(f"store touched: {name}")


def _seed(app, product):
    app.purchases.create_purchase(product.id, "Supplier", 20, 10, date="2026-03-01T08:00:00")
    app.purchases.create_purchase(product.id, "Supplier", 5, 10, date="2026-03-04T23:59:59")
    app.sales.create_sale(product.id, "Ann", 3, 15, 10, due=5, date="2026-03-01T18:30:00")
    app.sales.create_sale(product.id, "Bob", 2, 15, 10, date="2026-03-01T20:00:00")
    app.sales.create_sale(product.id, "Cid", 4, 20, 10, due=1, date="2026-03-03T00:00:00")
    # outside the window
    app.sales.create_sale(product.id, "Dan", 1, 15, 10, date="2026-03-06T00:00:00")


def test_daily_series_is_dense_and_ordered(app, product):
    _seed(app, product)

    report = app.reporting.generate_report("2026-02-28", "2026-03-05")

    assert report.dates == [
        "2026-02-28", "2026-03-01", "2026-03-02", "2026-03-03", "2026-03-04", "2026-03-05",
    ]
    assert report.sales_data == [0, 5, 0, 4, 0, 0]
    assert report.purchases_data == [0, 20, 0, 0, 5, 0]
    assert len(report.dates) == len(report.sales_data) == len(report.purchases_data)


def test_totals_cover_the_window(app, product):
    _seed(app, product)

    report = app.reporting.generate_report("2026-03-01", "2026-03-04")

    assert report.sales.quantity == 9
    assert report.sales.total == pytest.approx(3 * 15 + 2 * 15 + 4 * 20)
    assert report.sales.profit == pytest.approx(3 * 5 + 2 * 5 + 4 * 10)
    assert report.sales.due == pytest.approx(6)
    assert report.purchases.quantity == 25
    assert report.purchases.total == pytest.approx(250)


def test_end_day_is_inclusive(app, product):
    _seed(app, product)

    report = app.reporting.generate_report("2026-03-04", "2026-03-04")

    assert report.dates == ["2026-03-04"]
    assert report.purchases_data == [5]


def test_empty_window_defaults_to_zero(app):
    report = app.reporting.generate_report(date(2026, 1, 1), date(2026, 1, 31))

    assert len(report.dates) == 31
    assert set(report.sales_data) == {0}
    assert set(report.purchases_data) == {0}
    assert report.sales.total == 0
    assert report.sales.due == 0
    assert report.purchases.quantity == 0


def test_window_crossing_month_and_leap_day(app):
    report = app.reporting.generate_report("2028-02-27", "2028-03-02")
    assert report.dates == ["2028-02-27", "2028-02-28", "2028-02-29", "2028-03-01", "2028-03-02"]


def test_product_filter(app, product):
    _seed(app, product)
    other = app.inventory.create_product("SKU-2", "Tea", quantity=10, price=1)
    app.sales.create_sale(other.id, "Eve", 7, 2, 1, date="2026-03-02T12:00:00")

    everything = app.reporting.generate_report("2026-03-01", "2026-03-05")
    only_other = app.reporting.generate_report("2026-03-01", "2026-03-05", product_id=str(other.id))

    assert everything.sales.quantity == 16
    assert only_other.product_id == other.id
    assert only_other.sales.quantity == 7
    assert only_other.sales_data == [0, 7, 0, 0, 0]
    assert only_other.purchases.total == 0


def test_start_after_end_fails_without_touching_store():
    reporting = ReportingService(ExplodingRepo())

    with pytest.raises(InvalidDateRangeError):
        reporting.generate_report("2026-03-05", "2026-03-01")


def test_unparsable_date_fails_invalid_range():
    reporting = ReportingService(ExplodingRepo())

    with pytest.raises(InvalidDateRangeError):
        reporting.generate_report("yesterday", "2026-03-01")


def test_malformed_product_id_fails_validation(app):
    with pytest.raises(ValidationError):
        app.reporting.generate_report("2026-03-01", "2026-03-05", product_id="not-an-id")


def test_missing_dates_default_to_current_month(app):
    report = app.reporting.generate_report(today=date(2026, 2, 10))

    assert report.start == "2026-02-01"
    assert report.end == "2026-02-28"
    assert len(report.dates) == 28


def test_soft_deleted_rows_are_excluded(app, product):
    _seed(app, product)
    app.inventory.remove_product(product.id)

    report = app.reporting.generate_report("2026-03-01", "2026-03-05")

    assert report.sales.quantity == 0
    assert report.purchases.quantity == 0
    assert set(report.sales_data) == {0}


def test_product_summary(app, product):
    _seed(app, product)

    sales, purchases = app.reporting.product_summary(product.id, "2026-03-01", "2026-03-03")

    assert sales.quantity == 9
    assert sales.due == pytest.approx(6)
    assert purchases.quantity == 20

    with pytest.raises(ValidationError):
        app.reporting.product_summary(None, "2026-03-01", "2026-03-03")


def test_midnight_on_first_day_is_inside_the_window(app, product):
    app.sales.create_sale(product.id, "Early", 2, 10, 5, date="2026-03-01T00:00:00")
    app.sales.create_sale(product.id, "Late", 1, 10, 5, date="2026-03-01T23:59:59")

    report = app.reporting.generate_report("2026-03-01", "2026-03-01")

    assert report.sales_data == [3]
    assert report.sales.quantity == 3
