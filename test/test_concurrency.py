import threading
from pathlib import Path

from stockbook.domain.errors import InsufficientStockError


def _race(n_threads: int, target):
    barrier = threading.Barrier(n_threads)
    outcomes = []
    lock = threading.Lock()

    def run(i):
        barrier.wait()
        try:
            result = target(i)
        except Exception as e:  # collected for assertions
            result = e
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=run, args=(i,)) for i in range(n_threads)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)
    return outcomes


def test_two_sales_for_the_last_units_only_one_wins(app):
    product = app.inventory.create_product("SKU-RACE", "Race", quantity=3, price=10)

    outcomes = _race(2, lambda i: app.sales.create_sale(product.id, f"Customer {i}", 3, 10, 5))

    failures = [o for o in outcomes if isinstance(o, Exception)]
    successes = [o for o in outcomes if not isinstance(o, Exception)]
    assert len(successes) == 1
    assert len(failures) == 1
    assert isinstance(failures[0], InsufficientStockError)
    assert app.inventory.get_product(product.id).quantity == 0
    assert app.queries.list_sales("2000-01-01", "2100-01-01").total_count == 1


def test_many_concurrent_sales_never_oversell(app):
    product = app.inventory.create_product("SKU-MANY", "Many", quantity=5, price=10)

    outcomes = _race(8, lambda i: app.sales.create_sale(product.id, "Customer", 1, 10, 5))

    successes = [o for o in outcomes if not isinstance(o, Exception)]
    assert len(successes) == 5
    assert all(isinstance(o, InsufficientStockError) for o in outcomes if isinstance(o, Exception))
    assert app.inventory.get_product(product.id).quantity == 0


def test_concurrent_purchases_do_not_lose_updates(app):
    product = app.inventory.create_product("SKU-IN", "Inbound", quantity=0, price=10)

    outcomes = _race(6, lambda i: app.purchases.create_purchase(product.id, "Supplier", 2, 1))

    assert not [o for o in outcomes if isinstance(o, Exception)]
    assert app.inventory.get_product(product.id).quantity == 12


def test_sales_on_different_products_do_not_contend(tmp_path: Path):
    from stockbook.application.container import build_container

    app = build_container(tmp_path / "two.db")
    a = app.inventory.create_product("SKU-A", "A", quantity=1, price=1)
    b = app.inventory.create_product("SKU-B", "B", quantity=1, price=1)
    ids = [a.id, b.id]

    outcomes = _race(2, lambda i: app.sales.create_sale(ids[i], "Customer", 1, 1, 1))

    assert not [o for o in outcomes if isinstance(o, Exception)]
    assert app.inventory.get_product(a.id).quantity == 0
    assert app.inventory.get_product(b.id).quantity == 0
