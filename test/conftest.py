import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


@pytest.fixture
def app(tmp_path: Path):
    from stockbook.application.container import build_container

    return build_container(tmp_path / "stockbook.db")


@pytest.fixture
def product(app):
    return app.inventory.create_product("SKU-1", "Premium Coffee Beans", quantity=100, price=29.99)
