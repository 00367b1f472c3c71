from __future__ import annotations

import json
from datetime import timedelta
from pathlib import Path

import pytest

from agents.filter_extractor import FilterExtractor
from agents.shopping_assistant import ShoppingAssistant
from tools.product_catalog import ProductCatalog
from tools.session_manager import SessionManager
from utils.consistency_logger import ConsistencyLogger

CATALOG_PATH = Path(__file__).resolve().parent.parent / "backend" / "data" / "products.json"


class FakeRedis:
    """Records get/setex/delete calls the way redis-py receives them"""

    def __init__(self):
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int] = {}
        self.writes: list[str] = []

    def get(self, key):
        return self.data.get(key)

    def setex(self, key, ttl, value):
        seconds = int(ttl.total_seconds()) if isinstance(ttl, timedelta) else int(ttl)
        self.data[key] = value
        self.ttls[key] = seconds
        self.writes.append(key)
        return True

    def delete(self, key):
        self.ttls.pop(key, None)
        return 1 if self.data.pop(key, None) is not None else 0


def make_product(product_id: str, **overrides) -> dict:
    record = {
        "id": product_id,
        "title": f"Product {product_id}",
        "brand": "Acme",
        "color": "black",
        "material": "cotton",
        "category": "shirt",
        "gender": "unisex",
        "sizeOptions": ["S", "M", "L"],
        "price": 1000,
        "currency": "INR",
        "thumbnail": f"https://img.example.com/{product_id}.jpg",
        "productUrl": f"https://shop.example.com/{product_id}",
    }
    record.update(overrides)
    return record


@pytest.fixture()
def catalog_records() -> list[dict]:
    return json.loads(CATALOG_PATH.read_text(encoding="utf-8"))


@pytest.fixture()
def catalog(catalog_records) -> ProductCatalog:
    return ProductCatalog.from_records(catalog_records)


@pytest.fixture()
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture()
def session_manager(fake_redis) -> SessionManager:
    return SessionManager(fake_redis)


@pytest.fixture()
def assistant(catalog, session_manager) -> ShoppingAssistant:
    return ShoppingAssistant(
        catalog,
        session_manager,
        FilterExtractor(),
        consistency_logger=ConsistencyLogger(),
    )
