import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from pydantic import ValidationError

from models.schemas import Product

logger = logging.getLogger(__name__)


class ProductCatalog:
    """Read-only product catalog loaded once at startup and indexed by id"""

    def __init__(self, products: List[Product]):
        self._products = tuple(products)
        self._by_id: Dict[str, Product] = {}
        for product in self._products:
            if product.id in self._by_id:
                raise ValueError(f"Duplicate product id in catalog: {product.id}")
            self._by_id[product.id] = product

    @classmethod
    def from_records(cls, records: List[Dict[str, Any]]) -> "ProductCatalog":
        products = []
        for index, record in enumerate(records):
            try:
                products.append(Product.model_validate(record))
            except ValidationError as e:
                raise ValueError(f"Invalid product record at index {index}: {e}") from e
        return cls(products)

    @classmethod
    def from_json(cls, file_path: str) -> "ProductCatalog":
        """Load the catalog from a JSON array of product records"""
        path = Path(file_path)
        with path.open('r', encoding='utf-8') as f:
            data = json.load(f)

        if not isinstance(data, list):
            raise ValueError(f"Catalog file {path} must contain a JSON array")

        catalog = cls.from_records(data)
        logger.info(f"📊 Loaded {len(catalog)} products from {path}")
        return catalog

    @property
    def products(self) -> List[Product]:
        return list(self._products)

    def get(self, product_id: str) -> Optional[Product]:
        """Get single product by id"""
        return self._by_id.get(product_id)

    def __iter__(self) -> Iterator[Product]:
        return iter(self._products)

    def __len__(self) -> int:
        return len(self._products)
