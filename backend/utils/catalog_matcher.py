"""
Catalog Matcher
Hard-filters the product catalog against QueryFilters. Every declared filter
must pass; scoring happens later in the preference ranker.
"""

from typing import Iterable, List, Optional

from models.schemas import Gender, Product, QueryFilters


def _norm(value: Optional[str]) -> str:
    return (value or "").lower()


def matches(product: Product, filters: Optional[QueryFilters]) -> bool:
    """True when the product satisfies every constraint present in filters"""
    if filters is None:
        return True

    if filters.category and filters.category not in _norm(product.category):
        return False

    if filters.color and _norm(product.color) != filters.color:
        return False

    if filters.material and filters.material not in _norm(product.material):
        return False

    # Unisex products pass any gender filter; undeclared genders never exclude
    if filters.gender and product.gender:
        product_gender = _norm(product.gender)
        if product_gender != filters.gender and product_gender != Gender.UNISEX.value:
            return False

    if filters.brand and filters.brand not in _norm(product.brand):
        return False

    if filters.budget:
        if filters.budget.min is not None and product.price < filters.budget.min:
            return False
        if filters.budget.max is not None and product.price > filters.budget.max:
            return False

    if filters.size:
        available = {option.upper() for option in product.size_options}
        if not any(size.upper() in available for size in filters.size):
            return False

    return True


def filter_catalog(catalog: Iterable[Product], filters: Optional[QueryFilters]) -> List[Product]:
    """Products passing all filters, in catalog order"""
    return [product for product in catalog if matches(product, filters)]
