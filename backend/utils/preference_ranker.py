"""
Preference Ranker
Orders candidates by a small additive score built from the session's
accumulated taste. Disliked products are removed outright.
"""

from typing import Iterable, List

from models.schemas import PreferenceState, Product

LIKED_BRAND_WEIGHT = 3
COLOR_WEIGHT = 2
MATERIAL_WEIGHT = 1
LIKED_PRODUCT_WEIGHT = 5


def score(product: Product, preferences: PreferenceState) -> int:
    """Integer preference score; signals are independent and uncapped"""
    total = 0
    if product.brand.lower() in preferences.liked_brands:
        total += LIKED_BRAND_WEIGHT
    if product.color.lower() in preferences.colors:
        total += COLOR_WEIGHT
    if product.material.lower() in preferences.materials:
        total += MATERIAL_WEIGHT
    if product.id in preferences.liked_product_ids:
        total += LIKED_PRODUCT_WEIGHT
    return total


def rank(candidates: Iterable[Product], preferences: PreferenceState) -> List[Product]:
    """Drop disliked products, then sort by descending score.

    sorted() is stable, so equal scores keep their input order.
    """
    disliked = set(preferences.disliked_product_ids)
    remaining = [product for product in candidates if product.id not in disliked]
    return sorted(remaining, key=lambda product: score(product, preferences), reverse=True)
