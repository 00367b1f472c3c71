from __future__ import annotations

from models.schemas import PreferenceState, Product
from utils.preference_ranker import rank, score

from conftest import make_product


def products(*records) -> list[Product]:
    return [Product.model_validate(r) for r in records]


def test_no_preferences_keeps_input_order(catalog):
    ranked = rank(catalog, PreferenceState())
    assert [p.id for p in ranked] == [p.id for p in catalog]


def test_disliked_products_are_dropped():
    items = products(make_product("a"), make_product("b"), make_product("c"))
    ranked = rank(items, PreferenceState(disliked_product_ids=["b"]))
    assert [p.id for p in ranked] == ["a", "c"]


def test_scores_are_additive():
    item = Product.model_validate(make_product("a", brand="Fabindia", color="Red", material="linen"))
    prefs = PreferenceState(
        liked_brands=["fabindia"],
        colors=["red"],
        materials=["linen"],
        liked_product_ids=["a"],
    )
    assert score(item, prefs) == 3 + 2 + 1 + 5


def test_higher_scores_rank_first_and_ties_keep_input_order():
    items = products(
        make_product("plain-1"),
        make_product("red-1", color="red"),
        make_product("plain-2"),
        make_product("liked", color="red"),
        make_product("red-2", color="red"),
    )
    prefs = PreferenceState(colors=["red"], liked_product_ids=["liked"])

    ranked = [p.id for p in rank(items, prefs)]

    assert ranked == ["liked", "red-1", "red-2", "plain-1", "plain-2"]


def test_rank_is_deterministic():
    items = products(*[make_product(f"p{i}", color="red" if i % 3 == 0 else "blue") for i in range(12)])
    prefs = PreferenceState(colors=["red"], materials=["cotton"])
    first = [p.id for p in rank(items, prefs)]
    for _ in range(5):
        assert [p.id for p in rank(items, prefs)] == first


def test_saved_products_get_no_ranking_boost():
    items = products(make_product("a"), make_product("b"))
    ranked = rank(items, PreferenceState(saved_product_ids=["b"]))
    assert [p.id for p in ranked] == ["a", "b"]
