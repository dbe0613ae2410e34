import pytest

from cardpick.domain.models import CardOffer, MerchantRule, SearchFilters
from cardpick.engine.evaluator import evaluate_merchant_matches
from cardpick.engine.selectors import GenericMatch, MerchantMatch, rank, rank_strategy

FULL_CATALOG_ORDER = [5, 9, 2, 3, 1, 7, 6, 10, 11, 4, 8]

MERCHANT_QUERIES = ["Zomato", "swiggy", "Hotels", "amazon", "SmartBuy", "uber", "o"]


def _ids(results) -> list[int]:
    return [item.id for item in results]


def test_merchant_match_flags_highest_yield(store) -> None:
    ranked = rank(store, "Zomato")

    assert _ids(ranked) == [1, 3]
    assert ranked[0].name == "HDFC Infinia"
    assert ranked[0].is_best_choice is True
    assert ranked[0].merchant_reward_value == 16.6
    assert ranked[1].name == "HDFC Diners Club Black"
    assert ranked[1].is_best_choice is False
    assert ranked[1].merchant_reward_value == 13


def test_merchant_match_is_case_insensitive(store) -> None:
    assert _ids(rank(store, "zOmAtO")) == _ids(rank(store, "Zomato"))


def test_tied_yields_are_all_best_choice(store) -> None:
    ranked = rank(store, "Hotels")
    merchant_part = [item for item in ranked if item.merchant_reward_value is not None]

    assert len(merchant_part) == 3
    assert all(item.merchant_reward_value == 72 for item in merchant_part)
    assert all(item.is_best_choice for item in merchant_part)
    # lower annual fee first among equal yields
    assert merchant_part[0].name == "HDFC Diners Club Black"


def test_best_for_tags_follow_merchant_matches(store) -> None:
    ranked = rank(store, "Hotels")

    assert _ids(ranked) == [3, 1, 1, 8]
    extra = ranked[-1]
    assert extra.name == "American Express Platinum"
    assert extra.is_best_choice is False
    assert extra.merchant_reward_value is None
    assert extra.merchant_reward_unit is None


def test_reward_value_ranks_and_effective_yield_is_reported(store) -> None:
    ranked = rank(store, "Amazon")

    assert _ids(ranked) == [5, 2]
    assert all(item.is_best_choice for item in ranked)
    assert ranked[1].merchant_reward_unit == "X"
    assert ranked[1].merchant_effective_yield == 5

    values = [item.merchant_reward_value for item in rank(store, "a") if item.merchant_reward_value is not None]
    assert values == [72, 72, 16.6, 13, 5, 5, 5]


def test_rules_tying_on_reward_value_are_best_despite_effective_yield(store) -> None:
    ranked = rank(store, "b")

    assert [(item.name, item.merchant_reward_value, item.is_best_choice) for item in ranked[:2]] == [
        ("SBI Elite", 5, True),
        ("HDFC Infinia", 5, True),
    ]
    assert ranked[1].merchant_effective_yield == 16.5
    assert _ids(ranked[2:]) == [10]


def test_filters_do_not_apply_to_merchant_matches(store) -> None:
    filters = SearchFilters(category="travel", max_annual_fee=0)

    outcome = rank_strategy(store, "Zomato", filters)

    assert isinstance(outcome, MerchantMatch)
    assert _ids(outcome.results) == [1, 3]


def test_unknown_merchant_falls_back_to_empty_generic_search(store) -> None:
    outcome = rank_strategy(store, "xyz-nonexistent-merchant")

    assert isinstance(outcome, GenericMatch)
    assert outcome.results == []


@pytest.mark.parametrize("query", [None, "", "   "])
def test_empty_query_returns_full_catalog(store, query) -> None:
    outcome = rank_strategy(store, query)

    assert isinstance(outcome, GenericMatch)
    assert _ids(outcome.results) == FULL_CATALOG_ORDER
    assert not any(item.is_best_choice for item in outcome.results)


def test_no_fee_filter(store) -> None:
    ranked = rank(store, "", SearchFilters(max_annual_fee=0))

    assert _ids(ranked) == [5, 10]
    assert all(item.annual_fee == 0 for item in ranked)


def test_generic_text_search_covers_all_text_fields(store) -> None:
    assert _ids(rank(store, "dining")) == [9, 2, 3, 1, 7, 6, 4]
    assert _ids(rank(store, "Capital One")) == [11]
    assert _ids(rank(store, "$4k spend")) == [7, 6, 11]


def test_generic_filters_are_conjunctive(store) -> None:
    ranked = rank(
        store,
        "dining",
        SearchFilters(category="dining", reward_type="points", max_annual_fee=1000, min_reward_rate=3),
    )

    assert _ids(ranked) == [9]


def test_wildcards_in_query_match_literally(store) -> None:
    assert rank(store, "%") == []
    assert rank(store, "_") == []
    assert rank(store, "\\") == []


def test_unparseable_numeric_filters_are_ignored(store) -> None:
    filters = SearchFilters(max_annual_fee="abc", min_reward_rate="")

    assert filters.max_annual_fee is None
    assert filters.min_reward_rate is None
    assert _ids(rank(store, "", filters)) == FULL_CATALOG_ORDER


def test_ranking_is_idempotent(store) -> None:
    filters = SearchFilters(min_reward_rate=2)

    for query in ["Zomato", "Hotels", "travel", ""]:
        assert rank(store, query, filters) == rank(store, query, filters)


@pytest.mark.parametrize("query", MERCHANT_QUERIES)
def test_merchant_results_are_ordered_and_flagged(store, snapshot, query) -> None:
    outcome = rank_strategy(store, query)
    assert isinstance(outcome, MerchantMatch)

    merchant_part = [item for item in outcome.results if item.merchant_reward_value is not None]
    yields = [item.merchant_reward_value for item in merchant_part]
    matched = [rule for rule in snapshot.rules if query.lower() in rule.merchant.lower()]

    assert len(merchant_part) == len(matched)
    assert any(item.is_best_choice for item in merchant_part)
    best = max(rule.reward_value for rule in matched)
    for item, value in zip(merchant_part, yields):
        assert item.is_best_choice == (value == best)
    for (a, ya), (b, yb) in zip(zip(merchant_part, yields), zip(merchant_part[1:], yields[1:])):
        assert ya >= yb
        if ya == yb:
            assert a.annual_fee <= b.annual_fee

    tail = outcome.results[len(merchant_part):]
    matched_cards = {rule.card_id for rule in matched}
    assert all(not item.is_best_choice for item in tail)
    assert all(item.id not in matched_cards for item in tail)
    tail_keys = [(-item.reward_rate, item.annual_fee) for item in tail]
    assert tail_keys == sorted(tail_keys)


@pytest.mark.parametrize(
    "filters",
    [
        SearchFilters(),
        SearchFilters(category="premium"),
        SearchFilters(reward_type="cashback"),
        SearchFilters(max_annual_fee=500, min_reward_rate=2),
        SearchFilters(category="travel", reward_type="miles"),
    ],
)
def test_generic_result_set_matches_filters(store, snapshot, filters) -> None:
    expected = {
        card.id
        for card in snapshot.cards
        if (filters.category is None or card.category == filters.category)
        and (filters.reward_type is None or card.reward_type == filters.reward_type)
        and (filters.max_annual_fee is None or card.annual_fee <= filters.max_annual_fee)
        and (filters.min_reward_rate is None or card.reward_rate >= filters.min_reward_rate)
    }

    ranked = rank(store, "", filters)

    assert set(_ids(ranked)) == expected
    assert not any(item.is_best_choice for item in ranked)
    keys = [(-item.reward_rate, item.annual_fee) for item in ranked]
    assert keys == sorted(keys)


def test_computed_yields_within_tolerance_tie() -> None:
    card_a = CardOffer(id=1, name="A", issuer="X", category="travel", reward_type="points", reward_rate=1, annual_fee=10)
    card_b = CardOffer(id=2, name="B", issuer="X", category="travel", reward_type="points", reward_rate=1, annual_fee=0)
    rule_a = MerchantRule(id=1, merchant="Cafe", card_id=1, reward_value=0.1 + 0.2)
    rule_b = MerchantRule(id=2, merchant="Cafe", card_id=2, reward_value=0.3)

    ranked = evaluate_merchant_matches([(rule_a, card_a), (rule_b, card_b)])

    assert all(item.is_best_choice for item in ranked)


def test_best_for_tail_is_ordered_by_rate_then_fee(store) -> None:
    ranked = rank(store, "o")
    tail = [item for item in ranked if item.merchant_reward_value is None]

    assert _ids(tail) == [9, 4, 8]
    assert ranked[-3:] == tail
    assert not any(item.is_best_choice for item in tail)


def test_effective_yield_does_not_outrank_reward_value() -> None:
    card_a = CardOffer(id=1, name="A", issuer="X", category="travel", reward_type="points", reward_rate=1, annual_fee=0)
    card_b = CardOffer(id=2, name="B", issuer="X", category="travel", reward_type="points", reward_rate=1, annual_fee=0)
    multiplier = MerchantRule(id=1, merchant="Cafe", card_id=1, reward_value=5, reward_unit="X", effective_yield=16.5)
    percentage = MerchantRule(id=2, merchant="Cafe", card_id=2, reward_value=13)

    ranked = evaluate_merchant_matches([(multiplier, card_a), (percentage, card_b)])

    assert [item.name for item in ranked] == ["B", "A"]
    assert [item.is_best_choice for item in ranked] == [True, False]
    assert ranked[1].merchant_effective_yield == 16.5
