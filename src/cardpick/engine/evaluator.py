import math
from collections.abc import Sequence

from cardpick.domain.models import CardOffer, MerchantRule, RankedResult

TIE_TOLERANCE = 1e-9


def is_same_yield(a: float, b: float) -> bool:
    return math.isclose(a, b, rel_tol=0.0, abs_tol=TIE_TOLERANCE)


def evaluate_merchant_matches(
    matches: Sequence[tuple[MerchantRule, CardOffer]],
) -> list[RankedResult]:
    """Annotate merchant matches and order them by reward value, highest first.

    Every match whose reward value ties the maximum is flagged as a best
    choice; lower annual fee breaks ties in ordering only.
    """
    if not matches:
        return []

    best_value = max(rule.reward_value for rule, _ in matches)
    ordered = sorted(
        matches,
        key=lambda item: (-item[0].reward_value, item[1].annual_fee, item[0].id),
    )
    return [
        RankedResult.from_rule(card, rule, is_best_choice=is_same_yield(rule.reward_value, best_value))
        for rule, card in ordered
    ]
