"""Resolve the effective tax profile for an order's delivery address."""

from __future__ import annotations

from typing import Optional, Tuple, TypeVar

from ..utils.logging import get_logger
from .models import Address, EffectiveProfile, JurisdictionMatch, JurisdictionRule, TaxProfile

logger = get_logger(__name__)

T = TypeVar("T")

# Higher wins: zipPrefix > city > state > country
SPECIFICITY_ZIP = 4
SPECIFICITY_CITY = 3
SPECIFICITY_STATE = 2
SPECIFICITY_COUNTRY = 1
NO_MATCH = 0


def _same(expected: str, actual: Optional[str]) -> bool:
    return actual is not None and expected.strip().lower() == actual.strip().lower()


def match_specificity(match: JurisdictionMatch, address: Address) -> int:
    """
    Score how specifically a jurisdiction matches an address.

    Every field set on the rule must hold. The score is that of the most
    specific field set, or ``NO_MATCH`` when a field fails or none is set.
    """
    score = NO_MATCH
    if match.country is not None:
        if not _same(match.country, address.country):
            return NO_MATCH
        score = SPECIFICITY_COUNTRY
    if match.state is not None:
        if not _same(match.state, address.state):
            return NO_MATCH
        score = SPECIFICITY_STATE
    if match.city is not None:
        if not _same(match.city, address.city):
            return NO_MATCH
        score = SPECIFICITY_CITY
    if match.zip_prefix is not None:
        zip_code = (address.zip or "").strip()
        if not zip_code or not zip_code.startswith(match.zip_prefix.strip()):
            return NO_MATCH
        score = SPECIFICITY_ZIP
    return score


def select_jurisdiction(
    jurisdictions: Tuple[JurisdictionRule, ...], address: Optional[Address]
) -> Optional[JurisdictionRule]:
    """Pick the single most specific matching rule; earliest wins ties."""
    if address is None:
        return None
    best: Optional[JurisdictionRule] = None
    best_score = NO_MATCH
    for rule in jurisdictions:
        score = match_specificity(rule.match, address)
        # strict ">" keeps the earliest declaration on ties
        if score > best_score:
            best, best_score = rule, score
    return best


def _fallback(override: Optional[T], base: T) -> T:
    return base if override is None else override


def apply_override(profile: TaxProfile, rule: Optional[JurisdictionRule]) -> EffectiveProfile:
    """Replace base fields wholesale with the rule's set overrides."""
    if rule is None:
        return EffectiveProfile(
            country=profile.country,
            currency=profile.currency,
            prices_include_tax=profile.prices_include_tax,
            rounding=profile.rounding,
            rates=profile.rates,
            surcharges=profile.surcharges,
            delivery=profile.delivery,
            b2b=profile.b2b,
        )
    return EffectiveProfile(
        country=profile.country,
        currency=profile.currency,
        prices_include_tax=_fallback(rule.prices_include_tax_override, profile.prices_include_tax),
        rounding=_fallback(rule.rounding_override, profile.rounding),
        rates=_fallback(rule.rates_override, profile.rates),
        surcharges=_fallback(rule.surcharges_override, profile.surcharges),
        delivery=_fallback(rule.delivery_override, profile.delivery),
        b2b=profile.b2b,
        jurisdiction_applied=rule.code,
    )


def resolve_effective_profile(
    profile: TaxProfile, address: Optional[Address] = None
) -> EffectiveProfile:
    """
    Merge the base profile with at most one matching jurisdiction.

    Args:
        profile: Base tax profile
        address: Delivery address, or None for non-delivery orders

    Returns:
        EffectiveProfile used by the rest of the calculation
    """
    rule = select_jurisdiction(profile.jurisdictions, address)
    if rule is not None:
        logger.debug(f"Jurisdiction {rule.code!r} applied")
    return apply_override(profile, rule)
