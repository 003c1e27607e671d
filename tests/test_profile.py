"""Tests for jurisdiction resolution."""

import pytest

from conftest import make_draft, make_line
from ordertax.tax_calculation import TaxProfile, calculate_tax_snapshot, resolve_effective_profile
from ordertax.tax_calculation.models import Address
from ordertax.tax_calculation.rounding import RoundingMode


@pytest.fixture
def jurisdiction_profile(std_profile):
    std_profile["jurisdictions"] = [
        {
            "code": "gt-country",
            "match": {"country": "GT"},
            "ratesOverride": [{"code": "gt", "rateBps": 500, "appliesTo": "all"}],
        },
        {
            "code": "zip-01",
            "match": {"country": "GT", "zipPrefix": "01"},
            "ratesOverride": [{"code": "zip", "rateBps": 1000, "appliesTo": "all"}],
        },
        {
            "code": "antigua",
            "match": {"city": "Antigua Guatemala"},
            "pricesIncludeTaxOverride": False,
            "roundingOverride": "half_even",
        },
    ]
    return TaxProfile.from_dict(std_profile)


class TestJurisdictionPrecedence:

    def test_zip_prefix_beats_country(self, jurisdiction_profile):
        effective = resolve_effective_profile(
            jurisdiction_profile, Address(country="GT", zip="01010")
        )
        assert effective.jurisdiction_applied == "zip-01"
        assert [r.code for r in effective.rates] == ["zip"]

    def test_country_when_zip_differs(self, jurisdiction_profile):
        effective = resolve_effective_profile(
            jurisdiction_profile, Address(country="gt", zip="09001")
        )
        assert effective.jurisdiction_applied == "gt-country"
        assert [r.code for r in effective.rates] == ["gt"]

    def test_city_is_case_insensitive(self, jurisdiction_profile):
        effective = resolve_effective_profile(
            jurisdiction_profile, Address(country="GT", city="ANTIGUA guatemala", zip="03001")
        )
        assert effective.jurisdiction_applied == "antigua"

    def test_no_address_uses_base(self, jurisdiction_profile):
        effective = resolve_effective_profile(jurisdiction_profile, None)
        assert effective.jurisdiction_applied is None
        assert [r.code for r in effective.rates] == ["std"]

    def test_no_match_uses_base(self, jurisdiction_profile):
        effective = resolve_effective_profile(jurisdiction_profile, Address(country="MX"))
        assert effective.jurisdiction_applied is None
        assert effective.prices_include_tax is True

    def test_tie_goes_to_earliest(self, std_profile):
        std_profile["jurisdictions"] = [
            {"code": "first", "match": {"state": "Sacatepequez"}},
            {"code": "second", "match": {"state": "sacatepequez"}},
        ]
        effective = resolve_effective_profile(
            TaxProfile.from_dict(std_profile), Address(state="Sacatepequez")
        )
        assert effective.jurisdiction_applied == "first"

    def test_all_match_fields_must_hold(self, std_profile):
        std_profile["jurisdictions"] = [
            {"code": "mx-zip", "match": {"country": "MX", "zipPrefix": "01"}},
        ]
        effective = resolve_effective_profile(
            TaxProfile.from_dict(std_profile), Address(country="GT", zip="01010")
        )
        assert effective.jurisdiction_applied is None

    def test_empty_match_never_applies(self, std_profile):
        std_profile["jurisdictions"] = [{"code": "empty", "match": {}}]
        effective = resolve_effective_profile(
            TaxProfile.from_dict(std_profile), Address(country="GT")
        )
        assert effective.jurisdiction_applied is None


class TestOverrideSemantics:

    def test_unset_fields_fall_back_to_base(self, jurisdiction_profile):
        effective = resolve_effective_profile(
            jurisdiction_profile, Address(country="GT", zip="01010")
        )
        assert effective.prices_include_tax is True
        assert effective.rounding is RoundingMode.HALF_UP
        assert effective.delivery == jurisdiction_profile.delivery

    def test_flags_override(self, jurisdiction_profile):
        effective = resolve_effective_profile(
            jurisdiction_profile, Address(city="Antigua Guatemala")
        )
        assert effective.prices_include_tax is False
        assert effective.rounding is RoundingMode.HALF_EVEN
        assert [r.code for r in effective.rates] == ["std"]

    def test_empty_rates_override_replaces_everything(self, std_profile):
        std_profile["jurisdictions"] = [
            {"code": "free-zone", "match": {"zipPrefix": "99"}, "ratesOverride": []}
        ]
        effective = resolve_effective_profile(TaxProfile.from_dict(std_profile), Address(zip="990"))
        assert effective.rates == ()

    def test_snapshot_records_jurisdiction(self, jurisdiction_profile):
        draft = make_draft(
            [make_line(unit_price=1100)],
            order_type="delivery",
            deliveryAddressInfo={"country": "GT", "zip": "01010", "line1": "6a Avenida"},
        )
        snap = calculate_tax_snapshot(draft, jurisdiction_profile).to_dict()
        assert snap["jurisdictionApplied"] == "zip-01"
        # 1100 * 1000 / 11000
        assert snap["summaryByRate"][0]["code"] == "zip"
        assert snap["totals"]["taxCents"] == 100
