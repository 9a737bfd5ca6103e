"""Tests for the price pipeline."""
import random

import pytest

from tradecore.config import SimulationConfig
from tradecore.simulation.commodities import EconomicProfile, FactionMarketProfile
from tradecore.simulation.market import MarketEntry
from tradecore.simulation.pricing import PriceEngine


def make_entry(commodity_id="ore_iron", supply=100.0, demand=100.0):
    return MarketEntry(commodity_id=commodity_id, supply_level=supply,
                       demand_level=demand, current_price=1.0)


@pytest.fixture
def engine(catalog, config):
    return PriceEngine(catalog, config)


@pytest.fixture
def mining():
    return EconomicProfile(id="mining", category_modifiers={"ore": 1.2})


@pytest.fixture
def union():
    return FactionMarketProfile(
        faction_id="union", buy_price_factor=1.1, sell_price_factor=0.9, tax_rate=0.05)


class TestScenarios:
    """Worked examples from the pricing design."""

    def test_iron_ore_buy_with_tax(self, engine, mining, union):
        """Base 10 x 1.2 x 1.1 x ratio 1 x tax 1.05 = 13.86."""
        unit, total = engine.price("ore_iron", make_entry(), mining, union,
                                   is_buy=True, quantity=1, rng=random.Random(1))

        assert unit == pytest.approx(13.86)
        assert total == pytest.approx(13.86)

    def test_pre_tax_price(self, engine, mining, union):
        """Without tax the same trade costs 13.2."""
        unit, _ = engine.price("ore_iron", make_entry(), mining, union,
                               is_buy=True, quantity=1, rng=random.Random(1), apply_tax=False)

        assert unit == pytest.approx(13.2)

    def test_oversupply_lowers_price(self, engine, mining, union):
        """Supply 300 vs demand 100 clamps the ratio to 0.5."""
        unit, _ = engine.price("ore_iron", make_entry(supply=300.0), mining, union,
                               is_buy=True, quantity=1, rng=random.Random(1), apply_tax=False)

        assert unit < 13.2
        assert unit == pytest.approx(6.6)


class TestPipelineProperties:
    """Invariants that must hold for any inputs."""

    def test_buy_sell_spread(self, engine, mining, union):
        """Buy price exceeds sell price when the buy factor is higher."""
        buy, _ = engine.price("ore_iron", make_entry(), mining, union,
                              is_buy=True, quantity=1, rng=random.Random(5))
        sell, _ = engine.price("ore_iron", make_entry(), mining, union,
                               is_buy=False, quantity=1, rng=random.Random(5))

        assert buy != sell
        assert buy >= sell

    def test_spread_holds_without_tax(self, engine, mining, union):
        """The faction factors alone separate buy and sell."""
        buy, _ = engine.price("ore_iron", make_entry(), mining, union,
                              is_buy=True, quantity=1, rng=random.Random(5), apply_tax=False)
        sell, _ = engine.price("ore_iron", make_entry(), mining, union,
                               is_buy=False, quantity=1, rng=random.Random(5), apply_tax=False)

        assert buy == pytest.approx(13.2)
        assert sell == pytest.approx(10.8)

    def test_deterministic_with_same_seed(self, catalog, mining, union):
        """Identical inputs and RNG state give identical prices."""
        engine = PriceEngine(catalog, SimulationConfig(variance_band=(0.9, 1.1)))

        first, _ = engine.price("ore_iron", make_entry(), mining, union,
                                is_buy=True, quantity=3, rng=random.Random(99))
        second, _ = engine.price("ore_iron", make_entry(), mining, union,
                                 is_buy=True, quantity=3, rng=random.Random(99))

        assert first == second

    def test_variance_uses_one_draw(self, catalog, mining, union):
        """Each call consumes exactly one value from the RNG."""
        engine = PriceEngine(catalog, SimulationConfig(variance_band=(0.9, 1.1)))
        rng = random.Random(3)
        engine.price("ore_iron", make_entry(), mining, union,
                     is_buy=True, quantity=1, rng=rng)

        reference = random.Random(3)
        reference.random()
        assert rng.random() == reference.random()

    def test_variance_stays_in_band(self, catalog, mining, union):
        """Variance never pushes the price outside the configured band."""
        engine = PriceEngine(catalog, SimulationConfig(variance_band=(0.95, 1.05)))
        rng = random.Random(12)

        for _ in range(200):
            unit, _ = engine.price("ore_iron", make_entry(), mining, union,
                                   is_buy=True, quantity=1, rng=rng, apply_tax=False)
            assert 13.2 * 0.95 - 1e-9 <= unit <= 13.2 * 1.05 + 1e-9

    def test_demand_monotonicity(self, engine, mining, union):
        """Raising demand at fixed supply never lowers the price."""
        previous = 0.0
        for demand in range(0, 1001, 25):
            unit, _ = engine.price("ore_iron", make_entry(supply=100.0, demand=float(demand)),
                                   mining, union, is_buy=True, quantity=1,
                                   rng=random.Random(1))
            assert unit >= previous
            previous = unit

    def test_zero_supply_uses_max_ratio(self, engine, mining, union):
        """Empty supply does not divide by zero; the ratio clamps high."""
        unit, _ = engine.price("ore_iron", make_entry(supply=0.0), mining, union,
                               is_buy=True, quantity=1, rng=random.Random(1), apply_tax=False)

        assert unit == pytest.approx(13.2 * 2.0)

    def test_bulk_buy_discount(self, engine, mining, union):
        """Buying 100 units is never dearer per unit than buying one."""
        single, _ = engine.price("ore_iron", make_entry(), mining, union,
                                 is_buy=True, quantity=1, rng=random.Random(1))
        bulk, total = engine.price("ore_iron", make_entry(), mining, union,
                                   is_buy=True, quantity=100, rng=random.Random(1))

        assert bulk <= single
        assert total == pytest.approx(bulk * 100)

    def test_bulk_curve_floor(self, engine):
        """The bulk multiplier never drops below the floor."""
        assert engine.bulk_multiplier(1, is_buy=True) == 1.0
        assert engine.bulk_multiplier(100000, is_buy=True) == 0.5
        assert engine.bulk_multiplier(100000, is_buy=False) == 0.5

    def test_selling_in_bulk_pays_less_per_unit(self, engine):
        """Sell-side curve is steeper than the buy-side one."""
        assert engine.bulk_multiplier(50, is_buy=False) < engine.bulk_multiplier(50, is_buy=True)

    def test_price_floor(self, catalog, union):
        """Unit price stays strictly positive even with tiny modifiers."""
        engine = PriceEngine(catalog, SimulationConfig(variance_band=(1.0, 1.0), min_price=0.5))
        cheap = EconomicProfile(id="dump", category_modifiers={"ore": 0.001})

        unit, _ = engine.price("ore_iron", make_entry(supply=1000.0, demand=0.0), cheap, union,
                               is_buy=False, quantity=1, rng=random.Random(1))

        assert unit == 0.5

    def test_rejects_zero_quantity(self, engine, mining, union):
        with pytest.raises(ValueError):
            engine.price("ore_iron", make_entry(), mining, union,
                         is_buy=True, quantity=0, rng=random.Random(1))


class TestModifiers:
    """Tests for individual pipeline stages."""

    def test_rarity_multiplier(self, engine, catalog):
        assert engine.rarity_multiplier(catalog.get("ore_iron")) == 1.0
        assert engine.rarity_multiplier(catalog.get("fresh_fruit")) == 1.25
        assert engine.rarity_multiplier(catalog.get("ore_gold")) == 1.6

    def test_illegal_goods_markup_depends_on_tolerance(self, engine, catalog):
        """Zero tolerance doubles contraband; full tolerance leaves it alone."""
        stimulants = catalog.get("stimulants")
        strict = FactionMarketProfile(faction_id="strict", illegal_tolerance=0.0)
        lax = FactionMarketProfile(faction_id="lax", illegal_tolerance=1.0)
        middling = FactionMarketProfile(faction_id="mid", illegal_tolerance=0.5)

        assert engine.legality_multiplier(stimulants, strict) == 2.0
        assert engine.legality_multiplier(stimulants, lax) == 1.0
        assert engine.legality_multiplier(stimulants, middling) == 1.5

    def test_restricted_goods_markup(self, engine, catalog):
        strict = FactionMarketProfile(faction_id="strict", illegal_tolerance=0.0)
        assert engine.legality_multiplier(catalog.get("weapon_parts"), strict) == 1.25

    def test_legal_goods_unaffected(self, engine, catalog):
        strict = FactionMarketProfile(faction_id="strict", illegal_tolerance=0.0)
        assert engine.legality_multiplier(catalog.get("ore_iron"), strict) == 1.0

    def test_unknown_category_uses_neutral_modifier(self, engine, union):
        """A profile without the commodity's category leaves the price alone."""
        bare = EconomicProfile(id="bare")
        unit, _ = engine.price("ore_iron", make_entry(), bare, union,
                               is_buy=True, quantity=1, rng=random.Random(1), apply_tax=False)

        assert unit == pytest.approx(11.0)

    def test_breakdown_matches_price(self, engine, mining, union):
        """The stage breakdown ends at the price() result and keeps stage order."""
        stages = engine.breakdown("ore_iron", make_entry(), mining, union,
                                  is_buy=True, quantity=1, rng=random.Random(1))
        unit, _ = engine.price("ore_iron", make_entry(), mining, union,
                               is_buy=True, quantity=1, rng=random.Random(1))

        assert [name for name, _ in stages] == [
            "base", "economy", "faction", "supply_demand", "rarity",
            "legality", "bulk", "variance", "tax",
        ]
        assert stages[0][1] == 10
        assert stages[-1][1] == pytest.approx(unit)

    def test_quote_wraps_price(self, engine, mining, union):
        quote = engine.quote("ore_iron", make_entry(), mining, union,
                             is_buy=False, quantity=4, rng=random.Random(1),
                             station_id="station:alpha")

        assert quote.commodity_id == "ore_iron"
        assert quote.station_id == "station:alpha"
        assert quote.quantity == 4
        assert not quote.is_buy
        assert quote.total_price == pytest.approx(quote.unit_price * 4)
