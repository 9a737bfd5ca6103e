"""Smoke tests for the headless runner."""
from tradecore.main import create_initial_economy, main, DEMO_STATIONS


class TestHeadlessRunner:
    """Tests for the command-line entry point."""

    def test_initial_economy_has_demo_stations(self):
        registry = create_initial_economy(seed=1)

        assert len(registry) == len(DEMO_STATIONS)
        for descriptor in DEMO_STATIONS:
            market = registry.get_market(descriptor.station_id)
            assert set(market.entries) == set(descriptor.stock)
            assert market.rejected_stock == ()

    def test_run_prints_station(self, capsys):
        assert main(["--hours", "2", "--seed", "3", "--station", "station:kessler"]) == 0

        out = capsys.readouterr().out
        assert "tick 8" in out
        assert "station:kessler" in out
        assert "ore_iron" in out

    def test_jump(self, capsys):
        assert main(["--hours", "0", "--jump-hours", "48", "--station", "station:forge"]) == 0

        assert "tick 192" in capsys.readouterr().out
