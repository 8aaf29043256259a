"""Tests for minvar.resolver -- id match, symbol match, rank tie-breaks, aliases."""

import pytest

from minvar.catalog import Asset, AssetCatalog
from minvar.errors import ResolutionError
from minvar.resolver import TickerResolver


@pytest.fixture
def resolver(catalog):
    return TickerResolver(catalog, aliases={})


class TestResolveOne:

    def test_symbol_picks_best_ranked_asset(self, resolver):
        assert resolver.resolve_one("BTC") == "bitcoin"
        assert resolver.resolve_one("eth") == "ethereum"

    def test_exact_id_wins_over_symbol(self, resolver):
        # "bitcoin-bep2" uses "bitcoin" as its symbol
        assert resolver.resolve_one("bitcoin") == "bitcoin"
        assert resolver.resolve_one("Bitcoin") == "bitcoin"

    def test_ranked_asset_beats_unranked(self, resolver):
        assert resolver.resolve_one("sol") == "solana"

    def test_unranked_tie_keeps_catalog_order(self, resolver):
        assert resolver.resolve_one("dup") == "unranked-a"

    def test_whitespace_is_stripped(self, resolver):
        assert resolver.resolve_one("  Eth ") == "ethereum"

    def test_unknown_returns_none(self, resolver):
        assert resolver.resolve_one("nope") is None
        assert resolver.resolve_one("   ") is None


class TestAliases:

    def test_alias_maps_to_catalog_id(self, catalog):
        resolver = TickerResolver(catalog, aliases={"XBT": "bitcoin"})
        assert resolver.resolve_one("xbt") == "bitcoin"

    def test_alias_to_unknown_id_is_ignored(self, catalog):
        resolver = TickerResolver(catalog, aliases={"foo": "not-listed"})
        assert resolver.resolve_one("foo") is None

    def test_exact_id_wins_over_alias(self, catalog):
        resolver = TickerResolver(catalog, aliases={"solana": "sol-token"})
        assert resolver.resolve_one("solana") == "solana"

    def test_default_aliases_loaded_from_config(self, catalog):
        resolver = TickerResolver(catalog)
        assert resolver.resolve_one("xbt") == "bitcoin"


class TestResolveMany:

    def test_preserves_request_order(self, resolver):
        assert resolver.resolve(["SOL", "btc", "ethereum"]) == ["solana", "bitcoin", "ethereum"]

    def test_reports_every_missing_ticker_at_once(self, resolver):
        with pytest.raises(ResolutionError) as exc:
            resolver.resolve(["BTC", "foo", "ETH", "bar"])
        assert exc.value.missing == ["foo", "bar"]
        assert "foo" in str(exc.value) and "bar" in str(exc.value)

    def test_blank_entries_are_skipped(self, resolver):
        assert resolver.resolve(["btc", " ", ""]) == ["bitcoin"]

    def test_empty_input_resolves_to_empty(self, resolver):
        assert resolver.resolve([]) == []


class TestMixedCaseCatalog:

    def test_uppercase_symbols_resolve(self):
        catalog = AssetCatalog.from_assets([
            Asset("bitcoin", "BTC", 1),
            Asset("Ethereum", "ETH", 2),
        ])
        resolver = TickerResolver(catalog, aliases={})
        assert resolver.resolve(["BTC", "eth"]) == ["bitcoin", "ethereum"]
        assert resolver.resolve_one("ETHEREUM") == "ethereum"
