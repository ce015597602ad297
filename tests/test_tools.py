"""Tests for the order catalog and retention offer sequence."""

import json
from datetime import date

import pytest

from delivery_agent.schemas.order_schema import Offer, Order
from delivery_agent.tools.catalog import (
    Catalog,
    CatalogError,
    build_catalog,
    default_catalog,
    load_catalog,
)
from delivery_agent.tools.offers import OfferSequencer, parse_offers


class TestCatalogLookup:
    def test_known_order(self, catalog):
        order = catalog.lookup("123")
        assert order is not None
        assert order.product == "Wireless Headphones"
        assert order.price_minor_units == 2999
        assert order.delivery_date == date(2025, 10, 1)

    def test_second_order(self, catalog):
        assert catalog.lookup("789").product == "Bluetooth Speaker"

    def test_unknown_order(self, catalog):
        assert catalog.lookup("999") is None

    def test_exact_match_only(self, catalog):
        assert catalog.lookup(" 123") is None
        assert catalog.lookup("1234") is None
        assert catalog.lookup("12") is None

    def test_orders_are_immutable(self, catalog):
        order = catalog.lookup("123")
        with pytest.raises(Exception):
            order.product = "Something else"

    def test_duplicate_ids_rejected(self):
        order = Order(id="1", product="A", price_minor_units=1, delivery_date="2025-01-01")
        with pytest.raises(CatalogError):
            Catalog([order, order])

    def test_contains_and_len(self, catalog):
        assert "123" in catalog
        assert len(catalog) == 2


class TestLoadCatalog:
    def test_load_list(self, tmp_path):
        path = tmp_path / "orders.json"
        path.write_text(json.dumps([
            {"id": "555", "product": "Desk Lamp", "price_minor_units": 899, "delivery_date": "2025-11-02"},
        ]))
        catalog = load_catalog(path)
        assert catalog.lookup("555").product == "Desk Lamp"

    def test_load_object_keyed_by_id(self, tmp_path):
        path = tmp_path / "orders.json"
        path.write_text(json.dumps({
            "4321": {"product": "Kettle", "price_minor_units": 1999, "delivery_date": "2025-12-01"},
        }))
        assert load_catalog(path).lookup("4321").product == "Kettle"

    def test_keyed_entry_must_be_object(self, tmp_path):
        path = tmp_path / "orders.json"
        path.write_text(json.dumps({"4321": "Kettle"}))
        with pytest.raises(CatalogError, match="4321"):
            load_catalog(path)

    def test_list_entry_must_be_object(self, tmp_path):
        path = tmp_path / "orders.json"
        path.write_text(json.dumps(["Kettle"]))
        with pytest.raises(CatalogError):
            load_catalog(path)

    def test_non_numeric_id_rejected(self, tmp_path):
        path = tmp_path / "orders.json"
        path.write_text(json.dumps([
            {"id": "A1", "product": "Kettle", "price_minor_units": 1, "delivery_date": "2025-12-01"},
        ]))
        with pytest.raises(CatalogError):
            load_catalog(path)

    def test_bad_date_rejected(self, tmp_path):
        path = tmp_path / "orders.json"
        path.write_text(json.dumps([
            {"id": "1", "product": "Kettle", "price_minor_units": 1, "delivery_date": "soon"},
        ]))
        with pytest.raises(CatalogError):
            load_catalog(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(CatalogError):
            load_catalog(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "orders.json"
        path.write_text("{not json")
        with pytest.raises(CatalogError):
            load_catalog(path)

    def test_build_catalog_defaults(self):
        assert build_catalog("").ids() == default_catalog().ids()


class TestParseOffers:
    def test_default_offer_string(self):
        offers = parse_offers("BOGO:Buy One Get One|FREE_ACC:a free accessory|50_OFF:50% discount")
        assert [o.code for o in offers] == ["BOGO", "FREE_ACC", "50_OFF"]
        assert offers[2].description == "50% discount"

    def test_description_may_contain_colon(self):
        assert parse_offers("X:deal: half off")[0].description == "deal: half off"

    def test_trailing_separator_ignored(self):
        assert len(parse_offers("A:one|B:two|")) == 2

    def test_malformed_entry(self):
        with pytest.raises(ValueError):
            parse_offers("A:one|nodescription")

    def test_empty(self):
        with pytest.raises(ValueError):
            parse_offers("  ")


class TestOfferSequencer:
    def test_cyclic_indexing(self, offers):
        assert offers.offer_at(0) == offers.offer_at(3) == offers.offer_at(6)

    def test_priority_order(self, offers):
        assert offers.offer_at(0).code == "BOGO"
        assert offers.offer_at(1).code == "FREE_ACC"
        assert offers.offer_at(2).code == "50_OFF"

    def test_is_last(self, offers):
        assert not offers.is_last(0)
        assert not offers.is_last(1)
        assert offers.is_last(2)

    def test_single_offer_is_always_last(self):
        seq = OfferSequencer([Offer(code="ONLY", description="the only deal")])
        assert seq.is_last(0)
        assert seq.offer_at(5).code == "ONLY"

    def test_empty_rejected(self):
        with pytest.raises(ValueError):
            OfferSequencer([])

    def test_from_config(self):
        seq = OfferSequencer.from_config("A:first|B:second")
        assert len(seq) == 2
        assert seq.offer_at(1).code == "B"
