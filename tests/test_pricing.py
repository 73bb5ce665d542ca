"""Tests for the order pricing engine."""
from __future__ import annotations

import pytest

from storefront.pricing import (
    EmptyOrder,
    InvalidLineItem,
    LineItem,
    MalformedDiscount,
    PricingConfig,
    ShippingSelection,
    parse_discount,
    parse_discount_strict,
    present,
    price_line,
    price_order,
    reprice_snapshot,
)


# ---------- Discount parsing ----------

@pytest.mark.parametrize("descriptor, expected", [
    ("20% OFF", 20.0),
    ("Flat 15%", 15.0),
    ("12.5", 12.5),
    (30, 30.0),
    (7.5, 7.5),
    ("150% OFF", 100.0),
])
def test_parse_discount_reads_percentages(descriptor, expected):
    assert parse_discount(descriptor) == expected


@pytest.mark.parametrize("descriptor", ["", None, "abc", "0%", "0", "1.2.3", "OFF", True])
def test_malformed_discount_is_zero(descriptor):
    assert parse_discount(descriptor) == 0.0


def test_strict_parser_raises_malformed_discount():
    with pytest.raises(MalformedDiscount):
        parse_discount_strict("no deal")


def test_malformed_discount_prices_at_full_price():
    line = price_line(LineItem("p1", 2, 400.0, "abc"))
    assert line.discount_percent == 0.0
    assert line.discount_amount == 0.0
    assert line.line_total_after_discount == 800.0


# ---------- Line pricing ----------

@pytest.mark.parametrize("unit_price, qty", [(0.0, 1), (19.99, 3), (2500.0, 7), (1234.56, 12)])
def test_line_total_is_price_times_quantity(unit_price, qty):
    line = price_line(LineItem("p", qty, unit_price))
    assert line.line_total_original == unit_price * qty


@pytest.mark.parametrize("percent", [0, 5, 33.3, 50, 99.9, 100])
def test_discount_amount_matches_percentage(percent):
    line = price_line(LineItem("p", 3, 1200.0, f"{percent}%"))
    assert line.discount_amount == pytest.approx(line.line_total_original * percent / 100)
    assert line.line_total_after_discount >= 0
    assert line.discount_amount <= line.line_total_original


def test_discounted_unit_price_spreads_discount_over_quantity():
    line = price_line(LineItem("p", 4, 1000.0, "25%"))
    assert line.discount_amount == pytest.approx(1000.0)
    assert line.discounted_unit_price == pytest.approx(750.0)


def test_slab_boundary_is_exclusive():
    at = price_line(LineItem("p", 1, 2500.0))
    above = price_line(LineItem("p", 1, 2500.01))
    assert at.tax_rate == 0.05
    assert above.tax_rate == 0.18


def test_slab_uses_discounted_unit_price_not_line_total():
    # line total is 6000 but each unit sells for 2000 after discount
    line = price_line(LineItem("p", 3, 2500.0, "20%"))
    assert line.discounted_unit_price == pytest.approx(2000.0)
    assert line.tax_rate == 0.05
    assert line.tax_amount == pytest.approx(6000.0 * 0.05)


def test_free_item_prices_to_zero():
    for price in (0.0, None):
        line = price_line(LineItem("gift", 2, price, "10%"))
        assert line.line_total_original == 0
        assert line.discount_amount == 0
        assert line.line_total_after_discount == 0
        assert line.tax_amount == 0


@pytest.mark.parametrize("qty", [0, -1, 1.5, None, True])
def test_bad_quantity_is_rejected(qty):
    with pytest.raises(InvalidLineItem):
        price_line(LineItem("p", qty, 10.0))


def test_negative_price_is_rejected():
    with pytest.raises(InvalidLineItem):
        price_line(LineItem("p", 1, -5.0))


# ---------- Order pricing ----------

def test_scenario_discounted_standard_shipping():
    pricing = price_order([LineItem("p1", 1, 3000.0, "20% OFF")], "standard")
    line = pricing.lines[0]
    assert line.line_total_original == 3000
    assert line.discount_amount == pytest.approx(600)
    assert line.line_total_after_discount == pytest.approx(2400)
    assert line.discounted_unit_price == pytest.approx(2400)
    assert line.tax_rate == 0.05
    assert line.tax_amount == pytest.approx(120)
    assert pricing.shipping_cost == 0
    assert present(pricing.grand_total) == 2520.00


def test_scenario_express_shipping_high_slab():
    pricing = price_order([LineItem("p2", 2, 5000.0, None)], ShippingSelection.express)
    line = pricing.lines[0]
    assert line.line_total_original == 10000
    assert line.discount_amount == 0
    assert line.discounted_unit_price == 5000
    assert line.tax_rate == 0.18
    assert line.tax_amount == pytest.approx(1800)
    assert pricing.shipping_cost == 250
    assert present(pricing.grand_total) == 12050.00


def test_empty_order_is_rejected():
    with pytest.raises(EmptyOrder):
        price_order([], "standard")


def test_zero_quantity_order_is_rejected():
    with pytest.raises(InvalidLineItem):
        price_order([LineItem("p1", 0, 100.0)], "standard")


def test_one_bad_line_rejects_the_whole_order():
    with pytest.raises(InvalidLineItem):
        price_order([LineItem("ok", 1, 100.0), LineItem("bad", 1, -1.0)])


def test_order_totals_sum_lines():
    items = [
        LineItem("a", 2, 3000.0, "10%"),
        LineItem("b", 1, 800.0, "abc"),
        LineItem("c", 3, 199.0, "5% OFF"),
    ]
    pricing = price_order(items, "express")
    assert pricing.subtotal_original == pytest.approx(sum(l.line_total_original for l in pricing.lines))
    assert pricing.total_discount == pytest.approx(sum(l.discount_amount for l in pricing.lines))
    assert pricing.total_tax == pytest.approx(sum(l.tax_amount for l in pricing.lines))
    assert pricing.grand_total == pytest.approx(
        sum(l.line_total_after_discount for l in pricing.lines) + pricing.total_tax + 250
    )


def test_repricing_is_idempotent():
    items = [LineItem("a", 2, 2999.99, "17% OFF"), LineItem("b", 5, 12.34, 3)]
    first = price_order(items, "express")
    second = price_order(items, "express")
    assert first == second
    assert first.to_dict() == second.to_dict()


def test_snapshot_reprices_to_same_result():
    items = [LineItem("a", 1, 3000.0, "20% OFF", name="Road Runner", color="Red")]
    original = price_order(items, "standard")
    again = reprice_snapshot([i.to_dict() for i in items], "standard")
    assert again.grand_total == original.grand_total
    assert again.lines[0].item == items[0]


def test_unknown_shipping_is_a_value_error():
    with pytest.raises(ValueError):
        price_order([LineItem("a", 1, 10.0)], "overnight")


def test_configurable_slabs_and_surcharge():
    config = PricingConfig(tax_slabs=((0.0, 0.05), (1000.0, 0.12), (5000.0, 0.28)), express_surcharge=99.0)
    assert config.tax_slabs[0] == (5000.0, 0.28)
    pricing = price_order([LineItem("a", 1, 6000.0), LineItem("b", 1, 1500.0)], "express", config)
    assert [l.tax_rate for l in pricing.lines] == [0.28, 0.12]
    assert pricing.shipping_cost == 99.0


def test_rounded_dict_only_rounds_totals():
    pricing = price_order([LineItem("a", 3, 33.333, "10%")], "standard")
    out = pricing.to_dict(rounded=True)
    assert out["grandTotal"] == round(pricing.grand_total, 2)
    assert out["lines"][0]["lineTotalOriginal"] == pricing.lines[0].line_total_original


def test_snapshot_reads_discount_nested_under_product():
    stored = [{"productId": "runner", "quantity": 1, "price": 3000, "product": {"discount": "20% OFF"}}]
    assert reprice_snapshot(stored, "standard").grand_total == pytest.approx(2520.0)


def test_top_level_discount_wins_over_nested_one():
    stored = [{"productId": "runner", "quantity": 1, "unitPrice": 3000,
               "discount": "10%", "product": {"discount": "20% OFF"}}]
    assert reprice_snapshot(stored, "standard").lines[0].discount_percent == 10.0
