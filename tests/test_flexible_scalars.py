"""Tests for scalar coercion of upstream payloads."""

from decimal import Decimal

from backoffice.integrations.contracts.entities import Product
from backoffice.integrations.policy.flexible_scalars import (
    canonical_number_text,
    first_non_empty,
    is_truthy,
    normalize_scalars,
    to_decimal,
    to_flexible_str,
    to_int,
)


def test_canonical_number_text_keeps_digits_and_drops_exponent():
    assert canonical_number_text(Decimal("300.00000000299997")) == "300.00000000299997"
    assert canonical_number_text(Decimal("12.50")) == "12.5"
    assert canonical_number_text(Decimal("1E+2")) == "100"
    assert canonical_number_text(Decimal("1E-7")) == "0.0000001"
    assert canonical_number_text(7) == "7"
    assert canonical_number_text(0.1) == "0.1"


def test_to_flexible_str_by_token_kind():
    assert to_flexible_str(None) is None
    assert to_flexible_str("abc") == "abc"
    assert to_flexible_str(True) == "true"
    assert to_flexible_str(False) == "false"
    assert to_flexible_str(42) == "42"
    assert to_flexible_str({"nested": 1}) is None
    assert to_flexible_str([1, 2]) is None


def test_normalize_scalars_walks_nested_structures():
    tree = {"a": [1, True, None, {"b": Decimal("2.50")}], "c": "x"}
    assert normalize_scalars(tree) == {"a": ["1", "true", None, {"b": "2.5"}], "c": "x"}


def test_number_and_string_forms_decode_to_same_text():
    as_number = Product.model_validate(normalize_scalars({"SellingPriceVatIncluded": Decimal("300.00000000299997")}))
    as_string = Product.model_validate({"SellingPriceVatIncluded": "300.00000000299997"})
    assert as_number.selling_price_vat_included == as_string.selling_price_vat_included == "300.00000000299997"


def test_boolean_and_string_flags_decode_to_same_text():
    assert Product.model_validate({"IsActive": True}).is_active == "true"
    assert Product.model_validate({"IsActive": "true"}).is_active == "true"


def test_structured_value_in_scalar_field_does_not_fail():
    product = Product.model_validate({"ProductCode": "A1", "Brand": {"Name": "Acme"}})
    assert product.product_code == "A1"
    assert product.brand is None


def test_point_of_use_coercion():
    assert to_int("12") == 12
    assert to_int("12.5") == 0
    assert to_int(None, default=3) == 3
    assert to_decimal("272.72727273") == Decimal("272.72727273")
    assert to_decimal("n/a") == Decimal("0")
    assert is_truthy("1") and is_truthy("TRUE") and is_truthy(True)
    assert not is_truthy("0") and not is_truthy(None)


def test_first_non_empty_skips_blank_strings():
    assert first_non_empty([None, "  ", "x", "y"]) == "x"
    assert first_non_empty([None, ""]) is None


def test_normalize_scalars_deep_nesting():
    tree = leaf = {}
    for _ in range(5000):
        child = {"n": 1.5}
        leaf["child"] = [child]
        leaf = child

    normalized = normalize_scalars(tree)

    depth = 0
    node = normalized
    while "child" in node:
        node = node["child"][0]
        assert node["n"] == "1.5"
        depth += 1
    assert depth == 5000
