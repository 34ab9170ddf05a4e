"""Tests for variant attribute resolution and grouping."""

from backoffice.integrations.contracts.entities import Product, ProductImage, ProductVariant
from backoffice.integrations.policy.variants import (
    DEFAULT_COLOR_KEY,
    DEFAULT_SIZE_KEY,
    primary_image,
    variants_by_color,
    variants_by_size,
)


def test_color_resolved_from_property1():
    variant = ProductVariant.model_validate({"Property1": "Red"})
    assert variant.get_color() == "Red"


def test_color_priority_prefers_named_field():
    variant = ProductVariant.model_validate({"Renk": "Kırmızı", "Color": "Red", "Property1": "Blue"})
    assert variant.get_color() == "Red"


def test_blank_values_are_skipped():
    variant = ProductVariant.model_validate({"Size": "  ", "Beden": "M"})
    assert variant.get_size() == "M"


def test_display_name_combinations():
    assert ProductVariant(color="Red", size="M").display_name == "Red - M"
    assert ProductVariant(color="Red").display_name == "Red"
    assert ProductVariant(size="M").display_name == "M"
    assert ProductVariant(variant_name="Special").display_name == "Special"
    assert ProductVariant().display_name == "Variant"


def test_is_active_defaults_to_true_without_flags():
    assert ProductVariant().is_active_variant is True
    assert ProductVariant(is_active="0").is_active_variant is False
    assert ProductVariant(is_available="true").is_active_variant is True


def test_stock_and_price_helpers():
    variant = ProductVariant.model_validate({"StockQuantity": 4, "SellingPrice": "19.90"})
    assert variant.get_stock_quantity() == 4
    assert str(variant.get_price()) == "19.90"


def test_grouping_uses_default_keys():
    product = Product.model_validate(
        {
            "ProductCode": "T1",
            "SubProducts": [
                {"Color": "Red", "Size": "S"},
                {"Color": "Red", "Size": "M"},
                {"Size": "M"},
                {"Color": "Blue"},
            ],
        }
    )
    by_color = variants_by_color(product)
    assert list(by_color) == ["Red", DEFAULT_COLOR_KEY, "Blue"]
    assert len(by_color["Red"]) == 2

    by_size = variants_by_size(product)
    assert list(by_size) == ["S", "M", DEFAULT_SIZE_KEY]
    assert len(by_size["M"]) == 2


def test_variant_lists_are_not_merged():
    product = Product.model_validate(
        {"SubProducts": [], "SubProductList": [{"Color": "Red"}], "Products": [{"Color": "Blue"}]}
    )
    assert [v.get_color() for v in product.variants] == ["Red"]
    assert product.has_variants


def test_primary_image_prefers_flagged():
    images = [ProductImage(image_url="a.jpg"), ProductImage(image_url="b.jpg", is_main="1")]
    assert primary_image(images).image_url == "b.jpg"
    assert primary_image([ProductImage(image_url="a.jpg")]).image_url == "a.jpg"
    assert primary_image([]) is None
