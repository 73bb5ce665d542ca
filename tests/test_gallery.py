from __future__ import annotations

from storefront.gallery import find_matching_key, main_image, resolve_gallery

PRODUCT = {
    "defaultImage": "https://img/default.jpg",
    "defaultColorName": "Black",
    "colors": ["White", "Black"],
    "imageUrls": {
        "Black": ["https://img/black-1.jpg", " ", "https://img/black-2.jpg"],
        "Navy Blue": ["https://img/navy.jpg"],
    },
}


def test_selected_color_matches_loosely():
    assert find_matching_key(PRODUCT["imageUrls"], "  navy blue ") == "Navy Blue"
    assert resolve_gallery(PRODUCT, "navy blue") == ("Navy Blue", ["https://img/navy.jpg"])


def test_blank_urls_are_filtered():
    _, images = resolve_gallery(PRODUCT, "Black")
    assert images == ["https://img/black-1.jpg", "https://img/black-2.jpg"]


def test_falls_back_to_default_color_name():
    assert resolve_gallery(PRODUCT, "Purple")[0] == "Black"


def test_default_key_wins_over_default_color_name():
    product = dict(PRODUCT, imageUrls={**PRODUCT["imageUrls"], "default": ["https://img/d.jpg"]})
    assert resolve_gallery(product)[0] == "default"


def test_falls_back_to_colors_then_any_key():
    product = {"colors": ["Red", "Green"], "imageUrls": {"green": ["g.jpg"], "zzz": ["z.jpg"]}}
    assert resolve_gallery(product)[0] == "green"
    product = {"colors": ["Red"], "imageUrls": {"empty": [], "zzz": ["z.jpg"]}}
    assert resolve_gallery(product)[0] == "zzz"


def test_no_images_at_all():
    assert resolve_gallery({}) == ("default", [])
    assert main_image({}) == ""
    assert main_image({"defaultImage": "d.jpg"}) == "d.jpg"
