import pytest

from verify_bot.ocr.models import RegionSpec
from verify_bot.ocr.regions import CARD_FULL, CARD_REGIONS, NAME_REGIONS, NAME_TIGHT, resolve_region


def test_card_full_resolves_against_reference_size():
    rect = resolve_region(1000, 2000, CARD_FULL)
    assert (rect.left, rect.top, rect.width, rect.height) == (20, 1120, 960, 800)
    assert rect.box == (20, 1120, 980, 1920)


def test_name_band_sits_inside_card():
    card = resolve_region(1080, 1920, CARD_FULL)
    name = resolve_region(1080, 1920, NAME_TIGHT)
    assert card.top <= name.top
    assert name.top + name.height <= card.top + card.height


@pytest.mark.parametrize("size", [(1, 1), (3, 7), (900, 1600), (2200, 4545), (4000, 300)])
@pytest.mark.parametrize("spec", CARD_REGIONS + NAME_REGIONS, ids=lambda spec: spec.name)
def test_resolved_regions_stay_inside_image(size, spec):
    width, height = size
    rect = resolve_region(width, height, spec)
    assert 0 <= rect.left < width
    assert 0 <= rect.top < height
    assert rect.width >= 1 and rect.height >= 1
    assert rect.left + rect.width <= width
    assert rect.top + rect.height <= height


def test_regions_touching_the_edge_are_clamped():
    spec = RegionSpec("edge", left=0.9, top=0.9, width=0.5, height=0.5)
    rect = resolve_region(10, 10, spec)
    assert (rect.left, rect.top, rect.width, rect.height) == (9, 9, 1, 1)


def test_region_spec_rejects_out_of_range_ratios():
    with pytest.raises(ValueError):
        RegionSpec("broken", left=-0.1, top=0.0, width=0.5, height=0.5)
    with pytest.raises(ValueError):
        RegionSpec("broken", left=0.0, top=0.0, width=1.5, height=0.5)


def test_resolve_rejects_empty_images():
    with pytest.raises(ValueError):
        resolve_region(0, 100, CARD_FULL)
