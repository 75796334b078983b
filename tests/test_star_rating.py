import pytest

from model_reviews.pages.star_rating import STAR_SVG, render_star_rating


@pytest.mark.parametrize("rating", [0, 1, 3, 5, 12])
def test_renders_exactly_rating_stars(rating):
    html = render_star_rating(rating)

    assert html.count(STAR_SVG) == rating
    assert html.count("<svg") == rating
    assert f'aria-label="{rating} stars"' in html


def test_negative_rating_is_rejected():
    with pytest.raises(ValueError):
        render_star_rating(-1)
