from __future__ import annotations

STAR_SVG = (
    '<svg class="star-rating__star star-rating__star--filled" viewBox="0 0 24 24" '
    'width="16" height="16" aria-hidden="true" focusable="false">'
    '<path fill="currentColor" d="M12 2.5l2.94 5.96 6.56.95-4.75 4.63 1.12 6.54L12 17.5l-5.87 3.08 '
    '1.12-6.54L2.5 9.41l6.56-.95z"/></svg>'
)


def render_star_rating(rating: int) -> str:
    """Render ``rating`` filled stars. Nothing is drawn for the remainder."""
    count = int(rating)
    if count < 0:
        raise ValueError(f"Star rating must be non-negative, got {rating!r}")
    stars = STAR_SVG * count
    return f'<div class="star-rating" role="img" aria-label="{count} stars">{stars}</div>'
