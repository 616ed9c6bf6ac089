"""Content-fit viewport transform, for callers that display a layout."""

from dataclasses import dataclass

from layout import BoundingBox


@dataclass(frozen=True)
class ViewTransform:
    scale: float = 1.0
    translate_x: float = 0.0
    translate_y: float = 0.0

    def apply(self, x: float, y: float) -> tuple[float, float]:
        return (x * self.scale + self.translate_x, y * self.scale + self.translate_y)


def fit_viewport(
    bounds: BoundingBox | None,
    viewport_width: float,
    viewport_height: float,
    padding: float = 100.0,
    min_scale: float = 0.3,
    max_scale: float = 1.0,
    previous: ViewTransform | None = None,
    preserve: bool = False,
) -> ViewTransform:
    """
    Scale and translate so the content box sits centred in the viewport.

    The scale never zooms in past ``max_scale`` or out past ``min_scale``.
    With ``preserve=True`` a previous transform is kept as-is, so a redraw
    does not jump the user's view.
    """
    if preserve and previous is not None:
        return previous
    if bounds is None or bounds.width <= 0 or bounds.height <= 0:
        return previous or ViewTransform()

    scale_x = (viewport_width - padding * 2) / bounds.width
    scale_y = (viewport_height - padding * 2) / bounds.height
    scale = max(min(scale_x, scale_y, max_scale), min_scale)

    center_x = (bounds.min_x + bounds.max_x) / 2
    center_y = (bounds.min_y + bounds.max_y) / 2
    return ViewTransform(
        scale=scale,
        translate_x=viewport_width / 2 - center_x * scale,
        translate_y=viewport_height / 2 - center_y * scale,
    )
