"""Layout geometry and view parameters."""

from dataclasses import dataclass, replace

from errors import InvalidParameterError
from models import HouseId, PersonId

AUTO = "auto"

# Fragment separator styles
STYLE_NONE = "none"
STYLE_BACKGROUND = "background"
STYLE_SEPARATOR = "separator"
STYLE_COMBINED = "combined"

SEPARATOR_STYLES = (STYLE_NONE, STYLE_BACKGROUND, STYLE_SEPARATOR, STYLE_COMBINED)


@dataclass(frozen=True)
class LayoutConfig:
    """Fixed geometry for one layout pass (units are SVG px)."""

    card_width: float = 150.0
    card_height: float = 70.0
    sibling_spacing: float = 35.0
    group_spacing: float = 50.0
    anchor_x: float = 1500.0
    start_y: float = 100.0
    generation_spacing: float = 50.0
    fragment_gap: float = 200.0
    fragment_padding: float = 20.0
    separator_overhang: float = 50.0
    # Drop-line systems: lateral offsets from the marriage point and bus heights
    pair_line_offset: float = 2.5
    triple_line_offset: float = 5.0
    bus_offset: float = 5.0
    fragment_tints: int = 4

    @property
    def row_height(self) -> float:
        return self.card_height + self.generation_spacing


@dataclass
class ViewParameters:
    selected_house_id: HouseId
    include_cadet_houses: bool = True
    centre_on_person_id: PersonId = AUTO
    generation_spacing: float = 50.0
    fragment_separator_style: str = STYLE_SEPARATOR

    def __post_init__(self):
        if self.fragment_separator_style not in SEPARATOR_STYLES:
            raise InvalidParameterError(
                f"Unknown fragment separator style: {self.fragment_separator_style!r}"
            )
        if self.generation_spacing < 0:
            raise InvalidParameterError(
                f"Generation spacing must be non-negative, got {self.generation_spacing}"
            )

    @property
    def centre_on(self) -> PersonId | None:
        """The explicit root override, or None for automatic root selection."""
        if self.centre_on_person_id in (None, AUTO):
            return None
        return self.centre_on_person_id

    def layout_config(self, base: LayoutConfig | None = None) -> LayoutConfig:
        return replace(base or LayoutConfig(), generation_spacing=float(self.generation_spacing))
