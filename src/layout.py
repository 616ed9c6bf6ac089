"""Coordinates and connector geometry for ordered generations."""

import logging
from dataclasses import dataclass, field
from functools import cmp_to_key

from config import (
    STYLE_BACKGROUND,
    STYLE_COMBINED,
    STYLE_NONE,
    STYLE_SEPARATOR,
    LayoutConfig,
)
from generations import GenerationResult
from graph import RelationshipGraph
from models import ADOPTED, BASTARD, PersonId, coerce_year, couple_key
from ordering import PrimogenitureOrderer

logger = logging.getLogger(__name__)

# Child line categories
LINE_LEGITIMATE = "legitimate"
LINE_NON_LEGITIMATE = "non-legitimate"
LINE_ADOPTED = "adopted"

MARRIAGE = "marriage"
CHILD = "child"

Point = tuple[float, float]
Segment = tuple[Point, Point]


@dataclass
class Box:
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def center_x(self) -> float:
        return self.x + self.width / 2

    @property
    def mid_y(self) -> float:
        return self.y + self.height / 2

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass
class BoundingBox:
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    @classmethod
    def around(cls, boxes) -> "BoundingBox | None":
        boxes = list(boxes)
        if not boxes:
            return None
        return cls(
            min(b.x for b in boxes),
            min(b.y for b in boxes),
            max(b.right for b in boxes),
            max(b.bottom for b in boxes),
        )

    def padded(self, amount: float) -> "BoundingBox":
        return BoundingBox(
            self.min_x - amount, self.min_y - amount, self.max_x + amount, self.max_y + amount
        )

    def to_dict(self) -> dict:
        return {
            "min_x": self.min_x,
            "min_y": self.min_y,
            "max_x": self.max_x,
            "max_y": self.max_y,
            "width": self.width,
            "height": self.height,
        }


@dataclass
class Connector:
    kind: str  # marriage | child
    person_ids: tuple
    segments: list[Segment] = field(default_factory=list)
    category: str | None = None  # child lines only
    parent_ids: tuple = ()
    source: Point | None = None
    bus_y: float | None = None

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "category": self.category,
            "person_ids": list(self.person_ids),
            "parent_ids": list(self.parent_ids),
            "source": list(self.source) if self.source else None,
            "bus_y": self.bus_y,
            "segments": [[list(a), list(b)] for a, b in self.segments],
        }


@dataclass
class FragmentBackground:
    fragment_index: int
    bounds: BoundingBox
    tint_index: int


@dataclass
class FragmentSeparator:
    upper_fragment: int
    lower_fragment: int
    y: float
    x1: float
    x2: float
    year_gap: int | None
    label: str


@dataclass
class FragmentPlan:
    """Everything the engine needs to place one fragment."""

    index: int
    generations: GenerationResult
    allowed_ids: frozenset
    orderer: PrimogenitureOrderer
    member_ids: list[PersonId] = field(default_factory=list)


@dataclass
class LayoutResult:
    positions: dict[PersonId, Box] = field(default_factory=dict)
    connectors: list[Connector] = field(default_factory=list)
    fragment_bounds: dict[int, BoundingBox] = field(default_factory=dict)
    decorations: list = field(default_factory=list)


@dataclass
class _Group:
    parent_id: PersonId | None
    spouse_id: PersonId | None
    children: list[PersonId]


def child_category(graph: RelationshipGraph, child_id: PersonId, parent_ids) -> str:
    person = graph.person(child_id)
    status = person.legitimacy_status if person else None
    if status == ADOPTED or any(graph.is_adopted_by(pid, child_id) for pid in parent_ids):
        return LINE_ADOPTED
    if status == BASTARD:
        return LINE_NON_LEGITIMATE
    return LINE_LEGITIMATE


def line_offsets(categories: set[str], config: LayoutConfig) -> dict[str, float]:
    """Lateral offsets from the marriage point so drop-line systems never overlap."""
    pair = config.pair_line_offset
    triple = config.triple_line_offset
    offsets = {LINE_LEGITIMATE: 0.0, LINE_NON_LEGITIMATE: 0.0, LINE_ADOPTED: 0.0}
    if len(categories) == 3:
        offsets[LINE_NON_LEGITIMATE] = -triple
        offsets[LINE_ADOPTED] = triple
    elif categories == {LINE_LEGITIMATE, LINE_NON_LEGITIMATE}:
        offsets[LINE_LEGITIMATE] = pair
        offsets[LINE_NON_LEGITIMATE] = -pair
    elif categories == {LINE_LEGITIMATE, LINE_ADOPTED}:
        offsets[LINE_LEGITIMATE] = -pair
        offsets[LINE_ADOPTED] = pair
    elif categories == {LINE_NON_LEGITIMATE, LINE_ADOPTED}:
        offsets[LINE_NON_LEGITIMATE] = -pair
        offsets[LINE_ADOPTED] = pair
    return offsets


class _FragmentLayout:
    """Single top-to-bottom placement pass over one fragment's generations."""

    def __init__(
        self,
        plan: FragmentPlan,
        graph: RelationshipGraph,
        config: LayoutConfig,
        result: LayoutResult,
        top_y: float,
    ):
        self.plan = plan
        self.graph = graph
        self.config = config
        self.result = result
        self.top_y = top_y
        self.placed: list[PersonId] = []
        self.marriage_points: dict[tuple, Point] = {}
        self.depth_of: dict[PersonId, int] = {
            pid: depth for depth, row in enumerate(plan.generations.rows) for pid in row
        }
        if plan.generations.root_spouse_id is not None:
            self.depth_of[plan.generations.root_spouse_id] = 0

    def _in_fragment(self, person_id) -> bool:
        return person_id is not None and person_id in self.plan.allowed_ids

    def _is_placed(self, person_id) -> bool:
        return person_id in self.result.positions

    def _place(self, person_id: PersonId, x: float, y: float) -> Box:
        box = Box(x, y, self.config.card_width, self.config.card_height)
        self.result.positions[person_id] = box
        self.placed.append(person_id)
        return box

    def _marry(self, a: PersonId, b: PersonId):
        box_a = self.result.positions[a]
        box_b = self.result.positions[b]
        if box_a.y == box_b.y:
            left, right = (box_a, box_b) if box_a.x <= box_b.x else (box_b, box_a)
            start = (left.right, left.mid_y)
            end = (right.x, right.mid_y)
        else:
            # Partners in different rows: upper card's bottom to lower card's top
            upper, lower = (box_a, box_b) if box_a.y < box_b.y else (box_b, box_a)
            start = (upper.center_x, upper.bottom)
            end = (lower.center_x, lower.y)
        self.marriage_points[couple_key(a, b)] = (
            (start[0] + end[0]) / 2,
            (start[1] + end[1]) / 2,
        )
        self.result.connectors.append(
            Connector(kind=MARRIAGE, person_ids=(a, b), segments=[(start, end)])
        )

    def _row_width(self, card_count: int, group_count: int) -> float:
        cfg = self.config
        if card_count == 0:
            return 0.0
        return (
            card_count * cfg.card_width
            + (card_count - 1) * cfg.sibling_spacing
            + max(group_count - 1, 0) * cfg.group_spacing
        )

    def run(self) -> list[PersonId]:
        rows = self.plan.generations.rows
        if not rows:
            return self.placed

        row_order = [self._place_root()]
        for depth in range(1, len(rows)):
            previous = list(row_order[depth - 1])
            # People of the previous generation already drawn in an earlier row
            previous += [pid for pid in rows[depth - 1] if pid not in previous]
            row_order.append(self._place_generation(depth, previous, rows[depth]))

        unplaced = [pid for pid in self.plan.allowed_ids if not self._is_placed(pid)]
        if unplaced:
            logger.debug(
                "Fragment %d: %d scoped people not reachable from the root",
                self.plan.index,
                len(unplaced),
            )
        return self.placed

    def _place_root(self) -> list[PersonId]:
        cfg = self.config
        root_id = self.plan.generations.root_id
        spouse_id = self.plan.generations.root_spouse_id
        if spouse_id is not None and (not self._in_fragment(spouse_id) or self._is_placed(spouse_id)):
            spouse_id = None

        cards = 2 if spouse_id is not None else 1
        x = cfg.anchor_x - self._row_width(cards, 1) / 2
        self._place(root_id, x, self.top_y)
        row = [root_id]
        if spouse_id is not None:
            self._place(spouse_id, x + cfg.card_width + cfg.sibling_spacing, self.top_y)
            self._marry(root_id, spouse_id)
            row.append(spouse_id)
        return row

    def _collect_groups(self, previous: list[PersonId], generation: list[PersonId]) -> list[_Group]:
        in_generation = set(generation)
        claimed: set[PersonId] = set()
        groups: list[_Group] = []
        seen: set[tuple] = set()

        for parent_id in previous:
            if not self._in_fragment(parent_id):
                continue
            spouse_id = self.graph.spouse_of(parent_id)
            if not self._in_fragment(spouse_id):
                spouse_id = None

            candidates = list(self.graph.children_of(parent_id))
            candidates += self.graph.children_of(spouse_id)
            children = [
                cid
                for cid in dict.fromkeys(candidates)
                if cid in in_generation and cid not in claimed and not self._is_placed(cid)
            ]
            if not children:
                continue
            key = couple_key(parent_id, spouse_id)
            if key in seen:
                continue
            seen.add(key)
            children.sort(key=self.graph.birth_sort_year)
            claimed.update(children)
            groups.append(_Group(parent_id, spouse_id, children))

        orderer = self.plan.orderer
        groups.sort(key=cmp_to_key(lambda a, b: orderer.compare(a.parent_id, b.parent_id)))

        stray = [pid for pid in generation if pid not in claimed and not self._is_placed(pid)]
        if stray:
            stray.sort(key=self.graph.birth_sort_year)
            groups.append(_Group(None, None, stray))
        return groups

    def _parent_span_center(self, groups: list[_Group]) -> float:
        boxes = [
            self.result.positions[pid]
            for group in groups
            for pid in (group.parent_id, group.spouse_id)
            if pid is not None and self._is_placed(pid)
        ]
        span = BoundingBox.around(boxes)
        if span is None:
            return self.config.anchor_x
        return (span.min_x + span.max_x) / 2

    def _place_generation(
        self, depth: int, previous: list[PersonId], generation: list[PersonId]
    ) -> list[PersonId]:
        cfg = self.config
        groups = self._collect_groups(previous, generation)
        if not groups:
            return []

        # Cards per group: each child followed by their spouse. A spouse from
        # the same generation sits beside their partner and is skipped later;
        # a spouse from a later generation keeps their own row.
        group_cards: list[list[tuple[PersonId, PersonId | None]]] = []
        planned: set[PersonId] = set()
        for group in groups:
            cards = []
            for child_id in group.children:
                if child_id in planned:
                    continue
                planned.add(child_id)
                spouse_id = self.graph.spouse_of(child_id)
                if (
                    not self._in_fragment(spouse_id)
                    or self._is_placed(spouse_id)
                    or spouse_id in planned
                    or self.depth_of.get(spouse_id, depth) > depth
                ):
                    spouse_id = None
                else:
                    planned.add(spouse_id)
                cards.append((child_id, spouse_id))
            group_cards.append(cards)

        card_count = sum(1 + (spouse is not None) for cards in group_cards for _, spouse in cards)
        filled = sum(1 for cards in group_cards if cards)
        width = self._row_width(card_count, filled)
        x = self._parent_span_center(groups) - width / 2
        y = self.top_y + depth * cfg.row_height

        row: list[PersonId] = []
        for cards in group_cards:
            if not cards:
                continue
            if row:
                x += cfg.group_spacing
            for child_id, spouse_id in cards:
                self._place(child_id, x, y)
                row.append(child_id)
                x += cfg.card_width + cfg.sibling_spacing
                if spouse_id is not None:
                    self._place(spouse_id, x, y)
                    self._marry(child_id, spouse_id)
                    row.append(spouse_id)
                    x += cfg.card_width + cfg.sibling_spacing
            x -= cfg.sibling_spacing

        # Marriages to a partner drawn in an earlier row
        for person_id in row:
            partner_id = self.graph.spouse_of(person_id)
            if not self._in_fragment(partner_id) or not self._is_placed(partner_id):
                continue
            if self.result.positions[partner_id].y >= y:
                continue
            if couple_key(partner_id, person_id) not in self.marriage_points:
                self._marry(partner_id, person_id)

        for group in groups:
            if group.parent_id is not None:
                self._child_lines(group)
        return row

    def _child_lines(self, group: _Group):
        cfg = self.config
        positions = self.result.positions
        parent_box = positions.get(group.parent_id)
        if parent_box is None:
            logger.warning("Parent position not found for %s", group.parent_id)
            return

        spouse_id = group.spouse_id if group.spouse_id in positions else None
        couple = (group.parent_id,) if spouse_id is None else (group.parent_id, spouse_id)
        joint = self.marriage_points.get(couple_key(group.parent_id, spouse_id))
        if joint is None:
            joint = (parent_box.center_x, parent_box.bottom)

        child_y = positions[group.children[0]].y
        mid_y = parent_box.bottom + (child_y - parent_box.bottom) / 2
        bus_y = {
            LINE_LEGITIMATE: mid_y,
            LINE_NON_LEGITIMATE: mid_y - cfg.bus_offset,
            LINE_ADOPTED: mid_y + cfg.bus_offset,
        }

        # (category, single parent or None for the couple) -> children
        systems: dict[tuple[str, PersonId | None], list[PersonId]] = {}
        for child_id in group.children:
            recorded = [pid for pid in couple if pid in self.graph.parents_of(child_id)]
            category = child_category(self.graph, child_id, recorded)
            source = recorded[0] if spouse_id is not None and len(recorded) == 1 else None
            systems.setdefault((category, source), []).append(child_id)

        offsets = line_offsets({category for category, _ in systems}, cfg)
        for (category, source_id), children in systems.items():
            if source_id is None:
                source = (joint[0] + offsets[category], joint[1])
            else:
                box = positions[source_id]
                source = (box.center_x, box.bottom)
            y = bus_y[category]
            xs = [positions[cid].center_x for cid in children]
            segments = [
                (source, (source[0], y)),
                ((source[0], y), ((xs[0] + xs[-1]) / 2, y)),
                ((xs[0], y), (xs[-1], y)),
            ]
            segments += [((cx, y), (cx, positions[cid].y)) for cx, cid in zip(xs, children)]
            self.result.connectors.append(
                Connector(
                    kind=CHILD,
                    person_ids=tuple(children),
                    segments=segments,
                    category=category,
                    parent_ids=couple if source_id is None else (source_id,),
                    source=source,
                    bus_y=y,
                )
            )


def _known_years(graph: RelationshipGraph, person_ids) -> list[int]:
    years = []
    for pid in person_ids:
        person = graph.person(pid)
        year = coerce_year(person.birth_year) if person else None
        if year is not None:
            years.append(year)
    return years


def fragment_decorations(
    plans: list[FragmentPlan],
    bounds: dict[int, BoundingBox],
    graph: RelationshipGraph,
    config: LayoutConfig,
    style: str,
) -> list:
    """Background tints and dashed separators derived from post-layout fragment boxes."""
    if style == STYLE_NONE or len(plans) < 2:
        return []

    decorations: list = []
    ordered = sorted(
        (plan for plan in plans if plan.index in bounds),
        key=lambda plan: bounds[plan.index].min_y,
    )

    if style in (STYLE_BACKGROUND, STYLE_COMBINED):
        for plan in ordered:
            decorations.append(
                FragmentBackground(
                    fragment_index=plan.index,
                    bounds=bounds[plan.index],
                    tint_index=plan.index % config.fragment_tints,
                )
            )

    if style in (STYLE_SEPARATOR, STYLE_COMBINED):
        for upper, lower in zip(ordered, ordered[1:]):
            upper_box, lower_box = bounds[upper.index], bounds[lower.index]
            upper_years = _known_years(graph, upper.member_ids)
            lower_years = _known_years(graph, lower.member_ids)
            year_gap = None
            if upper_years and lower_years:
                year_gap = min(lower_years) - max(upper_years)
            label = f"~{year_gap} years" if year_gap is not None and year_gap > 0 else "Lineage Gap"
            decorations.append(
                FragmentSeparator(
                    upper_fragment=upper.index,
                    lower_fragment=lower.index,
                    y=(upper_box.max_y + lower_box.min_y) / 2,
                    x1=min(upper_box.min_x, lower_box.min_x) - config.separator_overhang,
                    x2=max(upper_box.max_x, lower_box.max_x) + config.separator_overhang,
                    year_gap=year_gap,
                    label=label,
                )
            )
    return decorations


def layout_fragments(
    plans: list[FragmentPlan],
    graph: RelationshipGraph,
    config: LayoutConfig | None = None,
    separator_style: str = STYLE_NONE,
) -> LayoutResult:
    """
    Turn ordered generations into card positions and connector geometry.

    Fragments are stacked top to bottom with a fixed gap between their
    bounding boxes. Within a fragment, generation 0 (root and spouse) is
    centred on the horizontal anchor and each later generation is centred
    under the span of the parents it descends from. Children are grouped by
    parent couple, groups follow primogeniture order, and each child is
    followed by their spouse.

    Args:
        plans: One plan per fragment, in stacking order
        graph: Relationship maps for the snapshot
        config: Fixed geometry; defaults to LayoutConfig()
        separator_style: none, background, separator or combined

    Returns:
        LayoutResult with positions, connectors, padded fragment bounds and decorations
    """
    config = config or LayoutConfig()
    result = LayoutResult()

    top_y = config.start_y
    for plan in plans:
        placed = _FragmentLayout(plan, graph, config, result, top_y).run()
        raw = BoundingBox.around(result.positions[pid] for pid in placed)
        if raw is None:
            logger.warning("Fragment %d has no generations", plan.index)
            continue
        result.fragment_bounds[plan.index] = raw.padded(config.fragment_padding)
        top_y = raw.max_y + config.fragment_gap

    result.decorations = fragment_decorations(
        plans, result.fragment_bounds, graph, config, separator_style
    )
    return result
