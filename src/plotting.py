"""Preview rendering of a computed house layout."""

from pathlib import Path

import matplotlib.pyplot as plt
from matplotlib.patches import FancyBboxPatch, Rectangle

from graph import RelationshipGraph
from layout import CHILD, LINE_ADOPTED, LINE_NON_LEGITIMATE, FragmentBackground, FragmentSeparator
from pipeline import HouseLayout

LINE_COLORS = {
    LINE_NON_LEGITIMATE: "#a0522d",
    LINE_ADOPTED: "#4a7aa8",
}
TINTS = ["#d2b48c", "#b4c8dc", "#dcc8dc", "#c8dcc8"]


def _card_label(graph: RelationshipGraph | None, person_id) -> str:
    person = graph.person(person_id) if graph else None
    if person is None:
        return str(person_id)
    birth = person.birth_year if person.birth_year is not None else ""
    death = person.death_year if person.death_year is not None else ""
    return f"{person.name or person_id}\n{birth}-{death}"


def plot_layout(
    layout: HouseLayout,
    graph: RelationshipGraph | None = None,
    output_path: Path | None = None,
    title: str | None = None,
):
    """
    Draw cards, connectors and fragment decorations with matplotlib.

    Args:
        layout: The computed house layout
        graph: Snapshot graph, used for card labels
        output_path: Where to save the image (PNG/SVG/PDF). If None, the figure is returned.
        title: Optional figure title
    """
    bounds = layout.bounds
    fig, ax = plt.subplots(figsize=(20, 16))
    if bounds is None:
        ax.text(0.5, 0.5, "No root couple found.", ha="center", va="center")
        ax.axis("off")
    else:
        for deco in layout.decorations:
            if isinstance(deco, FragmentBackground):
                b = deco.bounds
                ax.add_patch(
                    FancyBboxPatch(
                        (b.min_x, b.min_y),
                        b.width,
                        b.height,
                        boxstyle="round,pad=0,rounding_size=12",
                        facecolor=TINTS[deco.tint_index % len(TINTS)],
                        alpha=0.3,
                        edgecolor="none",
                    )
                )
            elif isinstance(deco, FragmentSeparator):
                ax.plot([deco.x1, deco.x2], [deco.y, deco.y], linestyle=(0, (8, 6)), color="gray")
                ax.text(
                    (deco.x1 + deco.x2) / 2,
                    deco.y,
                    deco.label,
                    ha="center",
                    va="center",
                    fontsize=9,
                    style="italic",
                    bbox={"boxstyle": "round", "facecolor": "white", "edgecolor": "none"},
                )

        for connector in layout.connectors:
            if connector.kind == CHILD:
                color = LINE_COLORS.get(connector.category, "dimgray")
            else:
                color = "#b87a8a"
            for (x1, y1), (x2, y2) in connector.segments:
                ax.plot([x1, x2], [y1, y2], color=color, linewidth=1.2)

        for person_id, box in layout.positions.items():
            ax.add_patch(
                Rectangle(
                    (box.x, box.y),
                    box.width,
                    box.height,
                    facecolor="lightgray",
                    edgecolor="black",
                )
            )
            ax.text(
                box.center_x,
                box.mid_y,
                _card_label(graph, person_id),
                ha="center",
                va="center",
                fontsize=6,
            )

        margin = 40
        ax.set_xlim(bounds.min_x - margin, bounds.max_x + margin)
        # Ancestors at top
        ax.set_ylim(bounds.max_y + margin, bounds.min_y - margin)
        ax.set_aspect("equal")
        ax.axis("off")

    if title:
        ax.set_title(title)
    fig.tight_layout()

    if output_path:
        ext = Path(output_path).suffix.lower().lstrip(".")
        if ext not in ("png", "svg", "pdf"):
            ext = "png"
        fig.savefig(output_path, dpi=150, bbox_inches="tight", format=ext)
        plt.close(fig)
        print(f"Layout saved to {output_path}")
        return None
    return fig
