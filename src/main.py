"""
1) Load a genealogy snapshot (JSON export or GEDCOM file).
2) Validate the relationship graph for cycles and impossible dates.
3) Compute the house view: scope, fragments, generations, primogeniture order, layout.
4) Write the layout as JSON and optionally plot a preview.
"""

import argparse
import json
import logging
from pathlib import Path

from config import AUTO, SEPARATOR_STYLES, STYLE_SEPARATOR, ViewParameters
from graph import RelationshipGraph
from parsing import load_snapshot
from pipeline import compute_house_layout
from scope import house_members_by_age
from validation import validate_graph


def _match_id(raw: str, candidates):
    """Map a CLI string onto an id from the snapshot (ids may be ints or strings)."""
    for candidate in candidates:
        if str(candidate) == raw:
            return candidate
    return None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Lay out a house view of a genealogy snapshot.")
    parser.add_argument("input", type=Path, help="Snapshot file (.json export or .ged).")
    parser.add_argument("--house", help="House id to view (default: first house).")
    parser.add_argument(
        "--no-cadets", action="store_true", help="Do not include direct cadet houses."
    )
    parser.add_argument("--centre-on", default=AUTO, help="Person id to use as the root.")
    parser.add_argument("--generation-spacing", type=float, default=50.0)
    parser.add_argument(
        "--separator-style", choices=SEPARATOR_STYLES, default=STYLE_SEPARATOR
    )
    parser.add_argument(
        "-o", "--output", type=Path, help="Write the layout JSON here (default: stdout)."
    )
    parser.add_argument("--plot", type=Path, help="Save a preview image (png/svg/pdf).")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    print(f"Loading snapshot: {args.input}")
    persons, houses, edges = load_snapshot(args.input)
    print(f"  Found {len(persons)} persons, {len(houses)} houses and {len(edges)} relationships")
    if not houses:
        print("No houses in snapshot")
        return 1

    house_id = houses[0].id if args.house is None else _match_id(args.house, [h.id for h in houses])
    if house_id is None:
        print(f"Unknown house: {args.house}")
        return 1

    graph = RelationshipGraph.build(persons, edges)

    print("Validating graph...")
    warnings = validate_graph(graph)
    if warnings:
        print(f"  Found {len(warnings)} validation warnings:")
        for w in warnings[:10]:
            print(f"    - {w}")
        if len(warnings) > 10:
            print(f"    ... and {len(warnings) - 10} more")
    else:
        print("  No validation issues found")

    centre_on = AUTO
    if args.centre_on != AUTO:
        candidates = house_members_by_age(graph, houses, house_id, not args.no_cadets)
        centre_on = _match_id(args.centre_on, candidates)
        if centre_on is None:
            print(f"  Centre-on person {args.centre_on} is not a house member; using auto")
            centre_on = AUTO

    params = ViewParameters(
        selected_house_id=house_id,
        include_cadet_houses=not args.no_cadets,
        centre_on_person_id=centre_on,
        generation_spacing=args.generation_spacing,
        fragment_separator_style=args.separator_style,
    )

    print(f"Computing layout for house {house_id}...")
    layout = compute_house_layout(persons, houses, edges, params)
    print(
        f"  Placed {len(layout.positions)} people in {len(layout.fragments)} fragment(s), "
        f"{len(layout.connectors)} connectors"
    )
    for issue in layout.issues:
        print(f"    - [{issue.code}] {issue.message}")

    payload = json.dumps(layout.to_dict(), indent=2, default=str)
    if args.output:
        args.output.write_text(payload, encoding="utf-8")
        print(f"Layout written to {args.output}")
    else:
        print(payload)

    if args.plot:
        from plotting import plot_layout

        plot_layout(layout, graph, args.plot, title=f"House {house_id}")

    print("Done!")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
