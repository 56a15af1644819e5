"""
cli.py - command line front end for the smart form predictor
Features:
- learn from JSON-lines files of submitted forms (state kept in a JSON file)
- predict / suggest values for a field, optionally from a partial value
- inspect the cross-session profile and field relationship graph of a file
- show or reset the privacy budget
- validate a single value against a field declaration
- Uses Rich for tables and formatting
"""

import argparse
import json
import sys
from typing import Any, Dict, Iterator, List, Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from smart_form_predictor.core.orchestrator import PredictionOrchestrator
from smart_form_predictor.core.profile_builder import CrossSessionProfileBuilder
from smart_form_predictor.core.relationship_graph import RelationshipGraph
from smart_form_predictor.utils.config_manager import Config
from smart_form_predictor.utils.logger_utils import Log
from smart_form_predictor.utils.state_store import DEFAULT_STATE_PATH, JsonStateStore

console = Console()


# helpers -----------------------------------------------------------------------
def read_records(path: str) -> Iterator[Dict[str, Any]]:
    """Yield one dict per non-empty line; bad lines are reported and skipped."""
    with open(path, "r", encoding="utf-8") as f:
        for lineno, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            try:
                rec = json.loads(line)
            except ValueError as e:
                console.print(f"[red]line {lineno}: bad json[/red] ({e})")
                continue
            if isinstance(rec, dict):
                yield rec
            else:
                console.print(f"[yellow]line {lineno}: not an object, skipped[/yellow]")


def build_orchestrator(args) -> PredictionOrchestrator:
    store = JsonStateStore(args.state)
    orch = PredictionOrchestrator(Config(args.config), persistence=store)
    orch.load_from_persistence()
    return orch


def _field_arg(args) -> Dict[str, Any]:
    desc: Dict[str, Any] = {"name": args.field}
    if getattr(args, "kind", None):
        desc["kind"] = args.kind
    if getattr(args, "value", None):
        desc["currentValue"] = args.value
    if getattr(args, "pattern", None):
        desc["pattern"] = args.pattern
    return desc


# commands ------------------------------------------------------------------------
def cmd_learn(args) -> int:
    orch = build_orchestrator(args)
    n = 0
    with Log.time_block("cli.learn") as timer:
        for rec in read_records(args.file):
            orch.learn(rec)
            n += 1
    console.print(f"[green]Learnt {n} record(s)[/green] [dim]({timer.elapsed * 1000:.1f} ms)[/dim]")
    console.print(f"[dim]privacy budget left: {orch.budget_remaining():.3f}[/dim]")
    return 0


def cmd_predict(args) -> int:
    orch = build_orchestrator(args)
    p = orch.predict(_field_arg(args))

    table = Table(title=f"Prediction: {args.field}", box=box.SIMPLE, show_edge=False)
    table.add_column("Value", style="bold")
    table.add_column("Confidence", justify="right")
    table.add_column("Source", style="dim")
    table.add_column("Model", style="dim")
    table.add_row(str(p.value), f"{p.confidence:.2f}", p.source, p.model or "-")
    console.print(table)
    if p.alternatives:
        console.print("[cyan]Alternatives:[/cyan] " + ", ".join(str(a) for a in p.alternatives))
    return 0


def cmd_suggest(args) -> int:
    orch = build_orchestrator(args)
    out = orch.get_suggestions(args.field, args.partial)
    if not out:
        console.print("[dim](no suggestions)[/dim]")
        return 0
    table = Table(title=f"Suggestions for {args.field}", box=box.MINIMAL)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Value")
    for i, v in enumerate(out, 1):
        table.add_row(str(i), str(v))
    console.print(table)
    return 0


def cmd_profile(args) -> int:
    profile = CrossSessionProfileBuilder().aggregate(read_records(args.file))
    rows = profile.to_dict()
    rows["preferred_names"] = ", ".join(rows["preferred_names"]) or None
    panel = Panel(
        "\n".join(f"{k}: {v if v is not None else '-'}" for k, v in rows.items()),
        title="User Profile",
    )
    console.print(panel)
    return 0


def cmd_graph(args) -> int:
    graph = RelationshipGraph()
    found = graph.discover(list(read_records(args.file)))
    for section in ("cooccurrence", "temporal_relations", "value_dependencies"):
        table = Table(title=section, box=box.SIMPLE)
        table.add_column("Relation")
        table.add_column("Count", justify="right")
        for key, count in sorted(found[section].items(), key=lambda kv: kv[1], reverse=True):
            table.add_row(key, str(count))
        console.print(table)
    return 0


def cmd_budget(args) -> int:
    store = JsonStateStore(args.state)
    orch = PredictionOrchestrator(Config(args.config), persistence=store)
    orch.load_from_persistence()
    if args.reset:
        orch.reset_budget()
        store.save_state(orch.export_state())
        console.print("[yellow]Privacy budget reset.[/yellow]")
    console.print(f"remaining epsilon: [bold]{orch.budget_remaining():.3f}[/bold] / {orch.budget.total:.3f}")
    return 0


def cmd_validate(args) -> int:
    orch = PredictionOrchestrator(Config(args.config))
    res = orch.validate(_field_arg(args), args.value)
    colour = "green" if res.valid else "red"
    console.print(f"[{colour}]{'valid' if res.valid else 'invalid'}[/{colour}]")
    for msg in res.errors:
        console.print(f"  [red]-[/red] {msg}")
    for msg in res.warnings:
        console.print(f"  [yellow]![/yellow] {msg}")
    return 0 if res.valid else 1


# parser ---------------------------------------------------------------------------
def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="smart-form", description="On-device smart form predictor")
    parser.add_argument("--state", default=DEFAULT_STATE_PATH, help="JSON file holding learnt state")
    parser.add_argument("--config", default=None, help="JSON config file")
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("learn", help="learn from a JSON-lines file of submitted forms")
    p.add_argument("file")
    p.set_defaults(func=cmd_learn)

    p = sub.add_parser("predict", help="predict a value for a field")
    p.add_argument("field")
    p.add_argument("--value", default="", help="what the user has typed so far")
    p.add_argument("--kind", default=None)
    p.set_defaults(func=cmd_predict)

    p = sub.add_parser("suggest", help="values seen for a field starting with PARTIAL")
    p.add_argument("field")
    p.add_argument("partial", nargs="?", default="")
    p.set_defaults(func=cmd_suggest)

    p = sub.add_parser("profile", help="aggregate a user profile from a JSON-lines file")
    p.add_argument("file")
    p.set_defaults(func=cmd_profile)

    p = sub.add_parser("graph", help="field relationships found in a JSON-lines file")
    p.add_argument("file")
    p.set_defaults(func=cmd_graph)

    p = sub.add_parser("budget", help="show the privacy budget")
    p.add_argument("--reset", action="store_true")
    p.set_defaults(func=cmd_budget)

    p = sub.add_parser("validate", help="validate one value")
    p.add_argument("field")
    p.add_argument("value")
    p.add_argument("--kind", default=None)
    p.add_argument("--pattern", default=None)
    p.set_defaults(func=cmd_validate)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.verbose:
        Log.configure()
    try:
        return args.func(args)
    except FileNotFoundError as e:
        console.print(f"[red]No such file:[/red] {e.filename}")
        return 2


if __name__ == "__main__":
    sys.exit(main())
