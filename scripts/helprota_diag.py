"""Helprota diagnostics CLI."""

from __future__ import annotations

import argparse
import json
from typing import Any

from helprota.board import TASK_STATUSES
from helprota.config import HelprotaSettings
from helprota.storage import JsonDocumentStore


def load_store(settings: HelprotaSettings) -> JsonDocumentStore:
    data_dir = settings.data_dir.expanduser().resolve()
    if not data_dir.is_dir():
        print(f"Data directory not found: {data_dir}")
        raise SystemExit(1)
    return JsonDocumentStore(data_dir)


def load_collection(store: JsonDocumentStore, name: str) -> list[dict[str, Any]]:
    document = store.load(name, [])
    return document if isinstance(document, list) else []


def cmd_tasks(args: argparse.Namespace) -> None:
    store = load_store(HelprotaSettings())
    tasks = load_collection(store, "tasks")
    if args.status:
        tasks = [task for task in tasks if task.get("status") == args.status]
    if args.json:
        print(json.dumps(tasks, indent=2, ensure_ascii=False))
    else:
        for task in tasks:
            claimed = f" -> {task['claimedBy']}" if task.get("claimedBy") else ""
            print(f"{task.get('id')} [{task.get('status')}] {task.get('title')}{claimed}")


def cmd_visits(args: argparse.Namespace) -> None:
    store = load_store(HelprotaSettings())
    visits = load_collection(store, "visits")
    if args.json:
        print(json.dumps(visits, indent=2, ensure_ascii=False))
    else:
        for visit in visits:
            booked = visit.get("bookedBy") or "open"
            print(
                f"{visit.get('id')} {visit.get('date')} "
                f"{visit.get('startTime')}-{visit.get('endTime')} [{booked}]"
            )


def cmd_helpers(args: argparse.Namespace) -> None:
    store = load_store(HelprotaSettings())
    helpers = load_collection(store, "helpers")
    if args.json:
        print(json.dumps(helpers, indent=2, ensure_ascii=False))
    else:
        for helper in helpers:
            print(f"{helper.get('id')} {helper.get('name')} (joined {helper.get('joinedAt')})")


def cmd_metrics(args: argparse.Namespace) -> None:
    store = load_store(HelprotaSettings())
    tasks = load_collection(store, "tasks")
    visits = load_collection(store, "visits")
    helpers = load_collection(store, "helpers")

    status_counts: dict[str, int] = {}
    claims_by_helper: dict[str, int] = {}
    for task in tasks:
        status = task.get("status", "unknown")
        status_counts[status] = status_counts.get(status, 0) + 1
        helper = task.get("claimedBy")
        if helper:
            claims_by_helper[helper] = claims_by_helper.get(helper, 0) + 1

    booked = sum(1 for visit in visits if visit.get("bookedBy"))

    metrics = {
        "tasks_total": len(tasks),
        "status_counts": status_counts,
        "claims_by_helper": claims_by_helper,
        "visits_total": len(visits),
        "visits_booked": booked,
        "visits_open": len(visits) - booked,
        "helpers_total": len(helpers),
    }

    print(json.dumps(metrics, indent=2, ensure_ascii=False))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Helprota diagnostics")
    sub = parser.add_subparsers(dest="cmd")

    p_tasks = sub.add_parser("tasks", help="List stored tasks")
    p_tasks.add_argument("--json", action="store_true", help="Output JSON")
    p_tasks.add_argument("--status", choices=TASK_STATUSES)
    p_tasks.set_defaults(func=cmd_tasks)

    p_visits = sub.add_parser("visits", help="List visit slots")
    p_visits.add_argument("--json", action="store_true", help="Output JSON")
    p_visits.set_defaults(func=cmd_visits)

    p_helpers = sub.add_parser("helpers", help="List registered helpers")
    p_helpers.add_argument("--json", action="store_true", help="Output JSON")
    p_helpers.set_defaults(func=cmd_helpers)

    p_metrics = sub.add_parser("metrics", help="Show task/visit/helper counts")
    p_metrics.set_defaults(func=cmd_metrics)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return
    args.func(args)


if __name__ == "__main__":
    main()
