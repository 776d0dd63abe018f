#!/usr/bin/env python3
"""
Zeilumara CLI - clock, conversion and event book from the terminal.
"""

import argparse
import logging
import sys
import time
from pathlib import Path

from zeilumara import config
from zeilumara.conversion import ConversionEngine
from zeilumara.models import RepeatFrequency, RepeatRule, Settings, StructuredTime
from zeilumara.notifier import InMemoryNotificationCenter, PendingQuotaExceeded
from zeilumara.omens import evaluate
from zeilumara.recurrence import RecurrenceExpander
from zeilumara.schema import DocumentDecodeError
from zeilumara.service import EventService
from zeilumara.store import EventStore
from zeilumara.units import load_unit_table

logger = logging.getLogger(__name__)


def print_header(text: str):
    """Print a section header."""
    print(f"\n{'═' * 50}")
    print(f"  {text}")
    print(f"{'═' * 50}")


def print_table(headers: list, rows: list, widths: list = None):
    """Print a simple table."""
    if not widths:
        widths = [max(len(str(row[i])) for row in [headers] + rows) for i in range(len(headers))]

    header_str = " │ ".join(str(h).ljust(w) for h, w in zip(headers, widths))
    print(header_str)
    print("─" * len(header_str))

    for row in rows:
        print(" │ ".join(str(c)[:w].ljust(w) for c, w in zip(row, widths)))


def build_service(args) -> EventService:
    store = EventStore(Path(args.data_dir) if args.data_dir else None)
    return EventService(store=store, center=InMemoryNotificationCenter(), units=load_unit_table())


def _engine(args, service: EventService) -> ConversionEngine:
    if args.epoch is None:
        return service.engine
    return Settings(epoch=args.epoch).engine(service.units)


def _print_moment(settings: Settings, moment: StructuredTime):
    print(settings.format(moment))
    print(f"  {moment.short_time()} | Xingbeat {moment.visible_beat} | Yaon {moment.yaon}")
    for omen in evaluate(moment):
        print(f"  {omen.message}")


# =============================================================================
# COMMANDS
# =============================================================================


def cmd_now(args, service: EventService) -> int:
    """Show the current Zeilumara moment."""
    engine = _engine(args, service)
    print_header("ZEILUMARA NOW")
    _print_moment(service.settings, engine.now())
    return 0


def cmd_convert(args, service: EventService) -> int:
    """Linear seconds -> structured time."""
    engine = _engine(args, service)
    print_header(f"t = {args.timestamp}")
    _print_moment(service.settings, engine.to_structured(args.timestamp))
    return 0


def cmd_linear(args, service: EventService) -> int:
    """Structured time -> linear seconds."""
    engine = _engine(args, service)
    moment = StructuredTime(
        era=args.era,
        archive=args.archive,
        dreamday=args.dreamday,
        loop=args.loop,
        weave=args.weave,
        beat=args.beat,
        yaon=args.yaon,
    )
    print(repr(engine.to_linear(moment)))
    return 0


def cmd_occurrences(args, service: EventService) -> int:
    """Expand a repeat rule from an anchor moment."""
    engine = _engine(args, service)
    anchor_t = args.anchor if args.anchor is not None else time.time()
    rule = RepeatRule(RepeatFrequency(args.frequency), interval=args.interval, end=args.end)
    expander = RecurrenceExpander(engine, max_occurrences=args.max)
    occurrences = expander.occurrences(engine.to_structured(anchor_t), rule)

    print_header(f"{rule.frequency.display_name} x{rule.interval}")
    if not occurrences:
        print("  No occurrences")
        return 0
    print_table(
        ["#", "Moment", "Trigger"],
        [[o.index, o.moment.compact(), repr(o.trigger_at)] for o in occurrences],
    )
    return 0


def cmd_events(args, service: EventService) -> int:
    """List stored events."""
    events = service.events
    print_header(f"EVENTS ({len(events)})")
    if not events:
        print("  No events")
        return 0
    print_table(
        ["ID", "Title", "Moment", "Repeats"],
        [
            [e.id[:8], e.title, e.anchor.compact(), e.repeats.frequency.display_name if e.repeats else "-"]
            for e in events
        ],
    )
    return 0


def cmd_export(args, service: EventService) -> int:
    """Write the events document to a file or stdout."""
    document = service.export_events()
    if args.output:
        Path(args.output).write_text(document, encoding="utf-8")
        print(f"Exported {len(service.events)} events to {args.output}")
    else:
        print(document)
    return 0


def cmd_import(args, service: EventService) -> int:
    """Append events from an exported document."""
    try:
        imported = service.import_events(Path(args.file).read_bytes())
    except (DocumentDecodeError, PendingQuotaExceeded) as e:
        print(f"Import failed: {e}", file=sys.stderr)
        return 1
    print(f"Imported {len(imported)} events")
    return 0


# =============================================================================
# ENTRY POINT
# =============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="zeilumara", description="Zeilumara time CLI")
    parser.add_argument("--data-dir", default=None, help="Store directory (default: $ZEILUMARA_HOME/data)")
    parser.add_argument("--epoch", type=float, default=None, help="Override the stored epoch")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("now", help="Show the current moment")
    p.set_defaults(func=cmd_now)

    p = sub.add_parser("convert", help="Linear seconds to structured time")
    p.add_argument("timestamp", type=float)
    p.set_defaults(func=cmd_convert)

    p = sub.add_parser("linear", help="Structured time to linear seconds")
    for name in ("era", "archive", "dreamday", "loop", "weave", "beat", "yaon"):
        p.add_argument(f"--{name}", type=int, default=0)
    p.set_defaults(func=cmd_linear)

    p = sub.add_parser("occurrences", help="Expand a repeat rule")
    p.add_argument("frequency", choices=[f.value for f in RepeatFrequency])
    p.add_argument("--interval", type=int, default=1)
    p.add_argument("--end", type=float, default=None, help="Linear end bound")
    p.add_argument("--anchor", type=float, default=None, help="Anchor in linear seconds (default: now)")
    p.add_argument("--max", type=int, default=config.MAX_OCCURRENCES_PER_SERIES)
    p.set_defaults(func=cmd_occurrences)

    p = sub.add_parser("events", help="List stored events")
    p.set_defaults(func=cmd_events)

    p = sub.add_parser("export", help="Export events")
    p.add_argument("--output", "-o", default=None)
    p.set_defaults(func=cmd_export)

    p = sub.add_parser("import", help="Import events")
    p.add_argument("file")
    p.set_defaults(func=cmd_import)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(message)s")
    args = build_parser().parse_args(argv)

    try:
        service = build_service(args)
        return args.func(args, service)
    except ValueError as e:  # bad unit table, undecodable store, invalid rule
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
