import argparse
import logging
from typing import TYPE_CHECKING, Any

from musical_model.configuration import get_default_config, load_config_file, save_config_file
from musical_model.metrical_time import MetricalDuration, MetricalInterval
from musical_model.performance import Scope

if TYPE_CHECKING:
    from musical_model.model import Model

logger = logging.getLogger(__name__)


def _load_model(midi_path: str, config: dict[str, Any]) -> "Model | None":
    from musical_model.midi_import import load_midi_model

    try:
        return load_midi_model(midi_path, config=config)
    except FileNotFoundError:
        print(f"MIDI file not found: {midi_path}")
    except ValueError as exc:
        print(f"Failed to read MIDI file {midi_path}: {exc}")
    return None


def describe_model(midi_path: str, config: dict[str, Any]) -> int:
    model = _load_model(midi_path, config)
    if model is None:
        return 3

    print(model)
    print("kind,count")
    for kind in model.kinds:
        print(f"{kind},{model.count(kind)}")
    return 0


def query_model(
    midi_path: str,
    interval: MetricalInterval,
    scope: Scope,
    kinds: list[str] | None,
    limit: int | None,
    config: dict[str, Any],
) -> int:
    model = _load_model(midi_path, config)
    if model is None:
        return 3

    if scope.is_unscoped:
        logger.debug("Querying %s for every performer.", interval)
    found = sorted(model.entities(interval, scope, kinds))
    if limit is not None:
        found = found[:limit]

    print("entity,kind,attribute,start,end,performer,instrument,voice")
    for entity in found:
        result = model.lookup(entity)
        if result is None:
            continue
        attribute, context = result
        perf = context.performance_context
        print(
            f"{entity},{attribute.kind},{attribute},{context.interval.start},{context.interval.end},"
            f"{perf.performer},{perf.instrument},{perf.voice}"
        )
    return 0 if found else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Query the musical content of a single work")
    parser.add_argument("--verbose", action="store_true", help="Log debug output to stderr.")
    subparsers = parser.add_subparsers(dest="command")

    describe = subparsers.add_parser("describe", help="Print the model built from a MIDI file")
    describe.add_argument("--midi", type=str, required=True, help="Input MIDI file path (.mid/.midi).")
    describe.add_argument("--config", type=str, default=None, help="JSON config file with import/query sections.")

    query = subparsers.add_parser("query", help="List entities inside an interval and performer scope")
    query.add_argument("--midi", type=str, required=True, help="Input MIDI file path (.mid/.midi).")
    query.add_argument("--start", type=MetricalDuration.parse, required=True, help="Interval start as beats/subdivision (e.g. 0/4).")
    query.add_argument("--end", type=MetricalDuration.parse, required=True, help="Interval end as beats/subdivision (e.g. 3/4).")
    query.add_argument("--performer", type=str, default=None, help="Only entities of this performer.")
    query.add_argument("--instrument", type=str, default=None, help="Only entities of this instrument.")
    query.add_argument("--voice", type=int, default=None, help="Only entities of this voice.")
    kinds_group = query.add_mutually_exclusive_group()
    kinds_group.add_argument(
        "--kind",
        dest="kinds",
        action="append",
        default=None,
        help="Attribute kind to include. Pass multiple --kind values; all kinds when omitted.",
    )
    kinds_group.add_argument(
        "--no-kinds",
        action="store_true",
        help="Request no kinds at all (always an empty result).",
    )
    query.add_argument("--limit", type=int, default=None, help="Print at most this many rows.")
    query.add_argument("--config", type=str, default=None, help="JSON config file with import/query sections.")
    query.add_argument(
        "--save-config",
        type=str,
        default=None,
        help="Write the effective config to this path before querying.",
    )
    return parser


def _load_config(parser: argparse.ArgumentParser, path: str | None) -> dict[str, Any]:
    if path is None:
        return get_default_config()
    try:
        return load_config_file(path)
    except (OSError, ValueError) as exc:
        parser.error(f"--config {path}: {exc}")


def _validate_query_args(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    if args.end < args.start:
        parser.error("--end must be >= --start.")
    if args.voice is not None and args.voice < 0:
        parser.error("--voice must be >= 0.")
    if args.limit is not None and args.limit <= 0:
        parser.error("--limit must be > 0.")


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    if args.command == "describe":
        config = _load_config(parser, args.config)
        raise SystemExit(describe_model(midi_path=args.midi, config=config))

    if args.command == "query":
        _validate_query_args(parser, args)
        config = _load_config(parser, args.config)
        if args.no_kinds:
            config["query"]["kinds"] = []
        elif args.kinds is not None:
            config["query"]["kinds"] = args.kinds
        if args.limit is not None:
            config["query"]["limit"] = args.limit
        if args.save_config is not None:
            save_config_file(args.save_config, config)
        raise SystemExit(
            query_model(
                midi_path=args.midi,
                interval=MetricalInterval(args.start, args.end),
                scope=Scope(performer=args.performer, instrument=args.instrument, voice=args.voice),
                kinds=config["query"]["kinds"],
                limit=config["query"]["limit"],
                config=config,
            )
        )

    parser.error(f"Unsupported command: {args.command}")


if __name__ == "__main__":
    main()
