#!/usr/bin/env python3
"""
recordbox CLI — query and update a snapshot store from the shell.

Every command has a short name and standard aliases:

    NAME        ALIASES         WHAT IT DOES
    ----        -------         ----------------------------------
    list        query, ls       Run a filter/sort pipeline, print all results
    pick        random          Run a pipeline, print one random result
    get         find            Fetch one record by primary key
    add         save            Validate and store a new movie
    suggest     search          Movie suggestions by duration and/or genres
    genres                      List known genres
    info        config          Show the active configuration

Results are printed as JSON. Pipeline options (list / pick):

    --where FIELD=VALUE          exact match (VALUE parsed as JSON if it can be)
    --between FIELD MIN MAX      inclusive range
    --in FIELD V1,V2,...         set membership (case-insensitive on arrays)
    --order-by FIELD [--asc]     sort by field (DESC unless --asc)
    --order-by-matches N         rank by matches of the Nth --in filter
    --limit N                    keep the first N results
"""

import argparse
import asyncio
import json
import logging
import sys

from recordbox import __version__

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _setup_logging(cfg: dict, verbose: bool = False):
    log_cfg = cfg.get("logging", {})
    level_name = "DEBUG" if verbose else (log_cfg.get("level") or "INFO")
    level = getattr(logging, str(level_name).upper(), logging.INFO)
    log_file = log_cfg.get("file")

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        from pathlib import Path
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=handlers,
        force=True,
    )


def _load(args):
    """Load config, set up logging, build the storage backend."""
    from recordbox.config import load_config
    from recordbox.storage.backends import backend_from_config

    cfg = load_config(args.config) if args.config else load_config()
    if getattr(args, "db", None):
        cfg = {**cfg, "storage": {"backend": "json", "path": args.db}}
    _setup_logging(cfg, verbose=args.verbose)
    return cfg, backend_from_config(cfg)


def _model_for(collection: str):
    from recordbox.models import Genre, Movie

    models = {Movie.collection_name: Movie, Genre.collection_name: Genre}
    model = models.get(collection)
    if model is None:
        raise SystemExit(
            f"  Unknown collection '{collection}'. Available: {', '.join(sorted(models))}"
        )
    return model


def _parse_value(raw: str):
    """'42' -> 42, 'true' -> True, 'Drama' -> 'Drama'."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def _emit(result):
    if result is None:
        print("null")
        return
    if isinstance(result, list):
        payload = [r.to_record() for r in result]
    else:
        payload = result.to_record()
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def _build_query(args, storage):
    query = _model_for(args.collection).query(storage)

    for clause in args.where or []:
        if "=" not in clause:
            raise SystemExit(f"  --where expects FIELD=VALUE, got '{clause}'")
        field, raw = clause.split("=", 1)
        query.filter_equals(field, _parse_value(raw))

    for field, lo, hi in args.between or []:
        query.filter_between(field, [_parse_value(lo), _parse_value(hi)])

    for field, raw in args.within or []:
        query.filter_in(field, [_parse_value(v) for v in raw.split(",") if v])

    if args.order_by:
        query.order_by(args.order_by, "ASC" if args.asc else "DESC")
    if args.order_by_matches is not None:
        query.order_by_matches(args.order_by_matches, "ASC" if args.asc else "DESC")
    if args.limit is not None:
        query.limit(args.limit)
    return query


def _run(coro):
    from recordbox.errors import RecordBoxError

    try:
        return asyncio.run(coro)
    except RecordBoxError as e:
        logger.debug("Command failed", exc_info=True)
        print(f"  error: {e.message}", file=sys.stderr)
        raise SystemExit(1)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def cmd_list(args):
    """Run a pipeline and print every result."""
    _, storage = _load(args)
    _emit(_run(_build_query(args, storage).all()))


def cmd_pick(args):
    """Run a pipeline and print one random result."""
    _, storage = _load(args)
    _emit(_run(_build_query(args, storage).random()))


def cmd_get(args):
    """Fetch one record by primary key."""
    _, storage = _load(args)
    model = _model_for(args.collection)
    _emit(_run(model.query(storage).find(_parse_value(args.key))))


def cmd_add(args):
    """Validate and store a new movie."""
    from recordbox.catalogue import add_movie

    _, storage = _load(args)
    if args.file:
        with open(args.file) as f:
            data = json.load(f)
    elif args.json:
        data = json.loads(args.json)
    else:
        data = json.load(sys.stdin)
    _emit(_run(add_movie(storage, data)))


def cmd_suggest(args):
    """Movie suggestions by duration and/or genres."""
    from recordbox.catalogue import search_movies

    _, storage = _load(args)
    _emit(_run(search_movies(storage, duration=args.duration, genres=args.genre)))


def cmd_genres(args):
    """List known genres."""
    from recordbox.catalogue import list_genres

    _, storage = _load(args)
    for name in _run(list_genres(storage)):
        print(name)


def cmd_info(args):
    """Show the active configuration."""
    cfg, storage = _load(args)
    print(f"  recordbox {__version__}")
    print(f"  Storage: {storage!r}")
    print(f"  Log level: {cfg.get('logging', {}).get('level', 'INFO')}")


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------

def _add_command(subparsers, names, help_text, func, setup_fn=None):
    """Register a command under multiple names."""
    p = subparsers.add_parser(names[0], help=help_text, aliases=names[1:])
    p.set_defaults(func=func)
    if setup_fn:
        setup_fn(p)
    return p


def _pipeline_options(p):
    p.add_argument("collection", help="Collection to query (movies, genres)")
    p.add_argument("--where", action="append", metavar="FIELD=VALUE", help="Exact match filter")
    p.add_argument("--between", action="append", nargs=3, metavar=("FIELD", "MIN", "MAX"),
                   help="Inclusive range filter")
    p.add_argument("--in", dest="within", action="append", nargs=2, metavar=("FIELD", "VALUES"),
                   help="Set membership filter, comma-separated values")
    p.add_argument("--order-by", default=None, metavar="FIELD", help="Sort by field")
    p.add_argument("--order-by-matches", type=int, default=None, metavar="N",
                   help="Rank by match count of the Nth --in filter")
    p.add_argument("--asc", action="store_true", help="Ascending order (default: descending)")
    p.add_argument("--limit", "-n", type=int, default=None, help="Keep the first N results")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="recordbox",
        description="recordbox — query and update a snapshot record store.",
        epilog=(
            "Each command has standard aliases.\n"
            "Example: 'recordbox list movies' and 'recordbox query movies' do the same thing.\n"
            "Run 'recordbox <command> --help' for command-specific options."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", "-V", action="version", version=f"recordbox {__version__}")
    parser.add_argument("--config", "-c", default=None, help="Path to config.yaml")
    parser.add_argument("--db", default=None, help="Use this JSON snapshot file instead of config")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    sub = parser.add_subparsers(dest="command", metavar="<command>")

    _add_command(sub, ["list", "query", "ls"],
                 "Run a filter/sort pipeline and print all results", cmd_list, _pipeline_options)
    _add_command(sub, ["pick", "random"],
                 "Run a pipeline and print one random result", cmd_pick, _pipeline_options)

    def setup_get(p):
        p.add_argument("collection", help="Collection (movies)")
        p.add_argument("key", help="Primary key value")

    _add_command(sub, ["get", "find"], "Fetch one record by primary key", cmd_get, setup_get)

    def setup_add(p):
        p.add_argument("--json", "-j", default=None, help="Movie as a JSON object")
        p.add_argument("--file", "-f", default=None, help="Read the movie JSON from a file")

    _add_command(sub, ["add", "save"], "Validate and store a new movie", cmd_add, setup_add)

    def setup_suggest(p):
        p.add_argument("--duration", "-d", type=int, default=None, help="Runtime in minutes (+/- 10)")
        p.add_argument("--genre", "-g", action="append", default=None,
                       help="Genre to match (can specify multiple times)")

    _add_command(sub, ["suggest", "search"],
                 "Movie suggestions by duration and/or genres", cmd_suggest, setup_suggest)
    _add_command(sub, ["genres"], "List known genres", cmd_genres)
    _add_command(sub, ["info", "config"], "Show the active configuration", cmd_info)
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return

    args.func(args)


if __name__ == "__main__":
    main()
