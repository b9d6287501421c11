# SPDX-License-Identifier: AGPL-3.0-only
import argparse
import json
import sys
from pathlib import Path

from .config import CONFIG_FILENAME, Config
from .facts import RecordedFacts
from .findings import GATE_MODES, run_audit, validate_report


def _load_config(args):
    if args.config:
        return Config.load(Path(args.config))
    local = Path.cwd() / CONFIG_FILENAME
    if local.exists():
        return Config.load(local)
    return Config.default()


def _resolve_options(args, config):
    """Config file options, overridden by explicit command-line flags."""
    return config.rule_options().merged(
        allow_implicit=args.allow_implicit,
        ignored_tags=args.ignore_tag or None,
    )


def _write_json(path, obj):
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(obj, indent=2), encoding="utf-8")


def _summary(report):
    return {
        "gate_ok": report["gate"]["ok"],
        "element_count": report["element_count"],
        "verdict_counts": report["verdict_counts"],
        "failed_element_keys": report["gate"]["failed_element_keys"],
        "review_queue_items": report["review_queue"]["item_count"],
    }


def cmd_check(args):
    """Run aria-allowed-role over a recorded elements file."""
    config = _load_config(args)
    options = _resolve_options(args, config)
    facts = RecordedFacts.load(args.elements)
    report = run_audit(
        facts.descriptors(),
        options,
        resolver=facts.unallowed_roles,
        visibility=facts.is_visible,
        mode=args.mode or config.get_mode(),
    )
    if args.validate_schema:
        validate_report(report)
    out = Path(args.out) if args.out else config.get_output_path()
    if out is not None:
        _write_json(out, report)
        print(f"[check] Wrote {out}")
    if args.print_summary or out is None:
        print(json.dumps(_summary(report), indent=2))
    return 0 if report["gate"]["ok"] else 2


def _add_check_args(p):
    p.add_argument("--elements", required=True, help="JSON file of recorded element facts")
    p.add_argument("--config", help=f"Path to {CONFIG_FILENAME} (default: ./{CONFIG_FILENAME} if present)")
    p.add_argument(
        "--allow-implicit",
        dest="allow_implicit",
        action="store_true",
        default=None,
        help="Allow an explicit role that matches the element's implicit role",
    )
    p.add_argument("--no-allow-implicit", dest="allow_implicit", action="store_false")
    p.add_argument("--ignore-tag", action="append", metavar="TAG", help="Skip elements with this tag name (repeatable)")
    p.add_argument("--mode", choices=list(GATE_MODES))
    p.add_argument("--out", help="Write the JSON report here")
    p.add_argument("--validate-schema", action="store_true")
    p.add_argument("--print-summary", action="store_true")


def _parser():
    p = argparse.ArgumentParser(prog="ariarole", description="aria-allowed-role accessibility check")
    sub = p.add_subparsers(dest="command", required=True)

    check = sub.add_parser("check", help="Check recorded elements once")
    _add_check_args(check)
    check.set_defaults(func=cmd_check)

    watch = sub.add_parser("watch", help="Re-check whenever the elements or config file changes")
    _add_check_args(watch)
    watch.add_argument("--delay", type=float, default=0.5, help="Debounce delay in seconds")
    watch.set_defaults(func=_cmd_watch)
    return p


def _cmd_watch(args):
    from .watcher import cmd_watch

    return cmd_watch(args)


def main(argv=None):
    args = _parser().parse_args(argv)
    try:
        return args.func(args)
    except (OSError, ValueError, KeyError, ImportError) as e:
        print(f"[error] {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
