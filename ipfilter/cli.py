"""Console entry point for checking addresses against filter rules."""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path
from typing import Optional, Sequence

from .config import ConfigError
from .matcher import is_allowed, parse_address
from .rules import load_rules_config

EXIT_DENIED = 1
EXIT_CONFIG = 2


def _resolve_rules_path(rules: Optional[str]) -> Path:
    if rules:
        return Path(rules)
    env_path = os.environ.get("IPFILTER_RULES")
    if env_path:
        return Path(env_path)
    return Path.cwd() / "ipfilter.json"


def _warn_if_malformed(ip: str) -> None:
    if parse_address(ip) is None:
        print(f"[warn] '{ip}' is not a valid IP address", file=sys.stderr)


def _command_match(args: argparse.Namespace) -> int:
    _warn_if_malformed(args.ip)
    if is_allowed(args.ip, args.patterns):
        print("allowed")
        return 0
    print("denied")
    return EXIT_DENIED


def _command_check(args: argparse.Namespace) -> int:
    path = _resolve_rules_path(args.rules)
    try:
        rules = load_rules_config(path)
        filters = rules.build_filters()
    except ConfigError as exc:
        print(f"[error] {exc}", file=sys.stderr)
        return EXIT_CONFIG

    ip_filter = filters.get(args.filter)
    if ip_filter is None:
        print(f"[error] Unknown filter '{args.filter}' in {path}", file=sys.stderr)
        return EXIT_CONFIG

    restriction = ip_filter.registry.lookup(args.route)
    if restriction is None:
        print(f"unfiltered: {args.filter}#{args.route} has no restriction")
        return 0

    _warn_if_malformed(args.ip)
    patterns = restriction.allow_list.resolve()
    if is_allowed(args.ip, patterns):
        print(f"permit: {args.ip} on {args.filter}#{args.route}")
        return 0
    print(f"deny: {args.ip} on {args.filter}#{args.route}")
    return EXIT_DENIED


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="IP allow-list checks")
    subparsers = parser.add_subparsers(dest="command", required=True)

    match_parser = subparsers.add_parser("match", help="Match an address against patterns")
    match_parser.add_argument("ip", help="Client address")
    match_parser.add_argument("patterns", nargs="+", help="Addresses or CIDR blocks")
    match_parser.set_defaults(func=_command_match)

    check_parser = subparsers.add_parser("check", help="Evaluate a rules file for one route")
    check_parser.add_argument("--rules", help="Rules file (default: $IPFILTER_RULES or ./ipfilter.json)")
    check_parser.add_argument("--filter", required=True, help="Filter name in the rules file")
    check_parser.add_argument("--route", required=True, help="Route name")
    check_parser.add_argument("ip", help="Client address")
    check_parser.set_defaults(func=_command_check)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    sys.exit(args.func(args))


if __name__ == "__main__":  # pragma: no cover
    main()
