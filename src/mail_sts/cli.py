"""
Command-line interface for the MTA-STS lookup library.

Commands:
- lookup: Resolve MX topology, DNSSEC status, TLSA, TLSRPT and the
  MTA-STS policy for one or more domains
- policy: Print the MTA-STS policy document of a domain
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Optional

from . import __version__
from .audit_logger import AuditLogger
from .config import SystemConfig, load_config_from_env, load_config_from_file
from .exceptions import MailSTSError
from .models import DomainReport
from .orchestrator import LookupOrchestrator


def build_config(args: argparse.Namespace) -> SystemConfig:
    """
    Build the effective configuration.

    A ``--config`` file replaces the environment; command line flags are
    applied on top of either.

    Raises:
        MailSTSError: If the config file is missing or invalid
    """
    if args.config:
        config = load_config_from_file(Path(args.config))
        if config is None:
            raise MailSTSError(
                code="config_not_found",
                message=f"Could not load config from {args.config}",
            )
    else:
        config = load_config_from_env()

    if args.nameserver:
        config.resolver.nameservers = list(args.nameserver)
    if args.max_policy_size is not None:
        config.policy.max_policy_size = args.max_policy_size if args.max_policy_size > 0 else None
    if args.verbose:
        config.logging.level = "debug"
    return config


def create_logger(config: SystemConfig, verbose: bool) -> Optional[AuditLogger]:
    """Lookups are only logged in verbose mode."""
    if not verbose:
        return None
    return AuditLogger.from_config(config.logging.level, config.logging.output_format)


def format_report(report: DomainReport) -> str:
    """Render a report as human-readable text."""
    lines = [
        f"{report.domain}",
        f"  record type:   {report.record_type}",
        f"  primary:       {report.primary or '-'}"
        f" ({'DNSSEC' if report.is_primary_secure else 'insecure'})",
    ]
    if report.mx:
        lines.append(f"  mx:            {', '.join(report.mx)}")
    lines.append(f"  tlsa:          {report.tlsa or '-'}")
    lines.append(f"  tlsrpt:        {report.tlsrpt or '-'}")
    lines.append(f"  sts:           {report.sts or '-'}")
    if report.policy:
        lines.append(f"  policy mode:   {report.policy.mode}")
        lines.append(f"  policy max_age: {report.policy.max_age}")
        lines.append(f"  policy expires: {report.policy.expires_at}")
        for pattern in report.policy.mx:
            lines.append(f"  policy mx:     {pattern}")
    secure = [kind for kind, flag in report.secure.items() if flag]
    lines.append(f"  authenticated: {', '.join(secure) if secure else '-'}")
    for error in report.errors:
        lines.append(f"  error:         {error}")
    return "\n".join(lines)


def cmd_lookup(args: argparse.Namespace) -> int:
    """Handle the 'lookup' command."""
    try:
        config = build_config(args)
    except MailSTSError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    logger = create_logger(config, args.verbose)
    reports: list[DomainReport] = []
    exit_code = 0

    with LookupOrchestrator(config=config, logger=logger) as orchestrator:
        for domain in args.domains:
            try:
                report = orchestrator.lookup(domain, fetch_policy=not args.no_policy)
            except MailSTSError as e:
                print(f"Error: {domain}: {e.message}", file=sys.stderr)
                exit_code = 1
                continue
            if not report.ok:
                exit_code = 1
            reports.append(report)

    if args.json:
        print(json.dumps([r.to_dict() for r in reports], indent=2, ensure_ascii=False))
    else:
        print("\n\n".join(format_report(r) for r in reports))
    return exit_code


def cmd_policy(args: argparse.Namespace) -> int:
    """Handle the 'policy' command."""
    try:
        config = build_config(args)
    except MailSTSError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    logger = create_logger(config, args.verbose)
    with LookupOrchestrator(config=config, logger=logger) as orchestrator:
        try:
            policy = orchestrator.domain(args.domain).policy()
        except MailSTSError as e:
            print(f"Error: {e.message}", file=sys.stderr)
            return 1

    sys.stdout.write(policy.as_string())
    return 0


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config", "-c",
        help="Path to JSON configuration file",
    )
    parser.add_argument(
        "--nameserver", "-n",
        action="append",
        help="Use this nameserver, repeat to add more",
    )
    parser.add_argument(
        "--max-policy-size",
        type=int,
        help="Maximum policy size in bytes (0 disables the limit)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Log every lookup to stderr",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="mail-sts",
        description="Resolve MTA-STS, TLSRPT and DANE information for mail domains",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    lookup_parser = subparsers.add_parser(
        "lookup",
        help="Resolve mail delivery security for domains",
    )
    lookup_parser.add_argument(
        "domains",
        nargs="+",
        help="Domains to look up (e.g., example.com)",
    )
    lookup_parser.add_argument(
        "--json",
        action="store_true",
        help="Print reports as JSON",
    )
    lookup_parser.add_argument(
        "--no-policy",
        action="store_true",
        help="Do not fetch the MTA-STS policy document",
    )
    _add_common_arguments(lookup_parser)
    lookup_parser.set_defaults(func=cmd_lookup)

    policy_parser = subparsers.add_parser(
        "policy",
        help="Print the MTA-STS policy of a domain",
    )
    policy_parser.add_argument(
        "domain",
        help="Domain whose policy is fetched",
    )
    _add_common_arguments(policy_parser)
    policy_parser.set_defaults(func=cmd_policy)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
