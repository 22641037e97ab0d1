#!/usr/bin/env python3
"""
reportseal Command Line Interface

Usage:
    reportseal hash --file <inputs.json> [--hash-version v2]
    reportseal verify --file <record.json> [--legacy]
    reportseal verify-run --run <run.json> --signatures <signatures.json>
"""

import argparse
import json
import sys

from . import config
from .errors import InvalidInput
from .logging_config import configure_logging


def load_json(path: str):
    """Load JSON from file."""
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


def cmd_hash(args):
    """Compute the signature hash for a set of hash inputs."""
    from reportseal import compute_signature_hash, resolve_hash_version

    data = load_json(args.file)
    if not isinstance(data, dict):
        raise InvalidInput("inputs", "expected a JSON object of hash inputs")
    version = resolve_hash_version(args.hash_version or data.get("hash_version") or config.SIGNATURE_HASH_VERSION)
    h = compute_signature_hash(data, version)
    print(json.dumps({"signature_hash": h, "hash_version": version.value}, indent=2))
    return 0


def cmd_verify(args):
    """Verify one stored signature record, or a list of them."""
    from reportseal import backfill_hash_version, verify_signature

    data = load_json(args.file)
    records = data if isinstance(data, list) else [data]
    if args.legacy:
        records = [backfill_hash_version(r) for r in records]

    failures = 0
    for record in records:
        result = verify_signature(record)
        label = record.get("id") or record.get("signature_role") or "signature"
        if result.valid:
            print(f"✓ {label}: valid")
        else:
            failures += 1
            print(f"✗ {label}: {result.reason.value} - {result.message}")
            if args.verbose and result.details:
                print(json.dumps(result.details, indent=2))
    return 1 if failures else 0


def cmd_verify_run(args):
    """Verify every signature on a report run."""
    from reportseal import ReportRun, verify_report_run

    run = ReportRun.from_dict(load_json(args.run))
    signatures = load_json(args.signatures)
    if not isinstance(signatures, list):
        raise InvalidInput("signatures", "expected a JSON array of signature records")

    report = verify_report_run(run, signatures)
    print(json.dumps(report.to_dict(), indent=2))

    if report.all_valid:
        status = "complete" if report.is_complete else f"missing {', '.join(report.missing_roles)}"
        print(f"\n✓ All active signatures valid ({status})", file=sys.stderr)
        return 0
    print("\n✗ One or more signatures no longer match the sealed report", file=sys.stderr)
    return 1


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="reportseal signature hash CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  reportseal hash -f inputs.json
  reportseal verify -f signature.json
  reportseal verify-run -r run.json -s signatures.json
        """
    )
    parser.add_argument("--log-level", default=config.LOG_LEVEL, help="Log level")
    parser.add_argument("--plain-logs", action="store_true", help="Human-readable logs instead of JSON")
    parser.add_argument("--log-file", default=config.LOG_FILE, help="Also write logs to this file (default: REPORTSEAL_LOG_FILE)")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # hash
    hash_parser = subparsers.add_parser("hash", help="Compute a signature hash")
    hash_parser.add_argument("-f", "--file", required=True, help="Hash inputs JSON file")
    hash_parser.add_argument("--hash-version", help="Hash version (default: REPORTSEAL_HASH_VERSION)")

    # verify
    verify_parser = subparsers.add_parser("verify", help="Verify signature record(s)")
    verify_parser.add_argument("-f", "--file", required=True, help="Signature record JSON file (object or array)")
    verify_parser.add_argument("-v", "--verbose", action="store_true", help="Show computed and stored hashes")
    verify_parser.add_argument("--legacy", action="store_true", help="Read rows without hash_version as pre-versioning (v1)")

    # verify-run
    run_parser = subparsers.add_parser("verify-run", help="Verify all signatures on a report run")
    run_parser.add_argument("-r", "--run", required=True, help="Report run JSON file")
    run_parser.add_argument("-s", "--signatures", required=True, help="Signature records JSON file")

    args = parser.parse_args(argv)
    configure_logging(
        level=args.log_level,
        json_format=config.LOG_JSON and not args.plain_logs,
        log_file=args.log_file,
    )

    commands = {
        "hash": cmd_hash,
        "verify": cmd_verify,
        "verify-run": cmd_verify_run,
    }
    if args.command not in commands:
        parser.print_help()
        return 2

    try:
        return commands[args.command](args)
    except InvalidInput as e:
        print(f"✗ Invalid input: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
