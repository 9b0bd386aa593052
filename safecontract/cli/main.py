"""SafeContract CLI — local heuristic verifier for Solidity sources.

Usage:
    safecontract scan <path>            Scan a Solidity file or a directory of .sol files
    safecontract example [type]         Print an example contract
    safecontract config                 Show current configuration
    safecontract --version              Print version

Examples:
    safecontract scan ./contracts/Token.sol
    safecontract scan ./contracts/ --format json -o results.json
    safecontract example vulnerable > Vulnerable.sol
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from safecontract import __version__
from safecontract.core.types import ScanReport, VerdictStatus


# ── Coloured output helpers ──────────────────────────────────────────────────

_RESET = "\033[0m"
_BOLD = "\033[1m"
_RED = "\033[91m"
_YELLOW = "\033[93m"
_GREEN = "\033[92m"
_CYAN = "\033[96m"
_DIM = "\033[2m"

_STATUS_COLOR = {
    VerdictStatus.VERIFIED: _GREEN,
    VerdictStatus.VULNERABLE: _RED,
    VerdictStatus.ERROR: _YELLOW,
}


def _c(text: str, code: str) -> str:
    return f"{code}{text}{_RESET}"


BANNER = f"""
{_BOLD}{_CYAN}SafeContract{_RESET} {_DIM}heuristic Solidity verifier — v{__version__}{_RESET}
"""


# ── CLI argument parser ─────────────────────────────────────────────────────


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="safecontract",
        description="SafeContract — heuristic verification of Solidity contracts",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="store_true", help="Print version and exit")
    parser.add_argument("--no-banner", action="store_true", help="Suppress the startup banner")
    parser.add_argument("--quiet", "-q", action="store_true", help="Minimal output")

    sub = parser.add_subparsers(dest="command")

    # ── scan ─────────────────────────────────────────────────────────────────
    scan_p = sub.add_parser("scan", help="Scan a Solidity file or directory")
    scan_p.add_argument("path", help="Path to .sol file or directory")
    scan_p.add_argument(
        "--format",
        "-f",
        default="table",
        choices=["table", "json"],
        help="Output format (default: table)",
    )
    scan_p.add_argument("--output", "-o", help="Write output to file instead of stdout")

    # ── example ──────────────────────────────────────────────────────────────
    example_p = sub.add_parser("example", help="Print an example contract")
    example_p.add_argument("type", nargs="?", default="simple", help="simple, vulnerable, defi or nft")

    # ── config ───────────────────────────────────────────────────────────────
    sub.add_parser("config", help="Show current configuration")

    return parser


# ── Scan command ─────────────────────────────────────────────────────────────


def _collect_sources(path: Path) -> list[tuple[str, str]]:
    """Return ``(label, source)`` for a file, or for every .sol file under a directory.

    Each file is scanned on its own: its pragma and ``unchecked`` usage must
    not leak into another file's verdicts.
    """
    if path.is_file():
        return [(path.name, path.read_text(encoding="utf-8"))]

    return [
        (str(sf.relative_to(path)), sf.read_text(encoding="utf-8"))
        for sf in sorted(path.rglob("*.sol"))
    ]


def _print_table(report: ScanReport, quiet: bool = False, label: str | None = None) -> None:
    """Pretty-print verdicts as a coloured table."""
    summary = report.summary
    if not quiet:
        score_color = _GREEN if summary.security_score >= 80 else _YELLOW
        target = f"{label} ({report.contract_hash})" if label else report.contract_hash
        print(f"\n{_BOLD}Scan complete{_RESET} — {target}")
        print(
            f"  Score: {_c(f'{summary.security_score}/100', score_color)}"
            f"  |  Solidity: {report.solidity_version}"
            f"  |  Functions: {report.functions_analyzed}"
            f"  |  Duration: {report.verification_time_ms}ms\n"
        )

    if report.message:
        print(_c(f"  ✓ {report.message}", _GREEN))
        return

    print(
        f"  {summary.total_checks} checks · "
        f"{_c(f'{summary.verified_count} verified', _GREEN)} · "
        f"{_c(f'{summary.vulnerable_count} vulnerable', _RED)} · "
        f"{_c(f'{summary.error_count} errors', _YELLOW)}\n"
    )

    for i, verdict in enumerate(report.verdicts, 1):
        if quiet and verdict.status == VerdictStatus.VERIFIED:
            continue
        color = _STATUS_COLOR.get(verdict.status, "")
        badge = _c(f" {verdict.result_label} ", color + _BOLD)
        print(f"  {_DIM}{i:>3}.{_RESET} {badge} {_c(verdict.description, _BOLD)}")
        if not quiet:
            print(f"       {_DIM}{verdict.evidence}{_RESET}")

    status = summary.overall_status.value
    print()
    print(_c(f"  {status}", _RED if summary.vulnerable_count else _GREEN))
    if report.certificate:
        print(f"  Certificate: {_c(report.certificate.certificate_id, _CYAN)}")
        if not quiet:
            print(f"  {_DIM}{report.certificate.disclaimer}{_RESET}")
    print()


def _run_scan(args: argparse.Namespace) -> int:
    """Scan each file separately and print results.

    A directory yields one report per .sol file. JSON output for a directory
    is a list of reports, each tagged with its ``file``.
    """
    from safecontract.core.errors import SafeContractError
    from safecontract.pipeline.orchestrator import ScanOrchestrator

    path = Path(args.path).resolve()
    if not path.exists():
        print(_c(f"Error: path '{path}' does not exist.", _RED), file=sys.stderr)
        return 1

    sources = _collect_sources(path)
    if not sources:
        print(_c(f"Error: no .sol files found in '{path}'.", _RED), file=sys.stderr)
        return 1

    orchestrator = ScanOrchestrator()
    reports: list[tuple[str, ScanReport]] = []
    failed = False
    for label, source in sources:
        try:
            reports.append((label, orchestrator.scan(source)))
        except SafeContractError as exc:
            print(_c(f"\nScan of {label} failed: {exc}", _RED), file=sys.stderr)
            failed = True

    if args.format == "table":
        for label, report in reports:
            _print_table(report, quiet=args.quiet, label=label)
    else:
        if path.is_file() and reports:
            payload: Any = reports[0][1].to_response()
        else:
            payload = [{"file": label, **report.to_response()} for label, report in reports]
        output = json.dumps(payload, indent=2)
        if args.output:
            Path(args.output).write_text(output, encoding="utf-8")
            if not args.quiet:
                print(f"  Written to {_c(args.output, _CYAN)}")
        else:
            print(output)

    # Exit code: 1 if any file failed or has a vulnerable condition
    issues = any(report.summary.vulnerable_count > 0 for _, report in reports)
    return 1 if failed or issues else 0


# ── Example command ──────────────────────────────────────────────────────────


def _run_example(args: argparse.Namespace) -> int:
    from safecontract.core.examples import get_example

    _, code = get_example(args.type)
    print(code)
    return 0


# ── Config command ───────────────────────────────────────────────────────────


def _run_config() -> int:
    """Print current settings."""
    from safecontract.core.config import get_settings

    s = get_settings()
    print(f"\n{_BOLD}SafeContract Configuration{_RESET}\n")
    for field_name in sorted(type(s).model_fields.keys()):
        print(f"  {_DIM}{field_name}:{_RESET}  {getattr(s, field_name, '')}")
    print()
    return 0


# ── Entrypoint ───────────────────────────────────────────────────────────────


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(f"safecontract {__version__}")
        return 0

    if not args.no_banner:
        print(BANNER, file=sys.stderr)

    from safecontract.core.config import get_settings
    from safecontract.core.logging import setup_logging

    settings = get_settings()
    setup_logging(
        env=settings.app_env,
        log_level="DEBUG" if settings.debug else "WARNING",
        stream=sys.stderr,
    )

    if args.command == "config":
        return _run_config()

    if args.command == "scan":
        return _run_scan(args)

    if args.command == "example":
        return _run_example(args)

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
