#!/usr/bin/env python3
"""
Multi-tenancy scoping lint check.

This script scans the bookly package for common multi-tenancy violations:
1. Hardcoded business_id constants
2. Queries on tenant tables (Service, Appointment) without a business_id filter

USAGE:
    python scripts/check_tenant_scoping.py

    # Or with verbose output
    python scripts/check_tenant_scoping.py -v

EXIT CODES:
    0 - No critical/high issues found
    1 - Critical/high issues found (or the scan path is missing)
"""

import argparse
import re
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Tuple

# ────────────────────────────────────────────────────────────────
# Configuration
# ────────────────────────────────────────────────────────────────

SCAN_ROOT = Path(__file__).parent.parent / "Backend" / "bookly"

# Files/directories to exclude
EXCLUDE_PATTERNS = [
    "__pycache__",
    ".pyc",
    "tenancy/",  # Scoped query helpers live here
    "test_",
]

# Lines after a match searched for a business_id filter (multi-line statements)
CONTEXT_LINES = 6

BAD_PATTERNS: List[Tuple[str, str, str]] = [
    # (pattern, severity, description)
    (
        r"^[A-Z_]*BUSINESS_ID\s*=\s*\d+",
        "CRITICAL",
        "Hardcoded BUSINESS_ID constant - resolve the business per request",
    ),
    (
        r"business_id\s*=\s*\d+[,\)\s]",
        "WARNING",
        "Hardcoded business_id literal - use the request's context",
    ),
    (
        r"select\(Service\)",
        "HIGH",
        "Service query without business_id filter - potential cross-tenant leak",
    ),
    (
        r"select\(Appointment\)",
        "HIGH",
        "Appointment query without business_id filter - potential cross-tenant leak",
    ),
]

SCOPED_RE = re.compile(
    r"\.business_id\s*==|business_id\s*=\s*ctx\.business_id|scoped_select\(|tenant_filter\("
)

# Patterns that are OK (suppress false positives)
IGNORE_PATTERNS = [
    r"^\s*#",  # Comments
    r"business_id: int",  # Type annotations
    r"business_id=business_id",  # Passing through
    r"noqa:\s*tenant-scoping",  # Explicit suppression
]


# ────────────────────────────────────────────────────────────────
# Data Classes
# ────────────────────────────────────────────────────────────────

@dataclass
class Finding:
    """A single tenant scoping issue."""

    file: Path
    line_num: int
    line_text: str
    severity: str
    description: str

    def __str__(self):
        return f"{self.severity}: {self.file}:{self.line_num} - {self.description}\n  > {self.line_text.strip()}"


# ────────────────────────────────────────────────────────────────
# Scanning Logic
# ────────────────────────────────────────────────────────────────

def should_exclude(path: Path) -> bool:
    path_str = path.as_posix()
    return any(excl in path_str for excl in EXCLUDE_PATTERNS)


def should_ignore_line(line: str) -> bool:
    return any(re.search(pattern, line, re.IGNORECASE) for pattern in IGNORE_PATTERNS)


def scan_file(file_path: Path) -> List[Finding]:
    """Scan a single file for tenant scoping issues."""
    findings = []

    try:
        content = file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        print(f"Warning: Could not read {file_path}: {e}", file=sys.stderr)
        return []

    lines = content.split("\n")

    for line_num, line in enumerate(lines, 1):
        if should_ignore_line(line):
            continue

        for pattern, severity, description in BAD_PATTERNS:
            if not re.search(pattern, line):
                continue
            if severity == "HIGH":
                context_window = "\n".join(lines[line_num - 1:line_num - 1 + CONTEXT_LINES])
                if SCOPED_RE.search(context_window):
                    continue
            findings.append(Finding(
                file=file_path,
                line_num=line_num,
                line_text=line,
                severity=severity,
                description=description,
            ))

    return findings


def scan_directory(root: Path) -> List[Finding]:
    all_findings = []
    for path in sorted(root.rglob("*.py")):
        if should_exclude(path.relative_to(root)):
            continue
        all_findings.extend(scan_file(path))
    return all_findings


def critical_count(findings: List[Finding]) -> int:
    return sum(1 for f in findings if f.severity in ("CRITICAL", "HIGH"))


# ────────────────────────────────────────────────────────────────
# Reporting
# ────────────────────────────────────────────────────────────────

def print_report(findings: List[Finding], verbose: bool = False):
    if not findings:
        print("No tenant scoping issues found!")
        return

    by_severity = {}
    for f in findings:
        by_severity.setdefault(f.severity, []).append(f)

    print("\n" + "=" * 60)
    print("MULTI-TENANCY SCOPING CHECK REPORT")
    print("=" * 60)

    severity_order = ["CRITICAL", "HIGH", "WARNING"]

    print("\nSUMMARY:")
    for sev in severity_order:
        count = len(by_severity.get(sev, []))
        if count > 0:
            print(f"  {sev}: {count}")

    print(f"\nTOTAL: {len(findings)} issues")

    if verbose:
        print("\n" + "-" * 60)
        print("DETAILS:")
        print("-" * 60)
        for sev in severity_order:
            for f in by_severity.get(sev, []):
                print(f"  {f.file}:{f.line_num}")
                print(f"    {f.description}")
                print(f"    > {f.line_text.strip()[:80]}")
    else:
        print("\nRun with -v for detailed findings.")


# ────────────────────────────────────────────────────────────────
# Main
# ────────────────────────────────────────────────────────────────

def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Check the bookly package for multi-tenancy scoping issues"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show detailed findings")
    parser.add_argument(
        "--path",
        type=Path,
        default=SCAN_ROOT,
        help=f"Path to scan (default: {SCAN_ROOT})",
    )
    args = parser.parse_args(argv)

    if not args.path.exists():
        print(f"Error: Path {args.path} does not exist", file=sys.stderr)
        return 1

    print(f"Scanning {args.path}...")
    findings = scan_directory(args.path)
    print_report(findings, verbose=args.verbose)

    critical = critical_count(findings)
    if critical:
        print(f"\n{critical} critical/high issues found. Failing.")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
