#!/usr/bin/env python3
"""
Lease Verifier — Entry Point
=============================

Verifies a lease document on disk against the claimed owner and occupant.

Usage:
    OPENAI_API_KEY=sk-... python main.py lease.pdf "Alice Smith" "Bob Jones"
    python main.py lease.docx "Alice Smith" "Bob Jones" --media-type application/msword
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from lease_verifier.config import get_settings
from lease_verifier.exceptions import (
    VERIFICATION_FAILED_MESSAGE,
    VERIFICATION_PASSED_MESSAGE,
    LeaseVerificationError,
)
from lease_verifier.extractors import media_type_for_filename
from lease_verifier.models import VerificationVerdict
from lease_verifier.pipeline import LeaseVerificationPipeline

EXIT_VALID = 0
EXIT_REJECTED = 1
EXIT_ERROR = 2


# ─── ANSI Color Constants ───────────────────────────────────────────

_RED = "\033[91m"
_YELLOW = "\033[93m"
_GREEN = "\033[92m"
_CYAN = "\033[96m"
_DIM = "\033[2m"
_BOLD = "\033[1m"
_RESET = "\033[0m"
_WIDTH = 72


# ─── Pretty Printer ─────────────────────────────────────────────────


def _match_label(matched: bool) -> str:
    return f"{_GREEN}match{_RESET}" if matched else f"{_RED}no match{_RESET}"


def print_verdict(verdict: VerificationVerdict, document: str) -> int:
    """Pretty-print the verdict with ANSI color codes.

    Returns:
        0 if the lease passed, 1 if it was rejected.
    """
    print(f"\n{'=' * _WIDTH}")
    print(f"{_BOLD}{_CYAN}  LEASE VERIFICATION REPORT{_RESET}")
    print(f"{'=' * _WIDTH}")
    print(f"  Document:    {document}")
    print(f"  Audit Hash:  {_DIM}{verdict.document_sha256[:16]}...{_RESET}")
    print(f"  Type:        {verdict.document_type_label}")
    print(f"{'─' * _WIDTH}")
    print(f"  Owner:       {verdict.extracted_owner_name or '-'}  ({_match_label(verdict.owner_match)})")
    print(f"  Occupant:    {verdict.extracted_occupant_name or '-'}  ({_match_label(verdict.occupant_match)})")
    print(f"  Confidence:  {verdict.confidence_score}/100")
    print(f"{'─' * _WIDTH}")

    if verdict.failure_reasons:
        print(f"\n  {_YELLOW}{_BOLD}REASONS ({len(verdict.failure_reasons)}){_RESET}")
        for reason in verdict.failure_reasons:
            print(f"    - {reason}")
        print()

    print(f"{'=' * _WIDTH}")
    if verdict.is_valid:
        print(f"  {_GREEN}{_BOLD}{VERIFICATION_PASSED_MESSAGE.upper()}{_RESET}")
    else:
        print(f"  {_RED}{_BOLD}{VERIFICATION_FAILED_MESSAGE.upper()}{_RESET}")
    print(f"{'=' * _WIDTH}\n")

    return EXIT_VALID if verdict.is_valid else EXIT_REJECTED


def print_error(error: LeaseVerificationError) -> int:
    """Print a pipeline error in its user-facing category."""
    print(f"\n  {_RED}{_BOLD}{error.user_message}{_RESET}")
    print(f"    {_DIM}[{error.code}] {error}{_RESET}\n")
    return EXIT_ERROR


# ─── Main ────────────────────────────────────────────────────────────


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Verify a lease document.")
    parser.add_argument("document", help="Path to a PDF, DOC or DOCX lease")
    parser.add_argument("owner", help="Claimed property owner name")
    parser.add_argument("occupant", help="Claimed occupant name")
    parser.add_argument(
        "--media-type",
        help="Declared media type (default: guessed from the file extension)",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Run the verification pipeline on one file and print the verdict."""
    load_dotenv()
    args = _parse_args(argv)
    settings = get_settings()
    logging.basicConfig(level=settings.LOG_LEVEL)

    path = Path(args.document)
    try:
        data = path.read_bytes()
    except OSError as e:
        print(f"\n  {_RED}Cannot read {path}: {e}{_RESET}\n")
        return EXIT_ERROR

    try:
        media_type = args.media_type or media_type_for_filename(path.name).value
        pipeline = LeaseVerificationPipeline(settings=settings)
        verdict = pipeline.verify(data, media_type, args.owner, args.occupant)
    except LeaseVerificationError as e:
        return print_error(e)

    return print_verdict(verdict, path.name)


if __name__ == "__main__":
    sys.exit(main())
