from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Iterable, List, Optional, TextIO

import yaml

from ibanlib.errors import IbanError, RegistryError
from ibanlib.iban import construct, parse
from ibanlib.registry import CountryRegistry, default_registry, load_registry
from ibanlib.utils.config import deep_get, load_settings
from ibanlib.utils.logging_setup import log_event, setup_logging
from ibanlib.utils.paths import default_log_dir

log = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_INVALID = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="ibanlib", description="Validate, build and format IBANs.")
    ap.add_argument("--config", default=None, help="YAML config file (default: $IBANLIB_CONFIG or ./ibanlib.yaml)")
    ap.add_argument("--registry", default=None, help="alternative IBAN registry YAML file")
    ap.add_argument("--log", action="store_true", help="write log files (see logging.log_dir)")
    sub = ap.add_subparsers(dest="command", required=True)

    ap_validate = sub.add_parser("validate", help="check one or more IBANs")
    ap_validate.add_argument("ibans", nargs="*")
    ap_validate.add_argument("--file", default=None, help="read IBANs line by line, '-' for stdin")
    ap_validate.add_argument("--relaxed", action="store_true", help="skip the generic ISO 13616 envelope check")

    ap_build = sub.add_parser("build", help="compute check digits for a country and BBAN")
    ap_build.add_argument("country")
    ap_build.add_argument("bban", nargs="+", help="BBAN, blanks allowed")

    ap_format = sub.add_parser("format", help="print an IBAN in groups of four")
    ap_format.add_argument("iban", nargs="+", help="IBAN, blanks allowed")

    sub.add_parser("countries", help="list supported countries")
    return ap


def _read_lines(source: str, stdin: TextIO) -> List[str]:
    if source == "-":
        lines = stdin.read().splitlines()
    else:
        lines = Path(source).read_text(encoding="utf-8").splitlines()
    return [ln for ln in lines if ln.strip() and not ln.lstrip().startswith("#")]


def _render(iban, style: str) -> str:
    return iban.canonical if style == "canonical" else iban.formatted


def _cmd_validate(
    inputs: Iterable[str], strict: bool, style: str, registry: CountryRegistry, out: TextIO
) -> int:
    total = 0
    invalid = 0
    for raw in inputs:
        total += 1
        try:
            iban = parse(raw, strict=strict, registry=registry)
        except IbanError as exc:
            invalid += 1
            out.write(f"ERROR {raw.strip()}: {type(exc).__name__}: {exc}\n")
            continue
        out.write(f"OK {_render(iban, style)}\n")

    log_event(log, "validate.done", "Validation finished", total=total, invalid=invalid, strict=strict)
    return EXIT_OK if invalid == 0 else EXIT_INVALID


def main(
    argv: Optional[List[str]] = None, stdin: Optional[TextIO] = None, stdout: Optional[TextIO] = None
) -> int:
    args = build_parser().parse_args(argv)
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout

    try:
        settings = load_settings(Path(args.config) if args.config else None)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        sys.stderr.write(f"Cannot load config: {exc}\n")
        return EXIT_USAGE

    if args.log or deep_get(settings, ["logging", "enabled"], False):
        log_dir = deep_get(settings, ["logging", "log_dir"])
        setup_logging(Path(log_dir) if log_dir else default_log_dir())

    registry_path = args.registry or deep_get(settings, ["registry", "path"])
    try:
        registry = load_registry(Path(registry_path)) if registry_path else default_registry()
    except RegistryError as exc:
        sys.stderr.write(f"{exc}\n")
        return EXIT_USAGE

    style = deep_get(settings, ["output", "style"], "formatted")

    if args.command == "validate":
        inputs = list(args.ibans)
        if args.file:
            try:
                inputs.extend(_read_lines(args.file, stdin))
            except OSError as exc:
                sys.stderr.write(f"Cannot read {args.file}: {exc}\n")
                return EXIT_USAGE
        if not inputs:
            sys.stderr.write("Nothing to validate\n")
            return EXIT_USAGE
        strict = bool(deep_get(settings, ["validation", "strict"], True)) and not args.relaxed
        return _cmd_validate(inputs, strict, style, registry, stdout)

    try:
        if args.command == "build":
            iban = construct(args.country, " ".join(args.bban), registry=registry)
            stdout.write(f"{iban.canonical}\n{iban.formatted}\n")
        elif args.command == "format":
            strict = bool(deep_get(settings, ["validation", "strict"], True))
            stdout.write(f"{parse(' '.join(args.iban), strict=strict, registry=registry).formatted}\n")
        elif args.command == "countries":
            for c in registry:
                stdout.write(f"{c.code}  {c.bban_length:>2}  {c.bban_pattern.notation:<22}  {c.name}\n")
    except IbanError as exc:
        sys.stderr.write(f"ERROR {type(exc).__name__}: {exc}\n")
        return EXIT_INVALID
    return EXIT_OK
