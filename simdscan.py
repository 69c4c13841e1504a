#!/usr/bin/env python3
"""
simdscan.py – classify SIMD instructions by ISA extension.

$ ./simdscan.py path/to/binary
$ ./simdscan.py -f yaml --show-insts path/to/binary    # extra detail

Requires: GNU objdump (binutils), Python ≥3.8
"""

from __future__ import annotations
import argparse, json, logging, re, subprocess, sys
from collections import Counter, defaultdict
from pathlib import Path
from typing import Iterable, Optional

from isa_table import DEFAULT_TABLE, ClassificationTable

log = logging.getLogger("simdscan")

TOP_MNEMONICS = 10  # per-ISA breakdown is truncated to this many entries
FORMATS = ("json", "yaml")

# Pre-compile regex set for performance ----------------------------------------
# We detect an instruction line by:
#   (optional whitespace)(hex addr): <tab> mnemonic   (% or $ operands …)
OBJLINE_RE = re.compile(r"^\s*[0-9a-f]+:\s+\w")  # cheap early filter
# Extract the mnemonic: first lower-case identifier (≥2 chars) after whitespace
MNE_RE = re.compile(r"\s([a-z][a-z0-9]+\b)")


class DisassemblyError(RuntimeError):
    """objdump could not produce a textual listing."""

    def __init__(self, message: str, output: str = ""):
        super().__init__(message)
        self.output = output


# ─────────────────────────────  Line parsing  ──────────────────────────────────
def is_instruction_line(line: str) -> bool:
    """`  401000:  addps …` style line? Headers, banners and blanks are not."""
    return OBJLINE_RE.match(line) is not None


def extract_mnemonic(line: str) -> Optional[str]:
    """Return the lower-cased mnemonic of an instruction line, or None."""
    m = MNE_RE.search(line)
    if not m:
        return None
    return m.group(1).lower()


# ─────────────────────────────  Classification  ────────────────────────────────
def classify(
    lines: Iterable[str], table: ClassificationTable = DEFAULT_TABLE
) -> tuple[Counter, dict[str, Counter]]:
    """
    Returns:
        isa_counts   – Counter{ISA ⇒ occurrences}
        inst_detail  – {ISA ⇒ Counter{mnemonic ⇒ occurrences}}

    Never raises: lines that are not instructions, or whose mnemonic is not
    in *table*, contribute nothing.
    """
    isa_counts: Counter[str] = Counter()
    inst_detail: dict[str, Counter] = defaultdict(Counter)

    seen = 0
    for ln in lines:
        if not is_instruction_line(ln):  # skip non-instruction lines early
            continue
        mnem = extract_mnemonic(ln)
        if mnem is None:
            continue
        seen += 1

        isa = table.match(mnem)
        if isa is not None:
            isa_counts[isa] += 1
            inst_detail[isa][mnem] += 1

    log.debug(
        "classified %d of %d instructions as SIMD",
        sum(isa_counts.values()),
        seen,
    )
    return isa_counts, dict(inst_detail)


def build_report(
    binary: str,
    isa_counts: Counter,
    inst_detail: dict[str, Counter],
    show_insts: bool = False,
    top: int = TOP_MNEMONICS,
) -> dict:
    """Fold classifier output into the report dict emitted by the CLI."""
    total = sum(isa_counts.values())
    report = {
        "binary": binary,
        "has_simd": total > 0,
        "isa_summary": dict(sorted(isa_counts.items(), key=lambda kv: kv[0])),
        "total_simd_insts": total,
    }

    if show_insts:
        details = {}
        for isa, detail in sorted(inst_detail.items(), key=lambda kv: kv[0]):
            if not detail:
                continue
            occurrences = dict(detail.most_common(top))
            details[isa] = {
                "unique_mnemonics": len(occurrences),
                "occurrences": occurrences,
            }
        report["isa_details"] = details

    return report


# ─────────────────────────────  CLI / I/O  ─────────────────────────────────────
def disassemble(
    path: Path, objdump: str = "objdump", timeout: Optional[float] = None
) -> list[str]:
    """Return list of lines from objdump -d output (raises DisassemblyError)."""
    cmd = [objdump, "-d", "--no-show-raw-insn", str(path)]
    log.debug("running %s", " ".join(cmd))
    try:
        out = subprocess.check_output(
            cmd,
            text=True,
            stderr=subprocess.STDOUT,
            timeout=timeout,
        )
    except subprocess.CalledProcessError as e:
        raise DisassemblyError(
            f"objdump failed ({e.returncode})", output=e.output or ""
        ) from e
    except subprocess.TimeoutExpired as e:
        raise DisassemblyError(f"objdump timed out after {e.timeout}s") from e
    except FileNotFoundError as e:
        raise DisassemblyError(f"{objdump} not found – install GNU binutils") from e
    except UnicodeDecodeError as e:
        raise DisassemblyError("objdump output is not valid text") from e

    lines = out.splitlines()
    log.debug("objdump produced %d lines", len(lines))
    return lines


def render(report: dict, fmt: str = "json") -> str:
    if fmt == "yaml":
        try:
            import yaml
        except ModuleNotFoundError:
            sys.exit("[error] PyYAML not installed – choose JSON or install PyYAML")
        return yaml.dump(report, sort_keys=False, allow_unicode=True)
    if fmt == "json":
        return json.dumps(report, indent=2)
    raise ValueError(f"unknown output format {fmt!r}")


def parse_args(argv=None):
    ap = argparse.ArgumentParser(
        description="Detect SIMD instructions and classify by ISA extension."
    )
    ap.add_argument("binary", type=Path, help="ELF / Mach-O / PE (x86-64)")
    ap.add_argument(
        "-f",
        "--format",
        choices=FORMATS,
        default="json",
        help="output format (default json)",
    )
    ap.add_argument(
        "--show-insts",
        action="store_true",
        help="include per-ISA instruction breakdown",
    )
    ap.add_argument(
        "--objdump",
        default="objdump",
        metavar="PATH",
        help="objdump executable to run (default objdump)",
    )
    ap.add_argument(
        "--timeout",
        type=float,
        default=None,
        metavar="SECONDS",
        help="kill objdump after this many seconds",
    )
    ap.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="debug logging on stderr",
    )
    return ap.parse_args(argv)


def main(argv=None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="[%(levelname)s] %(message)s",
    )
    if not args.binary.exists():
        sys.exit(f"[error] {args.binary} not found")

    try:
        lines = disassemble(args.binary, objdump=args.objdump, timeout=args.timeout)
    except DisassemblyError as e:
        if e.output:
            sys.stderr.write(e.output)
        sys.exit(f"[error] {e}")

    isa_counts, inst_detail = classify(lines)
    report = build_report(str(args.binary), isa_counts, inst_detail, args.show_insts)

    print(render(report, args.format))


if __name__ == "__main__":
    main()
