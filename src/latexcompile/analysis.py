"""Diagnostics extracted from captured compiler output."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Optional

from latexcompile.models import Diagnostic

LINE_REFERENCE = re.compile(r"^l\.(\d+)", re.MULTILINE)


@dataclass(frozen=True)
class Rule:
    """A log pattern and how to describe what it found."""

    code: str
    pattern: re.Pattern[str]
    describe: Callable[[re.Match[str]], Optional[str]]


def _undefined_sequence(match: re.Match[str]) -> str:
    return (
        f"Undefined control sequence '{match.group(1)}'. "
        "Check for typos or a missing package."
    )


def _missing_file(match: re.Match[str]) -> str:
    return (
        f"Missing file '{match.group(1)}'. "
        "Provide it as an input or install the package that ships it."
    )


def _runaway(match: re.Match[str]) -> str:
    return "Runaway argument, probably an unclosed brace or environment."


def _generic(match: re.Match[str]) -> Optional[str]:
    text = match.group(1).strip()
    lowered = text.lower()
    # Covered by the specific rules above
    if "undefined control sequence" in lowered or "not found" in lowered:
        return None
    if "file ended while scanning" in lowered:
        return None
    return f"LaTeX error: {text}" if text else None


RULES: tuple[Rule, ...] = (
    Rule(
        "undefined-control-sequence",
        # TeX breaks the l.N line right after the offending token
        re.compile(
            r"Undefined control sequence[^\n]*\nl\.\d+[^\n]*(\\[A-Za-z@]+)[^\n\\]*$",
            re.MULTILINE,
        ),
        _undefined_sequence,
    ),
    Rule(
        "missing-file",
        re.compile(r"LaTeX Error: File `([^']+)' not found"),
        _missing_file,
    ),
    Rule("runaway-argument", re.compile(r"Runaway argument\??"), _runaway),
    Rule("latex-error", re.compile(r"^!(.*)$", re.MULTILINE), _generic),
)


def _line_after(log: str, position: int) -> Optional[int]:
    match = LINE_REFERENCE.search(log, position)
    if match is None:
        return None
    # Only trust a line reference that follows closely
    if log.count("\n", position, match.start()) > 4:
        return None
    return int(match.group(1))


def analyse_log(log: str, main_file: Optional[str] = None) -> list[Diagnostic]:
    """Extract error diagnostics from a compiler log.

    Args:
        log: Captured stdout and stderr of the compiler
        main_file: Name attached to diagnostics that carry a line number

    Returns:
        Diagnostics in rule order, at most one per log position
    """
    diagnostics: list[Diagnostic] = []
    seen: set[int] = set()

    for rule in RULES:
        for match in rule.pattern.finditer(log):
            if match.start() in seen:
                continue
            message = rule.describe(match)
            if message is None:
                continue
            seen.add(match.start())
            line = _line_after(log, match.start())
            diagnostics.append(
                Diagnostic(
                    level="error",
                    code=rule.code,
                    message=message,
                    raw=match.group(0).strip(),
                    file=main_file if line is not None else None,
                    line=line,
                )
            )

    return diagnostics
