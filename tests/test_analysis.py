"""Tests for diagnostics extracted from compiler output."""

from __future__ import annotations

from latexcompile.analysis import analyse_log


def test_undefined_control_sequence() -> None:
    """Test detection of undefined control sequence errors."""
    log = r"""
! Undefined control sequence.
l.5 \foo
           {bar}
?
"""
    diagnostics = analyse_log(log, "main.tex")
    assert [d.code for d in diagnostics] == ["undefined-control-sequence"]
    assert r"\foo" in diagnostics[0].message
    assert diagnostics[0].file == "main.tex"
    assert diagnostics[0].line == 5


def test_missing_file() -> None:
    """Test detection of missing package files."""
    log = """
! LaTeX Error: File `missingpackage.sty' not found.

Type X to quit or <RETURN> to proceed,
or enter new name. (Default extension: sty)
"""
    diagnostics = analyse_log(log)
    assert [d.code for d in diagnostics] == ["missing-file"]
    assert "missingpackage.sty" in diagnostics[0].message


def test_missing_input_file_is_not_only_packages() -> None:
    """Test that a missing \\input file is reported the same way."""
    diagnostics = analyse_log("! LaTeX Error: File `chapter1.tex' not found.\n")
    assert diagnostics[0].code == "missing-file"
    assert "chapter1.tex" in diagnostics[0].message


def test_runaway_argument() -> None:
    """Test detection of runaway argument errors."""
    log = r"""
Runaway argument?
{ This is a runaway argument that never closes
! File ended while scanning use of \@xverbatim.
<inserted text>
                \par
l.10 \begin{verbatim}
"""
    diagnostics = analyse_log(log)
    codes = [d.code for d in diagnostics]
    assert codes == ["runaway-argument"]
    assert "unclosed brace" in diagnostics[0].message


def test_generic_latex_error() -> None:
    """Test detection of other error lines starting with '!'."""
    log = r"""
! Missing $ inserted.
l.10 x^2
"""
    diagnostics = analyse_log(log)
    assert len(diagnostics) == 1
    assert diagnostics[0].code == "latex-error"
    assert diagnostics[0].level == "error"
    assert "Missing $ inserted." in diagnostics[0].message
    assert diagnostics[0].line == 10


def test_multiple_errors() -> None:
    """Test that every error in a log is reported once."""
    log = r"""
! Undefined control sequence.
l.5 \foo
! LaTeX Error: File `missing.sty' not found.
"""
    codes = [d.code for d in analyse_log(log)]
    assert codes == ["undefined-control-sequence", "missing-file"]


def test_empty_log() -> None:
    """Test that empty logs return no diagnostics."""
    assert analyse_log("") == []


def test_successful_compilation_log() -> None:
    """Test that a clean run produces no diagnostics."""
    log = r"""
This is pdfTeX, Version 3.14159265-2.6-1.40.21 (TeX Live 2020)
entering extended mode
(./test.tex
LaTeX2e <2020-02-02> patch level 5
Document Class: article 2019/12/20 v1.4l Standard LaTeX document class
(./test.aux)
)
Output written on test.pdf (1 page, 12345 bytes).
Transcript written on test.log.
"""
    assert analyse_log(log) == []


def test_undefined_control_sequence_is_last_on_line() -> None:
    """Test that earlier macros on the l.N line are not blamed."""
    log = "! Undefined control sequence.\nl.3 Some \\textbf{x} \\foo\n"
    diagnostics = analyse_log(log)
    assert [d.code for d in diagnostics] == ["undefined-control-sequence"]
    assert "'\\foo'" in diagnostics[0].message
    assert "textbf" not in diagnostics[0].message
