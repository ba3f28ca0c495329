"""
Renders scan results.

Three representations are produced from a ScanReport:

* a human-readable ranked table for the terminal,
* a tab-separated sidecar with a fixed column order (``TSV_COLUMNS``;
  comprehensive mode appends ``TSV_COMPREHENSIVE_COLUMNS``, and a focus
  pattern appends ``TSV_FOCUS_COLUMNS``),
* a self-contained HTML document with the same table plus one section per
  deep-compared pair.

Rendering functions are pure; ReportEmitter only adds writing to sinks.
"""

import csv
import html
import io
import os
from datetime import datetime
from typing import List, Optional, Sequence, TextIO

from ..config.settings import ScoringMode
from ..models import FocusStatus, PairComparison, RepoCandidate
from ..schemas import RankedCandidates, ScanReport
from .structural_differ import summarize

TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
NOT_AVAILABLE = "N/A"

# File names that are not valid UTF-8 arrive as surrogate escapes. Raw sinks
# (TSV, patches) write the original bytes back; HTML shows them escaped.
PATH_ERRORS = "surrogateescape"
TEXT_ERRORS = "backslashreplace"

TSV_COLUMNS = [
    "path",
    "branch",
    "head_commit_epoch",
    "head_commit_time",
    "ahead",
    "behind",
    "dirty",
]
TSV_COMPREHENSIVE_COLUMNS = [
    "staged",
    "unstaged",
    "untracked",
    "latest_file_epoch",
    "latest_file_time",
    "latest_file_path",
]
TSV_FOCUS_COLUMNS = ["focus_status", "focus_latest_epoch"]

LEGEND = [
    "Legend:",
    "  A/B   = ahead/behind relative to upstream (0/0 if none).",
    "  FLAGS = U (untracked) M (modified) S (staged) D (dirty overall)",
    '  *     = best candidate for "where you last left off"',
]


def format_epoch(epoch: int) -> str:
    """Local time for an epoch, or N/A for 0."""
    if not epoch:
        return NOT_AVAILABLE
    return datetime.fromtimestamp(epoch).strftime(TIME_FORMAT)


def dirty_label(candidate: RepoCandidate) -> str:
    return "dirty" if candidate.dirty else "clean"


def uses_focus(ranking: RankedCandidates) -> bool:
    return any(c.focus_status is not FocusStatus.NONE for c in ranking.candidates)


def tsv_columns(mode: ScoringMode, focus: bool = False) -> List[str]:
    columns = list(TSV_COLUMNS)
    if mode is ScoringMode.COMPREHENSIVE:
        columns += TSV_COMPREHENSIVE_COLUMNS
    if focus:
        columns += TSV_FOCUS_COLUMNS
    return columns


def tsv_row(candidate: RepoCandidate, mode: ScoringMode, focus: bool = False) -> List[str]:
    row = [
        candidate.path,
        candidate.branch,
        str(candidate.head_commit_epoch),
        format_epoch(candidate.head_commit_epoch),
        str(candidate.ahead),
        str(candidate.behind),
        dirty_label(candidate),
    ]
    if mode is ScoringMode.COMPREHENSIVE:
        row += [
            str(candidate.staged_count),
            str(candidate.unstaged_count),
            str(candidate.untracked_count),
            str(candidate.latest_file_epoch),
            format_epoch(candidate.latest_file_epoch),
            candidate.latest_file_path or "",
        ]
    if focus:
        row += [candidate.focus_status.value, str(candidate.focus_latest_epoch)]
    return row


def render_tsv(ranking: RankedCandidates) -> str:
    focus = uses_focus(ranking)
    buffer = io.StringIO()
    writer = csv.writer(
        buffer, delimiter="\t", lineterminator="\n", quoting=csv.QUOTE_MINIMAL
    )
    writer.writerow(tsv_columns(ranking.mode, focus))
    for candidate in ranking.candidates:
        writer.writerow(tsv_row(candidate, ranking.mode, focus))
    return buffer.getvalue()


def _format_table(headers: Sequence[str], rows: Sequence[Sequence[str]]) -> List[str]:
    widths = [len(h) for h in headers]
    for row in rows:
        widths = [max(w, len(cell)) for w, cell in zip(widths, row)]

    def _line(cells: Sequence[str]) -> str:
        return " | ".join(cell.ljust(w) for cell, w in zip(cells, widths)).rstrip()

    lines = [_line(headers), "-+-".join("-" * w for w in widths)]
    lines += [_line(row) for row in rows]
    return lines


def table_headers(mode: ScoringMode) -> List[str]:
    headers = ["RANK", "REPO PATH", "BRANCH", "LAST COMMIT"]
    if mode is ScoringMode.COMPREHENSIVE:
        headers += ["LAST FILE"]
    headers += ["DIRTY", "A/B", "FLAGS"]
    if mode is ScoringMode.COMPREHENSIVE:
        headers += ["STAGED", "UNSTG", "UNTRK", "ACT.EPOCH"]
    return headers


def table_row(rank: int, candidate: RepoCandidate, mode: ScoringMode) -> List[str]:
    row = [
        f"{rank}{'*' if rank == 1 else ''}",
        candidate.path,
        candidate.branch,
        format_epoch(candidate.head_commit_epoch),
    ]
    if mode is ScoringMode.COMPREHENSIVE:
        row += [format_epoch(candidate.latest_file_epoch)]
    row += [dirty_label(candidate), f"{candidate.ahead}/{candidate.behind}", candidate.flags]
    if mode is ScoringMode.COMPREHENSIVE:
        row += [
            str(candidate.staged_count),
            str(candidate.unstaged_count),
            str(candidate.untracked_count),
            str(candidate.activity_epoch),
        ]
    return row


def render_table(report: ScanReport, top_n: Optional[int] = None) -> str:
    """Ranked table, best-candidate summary, exclusions and legend."""
    ranking = report.ranking
    if not ranking.candidates:
        lines = [f"No candidates found matching {', '.join(report.name_filters)} under {report.root}"]
        lines += _render_exclusions(report)
        return "\n".join(lines) + "\n"

    shown = ranking.candidates if top_n is None else ranking.candidates[:top_n]
    rows = [table_row(i, c, ranking.mode) for i, c in enumerate(shown, start=1)]
    lines = _format_table(table_headers(ranking.mode), rows)
    if len(shown) < len(ranking.candidates):
        lines.append(f"... {len(ranking.candidates) - len(shown)} more candidate(s) not shown")

    best = ranking.best
    lines += [
        "",
        f"Likely LAST ACTIVE repo ({ranking.mode.value} mode):",
        f"   Path : {best.path}",
        f"   Epoch: {best.activity_epoch}",
        f"   Time : {format_epoch(best.activity_epoch)}",
    ]
    lines += _render_exclusions(report)
    lines += [""] + LEGEND
    return "\n".join(lines) + "\n"


def _render_exclusions(report: ScanReport) -> List[str]:
    lines: List[str] = []
    if report.excluded:
        lines += ["", f"Excluded {len(report.excluded)} candidate(s):"]
        lines += [f"   {e.path}: {e.reason}" for e in report.excluded]
    if report.skipped:
        lines += ["", f"Skipped {len(report.skipped)} unreadable subtree(s):"]
        lines += [f"   {s.path}: {s.reason}" for s in report.skipped]
    return lines


def render_comparison_summary(comparison: PairComparison) -> str:
    lines = [
        "====== DEEP COMPARE ======",
        f"BASE : {comparison.baseline_path}",
        f"OTHER: {comparison.other_path}",
    ]
    if not comparison.ok:
        lines.append(f"FAILED: {comparison.error}")
        return "\n".join(lines) + "\n"

    result = comparison.result
    for rel_path in sorted(result.unique_to_baseline):
        lines.append(f"  + [BASE only] {rel_path}")
    for rel_path in sorted(result.unique_to_other):
        lines.append(f"  + [OTHER only] {rel_path}")
    for rel_path in sorted(result.differing):
        lines.append(f"  * [DIFFER] {rel_path}")
    counts = summarize(result)
    lines += [
        "Summary:",
        f"  Files only in BASE : {counts['only_in_baseline']}",
        f"  Files only in OTHER: {counts['only_in_other']}",
        f"  Files differing    : {counts['differing']}",
    ]
    return "\n".join(lines) + "\n"


HTML_STYLE = """
body { font-family: sans-serif; background: #111; color: #eee; }
h1, h2, h3 { color: #8be9fd; }
table { border-collapse: collapse; width: 100%; margin-bottom: 1.5em; }
th, td { border: 1px solid #444; padding: 4px 6px; font-size: 0.85rem; }
th { background: #282a36; }
tr:nth-child(even) { background: #222; }
tr:nth-child(odd) { background: #181818; }
.bad { color: #ff5555; }
.good { color: #50fa7b; }
.warn { color: #f1fa8c; }
pre { background: #1e1e1e; padding: 6px; overflow-x: auto; }
details { margin-bottom: 1em; }
summary { cursor: pointer; color: #bd93f9; }
"""


def render_html(report: ScanReport, generated_at: Optional[datetime] = None) -> str:
    """Standalone HTML document with the ranking and every deep-compare section."""
    esc = html.escape
    ranking = report.ranking
    title = f"Repo Variants Report - {', '.join(report.name_filters)}"
    generated = (generated_at or datetime.now()).strftime(TIME_FORMAT)

    parts = [
        "<!DOCTYPE html>",
        '<html lang="en">',
        "<head>",
        '<meta charset="UTF-8">',
        f"<title>{esc(title)}</title>",
        f"<style>{HTML_STYLE}</style>",
        "</head>",
        "<body>",
        f"<h1>{esc(title)}</h1>",
        f"<p>Generated: {esc(generated)}<br>Root: <code>{esc(report.root)}</code>"
        f"<br>Mode: {esc(ranking.mode.value)}</p>",
        "<h2>Ranking</h2>",
    ]

    if ranking.candidates:
        headers = table_headers(ranking.mode) + ["HEAD"]
        parts += ["<table>", "<thead><tr>"]
        parts += [f"<th>{esc(h)}</th>" for h in headers]
        parts += ["</tr></thead>", "<tbody>"]
        for rank, candidate in enumerate(ranking.candidates, start=1):
            cells = table_row(rank, candidate, ranking.mode) + [candidate.head_hash or NOT_AVAILABLE]
            parts.append("<tr>")
            for header, cell in zip(headers, cells):
                css = ""
                if header == "DIRTY":
                    css = ' class="bad"' if candidate.dirty else ' class="good"'
                parts.append(f"<td{css}>{esc(cell)}</td>")
            parts.append("</tr>")
        parts += ["</tbody>", "</table>"]
    else:
        parts.append('<p class="warn">No candidates found.</p>')

    if report.excluded:
        parts += ["<h2>Excluded candidates</h2>", "<ul>"]
        parts += [
            f'<li><code>{esc(e.path)}</code>: <span class="bad">{esc(e.reason)}</span></li>'
            for e in report.excluded
        ]
        parts.append("</ul>")
    if report.skipped:
        parts += ["<h2>Skipped subtrees</h2>", "<ul>"]
        parts += [
            f'<li><code>{esc(s.path)}</code>: <span class="warn">{esc(s.reason)}</span></li>'
            for s in report.skipped
        ]
        parts.append("</ul>")

    if report.comparisons:
        parts.append("<h2>Deep compare</h2>")
        for comparison in report.comparisons:
            parts += _html_comparison(comparison)

    parts += ["</body>", "</html>"]
    return "\n".join(parts) + "\n"


def _html_comparison(comparison: PairComparison) -> List[str]:
    esc = html.escape
    summary = (
        f"Deep compare: <code>{esc(comparison.baseline_path)}</code> vs "
        f"<code>{esc(comparison.other_path)}</code>"
    )
    parts = ["<details>", f"  <summary>{summary}</summary>"]
    if not comparison.ok:
        parts.append(f'  <p class="bad">Comparison failed: {esc(comparison.error)}</p>')
    else:
        counts = summarize(comparison.result)
        parts.append(
            f"  <p>Only in base: {counts['only_in_baseline']}, "
            f"only in other: {counts['only_in_other']}, "
            f"differing: {counts['differing']}</p>"
        )
        parts.append(f"  <pre>{esc(comparison.patch) or '(identical)'}</pre>")
    parts.append("</details>")
    return parts


def artifact_tag(path: str) -> str:
    """File-name-safe tag for a candidate path."""
    return path.replace(os.sep, "_").replace("/", "_").replace(" ", "_").strip("_")


class ReportEmitter:
    """Writes rendered reports to their sinks."""

    def __init__(self, stream: TextIO, top_n: Optional[int] = None):
        self.stream = stream
        self.top_n = top_n

    def emit_table(self, report: ScanReport) -> None:
        self.stream.write(render_table(report, top_n=self.top_n))

    def emit_comparisons(self, report: ScanReport) -> None:
        if not report.comparisons:
            return
        self.stream.write("\n====== DEEP COMPARE ACROSS VARIANTS ======\n")
        self.stream.write(f"Baseline (most active) repo:\n  {report.ranking.best.path}\n")
        for comparison in report.comparisons:
            self.stream.write("\n" + render_comparison_summary(comparison))

    def write_tsv(self, report: ScanReport, path: str) -> str:
        with open(
            path, "w", encoding="utf-8", errors=PATH_ERRORS, newline=""
        ) as f:
            f.write(render_tsv(report.ranking))
        return path

    def write_html(
        self, report: ScanReport, path: str, generated_at: Optional[datetime] = None
    ) -> str:
        with open(path, "w", encoding="utf-8", errors=TEXT_ERRORS) as f:
            f.write(render_html(report, generated_at))
        return path

    def write_patches(self, report: ScanReport, directory: str, stamp: str) -> List[str]:
        """Write one unified diff file per successful comparison."""
        written = []
        for comparison in report.comparisons:
            if not comparison.ok:
                continue
            name = (
                f"deepdiff_{artifact_tag(comparison.baseline_path)}_VS_"
                f"{artifact_tag(comparison.other_path)}_{stamp}.diff"
            )
            path = os.path.join(directory, name)
            with open(path, "w", encoding="utf-8", errors=PATH_ERRORS) as f:
                f.write(comparison.patch)
            written.append(path)
        return written
