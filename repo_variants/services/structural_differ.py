import difflib
import filecmp
import logging
import os
from typing import Dict, Iterable, List, Set

from ..errors import DifferFailure, describe
from ..models import DiffResult
from ..protocols import FileSystemProtocol

logger = logging.getLogger(__name__)

NO_NEWLINE_MARKER = "\\ No newline at end of file\n"
BINARY_SNIFF_BYTES = 8000


class StructuralDiffer:
    """Classifies the files of two trees as baseline-only, other-only or differing."""

    def __init__(self, file_system: FileSystemProtocol, exclude_globs: Iterable[str]):
        self.file_system = file_system
        self.exclude_globs = list(exclude_globs)

    def list_tree(self, root: str) -> Set[str]:
        """Relative paths of every regular file under ``root``."""
        return {
            record.relative_path
            for record in self.file_system.iter_files(
                root, self.exclude_globs, strict=True
            )
        }

    def compare(self, baseline: str, other: str) -> DiffResult:
        """Compare two trees by file presence and byte content.

        Raises DifferFailure when either tree or any shared file is unreadable.
        """
        for root in (baseline, other):
            if not os.path.isdir(root):
                raise DifferFailure(baseline, other, f"not a directory: {root}")
        try:
            baseline_files = self.list_tree(baseline)
            other_files = self.list_tree(other)
            differing = {
                rel_path
                for rel_path in baseline_files & other_files
                if not filecmp.cmp(
                    os.path.join(baseline, rel_path),
                    os.path.join(other, rel_path),
                    shallow=False,
                )
            }
        except OSError as e:
            raise DifferFailure(baseline, other, describe(e)) from e

        result = DiffResult(
            baseline_path=baseline,
            other_path=other,
            unique_to_baseline=frozenset(baseline_files - other_files),
            unique_to_other=frozenset(other_files - baseline_files),
            differing=frozenset(differing),
        )
        logger.debug(
            f"Compared {baseline} vs {other}: {len(result.unique_to_baseline)} "
            f"baseline-only, {len(result.unique_to_other)} other-only, "
            f"{len(result.differing)} differing"
        )
        return result

    def unified_diff(self, result: DiffResult) -> str:
        """
        Re-emit a recursive unified diff for a comparison result.

        Files present on one side only are reported as ``Only in <dir>: <name>``
        lines, binary files as ``Binary files ... differ``. Paths are emitted
        in sorted order.
        """
        base, other = result.baseline_path, result.other_path
        chunks: List[str] = []
        for rel_path in sorted(
            result.unique_to_baseline | result.unique_to_other | result.differing
        ):
            if rel_path in result.unique_to_baseline:
                chunks.append(_only_in(base, rel_path))
            elif rel_path in result.unique_to_other:
                chunks.append(_only_in(other, rel_path))
            else:
                try:
                    chunks.append(_file_diff(base, other, rel_path))
                except OSError as e:
                    raise DifferFailure(base, other, describe(e)) from e
        return "".join(chunks)


def summarize(result: DiffResult) -> Dict[str, int]:
    return {
        "only_in_baseline": len(result.unique_to_baseline),
        "only_in_other": len(result.unique_to_other),
        "differing": len(result.differing),
    }


def _only_in(root: str, rel_path: str) -> str:
    parent, name = os.path.split(rel_path)
    directory = os.path.join(root, parent) if parent else root
    return f"Only in {directory}: {name}\n"


def _read(path: str) -> bytes:
    with open(path, "rb") as f:
        return f.read()


def _is_binary(data: bytes) -> bool:
    if b"\0" in data[:BINARY_SNIFF_BYTES]:
        return True
    try:
        data.decode("utf-8")
    except UnicodeDecodeError:
        return True
    return False


def _file_diff(base: str, other: str, rel_path: str) -> str:
    base_file = os.path.join(base, rel_path)
    other_file = os.path.join(other, rel_path)
    base_data, other_data = _read(base_file), _read(other_file)
    if _is_binary(base_data) or _is_binary(other_data):
        return f"Binary files {base_file} and {other_file} differ\n"

    lines = [f"diff -ru {base_file} {other_file}\n"]
    for line in difflib.unified_diff(
        base_data.decode("utf-8").splitlines(keepends=True),
        other_data.decode("utf-8").splitlines(keepends=True),
        fromfile=base_file,
        tofile=other_file,
    ):
        if line.endswith("\n"):
            lines.append(line)
        else:
            lines.append(line + "\n" + NO_NEWLINE_MARKER)
    return "".join(lines)
