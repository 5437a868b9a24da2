# cleaner/staleness/patcher.py
"""
Line-range rewriting for validated proposals.

Edits to one file are applied from the highest start line downward. Every
edit already applied sits strictly below the current one in the original
numbering, so the line numbers of the edits still pending keep pointing at
untouched text even when an edit changes the line count.
"""
from __future__ import annotations

from collections import defaultdict
from pathlib import Path

from loguru import logger

from cleaner.staleness.models import Proposal


class PatchError(RuntimeError):
    pass


def apply_edit(lines: list[str], proposal: Proposal) -> list[str]:
    if proposal.end_line > len(lines):
        raise PatchError(
            f"{proposal.file_path}: lines {proposal.start_line}-{proposal.end_line} "
            f"beyond end of file ({len(lines)} lines)"
        )
    before = lines[: proposal.start_line - 1]
    after = lines[proposal.end_line :]
    middle = proposal.replacement.split("\n") if proposal.replacement else []
    if middle and lines[proposal.end_line - 1].endswith("\r"):
        # keep CRLF files CRLF
        middle = [m if m.endswith("\r") else m + "\r" for m in middle]
    return before + middle + after


def descending(proposals: list[Proposal]) -> list[Proposal]:
    return sorted(proposals, key=lambda p: p.start_line, reverse=True)


def apply_to_lines(lines: list[str], proposals: list[Proposal]) -> list[str]:
    for p in descending(proposals):
        lines = apply_edit(lines, p)
    return lines


def apply_proposals(text: str, proposals: list[Proposal]) -> str:
    return "\n".join(apply_to_lines(text.split("\n"), proposals))


def _resolve(root: Path, rel: str) -> Path:
    target = (root / rel).resolve()
    if root != target and root not in target.parents:
        raise PatchError(f"{rel} resolves outside the workspace")
    return target


def apply_to_tree(root: str | Path, proposals: list[Proposal]) -> list[str]:
    """Rewrite each touched file under `root` once. Returns the touched relative paths."""
    root = Path(root).resolve()
    by_file: dict[str, list[Proposal]] = defaultdict(list)
    for p in proposals:
        by_file[p.file_path].append(p)

    touched: list[str] = []
    for rel, file_proposals in by_file.items():
        target = _resolve(root, rel)
        if not target.is_file():
            raise PatchError(f"{rel} does not exist in the workspace")
        # bytes in and out: line numbering must match the sweeper's split on "\n"
        original = target.read_bytes().decode("utf-8")
        updated = apply_proposals(original, file_proposals)
        if updated != original:
            target.write_bytes(updated.encode("utf-8"))
            touched.append(rel)
        logger.debug(f"    {rel}: {len(file_proposals)} edit(s) applied")
    return touched


def unified_preview(proposal: Proposal) -> list[str]:
    lines = [f"- {line}" for line in proposal.original.split("\n")]
    if proposal.replacement:
        lines += [f"+ {line}" for line in proposal.replacement.split("\n")]
    return lines
