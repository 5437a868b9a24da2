# cleaner/staleness/validator.py
from __future__ import annotations

from typing import Protocol

from loguru import logger

from cleaner.llm.prompts import (
    DOC_AUDIT_SYSTEM_PROMPT,
    TAG_AUDIT_SYSTEM_PROMPT,
    build_doc_prompt,
    build_tag_prompt,
)
from cleaner.staleness.models import ACCEPTED_CONFIDENCE, Candidate, Proposal
from cleaner.staleness.oracle_schema import parse_doc_edits, parse_tag_verdict

_RANK = {"high": 0, "medium": 1}


class Oracle(Protocol):
    def ask_brain(
        self, prompt: str, system_prompt: str | None = None, max_tokens: int = 1024
    ) -> str: ...


def drop_overlapping(proposals: list[Proposal]) -> list[Proposal]:
    """
    Keep the highest-confidence non-overlapping subset per file.
    High beats medium; within a tier the earlier start line wins.
    Survivors keep their input order.
    """
    ranked = sorted(
        enumerate(proposals),
        key=lambda ip: (_RANK[ip[1].confidence], ip[1].start_line, ip[0]),
    )
    kept: list[tuple[int, Proposal]] = []
    for idx, p in ranked:
        clash = next((k for _, k in kept if k.overlaps(p)), None)
        if clash is not None:
            logger.warning(
                f"    Dropping {p.confidence} edit {p.repo}/{p.file_path}:{p.start_line}-{p.end_line}"
                f" (overlaps {clash.confidence} edit at {clash.start_line}-{clash.end_line})"
            )
            continue
        kept.append((idx, p))
    return [p for _, p in sorted(kept, key=lambda ip: ip[0])]


class Validator:
    """Asks the oracle whether each candidate is stale; keeps only high/medium findings."""

    def __init__(
        self,
        oracle: Oracle,
        org: str = "ojfbot",
        article: str | None = None,
        doc_max_tokens: int = 2048,
        tag_max_tokens: int = 512,
    ):
        self.oracle = oracle
        self.org = org
        self.article = article
        self.doc_max_tokens = doc_max_tokens
        self.tag_max_tokens = tag_max_tokens

    def validate_doc(self, candidate: Candidate) -> list[Proposal]:
        prompt = build_doc_prompt(
            self.org,
            candidate.repo,
            candidate.file_path,
            candidate.recent_commits,
            candidate.context,
            self.article,
        )
        raw = self.oracle.ask_brain(
            prompt, system_prompt=DOC_AUDIT_SYSTEM_PROMPT, max_tokens=self.doc_max_tokens
        )

        proposals: list[Proposal] = []
        for e in parse_doc_edits(raw):
            if e.confidence not in ACCEPTED_CONFIDENCE:
                continue
            if e.end_line > candidate.end_line:
                logger.debug(
                    f"    Edit {e.start_line}-{e.end_line} is outside {candidate.label} "
                    f"(1-{candidate.end_line}); discarded"
                )
                continue
            proposals.append(
                Proposal(
                    repo=candidate.repo,
                    file_path=candidate.file_path,
                    start_line=e.start_line,
                    end_line=e.end_line,
                    original=e.original,
                    replacement=e.replacement or "",
                    rationale=e.rationale,
                    confidence=e.confidence,
                )
            )
        return proposals

    def validate_tag(self, candidate: Candidate) -> Proposal | None:
        prompt = build_tag_prompt(
            self.org,
            candidate.repo,
            candidate.file_path,
            candidate.start_line,
            candidate.kind,
            candidate.recent_commits,
            candidate.context,
            self.article,
        )
        raw = self.oracle.ask_brain(
            prompt, system_prompt=TAG_AUDIT_SYSTEM_PROMPT, max_tokens=self.tag_max_tokens
        )
        verdict = parse_tag_verdict(raw)
        if verdict is None or not verdict.resolved or verdict.confidence not in ACCEPTED_CONFIDENCE:
            return None

        return Proposal(
            repo=candidate.repo,
            file_path=candidate.file_path,
            start_line=candidate.start_line,
            end_line=candidate.end_line,
            original=candidate.original,
            replacement=verdict.replacement or "",
            rationale=verdict.evidence,
            confidence=verdict.confidence,
        )

    def validate_one(self, candidate: Candidate) -> list[Proposal]:
        if candidate.kind == "doc-file":
            return self.validate_doc(candidate)
        proposal = self.validate_tag(candidate)
        return [proposal] if proposal else []

    def validate(self, candidates: list[Candidate]) -> list[Proposal]:
        proposals: list[Proposal] = []

        for candidate in candidates:
            logger.info(f"  Validating {candidate.label}...")
            try:
                proposals.extend(self.validate_one(candidate))
            except Exception as e:
                # one bad candidate never cancels the batch
                logger.warning(f"    ⚠ Validation failed for {candidate.label}: {e}")

        proposals = drop_overlapping(proposals)
        high = sum(1 for p in proposals if p.confidence == "high")
        medium = sum(1 for p in proposals if p.confidence == "medium")
        logger.info(f"  → {len(proposals)} validated proposals ({high} high, {medium} medium)")
        return proposals
