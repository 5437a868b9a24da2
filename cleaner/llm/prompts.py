DOC_AUDIT_SYSTEM_PROMPT = """You are a rigorous technical writer auditing documentation for staleness.

Given the full content of a documentation file and recent git commits in the repo,
identify sections that have become inaccurate or outdated because of those changes.

For each stale section, produce an exact edit: either a replacement or a deletion.
Be specific: name the exact text that is wrong and why, and provide exact replacement text.

Return a JSON array. Each element describes one edit:
{
  "startLine": <number>,
  "endLine": <number>,
  "original": "<exact text of the stale line(s)>",
  "replacement": "<corrected text, or empty string to delete>",
  "rationale": "<one sentence: what recent change made this stale>",
  "confidence": "high" | "medium" | "low"
}

Rules:
- Only flag things you are CERTAIN are wrong given the commit evidence.
- "high" = the doc directly contradicts what the commits show shipped.
- "medium" = the doc is likely outdated but you can't be fully certain from commits alone.
- "low" findings are ignored; prefer leaving them out.
- Edits must not overlap each other.
- If nothing is stale, return [].
- Raw JSON array only, no fences, no commentary.
"""

TAG_AUDIT_SYSTEM_PROMPT = """You are a rigorous code auditor checking whether a TODO/FIXME comment has been resolved.

Given the comment in context and recent git commits, determine if the thing the
TODO/FIXME asked for has been shipped or is no longer relevant.

Return a JSON object:
{
  "resolved": true | false,
  "evidence": "<one sentence: the commit or change that resolved it, or why it's still open>",
  "replacement": "<updated comment if partially addressed, or empty string to delete>",
  "confidence": "high" | "medium" | "low"
}

Rules:
- resolved=true only with clear commit evidence.
- If resolved=true and replacement is empty, the line will be deleted.
- If resolved=true and replacement is non-empty, the line is updated.
- "low" confidence findings are ignored.
- Raw JSON only, no fences.
"""


def build_doc_prompt(org: str, repo: str, file_path: str, recent_commits: str, context: str, article: str | None = None) -> str:
    parts = [
        f"**Repo:** {org}/{repo}",
        f"**File:** {file_path}",
        "",
        "## Recent commits",
        recent_commits or "(none)",
    ]
    if article:
        parts += ["", "## Today's summary of what shipped (authoritative)", article]
    parts += ["", "## File content (line numbers shown)", context]
    return "\n".join(parts)


def build_tag_prompt(
    org: str,
    repo: str,
    file_path: str,
    line: int,
    kind: str,
    recent_commits: str,
    context: str,
    article: str | None = None,
) -> str:
    parts = [
        f"**Repo:** {org}/{repo}",
        f"**File:** {file_path}:{line}",
        f"**Kind:** {kind.upper()}",
        "",
        "## Recent commits to this repo",
        recent_commits or "(none)",
    ]
    if article:
        parts += ["", "## Today's summary of what shipped (authoritative)", article]
    parts += ["", "## Comment in context (line numbers shown)", context]
    return "\n".join(parts)
