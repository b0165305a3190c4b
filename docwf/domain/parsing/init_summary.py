"""Init-from-summary family: one response carrying diffs for several documents."""

import logging
import re
from dataclasses import dataclass

from docwf.domain.models.documents import DocumentName
from docwf.domain.models.proposals import FileDiff, InitSummaryProposals
from docwf.domain.parsing.diff import extract_diff_blocks, strip_diff_blocks

logger = logging.getLogger(__name__)

INIT_SUMMARY_DOCUMENTS = (DocumentName.OVERVIEW, DocumentName.ROADMAP, DocumentName.TASKS)
QUESTION_MIN_CHARS = 50

QUESTION_PATTERNS = (
    re.compile(r"\?\s*$", re.MULTILINE),
    re.compile(r"could you clarify", re.IGNORECASE),
    re.compile(r"what is the", re.IGNORECASE),
    re.compile(r"who are the", re.IGNORECASE),
    re.compile(r"can you tell me", re.IGNORECASE),
    re.compile(r"I need to understand", re.IGNORECASE),
    re.compile(r"before I can generate", re.IGNORECASE),
    re.compile(r"please provide", re.IGNORECASE),
    re.compile(r"could you describe", re.IGNORECASE),
)

_DIFF_FENCE = "```diff"


def contains_batch_diff_response(content: str) -> bool:
    """True when the text holds diffs naming at least two of the init documents."""
    named = sum(1 for doc in INIT_SUMMARY_DOCUMENTS if doc.value in content)
    return named >= 2 and _DIFF_FENCE in content


def contains_clarifying_questions(content: str) -> bool:
    """Questions only count in a response that carries no diff at all."""
    if _DIFF_FENCE in content:
        return False
    return any(p.search(content) for p in QUESTION_PATTERNS)


def parse_init_summary_response(text: str, workflow_name: str = "init-from-summary") -> InitSummaryProposals:
    """Keep the last diff per init document and report the documents missing one.

    A question-only response is a successful parse with ``has_questions``
    set and no diffs.
    """
    by_document: dict[DocumentName, FileDiff] = {}
    for block in extract_diff_blocks(text):
        diff = block.parsed
        if diff is None or diff.document not in INIT_SUMMARY_DOCUMENTS:
            logger.debug("Ignoring diff block %s for %s", block.id, block.file_name)
            continue
        by_document[diff.document] = diff

    has_questions = contains_clarifying_questions(text)
    question_content = None
    if has_questions:
        remainder = strip_diff_blocks(text)
        if len(remainder) > QUESTION_MIN_CHARS:
            question_content = remainder

    diffs = [by_document[doc] for doc in INIT_SUMMARY_DOCUMENTS if doc in by_document]
    missing = [doc for doc in INIT_SUMMARY_DOCUMENTS if doc not in by_document]
    if not diffs and not has_questions:
        return InitSummaryProposals(
            workflow_name=workflow_name,
            success=False,
            error="Response contains neither diffs nor clarifying questions",
            missing_files=missing,
        )
    return InitSummaryProposals(
        workflow_name=workflow_name,
        diffs=diffs,
        missing_files=missing,
        has_questions=has_questions,
        question_content=question_content,
    )


@dataclass(frozen=True, slots=True)
class BatchDiffSummary:
    file_count: int
    total_additions: int
    total_deletions: int
    files: tuple[tuple[DocumentName, int, int], ...]


def summarize_batch(proposals: InitSummaryProposals) -> BatchDiffSummary | None:
    """Per-document addition/deletion counts, in Overview/Roadmap/Tasks order."""
    if not proposals.diffs:
        return None
    files = tuple((d.document, d.additions, d.deletions) for d in proposals.diffs if d.document is not None)
    return BatchDiffSummary(
        file_count=len(files),
        total_additions=sum(f[1] for f in files),
        total_deletions=sum(f[2] for f in files),
        files=files,
    )
