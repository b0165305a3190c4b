"""Potential-tasks blocks in Log.md.

A block is::

    #### Potential tasks (AI-generated)
    <!-- AI: potential-tasks start -->
    - [ ] Task one
    - [ ] ~~Rejected task~~
    <!-- AI: potential-tasks end -->

Grooming keeps, rejects (strikes through) or moves each task to the
``## Potential Future Tasks`` section of Tasks.md.
"""

import logging
from dataclasses import dataclass, field

from docwf.domain.constants import (
    CONTEXT_LOOKBACK_LINES,
    FUTURE_TASKS_HEADING,
    POTENTIAL_TASKS_END,
    POTENTIAL_TASKS_HEADING,
    POTENTIAL_TASKS_START,
)
from docwf.domain.models.proposals import (
    PotentialTask,
    PotentialTaskAction,
    PotentialTaskBlock,
    PotentialTaskProposals,
    Selection,
)
from docwf.domain.parsing.log_parser import parse_log_entries
from docwf.domain.parsing.markdown import append_to_named_section, join_lines, remove_lines, split_lines
from docwf.domain.parsing.recognizers import (
    is_block_end,
    is_block_start,
    is_potential_tasks_heading,
    match_date_heading,
    match_log_entry_header,
    match_strikethrough,
    match_task_line,
    strike_task_line,
)

logger = logging.getLogger(__name__)


@dataclass
class LogUpdate:
    """Result of applying grooming selections to Log.md."""

    content: str
    moved: list[PotentialTask] = field(default_factory=list)
    rejected: int = 0
    blocks_removed: int = 0


def _find_context(lines: list[str], block_start: int) -> tuple[str | None, str | None]:
    header: str | None = None
    date: str | None = None
    lower = max(0, block_start - CONTEXT_LOOKBACK_LINES)
    for i in range(block_start - 1, lower - 1, -1):
        line = lines[i].strip()
        if header is None and match_log_entry_header(line) is not None:
            header = line
        if date is None:
            date = match_date_heading(line)
        if header and date:
            break
        if is_block_end(line) or is_block_start(line):
            break
    return header, date


def find_potential_task_blocks(content: str, workflow_name: str = "groom-tasks") -> PotentialTaskProposals:
    """Scan Log.md for marker blocks and the tasks inside them.

    Unterminated blocks are ignored. Struck-through tasks are reported with
    ``is_rejected`` and excluded from the actionable set.
    """
    lines = split_lines(content)
    blocks: list[PotentialTaskBlock] = []
    i = 0
    while i < len(lines):
        if not is_block_start(lines[i]):
            i += 1
            continue
        start = i
        header, date = _find_context(lines, start)
        pending: list[tuple[int, str, bool]] = []
        end: int | None = None
        i += 1
        while i < len(lines):
            if is_block_end(lines[i]):
                end = i
                break
            raw = match_task_line(lines[i])
            if raw is not None:
                struck = match_strikethrough(raw)
                pending.append((i, struck if struck is not None else raw, struck is not None))
            i += 1
        if end is None:
            logger.debug("Unterminated potential-tasks block at line %d", start)
            break
        block_index = len(blocks)
        tasks = [
            PotentialTask(
                id=f"{block_index}-{line_no}",
                text=text,
                is_rejected=rejected,
                block_index=block_index,
                block_start_line=start,
                block_end_line=end,
                line_number=line_no,
                log_entry_header=header,
                log_date=date,
            )
            for line_no, text, rejected in pending
        ]
        blocks.append(
            PotentialTaskBlock(start_line=start, end_line=end, tasks=tasks, log_entry_header=header, log_date=date)
        )
        i += 1

    return PotentialTaskProposals(workflow_name=workflow_name, blocks=blocks)


def has_actionable_potential_tasks(content: str) -> bool:
    return len(find_potential_task_blocks(content).actionable_tasks) > 0


def apply_potential_task_selections(
    content: str,
    proposals: PotentialTaskProposals,
    selections: list[Selection],
) -> LogUpdate:
    """Strike rejected tasks and remove moved ones from the log.

    A block left with no tasks at all is removed together with its markers
    and a "Potential tasks" heading directly above it. Unknown ids are
    ignored; ``keep`` changes nothing.
    """
    lines = split_lines(content)
    actions = {s.entity_id: s.action for s in selections}
    to_remove: set[int] = set()
    update = LogUpdate(content=content)

    for block in proposals.blocks:
        remaining = 0
        for task in block.tasks:
            action = actions.get(task.id)
            if action == PotentialTaskAction.REJECT.value:
                lines[task.line_number] = strike_task_line(lines[task.line_number])
                update.rejected += 1
                remaining += 1
            elif action == PotentialTaskAction.MOVE_TO_FUTURE.value and not task.is_rejected:
                to_remove.add(task.line_number)
                update.moved.append(task)
            else:
                remaining += 1
        if block.tasks and remaining == 0:
            to_remove.update(range(block.start_line, block.end_line + 1))
            if block.start_line > 0 and is_potential_tasks_heading(lines[block.start_line - 1]):
                to_remove.add(block.start_line - 1)
            update.blocks_removed += 1

    if update.rejected == 0 and not to_remove:
        return update
    update.content = join_lines(remove_lines(lines, to_remove))
    return update


def format_future_task(task: PotentialTask) -> str:
    source = f" <!-- from Log.md {task.log_date} -->" if task.log_date else " <!-- from Log.md -->"
    return f"- [ ] {task.text}{source}"


def append_future_tasks(tasks_content: str, tasks: list[PotentialTask]) -> str:
    """Add moved tasks to ``## Potential Future Tasks``, creating it if absent."""
    if not tasks:
        return tasks_content
    new_lines = [format_future_task(t) for t in tasks]
    lines = append_to_named_section(split_lines(tasks_content), FUTURE_TASKS_HEADING, new_lines)
    return join_lines(lines)


def format_potential_tasks_block(task_texts: list[str]) -> list[str]:
    return [
        POTENTIAL_TASKS_HEADING,
        POTENTIAL_TASKS_START,
        *(f"- [ ] {text}" for text in task_texts),
        POTENTIAL_TASKS_END,
    ]


def entries_with_task_blocks(content: str) -> set[int]:
    """Start lines of log entries that already contain a potential-tasks block."""
    lines = split_lines(content)
    found: set[int] = set()
    for entry in parse_log_entries(content).entries:
        if any(is_block_start(lines[i]) for i in range(entry.start_line, entry.end_line)):
            found.add(entry.start_line)
    return found


def dedupe_task_blocks(content: str) -> str:
    """Keep only the first potential-tasks block inside each log entry.

    Later blocks in the same entry are removed along with the heading that
    introduces them.
    """
    lines = split_lines(content)
    proposals = find_potential_task_blocks(content)
    entries = parse_log_entries(content).entries
    seen: set[int] = set()
    to_remove: set[int] = set()
    for block in proposals.blocks:
        owner = next((e.start_line for e in entries if e.start_line <= block.start_line < e.end_line), None)
        if owner is None:
            continue
        if owner not in seen:
            seen.add(owner)
            continue
        to_remove.update(range(block.start_line, block.end_line + 1))
        if block.start_line > 0 and is_potential_tasks_heading(lines[block.start_line - 1]):
            to_remove.add(block.start_line - 1)
    if not to_remove:
        return content
    logger.info("Removed %d duplicate potential-tasks block line(s)", len(to_remove))
    return join_lines(remove_lines(lines, to_remove))
