"""Roadmap.md milestones, slices and the Current Focus section.

Expected shape::

    ## Current Focus
    **Milestone:** M1 — Foundations

    ### M1 — Foundations
    **Status:** active
    #### VS1 — Auth
"""

import re
from dataclasses import dataclass

from docwf.domain.constants import VERTICAL_SLICES_HEADING
from docwf.domain.models.proposals import RoadmapChanges, SuggestedSlice
from docwf.domain.parsing.markdown import append_to_named_section, find_section, join_lines, split_lines

MILESTONE_RE = re.compile(r"^###\s*(M\d+)\s*[—–-]\s*(.+)$")
MILESTONE_STATUSES = ("planned", "active", "done", "blocked", "cut")
STATUS_RE = re.compile(rf"^\*\*Status:\*\*\s*({'|'.join(MILESTONE_STATUSES)})", re.IGNORECASE)
SLICE_HEADING_RE = re.compile(r"^#{4,5}\s*(VS\d+)\s*[—–-]\s*(.+)$")
CURRENT_FOCUS_RE = re.compile(r"^##\s*Current\s*Focus\s*$", re.IGNORECASE)
FOCUS_MILESTONE_RE = re.compile(r"^\*\*Milestone:\*\*\s*(M\d+)\s*[—–-]?\s*(.*)$", re.IGNORECASE)
_ANY_HEADING_RE = re.compile(r"^#{1,5}\s")
_STATUS_LOOKAHEAD = 5


@dataclass(frozen=True, slots=True)
class Milestone:
    id: str
    title: str
    status: str
    line_number: int


@dataclass(frozen=True, slots=True)
class RoadmapSlice:
    id: str
    name: str
    milestone_id: str

    @property
    def number(self) -> int:
        return int(self.id[2:])


@dataclass(frozen=True, slots=True)
class Roadmap:
    milestones: tuple[Milestone, ...]
    slices: tuple[RoadmapSlice, ...]
    current_focus_milestone_id: str | None


def match_milestone_heading(line: str) -> tuple[str, str] | None:
    m = MILESTONE_RE.match(line.strip())
    return (m.group(1), m.group(2).strip()) if m else None


def match_slice_heading(line: str) -> tuple[str, str] | None:
    m = SLICE_HEADING_RE.match(line.strip())
    return (m.group(1), m.group(2).strip()) if m else None


def _status_line(lines: list[str], heading_index: int) -> int | None:
    for j in range(heading_index + 1, min(heading_index + 1 + _STATUS_LOOKAHEAD, len(lines))):
        candidate = lines[j].strip()
        if _ANY_HEADING_RE.match(candidate):
            return None
        if STATUS_RE.match(candidate):
            return j
    return None


def parse_roadmap(content: str) -> Roadmap:
    lines = split_lines(content)
    milestones: list[Milestone] = []
    slices: list[RoadmapSlice] = []
    focus: str | None = None
    in_focus = False
    current_milestone: str | None = None

    for i, raw in enumerate(lines):
        line = raw.strip()
        if CURRENT_FOCUS_RE.match(line):
            in_focus = True
            continue
        if in_focus:
            if line.startswith("## "):
                in_focus = False
            m = FOCUS_MILESTONE_RE.match(line)
            if m:
                focus = m.group(1)

        milestone = match_milestone_heading(line)
        if milestone is not None:
            status = "planned"
            status_idx = _status_line(lines, i)
            if status_idx is not None:
                status = STATUS_RE.match(lines[status_idx].strip()).group(1).lower()
            current_milestone = milestone[0]
            milestones.append(Milestone(id=milestone[0], title=milestone[1], status=status, line_number=i))
            continue

        vs = match_slice_heading(line)
        if vs is not None and current_milestone is not None:
            slices.append(RoadmapSlice(id=vs[0], name=vs[1], milestone_id=current_milestone))

    return Roadmap(milestones=tuple(milestones), slices=tuple(slices), current_focus_milestone_id=focus)


def find_current_milestone(roadmap: Roadmap) -> Milestone | None:
    """Current Focus milestone, else the first ``active`` one."""
    if roadmap.current_focus_milestone_id:
        for milestone in roadmap.milestones:
            if milestone.id == roadmap.current_focus_milestone_id:
                return milestone
    return next((m for m in roadmap.milestones if m.status == "active"), None)


def find_active_slice(roadmap: Roadmap) -> RoadmapSlice | None:
    current = find_current_milestone(roadmap)
    if current is None:
        return None
    return next((s for s in roadmap.slices if s.milestone_id == current.id), None)


def next_slice_number(roadmap: Roadmap) -> int:
    return max((s.number for s in roadmap.slices), default=0) + 1


def apply_roadmap_changes(content: str, changes: RoadmapChanges | None) -> str:
    """Point Current Focus at a new milestone and flip its status line.

    Only a status line currently reading the change's ``from`` value is
    rewritten.
    """
    if changes is None:
        return content
    lines = split_lines(content)
    changed = False

    if changes.should_update_current_focus and changes.new_focus_milestone:
        new_line = f"**Milestone:** {changes.new_focus_milestone}"
        span = find_section(lines, CURRENT_FOCUS_RE)
        if span is not None:
            existing = next(
                (i for i in range(span.body_start, span.end) if FOCUS_MILESTONE_RE.match(lines[i].strip())),
                None,
            )
            if existing is not None:
                if lines[existing] != new_line:
                    lines[existing] = new_line
                    changed = True
            else:
                at = span.body_start
                while at < span.end and lines[at].strip() == "":
                    at += 1
                lines.insert(at, new_line)
                changed = True

    status_change = changes.milestone_status_change
    if status_change is not None:
        for i, line in enumerate(lines):
            heading = match_milestone_heading(line)
            if heading is None or heading[0] != status_change.milestone:
                continue
            status_idx = _status_line(lines, i)
            if status_idx is not None:
                current = STATUS_RE.match(lines[status_idx].strip()).group(1).lower()
                if current == status_change.from_status.lower() and current != status_change.to_status.lower():
                    lines[status_idx] = f"**Status:** {status_change.to_status}"
                    changed = True
            break

    return join_lines(lines) if changed else content


def format_slice(slice_: SuggestedSlice) -> list[str]:
    block = [f"#### {slice_.vs_id} — {slice_.name}"]
    if slice_.milestone:
        block.append(f"**Milestone:** {slice_.milestone}")
    if slice_.description:
        block.append(slice_.description)
    block.append("")
    return block


def append_vertical_slices(content: str, slices: list[SuggestedSlice]) -> str:
    """Add slices under ``## Vertical Slices``; slices whose id already exists are skipped."""
    existing = {s.id for s in parse_roadmap(content).slices}
    lines = split_lines(content)
    for line in lines:
        vs = match_slice_heading(line)
        if vs is not None:
            existing.add(vs[0])
    new_lines: list[str] = []
    for slice_ in slices:
        if slice_.vs_id in existing:
            continue
        existing.add(slice_.vs_id)
        new_lines.extend(format_slice(slice_))
    if not new_lines:
        return content
    while new_lines and new_lines[-1] == "":
        new_lines.pop()
    return join_lines(append_to_named_section(lines, VERTICAL_SLICES_HEADING, new_lines))
