"""Map free-text requests ("archive completed tasks") onto workflow names."""

import re

from docwf.application.catalog import WorkflowCatalog

# Checked in order; the first phrase found wins.
KEYWORD_WORKFLOWS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("plan work", "plan tasks", "generate tasks from"), "plan-work"),
    (("enrich tasks", "enrich my tasks", "add context to tasks"), "enrich-tasks"),
    (("archive completed", "archive done", "archive tasks"), "archive-completed"),
    (("sync commits", "sync git", "match commits"), "sync-commits"),
    (("promote next", "promote a task", "next task"), "promote-next-task"),
    (("harvest tasks", "find tasks"), "tasks-harvest"),
    (("groom ideas", "ideas groom"), "ideas-groom"),
    (("refine log", "refine the log", "title entries"), "log-refine"),
    (("tasks maintenance", "maintain tasks"), "tasks-maintenance"),
    (("initialize from summary", "init from summary"), "init-from-summary"),
)

TRIGGER_PATTERNS = (
    re.compile(r"run\s+(?:the\s+)?(\w+(?:[- ]\w+)?)\s+workflow", re.IGNORECASE),
    re.compile(r"execute\s+(?:the\s+)?(\w+(?:[- ]\w+)?)\s+workflow", re.IGNORECASE),
    re.compile(r"start\s+(?:the\s+)?(\w+(?:[- ]\w+)?)\s+workflow", re.IGNORECASE),
    re.compile(r"do\s+(?:a\s+)?(\w+(?:[- ]\w+)?)\s+(?:workflow|pass)", re.IGNORECASE),
)


def _slug(text: str) -> str:
    return re.sub(r"\s+", "-", text.strip().lower())


def detect_workflow(message: str, catalog: WorkflowCatalog) -> str | None:
    """Workflow name a message asks for, or None."""
    lower = message.lower()
    for phrases, name in KEYWORD_WORKFLOWS:
        if any(p in lower for p in phrases) and catalog.has(name):
            return name

    for pattern in TRIGGER_PATTERNS:
        match = pattern.search(message)
        if not match:
            continue
        wanted = _slug(match.group(1))
        for definition in catalog.get_all():
            display = definition.display_name.lower()
            if wanted in (definition.name, _slug(display)) or match.group(1).lower() == display:
                return definition.name
    return None
