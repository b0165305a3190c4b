import json

from docwf.domain.models.proposals import Selection, TaskSection
from docwf.domain.parsing.archive_completed import (
    apply_archive_additions,
    apply_archive_removal,
    build_archive_additions,
    find_completed_tasks,
    parse_archive_completed,
    parse_archive_completed_response,
)

TASKS = """# Tasks

## Next
- [x] Build parser [[Roadmap#VS2 — Parser]]
  - handles frontmatter
- [ ] Open task
- [x] Fix typo
- [x] Set up CI [[Roadmap#VS1 — Core]]
"""

ARCHIVE = """# Archive

## Completed Work

### VS1 — Core
- [x] Old thing [[Roadmap#VS1 — Core]]
"""


def test_find_completed_tasks():
    tasks = find_completed_tasks(TASKS)
    assert [t.text for t in tasks] == ["Build parser", "Fix typo", "Set up CI"]
    assert tasks[0].slice_ref == "VS2 — Parser"
    assert tasks[0].slice_name == "Parser"
    assert tasks[0].sub_items == ["  - handles frontmatter"]
    assert tasks[0].section == TaskSection.NEXT
    assert tasks[1].slice_ref is None


def test_local_grouping_orders_slices_then_standalone():
    proposals = parse_archive_completed(TASKS)
    assert [g.heading for g in proposals.groups] == ["### VS1 — Core", "### VS2 — Parser", "### Completed Tasks"]
    assert proposals.standalone.tasks[0].text == "Fix typo"
    assert [g.slice_ref for g in proposals.slice_groups] == ["VS1 — Core", "VS2 — Parser"]


def test_response_regroups_by_line_number():
    lines = TASKS.split("\n")
    typo = lines.index("- [x] Fix typo")
    parser = lines.index("- [x] Build parser [[Roadmap#VS2 — Parser]]")
    response = json.dumps(
        {
            "groups": [{"sliceRef": "VS2 — Parser", "tasks": [{"lineNumber": parser}, {"lineNumber": typo}]}],
            "standaloneTasks": [{"lineNumber": 999}],
        }
    )
    proposals = parse_archive_completed_response(response, TASKS)
    assert [t.text for t in proposals.groups[0].tasks] == ["Build parser", "Fix typo"]
    # Set up CI was not mentioned, so it stays archivable as standalone.
    assert [t.text for t in proposals.standalone.tasks] == ["Set up CI"]


def test_unparseable_response_falls_back_to_local_grouping():
    proposals = parse_archive_completed_response("sorry", TASKS)
    assert proposals.success
    assert len(proposals.all_tasks) == 3


def test_removal_drops_task_and_sub_items():
    proposals = parse_archive_completed(TASKS)
    result = apply_archive_removal(TASKS, proposals, proposals.default_selections())
    assert result == "# Tasks\n\n## Next\n- [ ] Open task\n"


def test_keep_selection_is_not_removed():
    proposals = parse_archive_completed(TASKS)
    selections = [Selection(entity_id=t.id, action="keep") for t in proposals.all_tasks]
    assert apply_archive_removal(TASKS, proposals, selections) is TASKS
    assert build_archive_additions(proposals, selections) == {}


def test_additions_merge_into_existing_heading_and_add_new_ones():
    proposals = parse_archive_completed(TASKS)
    additions = build_archive_additions(proposals, proposals.default_selections())
    result = apply_archive_additions(ARCHIVE, additions)
    assert result.index("- [x] Old thing") < result.index("- [x] Set up CI")
    assert result.count("### VS1 — Core") == 1
    assert result.index("### VS2 — Parser") < result.index("### VS1 — Core")
    assert "  - handles frontmatter" in result
    assert "### Completed Tasks\n- [x] Fix typo" in result


def test_additions_do_not_repeat_archived_lines():
    proposals = parse_archive_completed(TASKS)
    additions = build_archive_additions(proposals, proposals.default_selections())
    once = apply_archive_additions(ARCHIVE, additions)
    assert apply_archive_additions(once, {"### VS1 — Core": [["- [x] Set up CI [[Roadmap#VS1 — Core]]"]]}) == once
