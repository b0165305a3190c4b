from docwf.domain.models.proposals import MilestoneStatusChange, RoadmapChanges, SuggestedSlice
from docwf.domain.parsing.roadmap import (
    append_vertical_slices,
    apply_roadmap_changes,
    find_active_slice,
    find_current_milestone,
    next_slice_number,
    parse_roadmap,
)

ROADMAP = """# Roadmap

## Current Focus
**Milestone:** M1 — Foundations

## Milestones

### M1 — Foundations
**Status:** active

#### VS1 — Auth
#### VS2 — Storage

### M2 — Growth
**Status:** planned

#### VS3 — Sharing
"""


def test_parse_roadmap():
    roadmap = parse_roadmap(ROADMAP)
    assert [(m.id, m.status) for m in roadmap.milestones] == [("M1", "active"), ("M2", "planned")]
    assert [(s.id, s.milestone_id) for s in roadmap.slices] == [("VS1", "M1"), ("VS2", "M1"), ("VS3", "M2")]
    assert roadmap.current_focus_milestone_id == "M1"


def test_current_milestone_and_active_slice():
    roadmap = parse_roadmap(ROADMAP)
    assert find_current_milestone(roadmap).title == "Foundations"
    assert find_active_slice(roadmap).name == "Auth"
    assert next_slice_number(roadmap) == 4


def test_current_milestone_falls_back_to_first_active():
    roadmap = parse_roadmap(ROADMAP.replace("**Milestone:** M1 — Foundations\n", ""))
    assert roadmap.current_focus_milestone_id is None
    assert find_current_milestone(roadmap).id == "M1"


def test_missing_status_defaults_to_planned():
    roadmap = parse_roadmap("### M1 — Start\n\n#### VS1 — One\n")
    assert roadmap.milestones[0].status == "planned"
    assert find_current_milestone(roadmap) is None
    assert find_active_slice(roadmap) is None


def test_apply_roadmap_changes():
    changes = RoadmapChanges(
        should_update_current_focus=True,
        new_focus_milestone="M2 — Growth",
        milestone_status_change=MilestoneStatusChange(milestone="M2", from_status="planned", to_status="active"),
    )
    result = apply_roadmap_changes(ROADMAP, changes)
    assert "**Milestone:** M2 — Growth" in result
    assert "**Milestone:** M1 — Foundations" not in result
    assert parse_roadmap(result).milestones[1].status == "active"


def test_status_only_changes_from_expected_value():
    changes = RoadmapChanges(
        milestone_status_change=MilestoneStatusChange(milestone="M2", from_status="done", to_status="active"),
    )
    assert apply_roadmap_changes(ROADMAP, changes) is ROADMAP
    assert apply_roadmap_changes(ROADMAP, None) is ROADMAP


def test_append_vertical_slices_skips_existing_ids():
    slices = [
        SuggestedSlice(id="slice-0", vs_id="VS1", name="Auth again"),
        SuggestedSlice(id="slice-1", vs_id="VS4", name="Export", milestone="M2", description="CSV and PDF."),
    ]
    result = append_vertical_slices(ROADMAP, slices)
    assert "## Vertical Slices\n#### VS4 — Export\n**Milestone:** M2\nCSV and PDF." in result
    assert "Auth again" not in result


def test_append_nothing_new():
    assert append_vertical_slices(ROADMAP, [SuggestedSlice(id="s", vs_id="VS2", name="Storage")]) is ROADMAP
