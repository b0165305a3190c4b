"""Stderr event observer for CLI progress output."""

import click

from docwf.domain.events.event import WorkflowEvent


class StderrEventObserver:
    """Writes each event as one ``[EVENT] ...`` line on stderr."""

    def on_event(self, event: WorkflowEvent) -> None:
        parts = [f"[EVENT] {event.event_type.value}", f"workflow={event.workflow_name}"]
        if event.step_name:
            parts.append(f"step={event.step_name}")
        if event.document:
            parts.append(f"document={event.document}")
        reason = event.metadata.get("reason")
        if reason:
            parts.append(f'reason="{reason}"')
        click.echo(" ".join(parts), err=True)
