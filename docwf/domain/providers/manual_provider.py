from typing import Any

from .ai_provider import AIProvider


class ManualProvider(AIProvider):
    """Human-in-the-loop provider: the operator pastes or points at a response."""

    @classmethod
    def get_metadata(cls) -> dict[str, Any]:
        return {
            "name": "manual",
            "description": "Human-in-the-loop (response supplied by the operator)",
            "requires_config": False,
            "config_keys": [],
        }

    def validate(self) -> None:
        """Manual provider has no external dependencies to validate."""
        pass

    def generate(self, instruction: str, context: dict[str, Any] | None = None) -> str | None:
        """Returns None so the engine waits for an operator-supplied response."""
        return None
