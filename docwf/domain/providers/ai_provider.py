from abc import ABC, abstractmethod
from typing import Any


class AIProvider(ABC):
    """Text-generation collaborator behind every AI workflow (Strategy pattern)."""

    @classmethod
    def get_metadata(cls) -> dict[str, Any]:
        """Return provider metadata for discovery commands.

        Returns:
            dict with keys: name, description, requires_config, config_keys
        """
        return {
            "name": "unknown",
            "description": "No description available",
            "requires_config": False,
            "config_keys": [],
        }

    @abstractmethod
    def validate(self) -> None:
        """Verify the provider is usable before a workflow starts.

        Raises:
            ProviderError: If provider is misconfigured or unreachable
        """
        ...

    @abstractmethod
    def generate(self, instruction: str, context: dict[str, Any] | None = None) -> str | None:
        """Produce the response text for one workflow step.

        Args:
            instruction: The workflow intent for the step
            context: Request details (workflow_name, step_name, documents, rules, user_input)

        Returns:
            Response string, or None when the operator supplies the response

        Raises:
            ProviderError: If the provider call fails
        """
        ...
