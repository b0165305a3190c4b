"""Workflow catalog loaded from the bundled ``workflows.yml``."""

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from docwf.domain.errors import ConfigurationError, DefinitionNotFound
from docwf.domain.models.workflow_definition import WorkflowDefinition

logger = logging.getLogger(__name__)

CATALOG_RESOURCE = "workflows.yml"


class WorkflowCatalog:
    """Immutable registry of workflow definitions, in declaration order."""

    def __init__(self, definitions: list[WorkflowDefinition]) -> None:
        self._definitions: dict[str, WorkflowDefinition] = {}
        for definition in definitions:
            if definition.name in self._definitions:
                raise ConfigurationError(f"Duplicate workflow name: '{definition.name}'")
            self._definitions[definition.name] = definition
        self._validate_combined()

    def _validate_combined(self) -> None:
        for definition in self._definitions.values():
            for step in definition.combined_steps:
                target = self._definitions.get(step)
                if target is None:
                    raise ConfigurationError(
                        f"Combined workflow '{definition.name}' references unknown step '{step}'"
                    )
                if target.is_combined:
                    raise ConfigurationError(
                        f"Combined workflow '{definition.name}' nests combined workflow '{step}'"
                    )

    @classmethod
    def from_mapping(cls, data: Any) -> "WorkflowCatalog":
        """
        Build a catalog from parsed YAML.

        Args:
            data: Mapping with a ``workflows`` list

        Returns:
            The validated catalog

        Raises:
            ConfigurationError: If the data is malformed or inconsistent
        """
        if not isinstance(data, dict) or not isinstance(data.get("workflows"), list):
            raise ConfigurationError("Workflow catalog must be a mapping with a 'workflows' list")
        definitions = []
        for idx, raw in enumerate(data["workflows"]):
            try:
                definitions.append(WorkflowDefinition.model_validate(raw))
            except ValidationError as e:
                name = raw.get("name", f"#{idx}") if isinstance(raw, dict) else f"#{idx}"
                raise ConfigurationError(f"Invalid workflow definition '{name}': {e}") from e
        return cls(definitions)

    @classmethod
    def from_yaml(cls, text: str) -> "WorkflowCatalog":
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Malformed workflow catalog: {e}") from e
        return cls.from_mapping(data)

    @classmethod
    def load_default(cls) -> "WorkflowCatalog":
        text = Path(__file__).with_name(CATALOG_RESOURCE).read_text(encoding="utf-8")
        catalog = cls.from_yaml(text)
        logger.debug("Loaded %d workflow definitions", len(catalog))
        return catalog

    def get_definition(self, name: str) -> WorkflowDefinition:
        """Raises DefinitionNotFound for an unknown name."""
        try:
            return self._definitions[name]
        except KeyError:
            raise DefinitionNotFound(name) from None

    def has(self, name: str) -> bool:
        return name in self._definitions

    def get_all(self) -> list[WorkflowDefinition]:
        return list(self._definitions.values())

    def visible(self) -> list[WorkflowDefinition]:
        return [d for d in self._definitions.values() if not d.hidden]

    def names(self) -> list[str]:
        return list(self._definitions)

    def __len__(self) -> int:
        return len(self._definitions)
