from pathlib import Path
from typing import Any

from docwf.domain.errors import ProviderError

from .ai_provider import AIProvider


class FileResponseProvider(AIProvider):
    """Replays prepared response files.

    ``responses`` maps a step (workflow) name to a file; ``default`` is used
    for any step without its own entry. A step with neither falls back to
    manual mode.
    """

    def __init__(self, responses: dict[str, str] | None = None, default: str | None = None) -> None:
        self.responses = {name: Path(path) for name, path in (responses or {}).items()}
        self.default = Path(default) if default else None

    @classmethod
    def get_metadata(cls) -> dict[str, Any]:
        return {
            "name": "file",
            "description": "Reads prepared response files per workflow step",
            "requires_config": True,
            "config_keys": ["responses", "default"],
        }

    def validate(self) -> None:
        missing = [str(p) for p in [*self.responses.values(), self.default] if p is not None and not p.is_file()]
        if missing:
            raise ProviderError(f"Response file(s) not found: {', '.join(missing)}")

    def generate(self, instruction: str, context: dict[str, Any] | None = None) -> str | None:
        step = (context or {}).get("step_name")
        path = self.responses.get(step, self.default) if step else self.default
        if path is None:
            return None
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise ProviderError(f"Cannot read response file {path}: {e}") from e
