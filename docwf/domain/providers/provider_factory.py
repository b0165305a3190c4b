from typing import Any

from .ai_provider import AIProvider


class ProviderFactory:
    """Factory for creating text-generation providers (Factory pattern)."""

    _registry: dict[str, type[AIProvider]] = {}

    @classmethod
    def register(cls, key: str, provider_class: type[AIProvider]) -> None:
        """
        Register a provider implementation.

        Args:
            key: Provider identifier (e.g., "manual", "file")
            provider_class: The provider class to register
        """
        cls._registry[key] = provider_class

    @classmethod
    def create(cls, provider_key: str, config: dict[str, Any] | None = None) -> AIProvider:
        """
        Create a provider instance.

        Args:
            provider_key: Registered provider identifier
            config: Keyword arguments for the provider constructor

        Returns:
            Instantiated AIProvider

        Raises:
            KeyError: If provider_key is not registered
        """
        if provider_key not in cls._registry:
            available = ", ".join(cls._registry.keys())
            raise KeyError(
                f"Provider: '{provider_key}' not found. "
                f"Available providers: {available}"
            )
        return cls._registry[provider_key](**(config or {}))

    @classmethod
    def list_providers(cls) -> list[str]:
        return list(cls._registry.keys())

    @classmethod
    def get_all_metadata(cls) -> list[dict[str, Any]]:
        return [provider_class.get_metadata() for provider_class in cls._registry.values()]
