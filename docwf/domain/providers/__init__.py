from .ai_provider import AIProvider
from .provider_factory import ProviderFactory
from .manual_provider import ManualProvider
from .file_response_provider import FileResponseProvider

# Register built-in providers
ProviderFactory.register("manual", ManualProvider)
ProviderFactory.register("file", FileResponseProvider)

__all__ = ["AIProvider", "ProviderFactory", "ManualProvider", "FileResponseProvider"]
