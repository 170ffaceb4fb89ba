"""Provider wire-format adapters.

Importing this package registers every adapter with ``ProviderInterface.registered``.
"""

from core.analysis.providers.chat_completion import ChatCompletionProvider
from core.analysis.providers.gemini import GeminiProvider

__all__: list[str] = ["ChatCompletionProvider", "GeminiProvider"]
