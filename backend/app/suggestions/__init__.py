"""AI suggestion providers for the brief wizard."""

from app.suggestions.provider import SuggestionProvider
from app.suggestions.provider_fake import SuggestionProviderFake

__all__ = ["SuggestionProvider", "SuggestionProviderFake"]
