"""Process-wide lookup of configured completion providers by name."""

from forkchat.providers.base import LLMProvider

_providers: dict[str, LLMProvider] = {}


def register_provider(provider: LLMProvider) -> None:
    _providers[provider.name] = provider


def get_provider(name: str) -> LLMProvider:
    """Raises ProviderNotFoundError for a name that was never registered."""
    provider = _providers.get(name)
    if provider is None:
        available = ", ".join(sorted(_providers)) or "(none)"
        raise ProviderNotFoundError(f"Provider '{name}' not registered. Available: {available}")
    return provider


def get_all_providers() -> list[LLMProvider]:
    return list(_providers.values())


def clear_providers() -> None:
    """Forget every provider. Used at shutdown and in tests."""
    _providers.clear()


class ProviderNotFoundError(Exception):
    pass
