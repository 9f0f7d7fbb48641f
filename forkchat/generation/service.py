"""Generation service: ask a provider for a reply, then append the exchange."""

import logging

from forkchat.models import ConversationTree, NodeMetadata
from forkchat.providers.base import GenerationRequest, LLMProvider
from forkchat.settings.service import SettingsService
from forkchat.trees.paths import conversation_history
from forkchat.trees.service import TreeService

logger = logging.getLogger(__name__)


class GenerationService:
    """Builds the path history, calls the provider, and records the answer."""

    def __init__(self, tree_service: TreeService, settings_service: SettingsService) -> None:
        self._tree_service = tree_service
        self._settings_service = settings_service

    async def send_message(
        self,
        tree_id: str,
        user_message: str,
        provider: LLMProvider,
    ) -> tuple[ConversationTree, str]:
        """Answer user_message in the context of the current node.

        The exchange is appended only after the provider succeeds. A provider
        failure raises GenerationFailedError and leaves the tree untouched.
        The reply is attached under the node the history was built from, even
        if the current node moves while the provider is working.
        """
        tree = await self._tree_service.get_tree(tree_id)
        settings = await self._settings_service.get()
        parent_id = tree.current_node_id

        messages = conversation_history(tree, parent_id)
        messages.append({"role": "user", "content": user_message})

        request = GenerationRequest(
            model=settings.model,
            messages=messages,
            system_prompt=settings.system_prompt,
            temperature=settings.temperature,
            max_tokens=settings.max_tokens,
        )
        try:
            result = await provider.generate(request)
        except Exception as e:
            raise GenerationFailedError(provider.name, e) from e
        logger.info(
            "Generated reply for tree %s with %s/%s in %sms",
            tree_id, provider.name, result.model, result.latency_ms,
        )

        metadata = NodeMetadata(
            tokens_used=result.total_tokens,
            model=result.model,
            temperature=settings.temperature,
        )
        return await self._tree_service.append_exchange(
            tree_id, user_message, result.content, metadata=metadata, parent_id=parent_id
        )


class GenerationFailedError(Exception):
    def __init__(self, provider: str, cause: Exception) -> None:
        self.provider = provider
        super().__init__(f"Provider '{provider}' failed: {cause}")
