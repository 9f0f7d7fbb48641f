"""Contract tests for AnthropicProvider with a mocked AsyncAnthropic client."""

from unittest.mock import AsyncMock, MagicMock

from forkchat.providers.anthropic import AnthropicProvider
from forkchat.providers.base import GenerationRequest


def _make_mock_message(
    content_text: str = "Hello!",
    model: str = "claude-sonnet-4-5-20250929",
    stop_reason: str = "end_turn",
    input_tokens: int = 10,
    output_tokens: int = 5,
) -> MagicMock:
    """Create a mock Anthropic Message response."""
    text_block = MagicMock()
    text_block.type = "text"
    text_block.text = content_text

    usage = MagicMock()
    usage.input_tokens = input_tokens
    usage.output_tokens = output_tokens

    message = MagicMock()
    message.content = [text_block]
    message.model = model
    message.stop_reason = stop_reason
    message.usage = usage
    return message


def _make_request(
    messages: list[dict[str, str]] | None = None,
    system_prompt: str | None = None,
    temperature: float | None = 0.7,
    max_tokens: int = 1024,
) -> GenerationRequest:
    return GenerationRequest(
        model="claude-sonnet-4-5-20250929",
        messages=messages or [{"role": "user", "content": "Hello"}],
        system_prompt=system_prompt,
        temperature=temperature,
        max_tokens=max_tokens,
    )


def _make_mock_client(message: MagicMock | None = None) -> AsyncMock:
    client = AsyncMock()
    client.messages.create = AsyncMock(return_value=message or _make_mock_message())
    return client


class TestAnthropicProviderName:
    def test_name_returns_anthropic(self):
        assert AnthropicProvider(_make_mock_client()).name == "anthropic"

    def test_suggests_models(self):
        assert AnthropicProvider(_make_mock_client()).suggested_models


class TestAnthropicGenerate:
    async def test_returns_correct_content(self):
        provider = AnthropicProvider(_make_mock_client(_make_mock_message("Hi there!")))
        result = await provider.generate(_make_request())
        assert result.content == "Hi there!"

    async def test_joins_text_blocks_and_skips_others(self):
        message = _make_mock_message("Hello ")
        second = MagicMock()
        second.type = "text"
        second.text = "world"
        other = MagicMock()
        other.type = "thinking"
        message.content = [message.content[0], other, second]
        provider = AnthropicProvider(_make_mock_client(message))
        result = await provider.generate(_make_request())
        assert result.content == "Hello world"

    async def test_returns_usage(self):
        provider = AnthropicProvider(
            _make_mock_client(_make_mock_message(input_tokens=25, output_tokens=10))
        )
        result = await provider.generate(_make_request())
        assert result.usage == {"input_tokens": 25, "output_tokens": 10}
        assert result.total_tokens == 35

    async def test_returns_finish_reason_and_model(self):
        provider = AnthropicProvider(
            _make_mock_client(_make_mock_message(stop_reason="max_tokens", model="claude-x"))
        )
        result = await provider.generate(_make_request())
        assert result.finish_reason == "max_tokens"
        assert result.model == "claude-x"

    async def test_measures_latency(self):
        result = await AnthropicProvider(_make_mock_client()).generate(_make_request())
        assert result.latency_ms is not None
        assert result.latency_ms >= 0

    async def test_passes_messages_and_max_tokens(self):
        client = _make_mock_client()
        messages = [
            {"role": "user", "content": "Hi"},
            {"role": "assistant", "content": "Hello!"},
            {"role": "user", "content": "Bye"},
        ]
        await AnthropicProvider(client).generate(_make_request(messages=messages, max_tokens=512))
        call_kwargs = client.messages.create.call_args.kwargs
        assert call_kwargs["messages"] == messages
        assert call_kwargs["max_tokens"] == 512

    async def test_passes_system_prompt(self):
        client = _make_mock_client()
        await AnthropicProvider(client).generate(_make_request(system_prompt="Be helpful."))
        assert client.messages.create.call_args.kwargs["system"] == "Be helpful."

    async def test_omits_empty_system_prompt(self):
        client = _make_mock_client()
        await AnthropicProvider(client).generate(_make_request(system_prompt=""))
        assert "system" not in client.messages.create.call_args.kwargs

    async def test_passes_temperature(self):
        client = _make_mock_client()
        await AnthropicProvider(client).generate(_make_request(temperature=0.5))
        assert client.messages.create.call_args.kwargs["temperature"] == 0.5

    async def test_omits_none_temperature(self):
        client = _make_mock_client()
        await AnthropicProvider(client).generate(_make_request(temperature=None))
        assert "temperature" not in client.messages.create.call_args.kwargs
