"""Tests for LLMProvider."""

from unittest.mock import AsyncMock, Mock, patch

import pytest

from echoshop.llm import LLMProvider


def _client(text: str = "Test response") -> Mock:
    mock_client = Mock()
    mock_response = Mock()
    mock_response.content = [Mock(text=text)]
    mock_client.messages.create = AsyncMock(return_value=mock_response)
    return mock_client


class TestLLMProviderInit:
    """Tests for LLMProvider initialization."""

    def test_init_with_api_key(self, monkeypatch):
        """Test initialization with API key."""
        monkeypatch.setenv("ANTHROPIC_API_KEY", "test_key")

        with patch("echoshop.llm.llm_provider.anthropic.AsyncAnthropic"):
            provider = LLMProvider()
            assert provider is not None

    def test_init_without_api_key(self, monkeypatch):
        """Test initialization without API key raises error."""
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)

        with patch("echoshop.llm.llm_provider.anthropic.AsyncAnthropic"):
            with pytest.raises(ValueError):
                LLMProvider()


class TestLLMProviderComplete:
    """Tests for LLMProvider.complete() method."""

    @pytest.mark.asyncio
    async def test_complete_returns_response(self, monkeypatch):
        """Test that complete() returns LLM response."""
        monkeypatch.setenv("ANTHROPIC_API_KEY", "test_key")

        with patch(
            "echoshop.llm.llm_provider.anthropic.AsyncAnthropic",
            return_value=_client(),
        ):
            provider = LLMProvider()
            response = await provider.complete(
                messages=[{"role": "user", "content": "Hello"}]
            )

            assert response == "Test response"

    @pytest.mark.asyncio
    async def test_complete_sends_correct_format(self, monkeypatch):
        """Test that complete() sends system prompt and sampling settings."""
        monkeypatch.setenv("ANTHROPIC_API_KEY", "test_key")
        mock_client = _client("Response")

        with patch(
            "echoshop.llm.llm_provider.anthropic.AsyncAnthropic",
            return_value=mock_client,
        ):
            provider = LLMProvider(model="test-model")
            await provider.complete(
                messages=[
                    {"role": "user", "content": "Hello"},
                    {"role": "assistant", "content": "Hi"},
                ],
                system="You are EchoShop",
                max_tokens=400,
                temperature=0.3,
            )

            mock_client.messages.create.assert_called_once()
            call_args = mock_client.messages.create.call_args

            assert call_args.kwargs["model"] == "test-model"
            assert call_args.kwargs["max_tokens"] == 400
            assert call_args.kwargs["system"] == "You are EchoShop"
            assert call_args.kwargs["temperature"] == 0.3
            assert len(call_args.kwargs["messages"]) == 2

    @pytest.mark.asyncio
    async def test_complete_with_default_params(self, monkeypatch):
        """Test that optional parameters are omitted when unset."""
        monkeypatch.setenv("ANTHROPIC_API_KEY", "test_key")
        mock_client = _client("Default response")

        with patch(
            "echoshop.llm.llm_provider.anthropic.AsyncAnthropic",
            return_value=mock_client,
        ):
            provider = LLMProvider()
            await provider.complete(messages=[{"role": "user", "content": "Test"}])

            call_args = mock_client.messages.create.call_args
            assert call_args.kwargs["max_tokens"] == 1024  # default
            assert "system" not in call_args.kwargs
            assert "temperature" not in call_args.kwargs

    @pytest.mark.asyncio
    async def test_complete_wraps_errors(self, monkeypatch):
        """Test that API errors are re-raised as RuntimeError."""
        monkeypatch.setenv("ANTHROPIC_API_KEY", "test_key")

        mock_client = Mock()
        mock_client.messages.create = AsyncMock(side_effect=Exception("API Error"))

        with patch(
            "echoshop.llm.llm_provider.anthropic.AsyncAnthropic",
            return_value=mock_client,
        ):
            provider = LLMProvider()

            with pytest.raises(RuntimeError, match="API Error"):
                await provider.complete(messages=[{"role": "user", "content": "Test"}])
