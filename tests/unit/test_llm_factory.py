"""Unit tests for LLM factory."""

from unittest.mock import MagicMock, patch

import pytest
from pydantic import SecretStr

from minirag.llm.custom_endpoint import CustomEndpointLLM
from minirag.llm.factory import create_llm


@pytest.fixture
def llm_settings(mock_settings):
    """Settings with distinctive LLM values so the factory's reads are visible."""
    return mock_settings.model_copy(
        update={
            "custom_endpoint_url": "http://inference.test/v1/chat/completions",
            "custom_endpoint_api_key": SecretStr("endpoint-key"),
            "llm_model": "Qwen/Qwen2.5-3B-Instruct",
            "llm_temperature": 0.7,
            "llm_max_tokens": 512,
            "llm_timeout": 60,
        }
    )


@pytest.mark.unit
class TestCreateLLM:
    """Tests for create_llm factory function."""

    @patch('langchain_huggingface.HuggingFaceEndpoint')
    def test_huggingface_backend(self, mock_hf_endpoint, llm_settings):
        """The HuggingFace client gets model, token and limits from the given settings."""
        config = llm_settings.model_copy(update={"use_custom_endpoint": False})
        mock_hf_endpoint.return_value = MagicMock()

        llm = create_llm(config)

        assert llm is mock_hf_endpoint.return_value
        mock_hf_endpoint.assert_called_once_with(
            repo_id="Qwen/Qwen2.5-3B-Instruct",
            huggingfacehub_api_token="test-api-key",
            temperature=0.7,
            max_new_tokens=512,
            timeout=60,
        )

    @patch('langchain_huggingface.HuggingFaceEndpoint')
    def test_temperature_override(self, mock_hf_endpoint, llm_settings):
        config = llm_settings.model_copy(update={"use_custom_endpoint": False})

        create_llm(config, temperature=0.0)

        assert mock_hf_endpoint.call_args.kwargs["temperature"] == 0.0

    def test_custom_endpoint_backend(self, llm_settings):
        """The endpoint client is built from the given settings, key included."""
        config = llm_settings.model_copy(update={"use_custom_endpoint": True})

        llm = create_llm(config, temperature=0.2)

        assert isinstance(llm, CustomEndpointLLM)
        assert llm.endpoint_url == "http://inference.test/v1/chat/completions"
        assert llm.model == "Qwen/Qwen2.5-3B-Instruct"
        assert llm.api_key == "endpoint-key"
        assert llm.temperature == 0.2
        assert llm.max_tokens == 512
        assert llm.timeout == 60

    def test_custom_endpoint_without_key(self, llm_settings):
        config = llm_settings.model_copy(
            update={"use_custom_endpoint": True, "custom_endpoint_api_key": None}
        )

        llm = create_llm(config)

        assert llm.api_key is None
        assert llm._headers() == {}

    @patch('langchain_huggingface.HuggingFaceEndpoint')
    def test_custom_endpoint_takes_priority(self, mock_hf_endpoint, llm_settings):
        """HuggingFace is not touched when a custom endpoint is configured."""
        config = llm_settings.model_copy(update={"use_custom_endpoint": True})

        create_llm(config)

        mock_hf_endpoint.assert_not_called()

    @patch('minirag.llm.factory.get_settings')
    def test_defaults_to_cached_settings(self, mock_get_settings, llm_settings):
        mock_get_settings.return_value = llm_settings.model_copy(
            update={"use_custom_endpoint": True}
        )

        llm = create_llm()

        mock_get_settings.assert_called_once_with()
        assert llm.endpoint_url == "http://inference.test/v1/chat/completions"
