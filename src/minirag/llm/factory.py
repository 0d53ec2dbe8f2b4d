"""
Build the generation client from settings.

Two backends answer ``invoke(prompt) -> str``: an OpenAI-compatible chat
endpoint (``USE_CUSTOM_ENDPOINT=true``) and the HuggingFace Inference API
through LangChain.
"""

from typing import Optional, Protocol

from minirag.config import Settings, get_settings


class LLMProtocol(Protocol):
    """Protocol that all LLM clients must implement."""

    def invoke(self, prompt: str) -> str:
        """Call the LLM with a prompt and return the response."""
        ...


def _custom_endpoint_llm(config: Settings, temperature: float) -> LLMProtocol:
    from minirag.llm.custom_endpoint import CustomEndpointLLM

    return CustomEndpointLLM(
        endpoint_url=config.custom_endpoint_url,
        model=config.llm_model,
        api_key=config.custom_endpoint_api_key_value,
        temperature=temperature,
        max_tokens=config.llm_max_tokens,
        timeout=config.llm_timeout,
    )


def _huggingface_llm(config: Settings, temperature: float) -> LLMProtocol:
    from langchain_huggingface import HuggingFaceEndpoint

    return HuggingFaceEndpoint(
        repo_id=config.llm_model,
        huggingfacehub_api_token=config.hf_api_key_value,
        temperature=temperature,
        max_new_tokens=config.llm_max_tokens,
        timeout=config.llm_timeout,
    )


def create_llm(
    config: Optional[Settings] = None, temperature: Optional[float] = None
) -> LLMProtocol:
    """
    Create the LLM client a pipeline generates answers with.

    Args:
        config: Settings to read the backend from (default: cached settings)
        temperature: Override for ``config.llm_temperature``

    Returns:
        CustomEndpointLLM when ``use_custom_endpoint`` is set, otherwise a
        LangChain HuggingFaceEndpoint
    """
    config = config or get_settings()
    temp = config.llm_temperature if temperature is None else temperature

    if config.use_custom_endpoint:
        return _custom_endpoint_llm(config, temp)
    return _huggingface_llm(config, temp)
