"""LLM clients for minirag."""

from minirag.llm.custom_endpoint import CustomEndpointLLM
from minirag.llm.factory import LLMProtocol, create_llm

__all__ = ["CustomEndpointLLM", "LLMProtocol", "create_llm"]
