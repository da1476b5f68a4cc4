"""
Service layer
"""
from .llm_client import LLMClient, get_llm_client

__all__ = [
    "LLMClient",
    "get_llm_client",
]
