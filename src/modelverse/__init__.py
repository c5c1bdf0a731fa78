"""
ModelVerse: a multi-provider LLM chat client.

This package follows Parnas's information hiding principles,
where each module hides a specific design decision:
- llm: which provider SDK serves a model and how requests are shaped for it
- chat: how UI chat state becomes a provider-agnostic generation request
- ui: how the conversation is presented and edited
"""

__version__ = "0.1.0"

from .chat import (
    ChatController,
    ChatMessage,
    ChatTurn,
    PromptRelay,
    RelayInput,
    RelayOutput,
    normalize_prompt,
)
from .llm import ModelConfig, ModelDescriptor, ModelRegistry, ProviderSettings

__all__ = [
    "ChatController",
    "ChatMessage",
    "ChatTurn",
    "ModelConfig",
    "ModelDescriptor",
    "ModelRegistry",
    "PromptRelay",
    "ProviderSettings",
    "RelayInput",
    "RelayOutput",
    "normalize_prompt",
]
