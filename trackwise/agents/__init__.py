"""AI Agents package."""

from trackwise.agents.ai_agents import (
    ActionPathAgent,
    ChatAgent,
    ExpenseAgent,
    InsightAgent,
)
from trackwise.agents.llm import (
    EmptyResponseError,
    FlowError,
    GeminiClient,
    LLMClient,
    ModelServiceError,
    PromptAdapter,
    SchemaValidationError,
    extract_json_object,
)

__all__ = [
    "ActionPathAgent",
    "ChatAgent",
    "ExpenseAgent",
    "InsightAgent",
    "EmptyResponseError",
    "FlowError",
    "GeminiClient",
    "LLMClient",
    "ModelServiceError",
    "PromptAdapter",
    "SchemaValidationError",
    "extract_json_object",
]
