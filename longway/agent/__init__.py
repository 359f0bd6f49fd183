"""Assistant package: tool catalog, Messages API client and the chat loop."""
from longway.agent.assistant import ChatResult, TripAssistant, build_system_prompt
from longway.agent.client import AnthropicClient, AssistantClient
from longway.agent.tools import TOOL_CATALOG, ToolName, TripToolbox, parse_tool_call

__all__ = [
    "AnthropicClient",
    "AssistantClient",
    "ChatResult",
    "TOOL_CATALOG",
    "ToolName",
    "TripAssistant",
    "TripToolbox",
    "build_system_prompt",
    "parse_tool_call",
]
