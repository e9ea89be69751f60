"""Agent runtime hooks for taintgate."""

from .agent_start import AgentStartHandler, build_security_context_prompt
from .tool_call import ToolCallContext, ToolCallGuard, ToolCallResult, extract_command

__all__ = [
    "AgentStartHandler",
    "build_security_context_prompt",
    "ToolCallContext",
    "ToolCallGuard",
    "ToolCallResult",
    "extract_command",
]
