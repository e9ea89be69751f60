"""HTTP hook service for taintgate.

Lets an agent runtime in any language call the hooks over HTTP and
exposes per-session taint state for inspection.
"""

import logging
from typing import Any, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from . import __version__
from .config import TaintGateConfig, get_config
from .hooks import AgentStartHandler, ToolCallContext, ToolCallGuard
from .sessions import SessionRegistry
from .tiers import RestrictionTier

logger = logging.getLogger(__name__)


class ToolCallRequest(BaseModel):
    """Intercepted tool call."""

    tool_name: str
    tool_input: dict[str, Any] = Field(default_factory=dict)
    session_id: Optional[str] = None


class AgentStartRequest(BaseModel):
    """Agent start notification."""

    session_id: Optional[str] = None


class ClassifyRequest(BaseModel):
    """URL or domain to classify."""

    url: str


class EvaluateRequest(BaseModel):
    """Shell command to evaluate under a tier."""

    command: str
    tier: RestrictionTier


def create_app(
    config: TaintGateConfig | None = None,
    registry: SessionRegistry | None = None,
) -> FastAPI:
    """Create the FastAPI hook service."""
    config = config or get_config()
    registry = registry or SessionRegistry(config.taint)
    guard = ToolCallGuard(config, registry)
    agent_start = AgentStartHandler(config, registry)

    app = FastAPI(
        title="taintgate",
        description="Trust-based shell command gating for autonomous agents",
        version=__version__,
    )

    @app.post("/hooks/before-tool-call")
    async def before_tool_call(request: ToolCallRequest):
        """Run the before-tool-call hook."""
        result = guard.before_tool_call(
            ToolCallContext(request.tool_name, request.tool_input, request.session_id)
        )
        return {
            "block": result.block,
            "block_reason": result.block_reason,
            "metadata": result.metadata,
            "error": result.error,
        }

    @app.post("/hooks/before-agent-start")
    async def before_agent_start(request: AgentStartRequest):
        """Run the before-agent-start hook."""
        prompt = agent_start.before_agent_start(request.session_id)
        return {"prepend_context": prompt}

    @app.get("/api/sessions")
    async def list_sessions():
        """List active sessions with their taint state."""
        return {"sessions": [registry.summary(sid) for sid in registry.session_ids()]}

    def _require(session_id: str) -> None:
        if session_id not in registry:
            raise HTTPException(status_code=404, detail=f"Unknown session: {session_id}")

    @app.get("/api/sessions/{session_id}")
    async def get_session(session_id: str):
        """Get taint state for a session."""
        _require(session_id)
        return registry.summary(session_id)

    @app.get("/api/sessions/{session_id}/history")
    async def get_history(session_id: str):
        """Get the full taint event history for a session."""
        _require(session_id)
        return {"events": [e.to_dict() for e in registry.get(session_id).history()]}

    @app.post("/api/sessions/{session_id}/reset")
    async def reset_session(session_id: str):
        """Reset a session to the initial taint level."""
        _require(session_id)
        registry.reset(session_id)
        agent_start.forget(session_id)
        return registry.summary(session_id)

    @app.delete("/api/sessions/{session_id}")
    async def delete_session(session_id: str):
        """Discard a finished session."""
        if not registry.drop(session_id):
            raise HTTPException(status_code=404, detail=f"Unknown session: {session_id}")
        agent_start.forget(session_id)
        return {"deleted": session_id}

    @app.post("/api/classify")
    async def classify(request: ClassifyRequest):
        """Classify a URL or bare domain without touching any session."""
        check = guard.classifier.check_url(request.url)
        return {
            "url": request.url,
            "domain": check.domain,
            "trusted": check.trusted,
            "matched_pattern": check.matched_pattern,
            "malformed": check.malformed,
        }

    @app.post("/api/evaluate")
    async def evaluate(request: EvaluateRequest):
        """Evaluate a shell command under an explicit tier."""
        decision = guard.engine.evaluate(request.command, request.tier)
        return {
            "allowed": decision.allowed,
            "tier": request.tier.value,
            "reason": decision.reason,
            "matched_rule": decision.matched_rule,
            "category": decision.category.value if decision.category else None,
        }

    @app.get("/api/config")
    async def get_current_config():
        """Get the active configuration."""
        return config.model_dump(mode="json", by_alias=True)

    return app
