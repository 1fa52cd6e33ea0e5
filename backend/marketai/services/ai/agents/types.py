"""
Agent contracts.

AgentInput is immutable and built per call. AgentResult always carries a
``result`` of the agent's declared type, even when ``success`` is False.
"""
from typing import Any, Dict, Generic, Optional, Protocol, TypeVar, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

P = TypeVar("P")
R = TypeVar("R")


class AgentContext(BaseModel):
    """Caller identity and metadata. Informational only; never changes execution."""

    model_config = ConfigDict(frozen=True)

    user_id: Optional[str] = None
    session_id: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class AgentInput(BaseModel, Generic[P]):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    task: str
    payload: P
    context: Optional[AgentContext] = None


class AgentResult(BaseModel, Generic[R]):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    success: bool
    result: R
    model: Optional[str] = None
    latency_ms: Optional[int] = None
    cached: Optional[bool] = None


@runtime_checkable
class Agent(Protocol[P, R]):
    """Anything the orchestrator can register and run."""

    name: str
    version: Optional[str]

    async def run(self, input: AgentInput[P]) -> AgentResult[R]:
        ...
