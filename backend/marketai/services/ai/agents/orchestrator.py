"""
Agent orchestration.

Responsibilities:
- Keep a name-keyed registry of agents
- Dispatch a single task to the agent registered under that name
- Run sequential pipelines, stopping at the first failed step
- Hand every executed invocation to the activity logger

NON-responsibilities:
- Does NOT parse or validate payloads (agents and routes do)
- Does NOT retry failed agents
"""
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from marketai.core.logging import bind_agent_context, get_logger
from marketai.core.metrics import record_pipeline_short_circuit
from marketai.services.ai.agents.activity_logger import AgentLogger
from marketai.services.ai.agents.types import Agent, AgentContext, AgentInput, AgentResult

logger = get_logger(__name__)


class AgentNotRegisteredError(LookupError):
    def __init__(self, task: str):
        super().__init__(f"No agent registered for task: {task}")
        self.task = task


class AgentAlreadyRegisteredError(ValueError):
    def __init__(self, name: str):
        super().__init__(f"Agent already registered: {name}")
        self.name = name


# (previous_result, initial_payload, context) -> AgentInput for this step
InputMapper = Callable[
    [Optional[AgentResult[Any]], Any, Optional[AgentContext]],
    AgentInput[Any],
]


@dataclass(frozen=True)
class PipelineStep:
    agent: Agent[Any, Any]
    map_input: InputMapper


class AgentOrchestrator:
    """
    Registry plus dispatcher for agents.

    Args:
        activity_logger: Where invocations are recorded. Defaults to an
            ``AgentLogger`` with the Supabase sink (a no-op without credentials).
    """

    def __init__(self, activity_logger: Optional[AgentLogger] = None):
        self._agents: Dict[str, Agent[Any, Any]] = {}
        self.activity_logger = activity_logger if activity_logger is not None else AgentLogger()

    def register(self, agent: Agent[Any, Any], *, replace: bool = True) -> None:
        """
        Register an agent under its name.

        Args:
            agent: Agent to register
            replace: Overwrite an agent already registered under the same name

        Raises:
            AgentAlreadyRegisteredError: the name is taken and replace is False
        """
        existing = self._agents.get(agent.name)
        if existing is not None:
            if not replace:
                raise AgentAlreadyRegisteredError(agent.name)
            logger.info(
                "agent_registration_replaced",
                agent=agent.name,
                previous_version=getattr(existing, "version", None),
                version=getattr(agent, "version", None),
            )
        self._agents[agent.name] = agent

    def register_many(self, agents: Iterable[Agent[Any, Any]], *, replace: bool = True) -> None:
        for agent in agents:
            self.register(agent, replace=replace)

    def get_agent(self, name: str) -> Optional[Agent[Any, Any]]:
        """Get the agent registered for a task name, or None."""
        return self._agents.get(name)

    def agent_names(self) -> List[str]:
        """Registered agent names, sorted."""
        return sorted(self._agents)

    async def dispatch(
        self,
        task: str,
        payload: Any,
        context: Optional[AgentContext] = None,
    ) -> AgentResult[Any]:
        """
        Run the agent registered under ``task``.

        Raises:
            AgentNotRegisteredError: if no agent has that name
        """
        agent = self._agents.get(task)
        if agent is None:
            raise AgentNotRegisteredError(task)

        input = AgentInput(task=task, payload=payload, context=context)
        with bind_agent_context(
            user_id=context.user_id if context else None,
            session_id=context.session_id if context else None,
        ):
            result = await agent.run(input)
            await self._log(agent, input, result)
        return result

    async def pipeline(
        self,
        steps: Sequence[PipelineStep],
        initial_payload: Any,
        context: Optional[AgentContext] = None,
    ) -> List[AgentResult[Any]]:
        """
        Run ``steps`` in order, feeding each the previous result.

        Returns the results of the executed steps. A failed step is the last
        entry; the remaining steps are not run.
        """
        results: List[AgentResult[Any]] = []
        previous: Optional[AgentResult[Any]] = None

        with bind_agent_context(
            user_id=context.user_id if context else None,
            session_id=context.session_id if context else None,
        ):
            for index, step in enumerate(steps):
                input = step.map_input(previous, initial_payload, context)
                result = await step.agent.run(input)
                results.append(result)
                await self._log(step.agent, input, result)

                if not result.success:
                    skipped = [s.agent.name for s in steps[index + 1:]]
                    if skipped:
                        record_pipeline_short_circuit(step.agent.name)
                        logger.warning(
                            "agent_pipeline_short_circuited",
                            failed_agent=step.agent.name,
                            step=index,
                            skipped=skipped,
                        )
                    break
                previous = result

        return results

    async def _log(
        self,
        agent: Agent[Any, Any],
        input: AgentInput[Any],
        result: AgentResult[Any],
    ) -> None:
        try:
            await self.activity_logger.log(agent=agent, input=input, result=result)
        except Exception as exc:
            logger.error(
                "agent_activity_log_failed",
                agent=agent.name,
                error=str(exc),
                error_type=type(exc).__name__,
            )

    async def aclose(self) -> None:
        await self.activity_logger.aclose()


_orchestrator: Optional[AgentOrchestrator] = None


def get_agent_orchestrator() -> AgentOrchestrator:
    """Get or create the process-wide orchestrator with the built-in agents."""
    global _orchestrator
    if _orchestrator is None:
        from marketai.core.config import get_settings
        from marketai.services.ai.agents.recommendation import RecommendationAgent
        from marketai.services.ai.agents.refund import RefundAgent
        from marketai.services.ai.agents.sentiment import FeedbackSentimentAgent
        from marketai.services.ai.agents.support import SupportAgent

        orchestrator = AgentOrchestrator(
            AgentLogger(queue_size=get_settings().activity_log_queue_size)
        )
        orchestrator.register_many([
            RecommendationAgent(),
            SupportAgent(),
            FeedbackSentimentAgent(),
            RefundAgent(),
        ])
        _orchestrator = orchestrator
    return _orchestrator


def reset_agent_orchestrator() -> None:
    global _orchestrator
    _orchestrator = None
