# copilot/orchestrator/service/orchestrator.py
from dataclasses import dataclass, field
from typing import List, Optional

from copilot.core.logger import get_logger
from copilot.llm.entity.chat import (
    NO_RESPONSE_SENTINEL,
    ChatMessage,
    ChatRequest,
    ChatResponse,
    WebSearchResult,
)
from copilot.orchestrator.prompt import (
    CONTEXT_AWARENESS_PROMPT,
    REASONING_INSTRUCTION,
    build_orchestration_prompt,
)
from copilot.orchestrator.service.extractors import (
    TaskType,
    classify_task,
    extract_assumptions,
    extract_confidence,
    extract_follow_ups,
    extract_reasoning,
    extract_report_card,
    rewrite_query,
    strip_marker_sections,
)
from copilot.search.service.web_search import (
    WebSearchService,
    enhance_prompt_with_results,
    extract_search_query,
)

logger = get_logger("PromptOrchestrator")


@dataclass
class OrchestrationPlan:
    """Outcome of the pre-call pipeline, carried to post-processing."""
    request: ChatRequest
    task_type: TaskType
    original_query: str
    rewritten_query: str
    web_search_results: List[WebSearchResult] = field(default_factory=list)
    show_reasoning: bool = False
    orchestrate: bool = False


def latest_user_index(messages: List[ChatMessage]) -> Optional[int]:
    for i in range(len(messages) - 1, -1, -1):
        if messages[i].role == "user":
            return i
    return None


def should_search(query: str, task_type: TaskType) -> bool:
    return task_type == TaskType.RESEARCH or "latest" in query.lower()


def insert_context_message(messages: List[ChatMessage]) -> List[ChatMessage]:
    """Place the context-awareness system turn after any leading system turns."""
    context = ChatMessage(role="system", content=CONTEXT_AWARENESS_PROMPT)
    first_non_system = next((i for i, m in enumerate(messages) if m.role != "system"), -1)
    if first_non_system > 0:
        return messages[:first_non_system] + [context] + messages[first_non_system:]
    return [context] + messages


def build_context_info(message_count: int, web_result_count: int) -> str:
    context = ""
    if message_count > 2:
        context += f"Multi-turn conversation with {(message_count - 1) // 2} previous exchanges. "
    if web_result_count > 0:
        context += f"Web search returned {web_result_count} current sources. "
    return context.strip()


class PromptOrchestrator:
    """Stateless prompt augmentation around a single provider call."""

    def __init__(self, search_service: WebSearchService):
        self.search_service = search_service

    async def prepare(self, request: ChatRequest) -> OrchestrationPlan:
        messages = list(request.messages)
        idx = latest_user_index(messages)
        query = messages[idx].content if idx is not None else ""

        task_type = classify_task(query)
        rewritten = rewrite_query(query, task_type)
        logger.debug(f"Detected task type: {task_type.value}")

        last_is_user = idx is not None and idx == len(messages) - 1

        results: List[WebSearchResult] = []
        if request.web_search and last_is_user and should_search(query, task_type):
            search_query = extract_search_query(query)
            logger.info(f"Performing web search for: {search_query}")
            try:
                results = await self.search_service.search(search_query)
            except Exception as e:
                logger.error(f"Web search failed: {e}")
                results = []
            if results:
                enhanced = enhance_prompt_with_results(query, results)
                messages[idx] = messages[idx].model_copy(update={"content": enhanced})

        if request.show_reasoning and last_is_user:
            last = messages[idx]
            messages[idx] = last.model_copy(update={"content": f"{last.content}{REASONING_INSTRUCTION}"})

        if len(request.messages) > 1:
            messages = insert_context_message(messages)

        if request.orchestrate:
            system_prompt = build_orchestration_prompt(
                rewritten,
                task_type.value,
                request.web_search,
                request.show_reasoning,
                build_context_info(len(request.messages), len(results)),
            )
            messages = [ChatMessage(role="system", content=system_prompt)] + messages

        return OrchestrationPlan(
            request=request.model_copy(update={"messages": messages}),
            task_type=task_type,
            original_query=query,
            rewritten_query=rewritten,
            web_search_results=results,
            show_reasoning=request.show_reasoning,
            orchestrate=request.orchestrate,
        )

    def finalize(self, response: ChatResponse, plan: OrchestrationPlan) -> ChatResponse:
        content = response.message.content
        update = {}

        if plan.show_reasoning and "<thinking>" in content:
            reasoning, content = extract_reasoning(content)
            if reasoning:
                update["reasoning"] = reasoning

        if plan.orchestrate:
            update["assumptions"] = extract_assumptions(content) or None
            update["confidence"] = extract_confidence(content)
            update["followUps"] = extract_follow_ups(content) or None
            update["reportCard"] = extract_report_card(content)
            content = strip_marker_sections(content)
            logger.debug(f"Response processed. Confidence: {update['confidence']}")

        if plan.web_search_results:
            update["webSearchResults"] = plan.web_search_results

        update["message"] = response.message.model_copy(update={"content": content or NO_RESPONSE_SENTINEL})
        return response.model_copy(update=update)
