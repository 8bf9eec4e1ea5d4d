# copilot/orchestrator/service/extractors.py
"""
Task classification and best-effort parsers for the marker sections models
write into free text (``**Confidence:**``, ``**Report Card:**`` ...).

Every extractor is independent: a missing marker yields an empty value, never
an exception, and one extractor's result never depends on another's.
"""

import re
from enum import Enum
from typing import List, Optional, Tuple

from copilot.llm.entity.chat import ConfidenceLevel, ReportCardItem


class TaskType(str, Enum):
    DIRECT = "direct"
    RESEARCH = "research"
    WRITE = "write"
    CODE = "code"
    MATH = "math"
    CRITIQUE = "critique"


# Priority order matters: "debug this essay" is code, not write.
TASK_KEYWORDS: List[Tuple[TaskType, Tuple[str, ...]]] = [
    (TaskType.CODE, ("code", "function", "debug", "implement", "algorithm", "programming")),
    (TaskType.RESEARCH, ("research", "compare", "analyze", "what is", "explain", "latest")),
    (TaskType.WRITE, ("write", "draft", "compose", "article", "blog", "essay")),
    (TaskType.MATH, ("calculate", "solve", "math", "equation", "formula")),
    (TaskType.CRITIQUE, ("review", "critique", "evaluate", "assess", "feedback")),
]

REWRITE_SUFFIXES = {
    TaskType.RESEARCH: "(provide current information with sources and dates)",
    TaskType.CODE: "(provide working code with explanations and best practices)",
    TaskType.WRITE: "(create well-structured content with clear organization)",
    TaskType.MATH: "(show step-by-step solution with explanations)",
    TaskType.CRITIQUE: "(provide balanced analysis with specific examples)",
}

# Report card labels as the model writes them, mapped to category keys.
REPORT_CARD_LABELS: List[Tuple[str, str]] = [
    ("Correctness", "correctness"),
    ("Completeness", "completeness"),
    ("Evidence", "evidence"),
    ("Safety", "safety"),
    ("Clarity", "clarity"),
    ("Actionable", "actionability"),
]
PASS_GLYPH = "✅"
WARN_GLYPH = "⚠️"

_THINKING_BLOCK = re.compile(r"<thinking>([\s\S]*?)</thinking>")
_THINKING_STRIP = re.compile(r"<thinking>[\s\S]*?</thinking>\s*")
_ASSUMPTIONS = re.compile(r"\*\*Assumptions:\*\*\s*(.+?)(?=\n\n|\*\*|\Z)", re.DOTALL)
_CONFIDENCE = re.compile(r"\*\*Confidence:\*\*\s*(high|medium|low)", re.IGNORECASE)
_FOLLOW_UPS = re.compile(r"\*\*Follow-ups:\*\*\s*(.+?)(?=\n\n|\*\*|\Z)", re.DOTALL)
_REPORT_CARD = re.compile(r"\*\*Report Card:\*\*\s*(.+)\Z", re.DOTALL)
_BULLET = re.compile(r"^[•\-\*]\s*")

_MARKER_SECTIONS = [
    re.compile(r"\*\*Assumptions:\*\*[^*]*?(?=\n\n|\*\*|\Z)", re.DOTALL),
    re.compile(r"\*\*Confidence:\*\*[^*]*?(?=\n\n|\*\*|\Z)", re.DOTALL),
    re.compile(r"\*\*Follow-ups:\*\*[^*]*?(?=\n\n|\*\*|\Z)", re.DOTALL),
    re.compile(r"\*\*Report Card:\*\*[^*]*?\Z", re.DOTALL),
]


def classify_task(query: str) -> TaskType:
    query_lower = query.lower()
    for task_type, keywords in TASK_KEYWORDS:
        if any(keyword in query_lower for keyword in keywords):
            return task_type
    return TaskType.DIRECT


def rewrite_query(query: str, task_type: TaskType) -> str:
    if task_type == TaskType.RESEARCH and "latest" in query:
        return query
    suffix = REWRITE_SUFFIXES.get(task_type)
    return f"{query} {suffix}" if suffix else query


def extract_reasoning(content: str) -> Tuple[Optional[str], str]:
    """Split the first ``<thinking>`` block off the visible answer."""
    match = _THINKING_BLOCK.search(content)
    if not match:
        return None, content
    reasoning = match.group(1).strip()
    cleaned = _THINKING_STRIP.sub("", content, count=1).strip()
    return (reasoning or None), cleaned


def _bullet_lines(block: str) -> List[str]:
    lines = (_BULLET.sub("", line).strip() for line in block.split("\n"))
    return [line for line in lines if line]


def extract_assumptions(content: str) -> List[str]:
    match = _ASSUMPTIONS.search(content)
    return _bullet_lines(match.group(1)) if match else []


def extract_confidence(content: str) -> ConfidenceLevel:
    match = _CONFIDENCE.search(content)
    return match.group(1).lower() if match else "medium"


def extract_follow_ups(content: str) -> List[str]:
    match = _FOLLOW_UPS.search(content)
    if not match:
        return []
    return [line for line in _bullet_lines(match.group(1)) if not line.startswith("**")]


def extract_report_card(content: str) -> Optional[List[ReportCardItem]]:
    """A category passes only when the pass glyph sits right before its label."""
    match = _REPORT_CARD.search(content)
    if not match:
        return None
    card = match.group(1)
    return [
        ReportCardItem(
            category=category,
            status="pass" if f"{PASS_GLYPH} {label}" in card else "warning",
            note="See response for details" if f"{WARN_GLYPH} {label}" in card else None,
        )
        for label, category in REPORT_CARD_LABELS
    ]


def strip_marker_sections(content: str) -> str:
    for pattern in _MARKER_SECTIONS:
        content = pattern.sub("", content, count=1)
    return content.strip()
