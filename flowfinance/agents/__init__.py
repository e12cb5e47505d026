"""AI Agents package."""

from flowfinance.agents.assistant import AssistantToolbox, InsightAgent

__all__ = [
    "AssistantToolbox",
    "InsightAgent",
]
