"""Learning flows module exports."""

from .main import LearningFlows, TopicExploration
from .registry import FLOWS, FlowDefinition, FlowName
from .runner import FlowResult, FlowRunner, ResultStatus
from .sanitizer import strip_code_fence

__all__ = [
    "LearningFlows",
    "TopicExploration",
    "FLOWS",
    "FlowDefinition",
    "FlowName",
    "FlowResult",
    "FlowRunner",
    "ResultStatus",
    "strip_code_fence",
]
