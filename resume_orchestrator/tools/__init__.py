"""Tools the specialized agents can call."""

from .base import Tool, ToolRegistry, ToolResult
from .career_tools import (
    ATSKeywordOptimizerTool,
    CompanyResearchTool,
    ContentGenerationTool,
    JobDescriptionParserTool,
    ResumeAnalysisTool,
    SalaryResearchTool,
    SkillGapAnalysisTool,
    WebSearchTool,
    default_tool_registry,
)

__all__ = [
    "Tool",
    "ToolRegistry",
    "ToolResult",
    "ATSKeywordOptimizerTool",
    "CompanyResearchTool",
    "ContentGenerationTool",
    "JobDescriptionParserTool",
    "ResumeAnalysisTool",
    "SalaryResearchTool",
    "SkillGapAnalysisTool",
    "WebSearchTool",
    "default_tool_registry",
]
