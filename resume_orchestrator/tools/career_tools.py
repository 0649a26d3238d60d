"""Career tools bound to the specialized agents.

The analysis tools are keyword heuristics; the research tools return simulated
data until a real search/salary/company backend is wired in.
"""

from __future__ import annotations

import json
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..errors import ToolInputError
from .base import Tool, ToolRegistry, ToolResult


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _flatten_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False, default=str)


class WebSearchTool(Tool):
    """Simulated web search for market, company and skill trends."""

    name = "web_search"
    description = "Search the web for current information about job markets, companies, skills, and career trends"
    parameters = {
        "query": {"type": "string", "description": "Search query", "required": True},
        "num_results": {"type": "integer", "description": "Number of results to return"},
    }

    async def execute(self, query: str, num_results: int = 1) -> ToolResult:
        try:
            count = max(1, int(num_results or 1))
        except (TypeError, ValueError) as e:
            raise ToolInputError(f"num_results must be an integer, got {num_results!r}") from e
        results = [
            {
                "title": f"Top skills for {query}" if i == 0 else f"{query} - result {i + 1}",
                "snippet": "Based on current job market analysis, the top skills include...",
                "url": "https://example.com/skills-analysis",
            }
            for i in range(count)
        ]
        return ToolResult(
            success=True,
            output=f"{len(results)} result(s) for {query!r}",
            data={"query": query, "results": results, "timestamp": _timestamp()},
        )


class ResumeAnalysisTool(Tool):
    """Score resume content for keywords, metrics and impact verbs."""

    name = "analyze_resume"
    description = "Analyze resume content for ATS optimization, keyword density, and formatting issues"
    parameters = {
        "resume_data": {"type": "object", "description": "Resume data to analyze", "required": True},
        "focus_areas": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Specific areas to focus on: keywords, metrics, impact",
        },
    }

    ACTION_KEYWORDS = ("leadership", "managed", "developed", "improved", "increased")
    IMPACT_VERBS = ("spearheaded", "architected", "optimized", "transformed")
    _METRIC_PATTERN = re.compile(r"\d+\s*[%$]|\$\s*\d+")

    async def execute(self, resume_data: Any, focus_areas: Optional[List[str]] = None) -> ToolResult:
        text = _flatten_text(resume_data)
        lowered = text.lower()
        areas = set(focus_areas or ("keywords", "metrics", "impact"))
        scores: Dict[str, float] = {}

        if "keywords" in areas:
            hits = sum(1 for k in self.ACTION_KEYWORDS if k in lowered)
            scores["keywords"] = hits / len(self.ACTION_KEYWORDS)
        if "metrics" in areas:
            scores["metrics"] = 0.8 if self._METRIC_PATTERN.search(text) else 0.3
        if "impact" in areas:
            hits = sum(1 for v in self.IMPACT_VERBS if v in lowered)
            scores["impact"] = hits / len(self.IMPACT_VERBS)

        overall = sum(scores.values()) / len(scores) if scores else 0.0
        return ToolResult(
            success=True,
            output=f"Overall resume score: {overall:.2f}",
            data={"scores": scores, "overall_score": overall, "timestamp": _timestamp()},
        )


class JobDescriptionParserTool(Tool):
    """Extract skills, qualifications and required years from a job description."""

    name = "parse_job_description"
    description = "Extract key requirements, skills, and qualifications from a job description"
    parameters = {
        "job_description": {"type": "string", "description": "The job description text", "required": True},
    }

    SKILL_KEYWORDS = (
        "python",
        "javascript",
        "react",
        "node",
        "aws",
        "docker",
        "kubernetes",
        "machine learning",
        "data analysis",
        "sql",
        "agile",
        "scrum",
    )
    QUALIFICATION_KEYWORDS = ("bachelor's", "master's", "phd", "years of experience", "certification")
    _YEARS_PATTERN = re.compile(r"(\d+)\+?\s*years?\s*(?:of\s*)?experience", re.IGNORECASE)

    async def execute(self, job_description: str) -> ToolResult:
        text = job_description.lower()
        skills = [s for s in self.SKILL_KEYWORDS if s in text]
        qualifications = [q for q in self.QUALIFICATION_KEYWORDS if q in text]
        match = self._YEARS_PATTERN.search(job_description)
        required_years = int(match.group(1)) if match else None

        return ToolResult(
            success=True,
            output=f"Found {len(skills)} skill(s) and {len(qualifications)} qualification(s)",
            data={
                "skills": skills,
                "qualifications": qualifications,
                "required_years": required_years,
                "timestamp": _timestamp(),
            },
        )


class SkillGapAnalysisTool(Tool):
    """Compare resume skills against job requirements."""

    name = "analyze_skill_gap"
    description = "Compare resume skills against job requirements to identify gaps"
    parameters = {
        "resume_skills": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Skills listed in resume",
            "required": True,
        },
        "required_skills": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Skills required by job",
            "required": True,
        },
    }

    async def execute(self, resume_skills: List[str], required_skills: List[str]) -> ToolResult:
        have = [s.lower() for s in resume_skills]
        need = [s.lower() for s in required_skills]

        def _covered(req: str) -> bool:
            return any(req in skill or skill in req for skill in have)

        matched = [req for req in need if _covered(req)]
        missing = [req for req in need if not _covered(req)]
        match_percentage = round(len(matched) / len(need) * 100) if need else 100

        return ToolResult(
            success=True,
            output=f"{match_percentage}% of required skills matched",
            data={
                "matched_skills": matched,
                "missing_skills": missing,
                "match_percentage": match_percentage,
                "recommendations": [
                    {
                        "skill": skill,
                        "priority": "high",
                        "suggestion": f"Add {skill} to your skills section or highlight relevant experience",
                    }
                    for skill in missing
                ],
                "timestamp": _timestamp(),
            },
        )


class SalaryResearchTool(Tool):
    """Simulated salary bands per experience level."""

    name = "research_salary"
    description = "Get salary information for a specific role and location"
    parameters = {
        "job_title": {"type": "string", "description": "Job title to research", "required": True},
        "location": {"type": "string", "description": "Location (city/state/country)"},
        "experience_level": {
            "type": "string",
            "enum": ["entry", "mid", "senior", "lead"],
            "description": "Experience level",
        },
    }

    SALARY_BANDS = {
        "entry": (60000, 80000),
        "mid": (80000, 120000),
        "senior": (120000, 160000),
        "lead": (160000, 220000),
    }

    async def execute(
        self,
        job_title: str,
        location: Optional[str] = None,
        experience_level: Optional[str] = None,
    ) -> ToolResult:
        level = experience_level or "mid"
        if level not in self.SALARY_BANDS:
            raise ToolInputError(f"Unknown experience level: {level!r}")
        low, high = self.SALARY_BANDS[level]
        median = (low + high) / 2

        return ToolResult(
            success=True,
            output=f"{job_title} ({level}): ${low:,}-${high:,}",
            data={
                "job_title": job_title,
                "location": location or "United States",
                "experience_level": level,
                "salary_range": {"min": low, "max": high},
                "median": median,
                "currency": "USD",
                "timestamp": _timestamp(),
            },
        )


class CompanyResearchTool(Tool):
    """Simulated company profile: culture, stack, news and interview loop."""

    name = "research_company"
    description = "Research company information, culture, and recent news"
    parameters = {
        "company_name": {"type": "string", "description": "Company name", "required": True},
        "aspects": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Aspects to research: culture, news, tech_stack, interview_process",
        },
    }

    async def execute(self, company_name: str, aspects: Optional[List[str]] = None) -> ToolResult:
        profile: Dict[str, Any] = {
            "culture": {
                "values": ["Innovation", "Collaboration", "Customer Focus"],
                "work_life_balance": 4.2,
                "diversity": 4.0,
            },
            "tech_stack": ["React", "Node.js", "AWS", "PostgreSQL", "Redis"],
            "news": [
                {
                    "title": f"{company_name} announces new product launch",
                    "date": _timestamp(),
                    "summary": "Company expanding into new market segment",
                }
            ],
            "interview_process": {
                "stages": ["Phone Screen", "Technical Interview", "System Design", "Behavioral", "Final Round"],
                "average_duration": "3-4 weeks",
                "difficulty": "Medium-Hard",
            },
        }
        if aspects:
            profile = {k: v for k, v in profile.items() if k in set(aspects)}

        return ToolResult(
            success=True,
            output=f"Research on {company_name}: {', '.join(profile) or 'no matching aspects'}",
            data={"company_name": company_name, **profile, "timestamp": _timestamp()},
        )


class ContentGenerationTool(Tool):
    """Placeholder drafts for resume and cover-letter content."""

    name = "generate_content"
    description = "Generate resume content like bullet points, summaries, or cover letter sections"
    parameters = {
        "content_type": {
            "type": "string",
            "enum": ["bullet_point", "summary", "cover_letter_intro", "cover_letter_body", "cover_letter_closing"],
            "description": "Type of content to generate",
            "required": True,
        },
        "context": {"type": "object", "description": "Contextual information", "required": True},
        "tone": {
            "type": "string",
            "enum": ["professional", "enthusiastic", "technical", "creative"],
            "description": "Tone of the content",
        },
    }

    async def execute(self, content_type: str, context: Any, tone: Optional[str] = None) -> ToolResult:
        tone = tone or "professional"
        draft = f"[Generated {content_type} with {tone} tone]"
        return ToolResult(
            success=True,
            output=draft,
            data={
                "content_type": content_type,
                "generated_content": draft,
                "variations": [f"Variation {i} of {content_type}" for i in range(1, 4)],
                "timestamp": _timestamp(),
            },
        )


class ATSKeywordOptimizerTool(Tool):
    """Report which target keywords are missing from a piece of resume text."""

    name = "optimize_ats_keywords"
    description = "Optimize resume text for ATS keyword matching"
    parameters = {
        "original_text": {"type": "string", "description": "Original resume text", "required": True},
        "target_keywords": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Keywords to optimize for",
            "required": True,
        },
        "max_length": {"type": "integer", "description": "Maximum length of optimized text"},
    }

    async def execute(
        self,
        original_text: str,
        target_keywords: List[str],
        max_length: Optional[int] = None,
    ) -> ToolResult:
        lowered = original_text.lower()
        missing = [kw for kw in target_keywords if kw.lower() not in lowered]
        optimized = original_text[:max_length] if max_length else original_text
        word_count = len(optimized.split()) or 1

        return ToolResult(
            success=True,
            output=f"{len(missing)} keyword(s) missing",
            data={
                "original_text": original_text,
                "optimized_text": optimized,
                "added_keywords": missing[:3],
                "keyword_density": len(target_keywords) / word_count,
                "suggestions": [f'Consider adding "{kw}" naturally in context' for kw in missing],
                "timestamp": _timestamp(),
            },
        )


CAREER_TOOL_CLASSES = (
    WebSearchTool,
    ResumeAnalysisTool,
    JobDescriptionParserTool,
    SkillGapAnalysisTool,
    SalaryResearchTool,
    CompanyResearchTool,
    ContentGenerationTool,
    ATSKeywordOptimizerTool,
)


def default_tool_registry() -> ToolRegistry:
    """Registry holding one instance of every built-in career tool."""
    return ToolRegistry(tool_cls() for tool_cls in CAREER_TOOL_CLASSES)
