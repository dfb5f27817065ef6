"""LLM prompt templates for design reverse-engineering.

Provides the system prompt (role, requirements rubric, response shape) and
the user prompt (source, scope, file manifest, design payload, instructions).
Everything here is pure string assembly: no state, no failure paths.
"""

from typing import TYPE_CHECKING

from aura.models.analysis import AnalysisLevel

if TYPE_CHECKING:
    from aura.models.requests import DesignReverseEngineerRequest


# =============================================================================
# System Prompt
# =============================================================================

_ROLE = (
    "You are an expert Product Owner with deep expertise in requirements engineering, "
    "user story creation, and visual design analysis. Your role is to reverse engineer "
    "visual designs into high-quality business requirements that follow the seven "
    "fundamental characteristics of excellent requirements."
)

_RUBRIC = """
THE SEVEN CHARACTERISTICS OF EXCELLENT REQUIREMENTS:
Every requirement you create MUST demonstrate these qualities:

1. CLEAR - Easily understood by all stakeholders without ambiguity
2. UNAMBIGUOUS - Has only one possible interpretation
3. CONCISE - Expressed in minimal words without losing meaning
4. TESTABLE - Can be verified through specific acceptance criteria
5. UNDERSTANDABLE - Accessible to technical and non-technical team members
6. ADDS VALUE - Directly contributes to user satisfaction and business goals
7. COMPLETE - Contains all necessary information for implementation
"""

_ANALYSIS_APPROACH = """
ANALYSIS APPROACH:
- Visual Design Analysis: examine layouts, components, navigation patterns and
  information architecture to extract business functionality and user needs.
- User Journey Mapping: identify workflows, interaction patterns and task
  completion flows from visual cues.
- Component-to-Requirement Translation: convert interface elements (forms,
  buttons, navigation, content areas) into requirements with acceptance criteria.
- Business Value Extraction: connect visual elements to measurable outcomes.

You MUST base ALL analysis on the design actually provided. Do NOT generate
generic or hypothetical UI analysis.
"""

# One line per level; the system prompt lists the requested level and below
_LEVEL_DEPTH = {
    AnalysisLevel.BUSINESS_BRIEF: (
        "Business Brief: Extract overall business domain, user experience strategy, market context"
    ),
    AnalysisLevel.INITIATIVE: (
        "Initiative: Identify major user experience capabilities and business outcomes"
    ),
    AnalysisLevel.FEATURE: "Feature: Focus on specific interface areas and user capabilities",
    AnalysisLevel.EPIC: "Epic: Group related interface functionality into coherent user journeys",
    AnalysisLevel.STORY: "Story: Create specific, actionable user stories based on interface elements",
}

_RESPONSE_KEYS = {
    AnalysisLevel.BUSINESS_BRIEF: '  "businessBrief": {"id", "title", "description", '
    '"businessObjective", "quantifiableBusinessOutcomes": [...]},',
    AnalysisLevel.INITIATIVE: '  "initiatives": [...],',
    AnalysisLevel.FEATURE: '  "features": [...],',
    AnalysisLevel.EPIC: '  "epics": [...],',
    AnalysisLevel.STORY: '  "stories": [...]',
}


def build_system_prompt(level: AnalysisLevel | str) -> str:
    """Build the reverse-engineering system prompt.

    Args:
        level: Requested abstraction level

    Returns:
        Prompt text; identical for identical levels
    """
    level = AnalysisLevel.parse(level)
    included = [lvl for lvl in reversed(list(AnalysisLevel)) if level.includes(lvl)]

    depth_lines = "\n".join(f"- {_LEVEL_DEPTH[lvl]}" for lvl in included)
    shape_lines = "\n".join(_RESPONSE_KEYS[lvl] for lvl in included)

    return (
        f"{_ROLE}\n"
        f"{_RUBRIC}"
        f"{_ANALYSIS_APPROACH}\n"
        f"REQUESTED ANALYSIS LEVEL: {level.display_name}\n\n"
        f"ANALYSIS DEPTH BASED ON LEVEL:\n{depth_lines}\n\n"
        "Each work item carries: id, title, description, category, priority, "
        "acceptanceCriteria, businessValue, workflowLevel and an estimate.\n\n"
        "Your response must be a valid JSON object with this structure:\n"
        "{\n"
        f'  "analysisDepth": "{level.value}",\n'
        '  "extractedInsights": "...",\n'
        '  "designAnalysis": "...",\n'
        '  "userFlows": [...],\n'
        '  "accessibilityInsights": [...],\n'
        f"{shape_lines}\n"
        "}\n\n"
        "IMPORTANT: Base all extractions on ACTUAL visual design elements and interface "
        "patterns, not generic UI assumptions."
    )


# =============================================================================
# User Prompt
# =============================================================================

VISUAL_ANALYSIS_INSTRUCTIONS = (
    "Identify the primary business domain from visual branding and content",
    "Extract user roles and permissions from interface access patterns",
    "Map interface components to functional requirements (forms -> data entry, buttons -> actions)",
    "Identify user workflows from navigation and interaction patterns",
    "Extract business rules from form validation and UI constraints",
    "Identify integration points from external service indicators",
    "Analyze accessibility features and responsive design patterns",
    "Generate work items based on actual interface functionality",
)


def _source_context(request: "DesignReverseEngineerRequest") -> str:
    if request.input_type == "figma":
        return f"Figma Design URL: {request.figma_url}"
    if request.input_type == "image":
        return "Design Image Analysis"
    return "Multiple Design Files Analysis"


def _analysis_scope(request: "DesignReverseEngineerRequest") -> str:
    parts = [
        f"Analysis Level: {request.analysis_level.value}",
        "Extract user flows and interaction patterns"
        if request.extract_user_flows
        else "Focus on static design elements",
        "Include accessibility analysis based on visual design"
        if request.include_accessibility
        else "Focus only on functional requirements",
    ]
    return ". ".join(parts)


def _file_manifest(request: "DesignReverseEngineerRequest") -> str:
    if not request.file_data:
        return ""
    blocks = [
        f"=== {f.filename} ===\nFile Type: Image/Design File\nContent: Base64 encoded design image\n"
        for f in request.file_data
    ]
    return "DESIGN FILES:\n" + "\n".join(blocks)


def build_user_prompt(request: "DesignReverseEngineerRequest") -> str:
    """Build the user prompt for one analysis request.

    Args:
        request: Validated reverse-engineering request

    Returns:
        Prompt text; absent optional inputs simply omit their segment
    """
    if request.has_image:
        opening = (
            "I have provided a design image that I want you to analyze and reverse engineer "
            "into business requirements. Please examine this visual design carefully and "
            "extract work items based on the interface elements, user flows, and business "
            "functionality you can identify."
        )
    else:
        opening = (
            "Please analyze the provided design information and extract work items at the "
            f"{request.analysis_level.value} level."
        )

    sections = [
        opening,
        f"SOURCE: {_source_context(request)}\nANALYSIS SCOPE: {_analysis_scope(request)}",
    ]

    manifest = _file_manifest(request)
    if manifest:
        sections.append(manifest)

    sections.append(f"DESIGN INFORMATION:\n{request.design_data}")

    instructions = "\n".join(
        f"{i}. {line}" for i, line in enumerate(VISUAL_ANALYSIS_INSTRUCTIONS, start=1)
    )
    sections.append(f"VISUAL ANALYSIS INSTRUCTIONS:\n{instructions}")
    sections.append(
        "Focus on extracting meaningful business requirements that reflect the actual design "
        "implementation and user experience, not generic interface patterns.\n\n"
        "Provide your analysis as a valid JSON response following the specified structure."
    )

    return "\n\n".join(sections)
