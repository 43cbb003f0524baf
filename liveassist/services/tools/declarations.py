"""Function declarations exposed to the model.

Schemas use the genai Schema vocabulary (upper-case type names).
"""

from __future__ import annotations

from typing import Any

from google.genai import types

SECTION_IDS = ["fitness-consultation", "workout-plans", "supplement-guidance", "health-calculators"]
SECTION_MODES = ["info", "ai-generation"]
FITNESS_CATEGORIES = ["fitness", "workout", "supplement", "health", "nutrition"]
LIBRARY_CATEGORIES = ["analysis", "summary", "technical", "business", "fitness", "project", "other"]
USER_INFO_TYPES = [
    "fitness-level",
    "goals",
    "equipment",
    "time-available",
    "health-conditions",
    "diet-preferences",
]

_TAGS = {"type": "ARRAY", "items": {"type": "STRING"}}

FUNCTION_DECLARATIONS: list[dict[str, Any]] = [
    {
        "name": "generateFitnessReport",
        "description": (
            "Generate a fitness report: workout plan, nutrition guidance, supplement "
            "recommendations or health assessment. Use this for all fitness report generation."
        ),
        "parameters": {
            "type": "OBJECT",
            "properties": {
                "title": {"type": "STRING", "description": "Title of the report"},
                "content": {
                    "type": "STRING",
                    "description": "Full report in markdown with headings and sections",
                },
                "category": {
                    "type": "STRING",
                    "description": "Category of the report",
                    "enum": FITNESS_CATEGORIES,
                },
                "tags": {**_TAGS, "description": "Tags such as beginner, strength, weight-loss"},
                "userInfo": {
                    "type": "OBJECT",
                    "description": "User details collected for personalization",
                    "properties": {
                        "fitnessLevel": {"type": "STRING"},
                        "goals": {"type": "STRING"},
                        "equipment": {"type": "STRING"},
                        "timeAvailable": {"type": "STRING"},
                        "healthConditions": {"type": "STRING"},
                    },
                },
            },
            "required": ["title", "content", "category"],
        },
    },
    {
        "name": "scrollToSection",
        "description": "Scroll the page to a section to show the user relevant content.",
        "parameters": {
            "type": "OBJECT",
            "properties": {
                "sectionId": {
                    "type": "STRING",
                    "description": "Section to scroll to",
                    "enum": SECTION_IDS,
                },
            },
            "required": ["sectionId"],
        },
    },
    {
        "name": "switchSectionMode",
        "description": "Switch a section between info mode and AI generation mode.",
        "parameters": {
            "type": "OBJECT",
            "properties": {
                "sectionId": {"type": "STRING", "enum": SECTION_IDS},
                "mode": {"type": "STRING", "enum": SECTION_MODES},
            },
            "required": ["sectionId", "mode"],
        },
    },
    {
        "name": "collectUserInfo",
        "description": "Ask the user for a specific detail needed to personalize a report.",
        "parameters": {
            "type": "OBJECT",
            "properties": {
                "infoType": {"type": "STRING", "enum": USER_INFO_TYPES},
                "question": {"type": "STRING", "description": "Question to ask the user"},
            },
            "required": ["infoType", "question"],
        },
    },
    {
        "name": "listReports",
        "description": "List previously generated reports with titles, categories and dates.",
        "parameters": {
            "type": "OBJECT",
            "properties": {
                "category": {
                    "type": "STRING",
                    "description": "Optional category filter",
                    "enum": LIBRARY_CATEGORIES,
                },
            },
        },
    },
    {
        "name": "getReport",
        "description": "Retrieve the full content of a report by ID or title.",
        "parameters": {
            "type": "OBJECT",
            "properties": {
                "reportId": {"type": "STRING", "description": "ID of the report"},
                "title": {"type": "STRING", "description": "Title of the report, if no ID"},
            },
        },
    },
    {
        "name": "updateReport",
        "description": "Update an existing report with new content or metadata.",
        "parameters": {
            "type": "OBJECT",
            "properties": {
                "reportId": {"type": "STRING", "description": "ID of the report"},
                "title": {"type": "STRING", "description": "New title (optional)"},
                "content": {"type": "STRING", "description": "Updated markdown content"},
                "category": {"type": "STRING", "enum": LIBRARY_CATEGORIES},
                "tags": {**_TAGS, "description": "Updated tags (optional)"},
            },
            "required": ["reportId", "content"],
        },
    },
]


def declaration_names() -> list[str]:
    return [declaration["name"] for declaration in FUNCTION_DECLARATIONS]


def build_tools(declarations: list[dict[str, Any]] | None = None) -> list[types.Tool]:
    """Wrap declarations in the Tool list sent with the connect config."""
    function_declarations = [
        types.FunctionDeclaration(**declaration)
        for declaration in (declarations if declarations is not None else FUNCTION_DECLARATIONS)
    ]
    return [types.Tool(function_declarations=function_declarations)]
