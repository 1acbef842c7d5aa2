"""
Default tool set shipped with Tool Studio.

Passed to ``ToolRegistryService.initialize`` by the application; tools
whose id is already registered are left alone.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from toolstudio.core.models import Tool, ToolCategory
from toolstudio.core.tools.validation import build_tool


def _created(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> datetime:
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)


_DEFINITIONS: List[Dict[str, Any]] = [
    {
        "id": "markdown-formatter",
        "name": "Smart Markdown Formatter",
        "description": (
            "Transform any text into beautifully formatted markdown. Headers, lists, "
            "links, code, and tables are detected automatically."
        ),
        "category": ToolCategory.PRODUCTIVITY,
        "icon": "Wand2",
        "path": "/tools/markdown-formatter",
        "is_favorite": True,
        "tags": ["markdown", "formatting", "text", "conversion"],
        "created_at": _created(2025, 8, 25),
    },
    {
        "id": "registry",
        "name": "Tool Registry Manager",
        "description": (
            "Manage installed tools, add new tools, and configure tool settings. "
            "Central hub for tool administration."
        ),
        "category": ToolCategory.UTILITIES,
        "icon": "Settings",
        "path": "/tools/registry",
        "tags": ["registry", "management", "tools", "admin", "configuration"],
        "created_at": _created(2025, 8, 25, 12, 41),
    },
    {
        "id": "text-cleaner",
        "name": "Text Cleaner",
        "description": (
            "Clean up messy text by removing extra spaces, line breaks, special "
            "characters, and more. Perfect for preparing text for documents or data "
            "processing."
        ),
        "category": ToolCategory.UTILITIES,
        "icon": "Eraser",
        "path": "/tools/text-cleaner",
        "tags": ["text", "cleaning", "formatting", "spaces", "utilities"],
        "created_at": _created(2025, 8, 25, 12, 47),
    },
    {
        "id": "color-picker",
        "name": "Color Picker",
        "description": (
            "Pick colors, convert between formats (HEX, RGB, HSL), and explore color "
            "harmonies. Perfect for designers and developers working with colors."
        ),
        "category": ToolCategory.DESIGN,
        "icon": "Palette",
        "path": "/tools/color-picker",
        "tags": ["color", "design", "hex", "rgb", "hsl", "palette"],
        "created_at": _created(2025, 8, 25, 12, 48),
    },
    {
        "id": "image-resizer",
        "name": "Image Resizer",
        "description": (
            "Resize images for web, social media, or print. Maintain aspect ratios, "
            "adjust quality, and convert between formats."
        ),
        "category": ToolCategory.DESIGN,
        "icon": "Image",
        "path": "/tools/image-resizer",
        "tags": ["image", "resize", "photo", "social media", "web"],
        "created_at": _created(2025, 8, 25, 12, 49),
    },
    {
        "id": "unit-converter",
        "name": "Unit Converter",
        "description": (
            "Convert between different units of measurement. Supports length, weight, "
            "temperature, area, volume, speed, and energy conversions."
        ),
        "category": ToolCategory.UTILITIES,
        "icon": "Calculator",
        "path": "/tools/unit-converter",
        "tags": ["units", "conversion", "measurement", "calculator", "metric"],
        "created_at": _created(2025, 8, 25, 12, 50),
    },
    {
        "id": "email-validator",
        "name": "Email List Validator",
        "description": (
            "Validate email lists for Outlook and other providers. Check format, detect "
            "typos, and get suggestions for common domain mistakes."
        ),
        "category": ToolCategory.UTILITIES,
        "icon": "Mail",
        "path": "/tools/email-validator",
        "tags": ["email", "validation", "outlook", "list", "verification"],
        "created_at": _created(2025, 8, 25, 12, 51),
    },
    {
        "id": "speed-test",
        "name": "Internet Speed Test",
        "description": (
            "Test your internet connection speed with download, upload, and ping "
            "measurements. Save and track your speed test results over time."
        ),
        "category": ToolCategory.UTILITIES,
        "icon": "Zap",
        "path": "/tools/speed-test",
        "tags": ["speed", "internet", "download", "upload", "ping", "network", "performance"],
        "created_at": _created(2025, 9, 5, 16, 45),
    },
    {
        "id": "password-generator",
        "name": "Password Generator",
        "description": "Generate secure, customizable passwords offline with strength analysis.",
        "category": ToolCategory.UTILITIES,
        "icon": "Key",
        "path": "/tools/password-generator",
        "tags": ["password", "security", "generator", "strength", "offline"],
        "created_at": _created(2025, 9, 6, 14, 28),
    },
    {
        "id": "calculator",
        "name": "Calculator",
        "description": (
            "Natural language calculator for quick math problems, expressions, and "
            "calculations."
        ),
        "category": ToolCategory.UTILITIES,
        "icon": "Hash",
        "path": "/tools/calculator",
        "tags": ["calculator", "math", "computation", "expressions", "natural language"],
        "created_at": _created(2025, 9, 6, 15, 4),
    },
]

DEFAULT_TOOLS: List[Tool] = [
    build_tool({"version": "1.0.0", "is_enabled": True, **definition})
    for definition in _DEFINITIONS
]


def get_default_tool(tool_id: str) -> Optional[Tool]:
    """Get a default tool by id."""
    for tool in DEFAULT_TOOLS:
        if tool.id == tool_id:
            return tool
    return None


def get_default_tools_by_category(category: ToolCategory) -> List[Tool]:
    category = ToolCategory(category)
    return [tool for tool in DEFAULT_TOOLS if tool.category == category]


def get_available_categories() -> List[ToolCategory]:
    """Categories used by the default tools, in first-seen order."""
    categories: List[ToolCategory] = []
    for tool in DEFAULT_TOOLS:
        if tool.category not in categories:
            categories.append(tool.category)
    return categories
