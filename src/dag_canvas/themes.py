"""
Theme definitions for dag-canvas previews.

Provides dark and light color palettes for rendering pipeline graphs.
Each theme defines colors for:
- Canvas background
- Text (title, labels, badges)
- Node boxes
- Per-type accent colors (the top bar, outline and connectors)
"""

from __future__ import annotations
from dataclasses import dataclass, field


# Accent colors per node type, shared by both themes
TYPE_ACCENTS: dict[str, str] = {
    "input":    "#2196F3",  # Blue
    "output":   "#FFC107",  # Amber
    "process":  "#00BCD4",  # Cyan
    "decision": "#F44336",  # Red
    "ai":       "#9C27B0",  # Purple
    "source":   "#FF9800",  # Orange
    "static":   "#4CAF50",  # Green
    "default":  "#999999",  # Gray
}


@dataclass
class ThemePalette:
    """Color palette for a theme."""

    # Canvas
    background: str

    # Text
    title_color: str
    label_color: str
    muted_text_color: str

    # Node colors
    node_fill: str

    # Connection color when the source type has no accent
    connection_base: str

    accents: dict[str, str] = field(default_factory=lambda: dict(TYPE_ACCENTS))

    def accent_for(self, node_type: str) -> str:
        return self.accents.get(node_type, self.accents["default"])


# Catppuccin Mocha (dark theme) - current default
DARK_THEME = ThemePalette(
    background="#11111b",
    title_color="#cdd6f4",
    label_color="#cdd6f4",
    muted_text_color="#6c7086",
    node_fill="#1e1e2e",
    connection_base="#585b70",
)


# Light theme - clean white background with darker accents
LIGHT_THEME = ThemePalette(
    background="#ffffff",
    title_color="#1e1e2e",
    label_color="#1e1e2e",
    muted_text_color="#6c6f85",
    node_fill="#eff1f5",
    connection_base="#8c8fa1",
)


# Theme registry
THEMES: dict[str, ThemePalette] = {
    "dark": DARK_THEME,
    "light": LIGHT_THEME,
}


def get_theme(name: str) -> ThemePalette:
    """Get a theme palette by name.

    Args:
        name: Theme name ("dark" or "light")

    Returns:
        ThemePalette for the requested theme

    Raises:
        ValueError: If theme name is not recognized
    """
    if name not in THEMES:
        valid = ", ".join(THEMES.keys())
        raise ValueError(f"Unknown theme '{name}'. Valid themes: {valid}")
    return THEMES[name]
