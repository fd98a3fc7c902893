"""UI theme definitions and selection helpers.

Themes are ANSI palettes for pane chrome and changeset line kinds. The plain
theme is used whenever color is disabled.
"""

from __future__ import annotations

from dataclasses import dataclass

from .changeset import LineKind


@dataclass(frozen=True)
class UITheme:
    """Semantic ANSI palette used by renderers."""

    name: str
    reset: str
    border: str
    border_focused: str
    selected: str
    annotated_marker: str
    placeholder: str
    help_bar: str
    diff_added: str
    diff_removed: str
    diff_hunk_header: str
    diff_file_header: str
    diff_plain: str

    def line_style(self, kind: LineKind) -> str:
        """Return the SGR prefix for one changeset line kind."""
        if kind is LineKind.ADDED:
            return self.diff_added
        if kind is LineKind.REMOVED:
            return self.diff_removed
        if kind is LineKind.HUNK_HEADER:
            return self.diff_hunk_header
        if kind is LineKind.FILE_HEADER:
            return self.diff_file_header
        return self.diff_plain


DEFAULT_THEME = UITheme(
    name="default",
    reset="\033[0m",
    border="",
    border_focused="\033[36m",
    selected="\033[1;48;5;240m",
    annotated_marker="\033[38;5;214m",
    placeholder="\033[2;38;5;250m",
    help_bar="\033[48;5;240m",
    diff_added="\033[32m",
    diff_removed="\033[31m",
    diff_hunk_header="\033[36m",
    diff_file_header="\033[1;33m",
    diff_plain="",
)

OCEAN_THEME = UITheme(
    name="ocean",
    reset="\033[0m",
    border="\033[2;38;5;31m",
    border_focused="\033[38;5;45m",
    selected="\033[1;48;5;24m",
    annotated_marker="\033[38;5;215m",
    placeholder="\033[2;38;5;110m",
    help_bar="\033[48;5;24m",
    diff_added="\033[38;5;84m",
    diff_removed="\033[38;5;203m",
    diff_hunk_header="\033[38;5;39m",
    diff_file_header="\033[1;38;5;229m",
    diff_plain="",
)

PLAIN_THEME = UITheme(
    name="plain",
    reset="\033[0m",
    border="",
    border_focused="",
    selected="\033[7m",
    annotated_marker="",
    placeholder="",
    help_bar="\033[7m",
    diff_added="",
    diff_removed="",
    diff_hunk_header="",
    diff_file_header="",
    diff_plain="",
)

_THEMES: dict[str, UITheme] = {
    DEFAULT_THEME.name: DEFAULT_THEME,
    OCEAN_THEME.name: OCEAN_THEME,
}


def available_theme_names() -> tuple[str, ...]:
    """Return selectable non-plain theme names."""
    return tuple(sorted(_THEMES.keys()))


def normalize_theme_name(name: str | None) -> str:
    """Return a valid theme name, falling back to default."""
    if not name:
        return DEFAULT_THEME.name
    candidate = str(name).strip().lower()
    if candidate in _THEMES:
        return candidate
    return DEFAULT_THEME.name


def resolve_theme(name: str | None, *, no_color: bool = False) -> UITheme:
    """Return concrete theme for requested name and color mode."""
    if no_color:
        return PLAIN_THEME
    return _THEMES[normalize_theme_name(name)]
