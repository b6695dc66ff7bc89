"""Console colours for the ccguard CLI.

Colours default to the values below. A user file at
~/.config/ccguard/theme.toml may override any of them under [colors].
"""

import logging
import tomllib
from functools import cache
from pathlib import Path
from typing import Annotated

from pydantic import BaseModel, ConfigDict, StringConstraints, ValidationError
from rich.theme import Theme

from ccguard.core.paths import get_config_dir

logger = logging.getLogger(__name__)

HexColor = Annotated[
    str,
    StringConstraints(strip_whitespace=True, pattern=r"^#(?:[0-9a-fA-F]{3}){1,2}$"),
]


class ThemeColors(BaseModel):
    """Named colours, each a #RGB or #RRGGBB hex code."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    text: HexColor = "#ffffff"
    muted: HexColor = "#b2bec3"
    header: HexColor = "#69B9A1"
    border: HexColor = "#29526d"
    success: HexColor = "#03b971"
    warning: HexColor = "#f5b332"
    error: HexColor = "#f53263"
    info: HexColor = "#0ec1c8"
    protected: HexColor = "#03b971"
    unprotected: HexColor = "#f5b332"
    risk_low: HexColor = "#03b971"
    risk_medium: HexColor = "#faf870"
    risk_high: HexColor = "#f53263"


# Rich style name -> (colour field, bold)
STYLE_MAP: dict[str, tuple[str, bool]] = {
    "muted": ("muted", False),
    "dim": ("muted", False),
    "border": ("border", False),
    "bold_header": ("header", True),
    "success": ("success", False),
    "warning": ("warning", False),
    "error": ("error", True),
    "info": ("info", False),
    "protected": ("protected", True),
    "unprotected": ("unprotected", True),
    "risk.low": ("risk_low", False),
    "risk.medium": ("risk_medium", False),
    "risk.high": ("risk_high", True),
    "version.name": ("text", True),
    "version.size": ("info", False),
}


def get_user_theme_path() -> Path:
    return get_config_dir() / "theme.toml"


def read_user_colors(path: Path) -> dict[str, object]:
    """Read the [colors] table of a theme file.

    A missing, unreadable or malformed file yields no overrides.
    """
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError:
        return {}
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning("Ignoring theme file %s: %s", path, e)
        return {}

    colors = data.get("colors", {})
    if not isinstance(colors, dict):
        logger.warning("Ignoring theme file %s: [colors] is not a table", path)
        return {}
    return colors


def load_theme(path: Path | None = None) -> ThemeColors:
    """Build the colours from defaults plus the user's overrides.

    Invalid overrides are dropped as a whole and the defaults are used.
    """
    overrides = read_user_colors(path or get_user_theme_path())
    try:
        return ThemeColors.model_validate(overrides)
    except ValidationError as e:
        logger.warning("Invalid theme overrides, using defaults: %s", e)
        return ThemeColors()


def get_rich_theme(colors: ThemeColors) -> Theme:
    styles: dict[str, str] = {}
    for style, (name, bold) in STYLE_MAP.items():
        color = getattr(colors, name)
        styles[style] = f"bold {color}" if bold else color
    return Theme(styles)


@cache
def get_theme() -> Theme:
    """Rich theme for the shared consoles, loaded once per process."""
    return get_rich_theme(load_theme())
