"""Color theme resolution.

Themes are described by a ``ThemeConfig`` that callers pass to the renderer.
Resolving a palette is a pure function of that config.
"""

from typing import Literal

from pydantic import BaseModel, Field

BASE_THEMES: dict[str, tuple[int, int, int]] = {
    "violet": (262, 70, 65),
    "blue": (217, 80, 60),
    "green": (142, 70, 55),
    "yellow": (48, 90, 60),
    "orange": (25, 90, 60),
    "red": (0, 80, 60),
    "rose": (340, 80, 65),
}

MIN_SATURATION = 20
MAX_LIGHTNESS = 90

ThemeName = Literal["violet", "blue", "green", "yellow", "orange", "red", "rose"]


class ThemeConfig(BaseModel):
    theme: ThemeName = "violet"
    softness: float = Field(0, ge=0, le=100)


class HSLColor(BaseModel):
    hue: float
    saturation: float
    lightness: float

    def css(self) -> str:
        """Return the ``"h s% l%"`` form used by CSS custom properties."""
        return f"{_fmt(self.hue)} {_fmt(self.saturation)}% {_fmt(self.lightness)}%"


def _fmt(value: float) -> str:
    rounded = round(value, 2)
    if rounded == int(rounded):
        return str(int(rounded))
    return str(rounded)


def resolve_color(
    hue: float, saturation: float, lightness: float, softness: float = 0
) -> HSLColor:
    """Soften a color by lowering saturation and raising lightness."""
    if not 0 <= softness <= 100:
        raise ValueError("softness must be between 0 and 100")
    adjusted_s = max(MIN_SATURATION, saturation - softness * (saturation / 150))
    adjusted_l = min(MAX_LIGHTNESS, lightness + softness * 0.20)
    return HSLColor(hue=hue, saturation=adjusted_s, lightness=adjusted_l)


def accent_name(theme: str) -> str:
    return "purple" if theme == "violet" else theme


def resolve_palette(config: ThemeConfig) -> dict[str, str]:
    """Map a theme config to CSS variable values.

    The palette holds one ``accent-<name>`` entry per base theme plus
    ``primary`` and ``ring`` taken from the selected theme.
    """
    palette = {}
    for name, (h, s, l) in BASE_THEMES.items():
        color = resolve_color(h, s, l, config.softness).css()
        palette[f"accent-{accent_name(name)}"] = color
        if name == config.theme:
            palette["primary"] = color
            palette["ring"] = color
    return palette


def theme_from_settings(settings: dict) -> ThemeConfig:
    return ThemeConfig(
        theme=settings.get("color_theme", "violet"),
        softness=float(settings.get("color_softness", 0)),
    )
