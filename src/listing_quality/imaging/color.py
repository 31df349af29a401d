"""
RGB <-> HSL conversion and per-pixel tonal adjustments.

Hue is expressed in degrees (0-360), saturation and lightness in percent
(0-100). All adjustments go through HSL, clamp the touched channel and
convert back, returning a new value.
"""

from dataclasses import dataclass, replace


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _to_byte(value: float) -> int:
    # round half away from zero, values are never negative here
    return int(_clamp(value * 255.0 + 0.5, 0.0, 255.0))


@dataclass(frozen=True)
class Rgb:
    """8-bit RGB triple."""
    r: int
    g: int
    b: int

    def __post_init__(self):
        for name in ("r", "g", "b"):
            value = getattr(self, name)
            if not 0 <= value <= 255:
                raise ValueError(f"{name}={value} outside 0-255")

    def to_hsl(self) -> "Hsl":
        return rgb_to_hsl(self)

    def adjust_brightness(self, amount: float) -> "Rgb":
        return adjust_brightness(self, amount)

    def adjust_contrast(self, amount: float) -> "Rgb":
        return adjust_contrast(self, amount)

    def adjust_saturation(self, amount: float) -> "Rgb":
        return adjust_saturation(self, amount)

    def adjust_shadows(self, amount: float) -> "Rgb":
        return adjust_shadows(self, amount)

    def adjust_highlights(self, amount: float) -> "Rgb":
        return adjust_highlights(self, amount)


@dataclass(frozen=True)
class Hsl:
    """Hue in degrees, saturation and lightness in percent."""
    h: float
    s: float
    l: float

    def to_rgb(self) -> Rgb:
        return hsl_to_rgb(self)


def rgb_to_hsl(color: Rgb) -> Hsl:
    r = color.r / 255.0
    g = color.g / 255.0
    b = color.b / 255.0

    max_val = max(r, g, b)
    min_val = min(r, g, b)
    delta = max_val - min_val

    h = 0.0
    s = 0.0
    l = (max_val + min_val) / 2.0

    if delta != 0.0:
        if l < 0.5:
            s = delta / (max_val + min_val)
        else:
            s = delta / (2.0 - max_val - min_val)

        if max_val == r:
            h = (g - b) / delta + (6.0 if g < b else 0.0)
        elif max_val == g:
            h = (b - r) / delta + 2.0
        else:
            h = (r - g) / delta + 4.0
        h /= 6.0

    return Hsl(h=h * 360.0, s=s * 100.0, l=l * 100.0)


def _hue_to_rgb(p: float, q: float, t: float) -> float:
    if t < 0.0:
        t += 1.0
    if t > 1.0:
        t -= 1.0

    if t < 1.0 / 6.0:
        return p + (q - p) * 6.0 * t
    if t < 1.0 / 2.0:
        return q
    if t < 2.0 / 3.0:
        return p + (q - p) * (2.0 / 3.0 - t) * 6.0
    return p


def hsl_to_rgb(color: Hsl) -> Rgb:
    h = color.h / 360.0
    s = color.s / 100.0
    l = color.l / 100.0

    q = l * (1.0 + s) if l < 0.5 else l + s - l * s
    p = 2.0 * l - q

    return Rgb(
        r=_to_byte(_hue_to_rgb(p, q, h + 1.0 / 3.0)),
        g=_to_byte(_hue_to_rgb(p, q, h)),
        b=_to_byte(_hue_to_rgb(p, q, h - 1.0 / 3.0)),
    )


def adjust_brightness(color: Rgb, amount: float) -> Rgb:
    """Shift lightness by `amount` percentage points."""
    hsl = rgb_to_hsl(color)
    return hsl_to_rgb(replace(hsl, l=_clamp(hsl.l + amount, 0.0, 100.0)))


def adjust_contrast(color: Rgb, amount: float) -> Rgb:
    """Scale lightness around the 50% midpoint by `amount`."""
    hsl = rgb_to_hsl(color)
    mid = 50.0
    return hsl_to_rgb(replace(hsl, l=_clamp(mid + (hsl.l - mid) * amount, 0.0, 100.0)))


def adjust_saturation(color: Rgb, amount: float) -> Rgb:
    """Multiply saturation by `amount`."""
    hsl = rgb_to_hsl(color)
    return hsl_to_rgb(replace(hsl, s=_clamp(hsl.s * amount, 0.0, 100.0)))


def adjust_shadows(color: Rgb, amount: float) -> Rgb:
    """Lift lightness of dark pixels (l < 50), staying inside the shadow half."""
    hsl = rgb_to_hsl(color)
    if hsl.l < 50.0:
        return hsl_to_rgb(replace(hsl, l=_clamp(hsl.l + amount, 0.0, 50.0)))
    return color


def adjust_highlights(color: Rgb, amount: float) -> Rgb:
    """Pull down lightness of bright pixels (l > 50), staying inside the highlight half."""
    hsl = rgb_to_hsl(color)
    if hsl.l > 50.0:
        return hsl_to_rgb(replace(hsl, l=_clamp(hsl.l - amount, 50.0, 100.0)))
    return color
