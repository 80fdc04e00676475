"""Theme colors and color utilities for the UI."""


class HomeColors:
    """Light purple theme palette."""

    BG_TOP = "#f5f0fc"
    BG_BOTTOM = "#e9ddf8"

    PRIMARY = "#531B93"
    PRIMARY_DARK = "#42166F"

    CORRECT = "#16A34A"
    CORRECT_BG = "#F0FDF4"
    INCORRECT = "#DC2626"
    INCORRECT_BG = "#FEF2F2"
    PENDING = "#9CA3AF"

    WPM = "#2563EB"
    TIME = "#EA580C"
    WARNING = "#CA8A04"

    CARD_BG = "rgba(255, 255, 255, 0.92)"
    CARD_BORDER = "rgba(83, 27, 147, 0.15)"

    TEXT_PRIMARY = "#111827"
    TEXT_SECONDARY = "#4B5563"


def blend_hex(a: str, b: str, t: float) -> str:
    """Blend two #RRGGBB colors. t=0 -> a, t=1 -> b."""
    try:
        a = a.strip()
        b = b.strip()
        if not (a.startswith("#") and b.startswith("#") and len(a) == 7 and len(b) == 7):
            return a
        t = max(0.0, min(1.0, float(t)))
        ar, ag, ab = int(a[1:3], 16), int(a[3:5], 16), int(a[5:7], 16)
        br, bg, bb = int(b[1:3], 16), int(b[3:5], 16), int(b[5:7], 16)
        r = int(ar + (br - ar) * t)
        g = int(ag + (bg - ag) * t)
        bl = int(ab + (bb - ab) * t)
        return f"#{r:02X}{g:02X}{bl:02X}"
    except (TypeError, ValueError):
        return a


def accuracy_color(accuracy: float) -> str:
    """Red at 0% through to green at 100%."""
    return blend_hex(HomeColors.INCORRECT, HomeColors.CORRECT, accuracy / 100.0)


def format_time(seconds: int) -> str:
    m, s = divmod(max(0, int(seconds)), 60)
    return f"{m}:{s:02d}"


def background_gradient() -> str:
    """Top-to-bottom page background for Qt stylesheets."""
    return (
        "qlineargradient(x1:0, y1:0, x2:0, y2:1, "
        f"stop:0 {HomeColors.BG_TOP}, stop:1 {HomeColors.BG_BOTTOM})"
    )
