"""Terminal colorization of tokens by recognition confidence."""
from rich.color import Color, ColorSystem
from rich.style import Style

BUCKETS = 24
# Grayscale ramp of the 256-color palette: 232 (dark) .. 255 (light).
_GRAYSCALE_BASE = 232


def probability_bucket(probability: float) -> int:
    """Map a token probability in [0, 1] to a color bucket in [0, 23]."""
    bucket = int(probability * BUCKETS)
    return max(0, min(BUCKETS - 1, bucket))


def colorize(text: str, bucket: int) -> str:
    """Wrap text in the ANSI escape for the given bucket."""
    bucket = max(0, min(BUCKETS - 1, bucket))
    style = Style(color=Color.from_ansi(_GRAYSCALE_BASE + bucket))
    return style.render(text, color_system=ColorSystem.EIGHT_BIT)
