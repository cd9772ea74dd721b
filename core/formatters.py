# core/formatters.py

# all pure display helpers
# must never import from models!

from core.config import FINAL_DISPLAY_DECIMALS

# === generic text formatters ===


def format_banner_text(title: str, width: int = 40) -> str:
    line = "=" * width
    centered_title = f"{title:^{width}}"

    return f"{line}\n{centered_title}\n{line}"


# === score formatters ===


def format_score_cell(score: int | None) -> str:
    return "" if score is None else str(score)


def format_final_score(final: float | None) -> str:
    return "" if final is None else f"{final:.{FINAL_DISPLAY_DECIMALS}f}"


def format_percent(ratio: float) -> str:
    return f"{ratio * 100:.1f}%"


def format_weight(weight: float) -> str:
    return f"{weight:g}" if weight > 0 else "[EXCLUDED]"


def format_histogram_bar(count: int, max_count: int, width: int = 30) -> str:
    if max_count <= 0:
        return ""
    return "#" * round(count / max_count * width)
