# colour names, neutral tokens and hex scanning used by the recolor operators
import re
from typing import Dict, Iterable, List, Optional, FrozenSet

# fixed name -> literal table for user-facing colour names
NAMED_COLORS: Dict[str, str] = {
    "pink": "#ec4899",
    "light pink": "#f9a8d4",
    "blue": "#3b82f6",
    "light blue": "#93c5fd",
    "green": "#10b981",
    "red": "#ef4444",
    "orange": "#f59e0b",
    "purple": "#9333ea",
    "yellow": "#eab308",
}

# text and background neutrals that a global recolor must leave alone
NEUTRAL_COLORS: FrozenSet[str] = frozenset(color.lower() for color in (
    # white and black
    "#fff", "#ffffff", "#ffffffff", "#000", "#000000", "#000000ff",
    # bootstrap gray scale
    "#f8f9fa", "#e9ecef", "#dee2e6", "#ced4da", "#adb5bd",
    "#6c757d", "#495057", "#343a40", "#212529",
    # tailwind slate
    "#f8fafc", "#f1f5f9", "#e2e8f0", "#cbd5e1", "#94a3b8",
    "#64748b", "#475569", "#334155", "#1e293b", "#0f172a", "#020617",
    # tailwind gray
    "#f9fafb", "#f3f4f6", "#e5e7eb", "#d1d5db", "#9ca3af",
    "#6b7280", "#4b5563", "#374151", "#1f2937", "#111827", "#030712",
    # common hand-written grays
    "#333", "#333333", "#666", "#666666", "#999", "#999999",
    "#ccc", "#cccccc", "#ddd", "#dddddd", "#eee", "#eeeeee",
    "#f5f5f5", "#fafafa",
))

# 8, 6 or 3 hex digits; never an href fragment or a numeric entity
HEX_COLOR_RE = re.compile(
    r"""(?<!href=")(?<!href=')(?<!&)#(?:[0-9a-fA-F]{8}|[0-9a-fA-F]{6}|[0-9a-fA-F]{3})(?![0-9a-zA-Z_-])"""
)


# map a colour name to its literal; anything else passes through
def resolve_color(value: Optional[str]) -> str:
    value = (value or "").strip()
    return NAMED_COLORS.get(" ".join(value.lower().split()), value)


def is_hex_color(value: str) -> bool:
    return bool(HEX_COLOR_RE.fullmatch(value.strip()))


# distinct hex tokens in order of first appearance, original case kept
def find_hex_colors(text: str) -> List[str]:
    seen = []
    for match in HEX_COLOR_RE.finditer(text or ""):
        token = match.group(0)
        if token not in seen:
            seen.append(token)
    return seen


def is_neutral(token: str, neutrals: Iterable[str] = NEUTRAL_COLORS) -> bool:
    if not isinstance(neutrals, (set, frozenset)):
        neutrals = {n.lower() for n in neutrals}
    return token.lower() in neutrals


# replace hex tokens in one pass; mapping keys are lower-cased tokens
def replace_hex_colors(text: str, mapping: Dict[str, str]):
    """Return (new_text, replacements) for a single left-to-right pass.

    Replaced text is never rescanned, so a target that is itself a hex token
    cannot be picked up again within the same call.
    """
    count = 0

    def substitute(match):
        nonlocal count
        replacement = mapping.get(match.group(0).lower())
        if replacement is None:
            return match.group(0)
        count += 1
        return replacement

    return HEX_COLOR_RE.sub(substitute, text or ""), count
