import re

_MULTIPLIERS = {"K": 1_000, "M": 1_000_000, "B": 1_000_000_000}
# suffix must stand alone: "3M" scales, "3 MEMBERS" does not
_NUMBER = re.compile(r"(\d+(?:\.\d+)?)\s*([KMB](?![A-Z]))?")


def parse_metric_count(text: str | int | float | None) -> int:
    """Parse a displayed counter such as ``"1.2K"`` or ``"45 comments"``.

    Thousands separators are dropped, a K/M/B suffix right after the number
    scales it. Anything unparsable is 0.
    """
    if text is None:
        return 0
    if isinstance(text, (int, float)):
        return max(0, int(text))
    cleaned = text.strip().upper().replace(",", "")
    match = _NUMBER.search(cleaned)
    if not match:
        return 0
    value = float(match.group(1))
    return int(round(value * _MULTIPLIERS.get(match.group(2) or "", 1)))
