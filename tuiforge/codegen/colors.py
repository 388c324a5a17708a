"""Hex color parsing for code generators."""

import re

HEX_COLOR_PATTERN = re.compile(r"^#?([0-9A-Fa-f]{3}|[0-9A-Fa-f]{6})$")


def parse_hex_color(value: str) -> tuple[int, int, int]:
    """Convert ``#rgb`` or ``#rrggbb`` to 8-bit RGB channels.

    Three-digit colors are expanded by doubling each digit. The leading
    ``#`` is optional.

    Args:
        value: Hex color string.

    Returns:
        (red, green, blue) channel values in 0-255.

    Raises:
        ValueError: If the value is not a 3- or 6-digit hex color.

    Example:
        >>> parse_hex_color("#0af")
        (0, 170, 255)
    """
    match = HEX_COLOR_PATTERN.match(value.strip())
    if match is None:
        raise ValueError(f"Invalid hex color: {value!r}")
    digits = match.group(1)
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    return (int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16))


def is_hex_color(value: str) -> bool:
    """Check whether a string is a 3- or 6-digit hex color."""
    return HEX_COLOR_PATTERN.match(value.strip()) is not None
