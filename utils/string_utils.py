from __future__ import annotations

from typing import Final

__all__: list[str] = ["StringUtils"]

LOG_PREVIEW_LENGTH: Final[int] = 32


class StringUtils:
    """Small string helpers used by the orchestrators."""

    @staticmethod
    def ensure_str(value: str | None) -> str:
        """Return the value as a string, or an empty string for None.

        Whitespace is preserved; callers decide whether to strip.
        """
        if not isinstance(value, str):
            value = str(value) if value is not None else ""
        return value

    @staticmethod
    def preview(value: str | None, length: int = LOG_PREVIEW_LENGTH) -> str:
        """Shorten text for log output.

        Args:
            value (str | None): Text to shorten.
            length (int): Maximum number of characters kept.

        Returns:
            str: The text, truncated with an ellipsis when longer than ``length``.
        """
        value = StringUtils.ensure_str(value)
        if length <= 0 or len(value) <= length:
            return value
        return value[:length] + "..."

    @staticmethod
    def is_blank(value: str | None) -> bool:
        """Check whether the value is None, empty, or whitespace only."""
        return not StringUtils.ensure_str(value).strip()
