"""Configuration errors."""

from typing import List, Optional


class ConfigurationError(Exception):
    """
    Raised when the config file or environment cannot be turned into settings.

    Carries every validation problem found in one pass plus suggestions, so
    the CLI can print a single actionable report.
    """

    def __init__(
        self,
        message: str,
        errors: Optional[List[str]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        """
        Initialize ConfigurationError.

        Args:
            message: Summary of what failed
            errors: Individual validation problems
            suggestions: Hints for fixing them
        """
        self.message = message
        self.errors = list(errors or [])
        self.suggestions = list(suggestions or [])
        super().__init__(self.report())

    def report(self) -> str:
        """Render the message, numbered errors and suggestions as text."""
        lines = [self.message]
        if self.errors:
            lines.append("\nValidation Errors:")
            lines.extend(f"  {i}. {error}" for i, error in enumerate(self.errors, 1))
        if self.suggestions:
            lines.append("\nSuggestions:")
            lines.extend(f"  - {suggestion}" for suggestion in self.suggestions)
        return "\n".join(lines)
