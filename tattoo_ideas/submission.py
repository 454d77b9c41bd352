from .config import Settings, settings as default_settings
from .errors import ValidationError


def build_prompt(message: str, settings: Settings = default_settings) -> str:
    """Check the visitor's text and wrap it in the style template.

    Raises ValidationError before any request is made.
    """
    if not message:
        raise ValidationError("No text entered. Please enter a prompt and try again.")
    limit = settings.MAX_PROMPT_LENGTH
    if len(message) > limit:
        raise ValidationError(
            f"Your message exceeds the {limit} characters limit. "
            "Please shorten your message and try again."
        )
    return settings.PROMPT_TEMPLATE.format(message=message)
