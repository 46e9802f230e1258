import json
from typing import Optional

from pydantic import AnyUrl, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from src.core.exceptions.base import ValidationError
from src.core.service.validation.json_validation import find_unresolvable_ref
from src.core.utils.text import truncate_text


class TemplateValidation:
    MAX_TITLE_LENGTH = 255
    MAX_DESCRIPTION_LENGTH = 1000
    MAX_URL_LENGTH = 2048
    MAX_JSON_LENGTH = 10000
    INVALID_URL = "Invalid URL format"
    INVALID_JSON = "Invalid JSON format"
    JSON_TOO_LONG = "JSON data must be less than 10000 characters"
    UNRESOLVABLE_REF = "JSON data may only reference definitions inside itself"


class AppValidation:
    MAX_NAME_LENGTH = 255
    MAX_DESCRIPTION_LENGTH = 1000


_url_adapter = TypeAdapter(AnyUrl)


def is_valid_url(url: str) -> bool:
    try:
        _url_adapter.validate_python(url)
    except PydanticValidationError:
        return False
    return True


def validate_template(title: Optional[str], description: Optional[str], url: Optional[str], json_data: Optional[str]) -> None:
    """
    Raises:
        ValidationError: on the first rule the template breaks
    """
    if not title or not title.strip():
        raise ValidationError("Title is required")
    if len(title) > TemplateValidation.MAX_TITLE_LENGTH:
        raise ValidationError(f"Title must be less than {TemplateValidation.MAX_TITLE_LENGTH} characters")

    if description and len(description) > TemplateValidation.MAX_DESCRIPTION_LENGTH:
        raise ValidationError(f"Description must be less than {TemplateValidation.MAX_DESCRIPTION_LENGTH} characters")

    if not url or not url.strip():
        raise ValidationError("URL is required")
    if len(url) > TemplateValidation.MAX_URL_LENGTH:
        raise ValidationError(f"URL must be less than {TemplateValidation.MAX_URL_LENGTH} characters")
    if not is_valid_url(url):
        raise ValidationError(TemplateValidation.INVALID_URL)

    if not json_data:
        raise ValidationError("JSON data is required")
    if len(json_data) > TemplateValidation.MAX_JSON_LENGTH:
        raise ValidationError(TemplateValidation.JSON_TOO_LONG)
    try:
        schema = json.loads(json_data)
    except ValueError:
        raise ValidationError(TemplateValidation.INVALID_JSON)

    ref = find_unresolvable_ref(schema)
    if ref is not None:
        raise ValidationError(
            f"{TemplateValidation.UNRESOLVABLE_REF}: {truncate_text(ref)}",
            details={"ref": ref}
        )


def validate_app(name: Optional[str], description: Optional[str]) -> str:
    """Check name and description, returning the trimmed name"""
    if not name or not name.strip():
        raise ValidationError("Name is required")
    if len(name) > AppValidation.MAX_NAME_LENGTH:
        raise ValidationError(f"Name must be less than {AppValidation.MAX_NAME_LENGTH} characters")
    if description and len(description) > AppValidation.MAX_DESCRIPTION_LENGTH:
        raise ValidationError(f"Description must be less than {AppValidation.MAX_DESCRIPTION_LENGTH} characters")
    return name.strip()
