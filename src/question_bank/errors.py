"""
Exam Cell Question Bank - Error Taxonomy
Every failure is scoped to the attempted operation; none is fatal to the process.
"""
from typing import Optional


class QuestionBankError(Exception):
    """Base class for all question bank errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(QuestionBankError):
    """A caller-supplied parameter violates a precondition. Raised before any mutation."""


class ConfigurationError(QuestionBankError):
    """The configuration fetch failed or returned a structurally invalid payload."""


class ImageUploadError(QuestionBankError):
    """The image host rejected or failed an upload."""


class IncompleteSectionError(QuestionBankError):
    """A category holds fewer questions than its target count at submission time."""

    def __init__(
        self,
        module_number: int,
        category_number: int,
        required: int,
        found: int,
        message: Optional[str] = None
    ):
        self.module_number = module_number
        self.category_number = category_number
        self.required = required
        self.found = found
        super().__init__(
            message or (
                f"Module {module_number}, Category {category_number} requires "
                f"at least {required} questions (found {found})"
            )
        )

    def to_dict(self) -> dict:
        return {
            "module": self.module_number,
            "category": self.category_number,
            "required": self.required,
            "found": self.found,
        }
