"""
Exam Cell Question Bank - Core
Structure Builder, Rule Loader and Submission Validator.
"""
from .errors import (
    QuestionBankError,
    ValidationError,
    ConfigurationError,
    IncompleteSectionError,
    ImageUploadError,
)
from .models import Block, Question, Category, Module, SectionRule, BankSelection, QuestionBankTree
from .builder import QuestionBankBuilder, OperationRecord
from .rule_loader import RuleLoader, ConfigurationPayload, parse_selection
from .validator import validate_for_submission, SubmissionService
from .uploads import BlockImageUploader
from .paper import build_paper, split_math_segments, QuestionPaper, PaperHeader
from .review import ReviewStatus

__all__ = [
    "QuestionBankError",
    "ValidationError",
    "ConfigurationError",
    "IncompleteSectionError",
    "ImageUploadError",
    "Block",
    "Question",
    "Category",
    "Module",
    "SectionRule",
    "BankSelection",
    "QuestionBankTree",
    "QuestionBankBuilder",
    "OperationRecord",
    "RuleLoader",
    "ConfigurationPayload",
    "parse_selection",
    "validate_for_submission",
    "SubmissionService",
    "BlockImageUploader",
    "build_paper",
    "split_math_segments",
    "QuestionPaper",
    "PaperHeader",
    "ReviewStatus",
]
