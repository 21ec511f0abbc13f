"""
Exam Cell Question Bank - Submission Validator
Re-checks question counts at submit time; Add/Delete can move them after confirmation.
"""
import logging
from typing import Any, Protocol

from .errors import IncompleteSectionError
from .models import QuestionBankTree

logger = logging.getLogger(__name__)


def validate_for_submission(tree: QuestionBankTree) -> None:
    """
    Walk modules then categories in tree order and stop at the first shortfall.

    Raises:
        IncompleteSectionError: len(questions) < question_count for a category
    """
    for module in tree.modules:
        for category in module.categories:
            found = len(category.questions)
            if found < category.question_count:
                raise IncompleteSectionError(
                    module_number=module.module_number,
                    category_number=category.category_number,
                    required=category.question_count,
                    found=found,
                )


class SubmissionSink(Protocol):
    """Persists a validated tree and returns a reference to the stored submission."""

    def submit(self, tree: QuestionBankTree, submitter: str) -> Any:
        ...


class SubmissionService:
    """Validator in front of a sink: the sink only ever sees complete trees."""

    def __init__(self, sink: SubmissionSink):
        self.sink = sink

    def submit(self, tree: QuestionBankTree, submitter: str) -> Any:
        try:
            validate_for_submission(tree)
        except IncompleteSectionError as e:
            logger.info(f"Submission blocked for {submitter}: {e.message}")
            raise

        result = self.sink.submit(tree, submitter)
        logger.info(f"Question bank submitted by {submitter}: {tree.question_total} questions")
        return result
