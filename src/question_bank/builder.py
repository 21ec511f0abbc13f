"""
Exam Cell Question Bank - Structure Builder
Creates and mutates the Module -> Category -> Question -> Block tree.

Structural violations (bad counts, unconfirmed gates) raise ValidationError
before anything is touched. Operations that reference an id which is no longer
in the tree are silent no-ops, so stale UI references never fail a request.
"""
import logging
import math
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from config.settings import Settings, get_settings
from .errors import ValidationError
from .models import Block, Category, Module, Question, QuestionBankTree, new_id

logger = logging.getLogger(__name__)

# Accepted spellings for SetCategoryField
CATEGORY_FIELDS = {
    "marks": "marks",
    "questionCount": "question_count",
    "question_count": "question_count",
    "numberOfQuestions": "question_count",
    "number_of_questions": "question_count",
}

_WHOLE_NUMBER = re.compile(r"^[+-]?\d+$")
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_count(value: Any, label: str, minimum: int, maximum: int) -> int:
    """
    Parse a structural count, rejecting anything outside [minimum, maximum].

    Raises:
        ValidationError: non-numeric input, or the bound that was violated
    """
    number: Optional[int] = None
    if isinstance(value, bool):
        number = None
    elif isinstance(value, int):
        number = value
    elif isinstance(value, float) and value.is_integer():
        number = int(value)
    elif isinstance(value, str) and _WHOLE_NUMBER.match(value.strip()):
        number = int(value.strip())

    if number is None:
        raise ValidationError(
            f"Number of {label} must be a whole number between {minimum} and {maximum}"
        )
    if number < minimum:
        raise ValidationError(f"Number of {label} must be at least {minimum}")
    if number > maximum:
        raise ValidationError(f"Number of {label} must be at most {maximum}")
    return number


def coerce_non_negative(value: Any) -> int:
    """Lenient integer coercion for form fields: leading digits win, junk and negatives become 0."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        number = value
    elif isinstance(value, float):
        number = int(value) if math.isfinite(value) else 0
    else:
        match = _LEADING_INT.match(str(value))
        number = int(match.group(1)) if match else 0
    return max(number, 0)


@dataclass
class OperationRecord:
    """One successful mutation of the tree."""
    name: str
    params: Dict[str, Any] = field(default_factory=dict)
    at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class QuestionBankBuilder:
    """
    Single-writer owner of a QuestionBankTree.

    Every public method is one atomic operation; the tree is mutated in place
    and the affected node is returned (or None for a stale-reference no-op).
    """

    def __init__(self, tree: Optional[QuestionBankTree] = None, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self.tree = tree or QuestionBankTree()
        self.module_bounds = (settings.module_count_min, settings.module_count_max)
        self.category_bounds = (settings.category_count_min, settings.category_count_max)
        self.operations: List[OperationRecord] = []
        self.closed = False

    def close(self) -> None:
        """Mark the owning session as torn down; in-flight loads are dropped."""
        self.closed = True

    def _record(self, name: str, **params: Any) -> None:
        self.operations.append(OperationRecord(name=name, params=params))

    def _stale(self, operation: str, **refs: Any) -> None:
        logger.debug(f"{operation}: stale reference ignored {refs}")

    # ================== MODULES ==================

    def init_modules(self, count: Any) -> List[Module]:
        """Replace the tree with `count` fresh, empty modules and open the category phase."""
        number = parse_count(count, "modules", *self.module_bounds)

        self.tree.modules = [
            Module(id=new_id("mod"), module_number=i) for i in range(1, number + 1)
        ]
        self.tree.modules_confirmed = True
        self.tree.selection = None
        self._record("init_modules", count=number)
        return self.tree.modules

    def load_tree(self, tree: QuestionBankTree, source: str = "configuration") -> QuestionBankTree:
        """Swap in a fully built tree in one step (used by the Rule Loader)."""
        self.tree = tree
        self._record("load_tree", source=source, modules=len(tree.modules))
        return tree

    # ================== CATEGORIES ==================

    def add_categories(self, module_id: str, count: Any) -> List[Category]:
        """Append `count` unconfirmed categories, numbered after the module's existing ones."""
        if not self.tree.modules_confirmed:
            raise ValidationError("Confirm the number of modules before adding categories")

        module = self.tree.find_module(module_id)
        if module is None:
            raise ValidationError(f"Module {module_id} does not exist")

        number = parse_count(count, "categories", *self.category_bounds)

        existing = len(module.categories)
        created = [
            Category(id=new_id("cat"), category_number=existing + i)
            for i in range(1, number + 1)
        ]
        module.categories.extend(created)
        self._record("add_categories", module_id=module_id, count=number)
        return created

    def set_category_field(self, module_id: str, category_id: str, field_name: str, value: Any) -> Optional[Category]:
        """
        Store marks or target question count on an unconfirmed category.

        Confirmed categories are frozen: the call is ignored.
        """
        attribute = CATEGORY_FIELDS.get(field_name)
        if attribute is None:
            raise ValidationError(
                f"Unknown category field '{field_name}' (expected marks or questionCount)"
            )

        category = self._category_in_module(module_id, category_id)
        if category is None:
            self._stale("set_category_field", module_id=module_id, category_id=category_id)
            return None

        if category.confirmed:
            logger.debug(f"set_category_field: category {category_id} is confirmed, {attribute} unchanged")
            return category

        setattr(category, attribute, coerce_non_negative(value))
        self._record("set_category_field", category_id=category_id, field=attribute, value=getattr(category, attribute))
        return category

    def confirm_category(self, module_id: str, category_id: str) -> Optional[Category]:
        """Materialize exactly question_count questions, each with one empty block."""
        category = self._category_in_module(module_id, category_id)
        if category is None:
            self._stale("confirm_category", module_id=module_id, category_id=category_id)
            return None

        if category.confirmed:
            logger.debug(f"confirm_category: category {category_id} already confirmed")
            return category

        if category.marks <= 0 or category.question_count <= 0:
            raise ValidationError(
                f"Category {category.category_number} needs marks and number of questions "
                f"greater than 0 before it can be confirmed"
            )

        category.materialize_questions()
        self._record("confirm_category", category_id=category_id, questions=category.question_count)
        return category

    def _category_in_module(self, module_id: str, category_id: str) -> Optional[Category]:
        module = self.tree.find_module(module_id)
        if module is None:
            return None
        for category in module.categories:
            if category.id == category_id:
                return category
        return None

    # ================== QUESTIONS ==================

    def add_question(self, category_id: str) -> Optional[Question]:
        """Append one question numbered after the current last one. No upper bound."""
        found = self.tree.find_category(category_id)
        if found is None:
            self._stale("add_question", category_id=category_id)
            return None

        _, category = found
        if not category.confirmed:
            raise ValidationError(
                f"Category {category.category_number} must be confirmed before adding questions"
            )

        question = Question.empty(sno=len(category.questions) + 1)
        category.questions.append(question)
        self._record("add_question", category_id=category_id, question_id=question.id)
        return question

    def delete_question(self, question_id: str) -> bool:
        """Remove a question and renumber its siblings 1..N in their original order."""
        found = self.tree.find_question(question_id)
        if found is None:
            self._stale("delete_question", question_id=question_id)
            return False

        category, question = found
        category.questions.remove(question)
        category.renumber()
        self._record("delete_question", question_id=question_id)
        return True

    def set_question_outcome(self, question_id: str, outcome: Any) -> Optional[Question]:
        found = self.tree.find_question(question_id)
        if found is None:
            self._stale("set_question_outcome", question_id=question_id)
            return None

        question = found[1]
        question.course_outcome = coerce_non_negative(outcome)
        self._record("set_question_outcome", question_id=question_id, outcome=question.course_outcome)
        return question

    # ================== BLOCKS ==================

    def add_block(self, question_id: str) -> Optional[Block]:
        found = self.tree.find_question(question_id)
        if found is None:
            self._stale("add_block", question_id=question_id)
            return None

        block = Block.empty()
        found[1].blocks.append(block)
        self._record("add_block", question_id=question_id, block_id=block.id)
        return block

    def update_block_content(self, question_id: str, block_id: str, text: str) -> Optional[Block]:
        block = self.tree.find_block(question_id, block_id)
        if block is None:
            self._stale("update_block_content", question_id=question_id, block_id=block_id)
            return None

        block.content = text
        self._record("update_block_content", question_id=question_id, block_id=block_id)
        return block

    def update_block_meta(
        self,
        question_id: str,
        block_id: str,
        marks: Any = None,
        bloom_level: Any = None
    ) -> Optional[Block]:
        """Set per-sub-question marks and Bloom's level. None leaves a value untouched."""
        block = self.tree.find_block(question_id, block_id)
        if block is None:
            self._stale("update_block_meta", question_id=question_id, block_id=block_id)
            return None

        if marks is not None:
            block.marks = coerce_non_negative(marks)
        if bloom_level is not None:
            block.bloom_level = coerce_non_negative(bloom_level)
        self._record("update_block_meta", block_id=block_id, marks=block.marks, bloom_level=block.bloom_level)
        return block

    def add_block_image(self, question_id: str, block_id: str, url: str) -> Optional[Block]:
        block = self.tree.find_block(question_id, block_id)
        if block is None:
            self._stale("add_block_image", question_id=question_id, block_id=block_id)
            return None

        block.image_urls.append(url)
        self._record("add_block_image", block_id=block_id, url=url)
        return block

    def remove_block_image(self, question_id: str, block_id: str, index: int) -> Optional[str]:
        """Remove the image at `index`; returns the removed URL, None when nothing matched."""
        block = self.tree.find_block(question_id, block_id)
        if block is None:
            self._stale("remove_block_image", question_id=question_id, block_id=block_id)
            return None

        if not 0 <= index < len(block.image_urls):
            self._stale("remove_block_image", block_id=block_id, index=index)
            return None

        removed = block.image_urls.pop(index)
        self._record("remove_block_image", block_id=block_id, index=index)
        return removed
