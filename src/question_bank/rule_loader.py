"""
Exam Cell Question Bank - Rule Loader
Turns a regulation's section rules into a fully confirmed tree.
"""
import logging
from dataclasses import asdict
from typing import Any, List, Optional, Protocol

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator

from .builder import QuestionBankBuilder
from .errors import ConfigurationError, ValidationError
from .models import BankSelection, Category, Module, QuestionBankTree, SectionRule, new_id

logger = logging.getLogger(__name__)


# ================== PAYLOAD SCHEMA ==================

class ModuleInfo(BaseModel):
    """One entry of modules_info"""
    module_no: int = Field(..., ge=1)
    module_name: Optional[str] = None


class SectionRuleInfo(BaseModel):
    """One entry of sections_rules"""
    section_name: str = ""
    marks: int = Field(..., gt=0)
    min_questions_count: int = Field(..., gt=0)

    def to_rule(self) -> SectionRule:
        return SectionRule(
            section_name=self.section_name,
            marks=self.marks,
            min_questions_count=self.min_questions_count,
        )


class ConfigurationPayload(BaseModel):
    """Configuration Provider response. Both lists must be non-empty."""
    modules_info: List[ModuleInfo] = Field(..., min_length=1)
    sections_rules: List[SectionRuleInfo] = Field(..., min_length=1)

    @field_validator("modules_info")
    @classmethod
    def unique_module_numbers(cls, v: List[ModuleInfo]) -> List[ModuleInfo]:
        numbers = [m.module_no for m in v]
        if len(numbers) != len(set(numbers)):
            raise ValueError("module_no values must be unique")
        return v


class ConfigurationProvider(Protocol):
    """Anything that can answer a configuration request with the raw JSON payload."""

    async def fetch_configuration(self, selection: BankSelection) -> Any:
        ...


# ================== LOADER ==================

def parse_selection(department_id: Any, course_id: Any, program_id: Any, regulation_id: Any) -> BankSelection:
    """
    Check that all four selectors are present and numeric.

    Raises:
        ValidationError: a selector is missing or not an integer id
    """
    raw = {
        "department_id": department_id,
        "course_id": course_id,
        "program_id": program_id,
        "regulation_id": regulation_id,
    }
    missing = [name for name, value in raw.items() if value is None or str(value).strip() == ""]
    if missing:
        raise ValidationError(
            "Missing selection: please select Department, Course, Program and Regulation "
            f"({', '.join(missing)})"
        )

    try:
        return BankSelection(**{name: int(str(value).strip()) for name, value in raw.items()})
    except ValueError:
        raise ValidationError("Missing selection: identifiers must be numeric")


def build_tree(payload: ConfigurationPayload, selection: BankSelection) -> QuestionBankTree:
    """Every module gets the same ordered section rules, each as one confirmed category."""
    rules = [info.to_rule() for info in payload.sections_rules]
    modules = []

    for info in payload.modules_info:
        categories = []
        for number, rule in enumerate(rules, 1):
            category = Category(
                id=new_id("cat"),
                category_number=number,
                marks=rule.marks,
                question_count=rule.min_questions_count,
                section_name=rule.section_name,
            )
            category.materialize_questions()
            categories.append(category)
        modules.append(Module(id=new_id("mod"), module_number=info.module_no, categories=categories))

    return QuestionBankTree(modules=modules, modules_confirmed=True, selection=selection)


class RuleLoader:
    """Loads a server-side configuration into a builder, all or nothing."""

    def __init__(self, provider: ConfigurationProvider):
        self.provider = provider

    async def load(
        self,
        builder: QuestionBankBuilder,
        department_id: Any,
        course_id: Any,
        program_id: Any,
        regulation_id: Any
    ) -> Optional[QuestionBankTree]:
        """
        Fetch the configuration and replace the builder's tree with it.
        Returns None when the builder was closed while the fetch was in flight.

        Raises:
            ValidationError: a selector is missing (no request is made)
            ConfigurationError: fetch failed or the payload is malformed;
                the builder's tree is left untouched
        """
        selection = parse_selection(department_id, course_id, program_id, regulation_id)

        raw = await self.provider.fetch_configuration(selection)

        try:
            payload = ConfigurationPayload.model_validate(raw)
        except PydanticValidationError as e:
            logger.warning(f"Invalid configuration response for {selection}: {e.error_count()} error(s)")
            raise ConfigurationError("Invalid configuration response")

        tree = build_tree(payload, selection)
        if builder.closed:
            logger.info(f"Late configuration for {selection} discarded: session closed")
            return None

        builder.load_tree(tree)

        logger.info(
            f"Configuration loaded: {len(tree.modules)} modules x "
            f"{len(payload.sections_rules)} sections",
            extra={"extra_data": {"selection": asdict(selection)}}
        )
        return tree
