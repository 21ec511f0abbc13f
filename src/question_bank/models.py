"""
Exam Cell Question Bank - Tree Models
Module -> Category -> Question -> Block, owned by one editing session.
"""
import uuid
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, Iterator, List, Optional, Tuple


def new_id(prefix: str) -> str:
    """Opaque session-scoped identifier. Never reused after deletion."""
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


@dataclass
class Block:
    """One sub-part of a question ("a)", "b)"). Content may embed $...$ inline math."""
    id: str
    content: str = ""
    image_urls: List[str] = field(default_factory=list)
    marks: Optional[int] = None
    bloom_level: Optional[int] = None

    @classmethod
    def empty(cls) -> "Block":
        return cls(id=new_id("blk"))


@dataclass
class Question:
    """A numbered question slot inside a confirmed category."""
    id: str
    sno: int
    blocks: List[Block] = field(default_factory=list)
    course_outcome: Optional[int] = None

    @classmethod
    def empty(cls, sno: int) -> "Question":
        return cls(id=new_id("q"), sno=sno, blocks=[Block.empty()])

    def find_block(self, block_id: str) -> Optional[Block]:
        for block in self.blocks:
            if block.id == block_id:
                return block
        return None


@dataclass
class Category:
    """A question-pattern slot (section) within a module."""
    id: str
    category_number: int
    marks: int = 0
    question_count: int = 0
    questions: List[Question] = field(default_factory=list)
    confirmed: bool = False
    section_name: Optional[str] = None

    def materialize_questions(self) -> None:
        self.questions = [Question.empty(sno) for sno in range(1, self.question_count + 1)]
        self.confirmed = True

    def renumber(self) -> None:
        for index, question in enumerate(self.questions, 1):
            question.sno = index


@dataclass
class Module:
    """One syllabus unit."""
    id: str
    module_number: int
    categories: List[Category] = field(default_factory=list)


@dataclass(frozen=True)
class SectionRule:
    """Regulation-level section template. Read-only to the builder."""
    section_name: str
    marks: int
    min_questions_count: int


@dataclass(frozen=True)
class BankSelection:
    """Identifiers the configuration was loaded for."""
    department_id: int
    course_id: int
    program_id: int
    regulation_id: int


@dataclass
class QuestionBankTree:
    """The aggregate edited by the Structure Builder."""
    modules: List[Module] = field(default_factory=list)
    modules_confirmed: bool = False
    selection: Optional[BankSelection] = None

    # ================== LOOKUPS ==================

    def find_module(self, module_id: str) -> Optional[Module]:
        for module in self.modules:
            if module.id == module_id:
                return module
        return None

    def find_category(self, category_id: str) -> Optional[Tuple[Module, Category]]:
        for module in self.modules:
            for category in module.categories:
                if category.id == category_id:
                    return module, category
        return None

    def find_question(self, question_id: str) -> Optional[Tuple[Category, Question]]:
        for category in self.iter_categories():
            for question in category.questions:
                if question.id == question_id:
                    return category, question
        return None

    def find_block(self, question_id: str, block_id: str) -> Optional[Block]:
        found = self.find_question(question_id)
        if found is None:
            return None
        return found[1].find_block(block_id)

    def iter_categories(self) -> Iterator[Category]:
        for module in self.modules:
            yield from module.categories

    @property
    def question_total(self) -> int:
        return sum(len(category.questions) for category in self.iter_categories())

    # ================== SERIALIZATION ==================

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QuestionBankTree":
        selection = data.get("selection")
        return cls(
            modules=[
                Module(
                    id=m["id"],
                    module_number=m["module_number"],
                    categories=[
                        Category(
                            id=c["id"],
                            category_number=c["category_number"],
                            marks=c.get("marks", 0),
                            question_count=c.get("question_count", 0),
                            confirmed=c.get("confirmed", False),
                            section_name=c.get("section_name"),
                            questions=[
                                Question(
                                    id=q["id"],
                                    sno=q["sno"],
                                    course_outcome=q.get("course_outcome"),
                                    blocks=[Block(**b) for b in q.get("blocks", [])],
                                )
                                for q in c.get("questions", [])
                            ],
                        )
                        for c in m.get("categories", [])
                    ],
                )
                for m in data.get("modules", [])
            ],
            modules_confirmed=data.get("modules_confirmed", False),
            selection=BankSelection(**selection) if selection else None,
        )
