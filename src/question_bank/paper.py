"""
Exam Cell Question Bank - Question Paper Assembly
Flattens a tree into the section tables a document renderer prints.
"""
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .models import Category, QuestionBankTree

_MATH_SPLIT = re.compile(r"(\$[^$]+\$)")


def split_math_segments(text: str) -> List[Tuple[bool, str]]:
    """
    Split content into (is_math, text) runs. Inline math is $...$;
    an unmatched $ stays plain text.
    """
    segments = []
    for part in _MATH_SPLIT.split(text or ""):
        if not part:
            continue
        if len(part) > 2 and part.startswith("$") and part.endswith("$"):
            segments.append((True, part[1:-1]))
        else:
            segments.append((False, part))
    return segments


@dataclass
class PaperSubquestion:
    label: Optional[str]
    content: str
    marks: Optional[int] = None
    bloom_level: Optional[int] = None
    image_urls: List[str] = field(default_factory=list)

    @property
    def segments(self) -> List[Tuple[bool, str]]:
        return split_math_segments(self.content)


@dataclass
class PaperQuestion:
    sno: int
    course_outcome: Optional[int]
    subquestions: List[PaperSubquestion]


@dataclass
class PaperSection:
    title: str
    marks: int
    limit: int
    questions: List[PaperQuestion]
    section_name: Optional[str] = None


@dataclass
class PaperModule:
    module_number: int
    title: str
    sections: List[PaperSection]


@dataclass
class PaperHeader:
    """Course details printed above the question tables"""
    course_code: str = ""
    course_title: str = ""
    credits: Optional[float] = None
    year_of_study: str = ""
    semester: str = ""
    academic_year: str = ""
    regulation: str = ""
    program: str = ""
    faculty: List[str] = field(default_factory=list)
    institution: Optional[str] = None


@dataclass
class QuestionPaper:
    modules: List[PaperModule]

    @property
    def question_count(self) -> int:
        return sum(len(s.questions) for m in self.modules for s in m.sections)


def part_label(index: int) -> str:
    """0 -> a, 25 -> z, 26 -> aa, 27 -> ab"""
    letters = ""
    index += 1
    while index:
        index, remainder = divmod(index - 1, 26)
        letters = chr(97 + remainder) + letters
    return letters


def _section(category: Category, limit: int) -> PaperSection:
    limit = max(limit, 0)
    questions = []
    for index, question in enumerate(category.questions[:limit], 1):
        multi_part = len(question.blocks) > 1
        subquestions = []
        for part, block in enumerate(question.blocks):
            marks = block.marks
            if marks is None and not multi_part:
                marks = category.marks
            subquestions.append(PaperSubquestion(
                label=f"{part_label(part)}." if multi_part else None,
                content=block.content,
                marks=marks,
                bloom_level=block.bloom_level,
                image_urls=list(block.image_urls),
            ))
        questions.append(PaperQuestion(
            sno=index,
            course_outcome=question.course_outcome,
            subquestions=subquestions,
        ))

    return PaperSection(
        title=f"{category.marks} MARK QUESTIONS",
        marks=category.marks,
        limit=limit,
        questions=questions,
        section_name=category.section_name,
    )


def build_paper(tree: QuestionBankTree, section_limits: Optional[Dict[int, int]] = None) -> QuestionPaper:
    """
    Args:
        tree: Question bank tree
        section_limits: Max questions printed per section, keyed by marks.
            Defaults to each category's target question count.

    Returns:
        QuestionPaper with only confirmed categories
    """
    section_limits = section_limits or {}
    modules = []
    for module in tree.modules:
        sections = [
            _section(category, section_limits.get(category.marks, category.question_count))
            for category in module.categories
            if category.confirmed
        ]
        modules.append(PaperModule(
            module_number=module.module_number,
            title=f"MODULE {module.module_number}",
            sections=sections,
        ))
    return QuestionPaper(modules=modules)
