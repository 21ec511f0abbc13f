"""
Tests for the question paper PDF generator
Tests src/paper/pdf_generator.py
"""
import os

import pytest

from src.paper.pdf_generator import QuestionPaperPDFGenerator, render_inline
from src.question_bank.paper import PaperHeader, build_paper


@pytest.fixture
def paper(confirmed_category, builder):
    _, category = confirmed_category
    question = category.questions[0]
    second = builder.add_block(question.id)
    builder.update_block_content(question.id, question.blocks[0].id, "Prove that $a < b$ & b > 0")
    builder.update_block_content(question.id, second.id, "Sketch the graph")
    builder.add_block_image(question.id, second.id, 'https://img.example/g.png?a=1&b="2"')
    builder.set_question_outcome(question.id, 3)
    return build_paper(builder.tree)


@pytest.mark.unit
class TestRenderInline:
    """Tests for render_inline"""

    def test_escapes_and_italicises_math(self):
        markup = render_inline("If $a < b$ & c", "Helvetica-Oblique")

        assert markup == 'If <font name="Helvetica-Oblique">a &lt; b</font> &amp; c'

    def test_newlines(self):
        assert render_inline("line 1\nline 2", "Helvetica-Oblique") == "line 1<br/>line 2"


@pytest.mark.unit
class TestQuestionPaperPDFGenerator:
    """Tests for QuestionPaperPDFGenerator"""

    def test_render_returns_pdf_bytes(self, paper):
        header = PaperHeader(course_code="CS301", course_title="Data Structures", credits=4, faculty=["Dr. Rao"])

        pdf = QuestionPaperPDFGenerator(output_dir="unused").render(paper, header)

        assert pdf.startswith(b"%PDF")

    def test_render_without_header(self, paper):
        assert QuestionPaperPDFGenerator().render(paper).startswith(b"%PDF")

    def test_generate_writes_file(self, paper, tmp_path):
        path = QuestionPaperPDFGenerator(output_dir=str(tmp_path)).generate(paper, PaperHeader())

        assert os.path.dirname(path) == str(tmp_path)
        assert path.endswith(".pdf")
        with open(path, "rb") as f:
            assert f.read(4) == b"%PDF"

    def test_empty_paper(self, builder):
        builder.init_modules(2)

        pdf = QuestionPaperPDFGenerator().render(build_paper(builder.tree))

        assert pdf.startswith(b"%PDF")
