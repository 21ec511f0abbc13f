# Question paper rendering
from src.paper.pdf_generator import QuestionPaperPDFGenerator, register_fonts

__all__ = [
    "QuestionPaperPDFGenerator",
    "register_fonts",
]
