"""
Write the question paper PDF for a stored submission.

Usage:
    python scripts/export_paper.py <submission_id>
    python scripts/export_paper.py <submission_id> --course-code CS301 --output data/papers
"""

import sys
import os
import argparse

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.database.db import get_db_context
from src.database.submissions import get_submission
from src.paper.pdf_generator import QuestionPaperPDFGenerator
from src.question_bank.models import QuestionBankTree
from src.question_bank.paper import PaperHeader, build_paper


def main():
    parser = argparse.ArgumentParser(
        description="Export a submitted question bank as a PDF question paper",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument("submission_id", type=str, help="Submission id")
    parser.add_argument("--course-code", type=str, default="", help="Course code for the header")
    parser.add_argument("--course-title", type=str, default="", help="Course title for the header")
    parser.add_argument("--output", "-o", type=str, default=None, help="Output directory (default: PAPER_OUTPUT_DIR)")
    args = parser.parse_args()

    with get_db_context() as db:
        submission = get_submission(db, args.submission_id)
        if submission is None:
            print(f"Submission not found: {args.submission_id}")
            sys.exit(1)
        tree = QuestionBankTree.from_dict(submission.tree)

    paper = build_paper(tree)
    header = PaperHeader(course_code=args.course_code, course_title=args.course_title)
    path = QuestionPaperPDFGenerator(output_dir=args.output).generate(paper, header)
    print(f"Question paper written: {path}")


if __name__ == "__main__":
    main()
