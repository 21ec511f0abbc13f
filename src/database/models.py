"""
Exam Cell Question Bank - Database Models
SQLAlchemy ORM models for submitted question banks
"""
from sqlalchemy import Column, String, Integer, Text, DateTime, JSON, Index
from sqlalchemy.orm import declarative_base
from datetime import datetime
import uuid

Base = declarative_base()


# ================== SUBMISSIONS ==================

class QuestionBankSubmission(Base):
    """A validated question bank waiting for (or past) exam cell review"""
    __tablename__ = "question_bank_submissions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    submitter = Column(String(128), nullable=False, index=True)

    # Catalog selection the rules were loaded for (null for manual trees)
    department_id = Column(Integer, nullable=True)
    course_id = Column(Integer, nullable=True)
    program_id = Column(Integer, nullable=True)
    regulation_id = Column(Integer, nullable=True)

    # Review
    status = Column(String(20), default="pending", nullable=False)  # pending, accepted, rejected
    reviewer = Column(String(128), nullable=True)
    comment = Column(Text, nullable=True)
    reviewed_at = Column(DateTime, nullable=True)

    # Full tree snapshot (QuestionBankTree.to_dict)
    tree = Column(JSON, nullable=False)
    module_count = Column(Integer, default=0)
    question_count = Column(Integer, default=0)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("idx_submission_status", "status"),
    )

    def __repr__(self):
        return f"<QuestionBankSubmission {self.id} ({self.status})>"
