from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from .database import Base


class MentalModel(Base):
    __tablename__ = "mental_models"

    id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
    # cognitive, strategic, analytical, creative, systems
    category = Column(String, nullable=False, index=True)
    complexity_score = Column(Integer, nullable=False, index=True)
    application_scenarios = Column(JSON, default=list)
    prompt_template = Column(Text, default="")
    # accuracy, relevance_score, usage_count, success_rate
    performance_metrics = Column(JSON, nullable=True)
    description = Column(Text, nullable=False)
    limitations = Column(JSON, default=list)
    case_study = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class WizardSessionRecord(Base):
    __tablename__ = "wizard_sessions"

    id = Column(String, primary_key=True, index=True)
    stage = Column(String, default="input")
    # Full serialized WizardSession
    state = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    expires_at = Column(DateTime(timezone=True), nullable=True)


class ProblemRecord(Base):
    __tablename__ = "mental_model_problems"

    id = Column(String, primary_key=True, index=True)
    session_id = Column(String, index=True, nullable=True)
    problem_text = Column(Text, nullable=False)
    domain = Column(String, index=True)
    # low, medium, high, critical
    urgency = Column(String, default="medium")
    stakeholders = Column(JSON, default=list)
    context = Column(JSON, default=dict)
    structured_data = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    solutions = relationship("SolutionRecord", back_populates="problem", cascade="all, delete-orphan")


class SolutionRecord(Base):
    __tablename__ = "mental_model_solutions"

    id = Column(String, primary_key=True, index=True)
    problem_id = Column(String, ForeignKey("mental_model_problems.id"), index=True)
    model_id = Column(String, index=True)
    solution_variants = Column(JSON, default=list)
    bias_analysis = Column(JSON, nullable=False)
    stakeholder_views = Column(JSON, default=dict)
    # novice, intermediate, expert
    complexity_level = Column(String, default="intermediate")
    export_formats = Column(JSON, default=dict)
    user_rating = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    problem = relationship("ProblemRecord", back_populates="solutions")


class UserProfile(Base):
    __tablename__ = "user_profiles"

    id = Column(String, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False)
    # sha256 of the bearer token
    access_token_hash = Column(String, unique=True, index=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    progress = relationship("LearningProgress", back_populates="user", cascade="all, delete-orphan")


class LearningProgress(Base):
    __tablename__ = "learning_progress"
    __table_args__ = (UniqueConstraint("user_id", "module_id", name="uq_learning_progress_user_module"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("user_profiles.id"), index=True, nullable=False)
    module_id = Column(String, index=True, nullable=False)
    module_name = Column(String, nullable=False)
    completion_percentage = Column(Integer, default=0)
    score = Column(Integer, default=0)
    last_accessed = Column(DateTime(timezone=True), server_default=func.now())
    performance_data = Column(JSON, default=dict)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("UserProfile", back_populates="progress")
