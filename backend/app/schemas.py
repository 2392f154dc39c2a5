from pydantic import BaseModel, Field
from typing import List, Optional, Dict, Any, Literal, Union
from datetime import datetime, timezone
from enum import Enum
import uuid


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


class Category(str, Enum):
    COGNITIVE = "cognitive"
    STRATEGIC = "strategic"
    ANALYTICAL = "analytical"
    CREATIVE = "creative"
    SYSTEMS = "systems"


class Urgency(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ComplexityLevel(str, Enum):
    NOVICE = "novice"
    INTERMEDIATE = "intermediate"
    EXPERT = "expert"


class BiasType(str, Enum):
    CONFIRMATION = "confirmation"
    ANCHORING = "anchoring"
    BASE_RATE_NEGLECT = "base_rate_neglect"
    AVAILABILITY = "availability"
    OVERCONFIDENCE = "overconfidence"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class WizardStage(str, Enum):
    INPUT = "input"
    ANALYSIS = "analysis"
    RECOMMENDATIONS = "recommendations"
    RESULTS = "results"


# --- Catalog ---

class PerformanceMetrics(BaseModel):
    accuracy: float = 0
    relevance_score: float = 0
    usage_count: int = 0
    success_rate: float = 0


class MentalModel(BaseModel):
    id: str
    name: str
    category: Category
    complexity_score: int = Field(ge=1, le=10)
    application_scenarios: List[str] = []
    prompt_template: str = ""
    description: str
    limitations: List[str] = []
    case_study: Optional[str] = None
    performance_metrics: Optional[PerformanceMetrics] = None

    class Config:
        from_attributes = True
        frozen = True


class ModelExplanation(BaseModel):
    model_id: str
    abstract: str
    case_study: str
    limitations: List[str]
    when_to_use: List[str]
    related_models: List[str]

    class Config:
        protected_namespaces = ()


# --- Problems ---

class StructuredData(BaseModel):
    core_issue: str
    complexity_level: int = Field(default=5, ge=1, le=10)
    problem_type: str = "General"
    constraints: List[str] = []


class ProblemInput(BaseModel):
    """What the user types into the first wizard step."""
    problem_text: str
    domain: Optional[str] = None
    urgency: Urgency = Urgency.MEDIUM
    stakeholders: List[str] = []
    context: Dict[str, Any] = {}
    user_level: Optional[ComplexityLevel] = None


class ProblemSubmission(BaseModel):
    id: str = Field(default_factory=_new_id)
    problem_text: str
    domain: str
    urgency: Urgency
    stakeholders: List[str] = []
    context: Dict[str, Any] = {}
    structured_data: StructuredData
    created_at: datetime = Field(default_factory=_now)

    class Config:
        from_attributes = True


class ModelSelection(BaseModel):
    model_id: str
    model_name: str
    category: Optional[Category] = None
    score: int = Field(ge=0, le=100)
    rationale: str
    application_steps: List[str] = []
    contextual_fitness: float = Field(default=5, ge=0, le=10)
    historical_success: float = Field(default=5, ge=0, le=10)
    novelty_factor: float = Field(default=5, ge=0, le=10)

    class Config:
        protected_namespaces = ()


# --- Solutions ---

class SolutionVariant(BaseModel):
    title: str
    description: str
    model_logic: str
    feasibility_score: int = Field(ge=0, le=10)
    innovation_score: int = Field(ge=0, le=10)
    implementation_steps: List[str] = []
    risks: List[str] = []
    benefits: List[str] = []


class DetectedBias(BaseModel):
    type: BiasType
    severity: Severity
    evidence: str
    mitigation: str


class BiasAnalysis(BaseModel):
    risk_score: int = Field(ge=0, le=100)
    detected_biases: List[DetectedBias] = []
    confidence_level: int = Field(ge=0, le=100)


class ExportFormats(BaseModel):
    executive_summary: str = ""
    technical_deep_dive: str = ""
    metrics_csv: str = ""


class Solution(BaseModel):
    id: str = Field(default_factory=_new_id)
    problem_id: str
    model_id: str
    solution_variants: List[SolutionVariant]
    bias_analysis: BiasAnalysis
    stakeholder_views: Dict[str, str] = {}
    complexity_level: ComplexityLevel = ComplexityLevel.INTERMEDIATE
    export_formats: ExportFormats = Field(default_factory=ExportFormats)
    user_rating: Optional[int] = Field(default=None, ge=1, le=5)
    created_at: datetime = Field(default_factory=_now)

    class Config:
        from_attributes = True
        protected_namespaces = ()


class ComparisonMetrics(BaseModel):
    feasibility: int
    innovation: int
    complexity: int
    time_to_implement: int
    resource_requirements: int


class ComparedModel(BaseModel):
    model_id: str
    model_name: str
    solution_summary: str
    metrics: ComparisonMetrics

    class Config:
        protected_namespaces = ()


class ModelComparison(BaseModel):
    problem_id: str
    models: List[ComparedModel]
    recommendation: str
    trade_offs: List[str]


# --- Tagged collaborator results ---

class AnalysisData(BaseModel):
    domain: str
    structured_data: StructuredData
    recommendations: List[ModelSelection]


class AnalysisSuccess(BaseModel):
    success: Literal[True] = True
    data: AnalysisData


class AnalysisFailure(BaseModel):
    success: Literal[False] = False
    error: str


AnalysisResult = Union[AnalysisSuccess, AnalysisFailure]


class SolutionRequest(BaseModel):
    submission: ProblemSubmission
    model_id: str
    model: Optional[MentalModel] = None
    complexity_preference: ComplexityLevel = ComplexityLevel.INTERMEDIATE

    class Config:
        protected_namespaces = ()


class SolutionSuccess(BaseModel):
    success: Literal[True] = True
    data: Solution


class SolutionFailure(BaseModel):
    success: Literal[False] = False
    error: str


SolutionResult = Union[SolutionSuccess, SolutionFailure]


# --- Wizard ---

class WizardSession(BaseModel):
    id: str = Field(default_factory=_new_id)
    stage: WizardStage = WizardStage.INPUT
    pending: bool = False
    # Bumped on every reset so completions from an abandoned run are dropped
    run_id: int = 0
    is_guest: bool = True
    request_count: int = 0
    max_requests: Optional[int] = None
    submission: Optional[ProblemSubmission] = None
    recommendations: List[ModelSelection] = []
    selected_model_ids: List[str] = []
    solutions: List[Solution] = []
    comparison: Optional[ModelComparison] = None
    error: Optional[str] = None
    created_at: datetime = Field(default_factory=_now)
    expires_at: Optional[datetime] = None


class SelectionRequest(BaseModel):
    model_ids: List[str]

    class Config:
        protected_namespaces = ()


class GenerateSolutionsRequest(BaseModel):
    model_ids: Optional[List[str]] = None
    complexity_preference: ComplexityLevel = ComplexityLevel.INTERMEDIATE

    class Config:
        protected_namespaces = ()


# --- History and ratings ---

class RatingRequest(BaseModel):
    rating: int = Field(ge=1, le=5)
    feedback: Optional[str] = None


class RatingResponse(BaseModel):
    solution_id: str
    model_id: str
    user_rating: int
    performance_metrics: PerformanceMetrics

    class Config:
        protected_namespaces = ()


class HistoryEntry(BaseModel):
    problem: ProblemSubmission
    solutions: List[Solution]


# --- Game theory tutor ---

class TutorialLevel(str, Enum):
    BASIC = "basic"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class UserProgress(BaseModel):
    completed_modules: List[str] = Field(default=[], alias="completedModules")
    current_score: float = Field(default=0, alias="currentScore")

    class Config:
        populate_by_name = True


class TutorialRequest(BaseModel):
    level: TutorialLevel
    topic: str = Field(min_length=1)
    user_progress: UserProgress = Field(default_factory=UserProgress, alias="userProgress")

    class Config:
        populate_by_name = True


class InteractiveElement(BaseModel):
    type: Literal["scenario", "calculation", "game_tree"]
    data: Dict[str, Any] = {}


class AssessmentQuestion(BaseModel):
    question: str
    options: List[str]
    correct_answer: int = Field(alias="correctAnswer", ge=0)

    class Config:
        populate_by_name = True


class TutorialContent(BaseModel):
    concept: str
    explanation: str
    geopolitical_example: str = Field(alias="geopoliticalExample")
    interactive_element: InteractiveElement = Field(alias="interactiveElement")
    assessment_question: AssessmentQuestion = Field(alias="assessmentQuestion")

    class Config:
        populate_by_name = True
