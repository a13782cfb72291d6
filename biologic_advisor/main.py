"""
Biologic Advisor - FastAPI Application

API endpoints for:
- Health checks
- Quadrant reference data
- Recommendation generation from a caller-supplied patient context
- Assessment of a patient on record (repositories → engine)
"""
from datetime import datetime

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from biologic_advisor.config import settings
from biologic_advisor.core.clinical.base import Quadrant
from biologic_advisor.core.evidence import build_knowledge_search
from biologic_advisor.core.llm import FormularyOrderRanker, select_efficacy_ranker
from biologic_advisor.core.recommendation import RecommendationEngine
from biologic_advisor.models.assessment import (
    AssessmentRequest,
    HealthResponse,
    RecommendationRequest,
    RecommendationResultResponse,
)
from biologic_advisor.services import (
    AssessmentService,
    InMemoryClaimsRepository,
    InMemoryContraindicationRepository,
    InMemoryFormularyRepository,
    InMemoryPatientRepository,
)
from biologic_advisor.utils import (
    AssessmentInputError,
    BiologicAdvisorError,
    PatientNotFoundError,
    get_logger,
    setup_logging,
)

setup_logging(settings.log_level, settings.log_file)
logger = get_logger(__name__)

QUADRANT_DESCRIPTIONS = {
    Quadrant.STABLE_FORMULARY_ALIGNED:   "Controlled disease on a Tier 1, no-PA drug: consider dose reduction",
    Quadrant.STABLE_NON_FORMULARY:       "Controlled disease on a non-preferred drug: switch to a lower tier",
    Quadrant.UNSTABLE_FORMULARY_ALIGNED: "Uncontrolled disease on a preferred drug: optimise before switching",
    Quadrant.UNSTABLE_NON_FORMULARY:     "Uncontrolled disease on a non-preferred drug: therapeutic switch",
    Quadrant.STABLE_SHORT_DURATION:      "Controlled for under 6 months: tier switch allowed, no dose reduction yet",
}


# ---- FastAPI Application ----

app = FastAPI(
    title=settings.app_name,
    description="Biologic therapy optimisation: stability, formulary and contraindication-aware recommendations",
    version=settings.app_version,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

START_TIME = datetime.now()

# ---- Collaborators and services (module-level, shared across requests) ----
_ranker = select_efficacy_ranker()
_knowledge_search = build_knowledge_search()
_engine = RecommendationEngine(ranker=_ranker, knowledge_search=_knowledge_search)

# In-memory repositories (swap for database-backed ones in production)
patient_repository = InMemoryPatientRepository()
formulary_repository = InMemoryFormularyRepository()
contraindication_repository = InMemoryContraindicationRepository()
claims_repository = InMemoryClaimsRepository()

_assessment_service = AssessmentService(
    patients=patient_repository,
    formularies=formulary_repository,
    contraindications=contraindication_repository,
    claims=claims_repository,
    engine=_engine,
)


# ---- Error Handling ----

@app.exception_handler(BiologicAdvisorError)
async def biologic_advisor_error_handler(request: Request, exc: BiologicAdvisorError):
    if isinstance(exc, AssessmentInputError):
        status_code = 422
    elif isinstance(exc, PatientNotFoundError):
        status_code = 404
    else:
        status_code = 500
    logger.warning(f"{request.method} {request.url.path} -> {status_code} {exc.code}: {exc.message}")
    return JSONResponse(status_code=status_code, content=exc.to_dict())


def _health() -> HealthResponse:
    return HealthResponse(
        status="healthy",
        version=settings.app_version,
        timestamp=datetime.now().isoformat(),
        uptime_seconds=(datetime.now() - START_TIME).total_seconds(),
        ranker="formulary_order" if isinstance(_ranker, FormularyOrderRanker) else "llm",
        knowledge_search=type(_knowledge_search).__name__,
    )


# ---- API Endpoints ----

@app.get("/", response_model=HealthResponse, tags=["Health"])
async def root():
    """API root - health check."""
    return _health()


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Health check endpoint."""
    return _health()


@app.get("/api/v1/quadrants", tags=["Reference"])
async def list_quadrants():
    """
    List the treatment states the engine can assign.
    """
    return {
        "quadrants": [
            {"name": q.value, "description": QUADRANT_DESCRIPTIONS[q]}
            for q in Quadrant
        ]
    }


@app.post("/api/v1/recommendations", response_model=RecommendationResultResponse, tags=["Recommendations"])
async def create_recommendations(request: RecommendationRequest):
    """
    Generate recommendations from an assessment plus a fully resolved patient context.
    """
    assessment, patient = request.to_domain()
    result = await _engine.generate_recommendations(assessment, patient)
    logger.info(f"Recommendations for {request.patient_id}: {result.quadrant.value}, {len(result.recommendations)} option(s)")
    return {"patient_id": request.patient_id, **result.to_dict()}


@app.post(
    "/api/v1/patients/{patient_id}/assessment",
    response_model=RecommendationResultResponse,
    tags=["Recommendations"],
)
async def assess_patient(patient_id: str, request: AssessmentRequest):
    """
    Assess a patient on record: context is loaded from the repositories.
    """
    result = await _assessment_service.assess(request.to_domain(patient_id))
    return {"patient_id": patient_id, **result.to_dict()}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("biologic_advisor.main:app", host="0.0.0.0", port=8000, reload=False)
