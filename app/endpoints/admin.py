from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session, sessionmaker
from app.core.constants import RoleEnum
from app.core.database import get_db
from app.schemas.question_grade import BulkRecalculationResult
from app.services.scoring import scoring_service
from app.schemas.response import APIResponse
from app.utils import deps

router = APIRouter()

@router.post("/recalculate-scores", response_model=APIResponse[BulkRecalculationResult], dependencies=[Depends(deps.require_role(RoleEnum.SUPER_ADMIN))])
async def recalculate_all_scores(
    *,
    db: Session = Depends(get_db)
):
    # Each attempt gets its own session on the same engine as the request
    session_factory = sessionmaker(autocommit=False, autoflush=False, bind=db.get_bind())
    result = await run_in_threadpool(scoring_service.recalculate_all_scores, session_factory)
    message = "Scores recalculated successfully" if not result.failed else "Scores recalculated with failures"
    return APIResponse(message=message, data=result)
