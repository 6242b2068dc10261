from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query

from ..deps import get_runtime
from ..game_logic import score
from ..schemas import AnswerCheckRequest, AnswerCheckResponse, SanitizedQuestion
from ..state import Runtime

router = APIRouter(prefix="/api", tags=["questions"])


@router.get("/categories", response_model=List[str])
async def list_categories(runtime: Runtime = Depends(get_runtime)):
    return runtime.questions.categories()


@router.get("/questions/{category}", response_model=List[SanitizedQuestion])
async def random_questions(
    category: str,
    limit: int = Query(default=10, ge=1, le=50),
    runtime: Runtime = Depends(get_runtime),
):
    # Answer keys never leave the server
    return runtime.questions.random_questions(category, limit)


@router.post("/answers/check", response_model=AnswerCheckResponse)
async def check_answer(req: AnswerCheckRequest, runtime: Runtime = Depends(get_runtime)):
    question = runtime.questions.get(req.question_id)
    if question is None:
        raise HTTPException(status_code=404, detail="Question not found")
    points = score(question, req.selected_answer)
    return AnswerCheckResponse(
        is_correct=req.selected_answer == question.correct_answer,
        points_earned=points,
        correct_answer=question.correct_answer,
        explanation=question.explanation,
    )
