"""
Step API routes.

Steps are edited as a batch: the client sends the whole edited step list of
a case with every record tagged by ``editState``.
"""

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session

from ..database import get_db
from ..exceptions import ResourceNotFoundError
from ..models.case import Case
from ..schemas.step import StepMutation, StepResponse
from ..services.step_tree import list_case_steps, reconcile_steps


router = APIRouter(prefix="/steps", tags=["steps"])


@router.get("", response_model=list[StepResponse])
def list_steps(case_id: int = Query(..., alias="caseId"), db: Session = Depends(get_db)):
    """List the steps of a case ordered by parent and position."""
    if db.get(Case, case_id) is None:
        raise ResourceNotFoundError("Case", case_id)
    return list_case_steps(case_id, db)


@router.post("/update", response_model=list[StepResponse])
def update_steps(
    case_id: int = Query(..., alias="caseId"),
    steps: list[StepMutation] = Body(...),
    db: Session = Depends(get_db),
):
    """
    Apply a batch of step creations, updates and deletions.

    The whole batch runs in one transaction; on any database failure nothing
    is applied and a generic 500 is returned.
    """
    return reconcile_steps(case_id, steps, db)
