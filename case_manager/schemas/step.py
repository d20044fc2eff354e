"""
Pydantic schemas for step mutation batches.

Each record in a batch is tagged by ``editState``. The tag selects one of
four record types, so a record can only carry the fields its tag allows:

- ``notChanged``: an existing step, left untouched
- ``changed``: an existing step whose text and/or position changed
- ``deleted``: an existing step to remove
- ``new``: a step to create; ``id`` is a temporary id chosen by the client
  and ``parentStepId`` may name another new record's temporary id
"""

from typing import Annotated, Literal, Union

from pydantic import Field

from .base import CamelModel

# Temporary ids are only meaningful inside one batch
TempId = Union[int, str]


class CaseStepPosition(CamelModel):
    """Position of a step among its siblings."""
    step_no: int = Field(..., ge=1)


class StepRecordBase(CamelModel):
    """Fields shared by every step record."""
    step: str = ""
    result: str = ""
    parent_step_id: TempId | None = None
    case_steps: CaseStepPosition | None = None


class UnchangedStep(StepRecordBase):
    edit_state: Literal["notChanged"]
    id: int


class UpdatedStep(StepRecordBase):
    edit_state: Literal["changed"]
    id: int
    case_steps: CaseStepPosition


class DeletedStep(StepRecordBase):
    edit_state: Literal["deleted"]
    id: int


class CreatedStep(StepRecordBase):
    edit_state: Literal["new"]
    id: TempId
    case_steps: CaseStepPosition


StepMutation = Annotated[
    Union[UnchangedStep, UpdatedStep, DeletedStep, CreatedStep],
    Field(discriminator="edit_state"),
]


class StepResponse(CamelModel):
    """A persisted step as seen by its case."""
    id: int
    step: str
    result: str
    parent_step_id: int | None
    case_steps: CaseStepPosition
