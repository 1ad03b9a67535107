"""
Pydantic models for request/response validation.
"""
from pydantic import BaseModel, Field


class ReconcileRequest(BaseModel):
    include_medium: bool = Field(False, alias="includeMedium")
    dry_run: bool = Field(False, alias="dryRun")

    model_config = {"populate_by_name": True}
