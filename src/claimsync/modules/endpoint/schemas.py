from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class EndpointRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    action: str | None = None
    api_key: str | None = Field(default=None, validation_alias="apiKey")


class ToggleRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    row: int = Field(validation_alias=AliasChoices("row", "rowNumber", "rowIndex"))
    current_status: str | None = Field(
        default=None, validation_alias=AliasChoices("currentStatus", "status")
    )
    description: str | None = None
    expense_date: str | None = Field(
        default=None, validation_alias=AliasChoices("date", "expenseDate")
    )


class ExpenseReasonRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    trip_name: str | int | None = Field(
        default=None, validation_alias=AliasChoices("tripName", "expenseReason", "reason")
    )


class FormSubmitRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    sheet_name: str = Field(validation_alias=AliasChoices("sheetName", "sheet"))
    row: int
