from typing import Literal

from pydantic import BaseModel, Field


Severity = Literal["good", "medium", "bad"]


class CompanySummary(BaseModel):
    ticker: str
    name: str = ""
    desc: str = ""


class Factor(BaseModel):
    label: str = ""
    text: str = ""
    sev: Severity = "medium"


class CompanyAnalysis(BaseModel):
    name: str = ""
    desc: str = ""
    ticker: str
    score: float | None = None
    factors: list[Factor] = Field(default_factory=list)


class AnalysisRequest(BaseModel):
    ticker: str | None = None
