from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from .enums import AuditStatus, MarketType, OptimizationType, RiskLevel
from .selection import Selection


class AuditContextEntry(BaseModel):
    """Match context attached to one selection in an audit request.

    ``match_context`` is omitted when the selection's match is no longer in
    the catalog; the entry then only carries what the selection itself knows.
    """

    match_id: str
    match_name: str
    user_pick: str
    market_type: MarketType
    odds: float
    match_context: Optional[Dict[str, Any]] = None


class AuditRequest(BaseModel):
    """Payload handed to the audit oracle."""

    portfolio: List[Selection]
    context: List[AuditContextEntry]

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


# --- Oracle response ---
# Field names follow the documented result schema; the validation aliases
# also accept the oracle's legacy key names.


class _Strict(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class Optimization(_Strict):
    available: bool = False
    type: Optional[OptimizationType] = None
    suggested_pick: Optional[str] = Field(
        None, validation_alias=AliasChoices("suggested_pick", "suggested_pick_name")
    )
    suggested_reason: Optional[str] = None


class AuditSummary(_Strict):
    status: AuditStatus
    risk_score: float = Field(
        ...,
        ge=0,
        le=100,
        strict=True,
        validation_alias=AliasChoices("risk_score", "total_risk_score"),
    )
    text: str = Field(..., validation_alias=AliasChoices("text", "summary_text"))


class AuditDetail(_Strict):
    selection_ref: Optional[str] = Field(
        None, validation_alias=AliasChoices("selection_ref", "selection_id")
    )
    risk_level: RiskLevel
    tag: Optional[str] = Field(None, validation_alias=AliasChoices("tag", "risk_tag"))
    analysis_text: str = Field(..., validation_alias=AliasChoices("analysis_text", "analysis"))
    optimization: Optional[Optimization] = None


class AuditResult(_Strict):
    """Structured risk audit of a portfolio, replaced wholesale on every audit."""

    summary: AuditSummary = Field(
        ..., validation_alias=AliasChoices("summary", "portfolio_summary")
    )
    details: List[AuditDetail] = Field(
        ..., validation_alias=AliasChoices("details", "audit_details")
    )
