from __future__ import annotations

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

PriceSource = Literal["model", "fallback_extracted", "fallback_synthetic"]


class PredictRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    specs: str = Field(..., min_length=1)


class PriceRange(BaseModel):
    min: float = Field(..., gt=0)
    max: float = Field(..., gt=0)

    @model_validator(mode="after")
    def _check_order(self) -> "PriceRange":
        if self.min > self.max:
            raise ValueError("range min must not exceed max")
        return self


class UpstreamRange(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    min: float = Field(..., gt=0)
    max: float = Field(..., gt=0)


class UpstreamPrediction(BaseModel):
    """Shape the model is asked to return. Only the price fields and product are required."""

    model_config = ConfigDict(extra="ignore", allow_inf_nan=False)

    predicted_price_inr: float = Field(..., gt=0)
    range_inr: UpstreamRange
    product: str
    confidence: Optional[float] = None
    category: Optional[str] = None
    specs_extracted: Optional[Dict[str, str]] = None
    explanation_bullets: Optional[List[str]] = None
    anomalies: Optional[List[str]] = None
    market_sources: Optional[List[str]] = None
    last_updated: Optional[str] = None

    @field_validator("product")
    @classmethod
    def _product_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("product must not be blank")
        return value

    @field_validator("specs_extracted", mode="before")
    @classmethod
    def _stringify_spec_values(cls, value):
        if isinstance(value, dict):
            return {
                str(key): item if isinstance(item, str) else str(item)
                for key, item in value.items()
                if item is not None
            }
        return value


class PredictionResult(BaseModel):
    model_config = ConfigDict(validate_by_name=True)

    predicted_price: float = Field(..., gt=0, alias="predicted_price_inr")
    price_range: PriceRange = Field(..., alias="range_inr")
    confidence: float = Field(..., ge=0, le=1)
    product_name: str = Field(..., alias="product")
    category: str
    extracted_specs: Dict[str, str] = Field(default_factory=dict, alias="specs_extracted")
    explanation_bullets: List[str] = Field(default_factory=list)
    anomalies: List[str] = Field(default_factory=list)
    market_sources: List[str] = Field(default_factory=list)
    generated_at: str = Field(..., alias="last_updated")
    price_source: PriceSource = "model"

    @model_validator(mode="after")
    def _price_within_range(self) -> "PredictionResult":
        if not (self.price_range.min <= self.predicted_price <= self.price_range.max):
            raise ValueError("predicted price must lie within the price range")
        return self

    def to_contract_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class ErrorResponse(BaseModel):
    error: str
    code: Optional[str] = None
