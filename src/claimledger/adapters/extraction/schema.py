"""Pydantic models describing documents produced by the AI extraction service."""

from __future__ import annotations

from datetime import date

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from claimledger.domain.ingest.parser import parse_amount, parse_date


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


def _amount(value: object) -> object:
    value = _blank_to_none(value)
    if isinstance(value, str):
        return parse_amount(value)
    return value


def _amount_or_zero(value: object) -> object:
    value = _amount(value)
    return 0.0 if value is None else value


def _date(value: object) -> object:
    if isinstance(value, str):
        return parse_date(value)
    return value


class ExtractionBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ExtractedLine(ExtractionBaseModel):
    concept: str | None = None
    category: str | None = None
    amount: float = 0.0

    _normalize_text = field_validator("concept", "category", mode="before")(_blank_to_none)
    _parse_amount = field_validator("amount", mode="before")(_amount_or_zero)


class ExtractedDocument(ExtractionBaseModel):
    account_ref: str | None = Field(
        default=None, validation_alias=AliasChoices("account_ref", "accountRef", "account")
    )
    communication_code: str | None = Field(
        default=None,
        validation_alias=AliasChoices("communication_code", "communicationCode", "code"),
    )
    kind: str | None = Field(
        default=None, validation_alias=AliasChoices("kind", "record_kind", "recordKind")
    )
    description: str | None = None
    document_date: date | None = Field(
        default=None, validation_alias=AliasChoices("document_date", "documentDate", "date")
    )
    state: str | None = None
    claim_ref: str | None = Field(
        default=None, validation_alias=AliasChoices("claim_ref", "claimRef", "claim")
    )
    insurer: str | None = None
    phenomenon: str | None = None
    loss_date: date | None = Field(
        default=None, validation_alias=AliasChoices("loss_date", "lossDate")
    )
    fund: str | None = None
    district: str | None = None
    adjuster: str | None = None
    declared_total: float = Field(
        default=0.0,
        validation_alias=AliasChoices("declared_total", "declaredTotal", "total"),
    )
    oversight_amount: float | None = Field(
        default=None, validation_alias=AliasChoices("oversight_amount", "oversightAmount")
    )
    lines: list[ExtractedLine] = Field(default_factory=list[ExtractedLine])

    _normalize_text = field_validator(
        "account_ref",
        "communication_code",
        "kind",
        "description",
        "state",
        "claim_ref",
        "insurer",
        "phenomenon",
        "fund",
        "district",
        "adjuster",
        mode="before",
    )(_blank_to_none)
    _parse_total = field_validator("declared_total", mode="before")(_amount_or_zero)
    _parse_oversight = field_validator("oversight_amount", mode="before")(_amount)
    _parse_date = field_validator("document_date", "loss_date", mode="before")(_date)


ExtractedPayload = ExtractedDocument | list[ExtractedDocument]
