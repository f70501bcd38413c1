"""Pydantic schemas for the statements domain."""

from typing import Optional

from pydantic import BaseModel, Field


class VendorFormatOut(BaseModel):
    """A vendor statement layout the parser understands."""

    name: str
    label: str
    default_headers: list[str]
    critical_fields: list[str]
    confidence_threshold: float


class FormatsResponse(BaseModel):
    formats: list[VendorFormatOut]


class TransactionRecordOut(BaseModel):
    """One canonical statement line."""

    id: str
    source_file_id: str
    file_name: str
    row_index: int
    transaction_id: str
    serial: Optional[str] = None
    timestamp: Optional[str] = None
    transaction_type: Optional[str] = None
    statement_account: Optional[str] = None
    counterparty_account: Optional[str] = None
    counterparty_name: Optional[str] = None
    sender: Optional[str] = None
    receiver: Optional[str] = None
    channel: Optional[str] = None
    reference: Optional[str] = None
    direction: Optional[str] = None
    amount: Optional[float] = None
    fee: Optional[float] = None
    balance_after: Optional[float] = None
    status: Optional[str] = None
    fingerprint: str


class ParseStatsOut(BaseModel):
    data_rows: int
    blank_rows: int
    excluded_rows: int
    records: int


class StatementResponse(BaseModel):
    """Result of parsing one uploaded statement."""

    file_name: str
    vendor: str
    records: list[TransactionRecordOut]
    count: int
    headers: list[str]
    identified_headers: Optional[list[str]] = None
    header_row_index: int
    detection_score: Optional[float] = None
    low_confidence: bool = False
    warnings: list[str] = Field(default_factory=list)
    stats: ParseStatsOut
