"""Statements router - vendor format listing and statement upload parsing."""

from fastapi import APIRouter, Depends, File, Form, UploadFile

from apps.api.core.config import Settings, get_settings
from apps.api.domains.statements.schemas import FormatsResponse, StatementResponse
from apps.api.domains.statements.service import (
    list_vendor_formats,
    parse_upload,
    resolve_vendor_format,
)

router = APIRouter(prefix="/statements", tags=["statements"])


@router.get("/formats", response_model=FormatsResponse)
async def get_formats(settings: Settings = Depends(get_settings)):
    """List the vendor statement formats the parser understands."""
    return FormatsResponse(formats=list_vendor_formats(settings))


@router.post("/{vendor}/parse", response_model=StatementResponse)
async def parse_statement_upload(
    vendor: str,
    file: UploadFile = File(...),
    password: str = Form(None),
    settings: Settings = Depends(get_settings),
):
    """Parse an uploaded Nagad / bKash statement into canonical records.

    A readable file always yields 200, even with zero records; the
    warnings and stats explain what was dropped. Only files that cannot
    be read at all are rejected.
    """
    vendor_format = resolve_vendor_format(vendor, settings)
    return await parse_upload(file, vendor_format, settings, password=password)
