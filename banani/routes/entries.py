from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Path, Query, Response, status

from banani.core.auth import get_current_user
from banani.core.config import settings
from banani.core.errors import ValidationFailure
from banani.db.mongo import get_db
from banani.models.entry import Column, EntryDraft, EntryInDB, EntryResponse
from banani.models.user import UserResponse
from banani.repositories.entry_repo import EntryRepository
from banani.schemas.entry import (
    DashboardSummaryResponse,
    DraftValidationResponse,
    MonthlySummaryResponse,
    RemarkUpdate,
    WeightUpdate,
)
from banani.services import entry_calculator as calculator
from banani.services import reporting
from banani.services.email_templates import NotificationKind
from banani.services.export import export_filename, flatten, workbook_bytes
from banani.services.notifications import EmailNotifier, get_notifier

router = APIRouter(prefix="/entries", tags=["entries"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _to_entry_response(entry: EntryInDB) -> EntryResponse:
    """Convert EntryInDB model to EntryResponse schema."""
    return EntryResponse(
        id=str(entry.id),
        owner_id=str(entry.owner_id),
        date=entry.date,
        dealer_name=entry.dealer_name,
        location=entry.location,
        vehicle_number=entry.vehicle_number,
        columns=entry.columns,
        grand_total=entry.grand_total,
        rate_per_20kg=entry.rate_per_20kg,
        payment_due_date=entry.payment_due_date,
        total_earned=entry.total_earned,
        created_at=entry.created_at,
        updated_at=entry.updated_at
    )


def _column(draft: EntryDraft, index: int) -> Column:
    if not 0 <= index < len(draft.columns):
        raise ValidationFailure(f"Column {index} does not exist", code="INVALID_COLUMN")
    return draft.columns[index]


async def _get_owned_entry(entry_id: str, owner_id: str, db) -> EntryInDB:
    entry = await EntryRepository(db).get_by_id(entry_id, owner_id)
    if not entry:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Entry not found"
        )
    return entry


def _prepare_for_save(draft: EntryDraft) -> EntryDraft:
    draft = calculator.normalize(draft)
    calculator.validate_for_save(draft).raise_for_errors()
    return draft


# Draft editing. The server keeps no draft state; each call returns the
# updated draft with fresh totals.

@router.get("/draft", response_model=EntryDraft)
async def new_draft(current_user: UserResponse = Depends(get_current_user)):
    """An empty draft: today's date and one empty column."""
    return calculator.new_draft()


@router.post("/draft/weight", response_model=EntryDraft)
async def set_draft_weight(
    update: WeightUpdate,
    current_user: UserResponse = Depends(get_current_user)
):
    """Set one weight cell. Unparseable input counts as 0."""
    draft = update.draft
    calculator.set_weight(_column(draft, update.column_index), update.row_index, update.value)
    return calculator.normalize(draft)


@router.post("/draft/remark", response_model=EntryDraft)
async def set_draft_remark(
    update: RemarkUpdate,
    current_user: UserResponse = Depends(get_current_user)
):
    draft = update.draft
    calculator.set_remark(_column(draft, update.column_index), update.row_index, update.remark)
    return draft


@router.post("/draft/columns", response_model=EntryDraft)
async def add_draft_column(
    draft: EntryDraft,
    current_user: UserResponse = Depends(get_current_user)
):
    """Append an empty column numbered past the highest existing number."""
    draft.columns = calculator.add_column(draft.columns)
    return calculator.normalize(draft)


@router.post("/draft/columns/{index}/delete", response_model=EntryDraft)
async def delete_draft_column(
    draft: EntryDraft,
    index: int = Path(..., ge=0),
    current_user: UserResponse = Depends(get_current_user)
):
    """Remove a column. The last remaining column is never removed."""
    draft.columns = calculator.delete_column(draft.columns, index)
    return calculator.normalize(draft)


@router.post("/draft/validate", response_model=DraftValidationResponse)
async def validate_draft(
    draft: EntryDraft,
    current_user: UserResponse = Depends(get_current_user)
):
    result = calculator.validate_for_save(draft)
    return DraftValidationResponse(
        ok=result.ok,
        errors=[code.value for code in result.errors],
        draft=calculator.normalize(draft)
    )


# Dashboard

@router.get("/summary", response_model=DashboardSummaryResponse)
async def get_summary(
    current_user: UserResponse = Depends(get_current_user),
    db = Depends(get_db)
):
    """Total earnings plus per-month earnings, most recent month first."""
    entries = await EntryRepository(db).list_by_owner(current_user.id)
    return DashboardSummaryResponse(
        total_earnings=reporting.total_earnings(entries),
        entry_count=len(entries),
        months=[
            MonthlySummaryResponse(**vars(summary))
            for summary in reporting.group_by_month(entries)
        ]
    )


@router.post("/summary/{month_key}/notify", status_code=status.HTTP_202_ACCEPTED)
async def notify_monthly_earnings(
    background_tasks: BackgroundTasks,
    month_key: str = Path(..., pattern=r"^\d{4}-(0[1-9]|1[0-2])$"),
    current_user: UserResponse = Depends(get_current_user),
    db = Depends(get_db),
    notifier: EmailNotifier = Depends(get_notifier)
):
    """Email the current user their earnings summary for one month."""
    entries = await EntryRepository(db).list_by_owner(current_user.id)
    summary = reporting.find_month(entries, month_key)
    if summary is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No entries for that month"
        )

    background_tasks.add_task(
        notifier.notify,
        NotificationKind.MONTHLY_EARNINGS,
        current_user.email,
        current_user.display_name,
        {
            "month": summary.label,
            "totalEarnings": f"{summary.total:.2f}",
            "totalWeight": f"{summary.total_weight:.2f}",
            "entryCount": str(summary.entry_count)
        }
    )
    return {"message": "Summary email queued"}


# Entries

@router.post("", response_model=EntryResponse, status_code=status.HTTP_201_CREATED)
async def create_entry(
    draft: EntryDraft,
    background_tasks: BackgroundTasks,
    current_user: UserResponse = Depends(get_current_user),
    db = Depends(get_db),
    notifier: EmailNotifier = Depends(get_notifier)
):
    """
    Save a draft as a new entry.

    - Rejects a zero grand total or a missing rate
    - Totals are recomputed here; client-sent totals are ignored
    - The owner is the authenticated user, never a field of the body
    - A new-entry email is sent after the response; its failure does not
      affect the save
    """
    draft = _prepare_for_save(draft)
    entry = await EntryRepository(db).create(draft, current_user.id)

    background_tasks.add_task(
        notifier.notify,
        NotificationKind.NEW_ENTRY,
        current_user.email,
        current_user.display_name,
        {
            "date": reporting.format_display_date(entry.date),
            "weight": f"{entry.grand_total:.2f}",
            "earnings": f"{entry.total_earned:.2f}",
            "currency": settings.CURRENCY
        }
    )
    return _to_entry_response(entry)


@router.get("", response_model=List[EntryResponse])
async def list_entries(
    date: Optional[str] = Query(None, description="Match part of the dd/mm/yyyy entry date"),
    current_user: UserResponse = Depends(get_current_user),
    db = Depends(get_db)
):
    """List the current user's entries, newest date first."""
    entries = await EntryRepository(db).list_by_owner(current_user.id)
    return [_to_entry_response(entry) for entry in reporting.filter_by_date(entries, date)]


@router.get("/{entry_id}", response_model=EntryResponse)
async def get_entry(
    entry_id: str,
    current_user: UserResponse = Depends(get_current_user),
    db = Depends(get_db)
):
    entry = await _get_owned_entry(entry_id, current_user.id, db)
    return _to_entry_response(entry)


@router.put("/{entry_id}", response_model=EntryResponse)
async def update_entry(
    entry_id: str,
    draft: EntryDraft,
    current_user: UserResponse = Depends(get_current_user),
    db = Depends(get_db)
):
    """Replace an entry with an edited draft. Same validation as create."""
    draft = _prepare_for_save(draft)
    entry = await EntryRepository(db).update(entry_id, draft, current_user.id)
    if not entry:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Entry not found"
        )
    return _to_entry_response(entry)


@router.delete("/{entry_id}")
async def delete_entry(
    entry_id: str,
    current_user: UserResponse = Depends(get_current_user),
    db = Depends(get_db)
):
    """Permanently delete an entry and its payment records."""
    deleted = await EntryRepository(db).delete(entry_id, current_user.id)
    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Entry not found"
        )
    return {"success": True}


@router.post("/{entry_id}/payment-due/notify", status_code=status.HTTP_202_ACCEPTED)
async def notify_payment_due(
    entry_id: str,
    background_tasks: BackgroundTasks,
    current_user: UserResponse = Depends(get_current_user),
    db = Depends(get_db),
    notifier: EmailNotifier = Depends(get_notifier)
):
    """Email a payment-due reminder for an entry."""
    entry = await _get_owned_entry(entry_id, current_user.id, db)
    if entry.payment_due_date is None:
        raise ValidationFailure("Entry has no payment due date", code="MISSING_DUE_DATE")

    background_tasks.add_task(
        notifier.notify,
        NotificationKind.PAYMENT_DUE,
        current_user.email,
        current_user.display_name,
        {
            "dueDate": reporting.format_display_date(entry.payment_due_date),
            "amount": f"{entry.total_earned or 0:.2f}"
        }
    )
    return {"message": "Reminder email queued"}


@router.get("/{entry_id}/export")
async def export_entry(
    entry_id: str,
    current_user: UserResponse = Depends(get_current_user),
    db = Depends(get_db)
):
    """Download an entry as an .xlsx workbook."""
    entry = await _get_owned_entry(entry_id, current_user.id, db)
    content = workbook_bytes(flatten(entry))
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{export_filename(entry)}"'}
    )
