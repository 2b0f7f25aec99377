from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from banani.core.auth import get_current_user
from banani.db.mongo import get_db
from banani.models.payment import PaymentMethodCreate, PaymentMethodInDB, PaymentMethodResponse, PaymentMethodUpdate
from banani.models.user import UserResponse
from banani.repositories.entry_repo import EntryRepository
from banani.repositories.payment_repo import PaymentRepository
from banani.utils.payment_validation import validate_payment_method

router = APIRouter(prefix="/entries/{entry_id}/payments", tags=["payments"])


def _to_payment_response(payment: PaymentMethodInDB) -> PaymentMethodResponse:
    return PaymentMethodResponse(
        id=str(payment.id),
        entry_id=str(payment.entry_id),
        owner_id=str(payment.owner_id),
        payment_method=payment.payment_method,
        transaction_id=payment.transaction_id,
        bank_number=payment.bank_number,
        cheque_number=payment.cheque_number,
        cheque_issuer_name=payment.cheque_issuer_name,
        payment_received_date=payment.payment_received_date,
        created_at=payment.created_at,
        updated_at=payment.updated_at
    )


async def _require_entry(entry_id: str, owner_id: str, db) -> None:
    entry = await EntryRepository(db).get_by_id(entry_id, owner_id)
    if not entry:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Entry not found"
        )


def _payment_not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="Payment record not found"
    )


@router.get("", response_model=List[PaymentMethodResponse])
async def list_payments(
    entry_id: str,
    current_user: UserResponse = Depends(get_current_user),
    db = Depends(get_db)
):
    """List payment records for one of the current user's entries."""
    await _require_entry(entry_id, current_user.id, db)
    payments = await PaymentRepository(db).list_by_entry(entry_id, current_user.id)
    return [_to_payment_response(payment) for payment in payments]


@router.post("", response_model=PaymentMethodResponse, status_code=status.HTTP_201_CREATED)
async def create_payment(
    entry_id: str,
    payment: PaymentMethodCreate,
    current_user: UserResponse = Depends(get_current_user),
    db = Depends(get_db)
):
    """
    Record how an entry was paid.

    The fields required depend on the method; fields of other methods are
    discarded.
    """
    await _require_entry(entry_id, current_user.id, db)
    payload = validate_payment_method(payment)
    created = await PaymentRepository(db).create(entry_id, current_user.id, payment, payload)
    return _to_payment_response(created)


@router.get("/{payment_id}", response_model=PaymentMethodResponse)
async def get_payment(
    entry_id: str,
    payment_id: str,
    current_user: UserResponse = Depends(get_current_user),
    db = Depends(get_db)
):
    payment = await PaymentRepository(db).get_by_id(payment_id, entry_id, current_user.id)
    if not payment:
        raise _payment_not_found()
    return _to_payment_response(payment)


@router.put("/{payment_id}", response_model=PaymentMethodResponse)
async def update_payment(
    entry_id: str,
    payment_id: str,
    payment: PaymentMethodUpdate,
    current_user: UserResponse = Depends(get_current_user),
    db = Depends(get_db)
):
    payload = validate_payment_method(payment)
    updated = await PaymentRepository(db).update(payment_id, entry_id, current_user.id, payment, payload)
    if not updated:
        raise _payment_not_found()
    return _to_payment_response(updated)


@router.delete("/{payment_id}")
async def delete_payment(
    entry_id: str,
    payment_id: str,
    current_user: UserResponse = Depends(get_current_user),
    db = Depends(get_db)
):
    deleted = await PaymentRepository(db).delete(payment_id, entry_id, current_user.id)
    if not deleted:
        raise _payment_not_found()
    return {"success": True}
