"""
Test payment record endpoints
"""
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from bson import ObjectId

from conftest import CREATED_AT, ENTRY_ID, PAYMENT_ID, USER_ID, set_find_result

PAYMENTS_URL = f"/api/v1/entries/{ENTRY_ID}/payments"


def payment_doc(**overrides):
    doc = {
        "_id": ObjectId(PAYMENT_ID),
        "entry_id": ObjectId(ENTRY_ID),
        "owner_id": ObjectId(USER_ID),
        "payment_method": "google_pay",
        "transaction_id": "TXN123",
        "bank_number": None,
        "cheque_number": None,
        "cheque_issuer_name": None,
        "payment_received_date": datetime(2025, 1, 20, tzinfo=timezone.utc),
        "created_at": CREATED_AT,
        "updated_at": CREATED_AT
    }
    doc.update(overrides)
    return doc


@pytest.mark.asyncio
async def test_create_payment(client, mock_db, entry_doc):
    mock_db["entries"].find_one.return_value = entry_doc()
    mock_db["payment_methods"].insert_one.return_value = MagicMock(inserted_id=ObjectId(PAYMENT_ID))

    response = await client.post(
        PAYMENTS_URL,
        json={
            "payment_method": "cheque",
            "cheque_number": "000123",
            "cheque_issuer_name": "Shree Traders",
            "transaction_id": "stray"
        }
    )

    assert response.status_code == 201
    data = response.json()
    assert data["id"] == PAYMENT_ID
    assert data["entry_id"] == ENTRY_ID
    assert data["payment_method"] == "cheque"
    assert data["cheque_issuer_name"] == "Shree Traders"
    assert data["transaction_id"] is None

    stored = mock_db["payment_methods"].insert_one.call_args.args[0]
    assert stored["entry_id"] == ObjectId(ENTRY_ID)
    assert stored["owner_id"] == ObjectId(USER_ID)
    assert stored["payment_received_date"] is not None


@pytest.mark.asyncio
async def test_create_payment_missing_field(client, mock_db, entry_doc):
    mock_db["entries"].find_one.return_value = entry_doc()

    response = await client.post(PAYMENTS_URL, json={"payment_method": "google_pay"})

    assert response.status_code == 422
    assert response.json()["code"] == "MISSING_TRANSACTION_ID"
    mock_db["payment_methods"].insert_one.assert_not_called()


@pytest.mark.asyncio
async def test_create_payment_for_missing_entry(client, mock_db):
    response = await client.post(PAYMENTS_URL, json={"payment_method": "google_pay", "transaction_id": "TXN1"})

    assert response.status_code == 404
    mock_db["payment_methods"].insert_one.assert_not_called()


@pytest.mark.asyncio
async def test_list_payments(client, mock_db, entry_doc):
    mock_db["entries"].find_one.return_value = entry_doc()
    set_find_result(mock_db["payment_methods"], [payment_doc()])

    response = await client.get(PAYMENTS_URL)

    assert response.status_code == 200
    data = response.json()
    assert len(data) == 1
    assert data[0]["transaction_id"] == "TXN123"
    mock_db["payment_methods"].find.assert_called_once_with({
        "entry_id": ObjectId(ENTRY_ID),
        "owner_id": ObjectId(USER_ID)
    })


@pytest.mark.asyncio
async def test_get_payment(client, mock_db):
    mock_db["payment_methods"].find_one.return_value = payment_doc()

    response = await client.get(f"{PAYMENTS_URL}/{PAYMENT_ID}")

    assert response.status_code == 200
    assert response.json()["payment_method"] == "google_pay"


@pytest.mark.asyncio
async def test_update_payment(client, mock_db):
    mock_db["payment_methods"].find_one_and_update.return_value = payment_doc(
        payment_method="bank_transfer", transaction_id=None, bank_number="9988"
    )

    response = await client.put(
        f"{PAYMENTS_URL}/{PAYMENT_ID}",
        json={"payment_method": "bank_transfer", "bank_number": "9988"}
    )

    assert response.status_code == 200
    assert response.json()["bank_number"] == "9988"
    update = mock_db["payment_methods"].find_one_and_update.call_args.args[1]
    assert update["$set"]["transaction_id"] is None
    assert update["$set"]["bank_number"] == "9988"


@pytest.mark.asyncio
async def test_update_missing_payment(client):
    response = await client.put(
        f"{PAYMENTS_URL}/{PAYMENT_ID}",
        json={"payment_method": "bank_transfer", "bank_number": "9988"}
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_delete_payment(client, mock_db):
    mock_db["payment_methods"].delete_one.return_value = MagicMock(deleted_count=1)

    response = await client.delete(f"{PAYMENTS_URL}/{PAYMENT_ID}")

    assert response.status_code == 200
    assert response.json() == {"success": True}


@pytest.mark.asyncio
async def test_delete_missing_payment(client, mock_db):
    mock_db["payment_methods"].delete_one.return_value = MagicMock(deleted_count=0)

    response = await client.delete(f"{PAYMENTS_URL}/{PAYMENT_ID}")

    assert response.status_code == 404
