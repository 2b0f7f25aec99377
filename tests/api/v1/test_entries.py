"""
Test entry endpoints
"""
from io import BytesIO
from unittest.mock import MagicMock

import pytest
from bson import ObjectId
from openpyxl import load_workbook
from pymongo.errors import AutoReconnect, ServerSelectionTimeoutError

from banani.services.email_templates import NotificationKind
from conftest import ENTRY_ID, USER_ID, set_find_result


def inserted(entry_id=ENTRY_ID):
    result = MagicMock()
    result.inserted_id = ObjectId(entry_id)
    return result


class TestDraftEditing:

    @pytest.mark.asyncio
    async def test_new_draft(self, client):
        response = await client.get("/api/v1/entries/draft")

        assert response.status_code == 200
        data = response.json()
        assert len(data["columns"]) == 1
        assert data["columns"][0]["columnNumber"] == 1
        assert len(data["columns"][0]["rows"]) == 10
        assert data["grand_total"] == 0
        assert data["rate_per_20kg"] is None

    @pytest.mark.asyncio
    async def test_set_weight_recomputes_totals(self, client, draft_body):
        response = await client.post(
            "/api/v1/entries/draft/weight",
            json={"draft": draft_body(weights=(10, 5)), "column_index": 0, "row_index": 1, "value": "12.5"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["columns"][0]["rows"][1]["weight"] == 12.5
        assert data["columns"][0]["columnTotal"] == 22.5
        assert data["grand_total"] == 22.5
        assert data["total_earned"] == 450.0

    @pytest.mark.asyncio
    async def test_set_weight_with_garbage_counts_zero(self, client, draft_body):
        response = await client.post(
            "/api/v1/entries/draft/weight",
            json={"draft": draft_body(weights=(10, 5)), "column_index": 0, "row_index": 0, "value": "abc"}
        )

        assert response.status_code == 200
        assert response.json()["grand_total"] == 5.0

    @pytest.mark.asyncio
    async def test_set_weight_on_missing_column(self, client, draft_body):
        response = await client.post(
            "/api/v1/entries/draft/weight",
            json={"draft": draft_body(), "column_index": 4, "row_index": 0, "value": "1"}
        )

        assert response.status_code == 422
        assert response.json()["code"] == "INVALID_COLUMN"
        assert response.json()["kind"] == "validation_failure"

    @pytest.mark.asyncio
    async def test_set_remark(self, client, draft_body):
        response = await client.post(
            "/api/v1/entries/draft/remark",
            json={"draft": draft_body(), "column_index": 0, "row_index": 0, "remark": "wet bunches"}
        )

        assert response.status_code == 200
        assert response.json()["columns"][0]["rows"][0]["remark"] == "wet bunches"

    @pytest.mark.asyncio
    async def test_add_and_delete_column(self, client, draft_body):
        response = await client.post("/api/v1/entries/draft/columns", json=draft_body())
        assert response.status_code == 200
        draft = response.json()
        assert [c["columnNumber"] for c in draft["columns"]] == [1, 2]
        assert len(draft["columns"][1]["rows"]) == 10

        response = await client.post("/api/v1/entries/draft/columns/0/delete", json=draft)
        assert response.status_code == 200
        assert [c["columnNumber"] for c in response.json()["columns"]] == [2]

    @pytest.mark.asyncio
    async def test_last_column_is_kept(self, client, draft_body):
        response = await client.post("/api/v1/entries/draft/columns/0/delete", json=draft_body())

        assert response.status_code == 200
        assert len(response.json()["columns"]) == 1

    @pytest.mark.asyncio
    async def test_validate_draft(self, client, draft_body):
        response = await client.post("/api/v1/entries/draft/validate", json=draft_body(weights=(0,), rate=""))

        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is False
        assert data["errors"] == ["MISSING_WEIGHT", "MISSING_RATE"]

        response = await client.post("/api/v1/entries/draft/validate", json=draft_body())
        assert response.json()["ok"] is True
        assert response.json()["draft"]["total_earned"] == 300.0

    @pytest.mark.asyncio
    async def test_draft_requires_session(self, anon_client):
        response = await anon_client.get("/api/v1/entries/draft")

        assert response.status_code == 401
        assert response.json()["code"] == "MISSING_SESSION"


class TestSaveEntry:

    @pytest.mark.asyncio
    async def test_create_entry(self, client, mock_db, mock_notifier, draft_body):
        mock_db["entries"].insert_one.return_value = inserted()
        body = draft_body(grand_total=999, total_earned=1, owner_id="aaaaaaaaaaaaaaaaaaaaaaaa")

        response = await client.post("/api/v1/entries", json=body)

        assert response.status_code == 201
        data = response.json()
        assert data["id"] == ENTRY_ID
        assert data["owner_id"] == USER_ID
        assert data["grand_total"] == 15.0
        assert data["total_earned"] == 300.0
        assert data["columns"][0]["columnTotal"] == 15.0

        stored = mock_db["entries"].insert_one.call_args.args[0]
        assert stored["owner_id"] == ObjectId(USER_ID)
        assert stored["date"] == "2025-01-15"
        assert stored["grand_total"] == 15.0
        assert stored["columns"][0]["columnNumber"] == 1

    @pytest.mark.asyncio
    async def test_create_entry_sends_notification(self, client, mock_db, mock_notifier, draft_body):
        mock_db["entries"].insert_one.return_value = inserted()

        await client.post("/api/v1/entries", json=draft_body())

        mock_notifier.notify.assert_called_once_with(
            NotificationKind.NEW_ENTRY,
            "ravi@example.com",
            "Ravi",
            {"date": "15/01/2025", "weight": "15.00", "earnings": "300.00", "currency": "INR"}
        )

    @pytest.mark.asyncio
    async def test_failed_notification_does_not_fail_save(self, client, mock_db, mock_notifier, draft_body):
        mock_db["entries"].insert_one.return_value = inserted()
        mock_notifier.notify.return_value = False

        response = await client.post("/api/v1/entries", json=draft_body())

        assert response.status_code == 201

    @pytest.mark.asyncio
    async def test_create_entry_without_rate(self, client, mock_db, mock_notifier, draft_body):
        response = await client.post("/api/v1/entries", json=draft_body(rate="0"))

        assert response.status_code == 422
        assert response.json()["code"] == "MISSING_RATE"
        mock_db["entries"].insert_one.assert_not_called()
        mock_notifier.notify.assert_not_called()

    @pytest.mark.asyncio
    async def test_create_entry_without_weight(self, client, mock_db, draft_body):
        response = await client.post("/api/v1/entries", json=draft_body(weights=("", "abc")))

        assert response.status_code == 422
        assert response.json()["code"] == "MISSING_WEIGHT"
        mock_db["entries"].insert_one.assert_not_called()

    @pytest.mark.asyncio
    async def test_store_unavailable(self, client, mock_db, mock_notifier, draft_body):
        mock_db["entries"].insert_one.side_effect = ServerSelectionTimeoutError("no servers")

        response = await client.post("/api/v1/entries", json=draft_body())

        assert response.status_code == 503
        assert response.json()["kind"] == "collaborator_unavailable"
        assert response.json()["code"] == "STORE_UNAVAILABLE"
        mock_notifier.notify.assert_not_called()

    @pytest.mark.asyncio
    async def test_update_entry(self, client, mock_db, entry_doc, draft_body):
        mock_db["entries"].find_one_and_update.return_value = entry_doc(
            grand_total=20, total_earned=400, rate_per_20kg=400
        )

        response = await client.put(f"/api/v1/entries/{ENTRY_ID}", json=draft_body(weights=(10, 10)))

        assert response.status_code == 200
        assert response.json()["total_earned"] == 400.0
        query, update = mock_db["entries"].find_one_and_update.call_args.args[:2]
        assert query == {"_id": ObjectId(ENTRY_ID), "owner_id": ObjectId(USER_ID)}
        assert update["$set"]["grand_total"] == 20.0
        assert "owner_id" not in update["$set"]

    @pytest.mark.asyncio
    async def test_update_missing_entry(self, client, draft_body):
        response = await client.put(f"/api/v1/entries/{ENTRY_ID}", json=draft_body())
        assert response.status_code == 404


class TestReadEntries:

    @pytest.mark.asyncio
    async def test_list_entries(self, client, mock_db, entry_doc):
        set_find_result(mock_db["entries"], [entry_doc()])

        response = await client.get("/api/v1/entries")

        assert response.status_code == 200
        data = response.json()
        assert len(data) == 1
        assert data[0]["id"] == ENTRY_ID
        assert data[0]["total_earned"] == 300.0
        mock_db["entries"].find.assert_called_once_with({"owner_id": ObjectId(USER_ID)})

    @pytest.mark.asyncio
    async def test_list_entries_filtered_by_date(self, client, mock_db, entry_doc):
        set_find_result(mock_db["entries"], [entry_doc()])

        response = await client.get("/api/v1/entries", params={"date": "02/2025"})

        assert response.status_code == 200
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_legacy_entry_without_earnings(self, client, mock_db, entry_doc):
        set_find_result(mock_db["entries"], [entry_doc(rate_per_20kg=None, total_earned=None)])

        response = await client.get("/api/v1/entries")

        assert response.json()[0]["total_earned"] is None
        assert response.json()[0]["rate_per_20kg"] is None

    @pytest.mark.asyncio
    async def test_get_entry(self, client, mock_db, entry_doc):
        mock_db["entries"].find_one.return_value = entry_doc()

        response = await client.get(f"/api/v1/entries/{ENTRY_ID}")

        assert response.status_code == 200
        assert response.json()["dealer_name"] == "Shree Traders"

    @pytest.mark.asyncio
    async def test_get_entry_not_found(self, client):
        response = await client.get(f"/api/v1/entries/{ENTRY_ID}")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_get_entry_invalid_id(self, client, mock_db):
        response = await client.get("/api/v1/entries/not-an-id")

        assert response.status_code == 404
        mock_db["entries"].find_one.assert_not_called()

    @pytest.mark.asyncio
    async def test_summary(self, client, mock_db, entry_doc):
        set_find_result(mock_db["entries"], [
            entry_doc(date="2025-02-03", total_earned=150, grand_total=10),
            entry_doc(),
            entry_doc(date="2025-01-02", total_earned="100.5", grand_total="5.02"),
        ])

        response = await client.get("/api/v1/entries/summary")

        assert response.status_code == 200
        data = response.json()
        assert data["total_earnings"] == 550.5
        assert data["entry_count"] == 3
        assert [m["month_key"] for m in data["months"]] == ["2025-02", "2025-01"]
        assert data["months"][1]["label"] == "Jan 2025"
        assert data["months"][1]["total"] == 400.5
        assert data["months"][1]["entry_count"] == 2


class TestGridLayout:

    @pytest.mark.asyncio
    async def test_short_column_is_padded_on_save(self, client, mock_db, draft_body):
        mock_db["entries"].insert_one.return_value = inserted()

        response = await client.post("/api/v1/entries", json=draft_body(weights=(10, 5)))

        assert response.status_code == 201
        stored = mock_db["entries"].insert_one.call_args.args[0]
        assert len(stored["columns"][0]["rows"]) == 10
        assert stored["columns"][0]["rows"][9] == {"weight": 0.0, "remark": ""}
        assert stored["grand_total"] == 15.0

    @pytest.mark.asyncio
    async def test_long_column_is_rejected(self, client, mock_db, draft_body):
        response = await client.post("/api/v1/entries", json=draft_body(weights=[1] * 11))

        assert response.status_code == 422
        assert response.json()["code"] == "INVALID_COLUMN"
        mock_db["entries"].insert_one.assert_not_called()

    @pytest.mark.asyncio
    async def test_repeated_column_number_is_rejected(self, client, mock_db, draft_body):
        body = draft_body()
        body["columns"].append(dict(body["columns"][0]))

        response = await client.post("/api/v1/entries", json=body)

        assert response.status_code == 422
        assert response.json()["code"] == "INVALID_COLUMN"
        mock_db["entries"].insert_one.assert_not_called()

    @pytest.mark.asyncio
    async def test_repeated_column_number_is_rejected_on_update(self, client, mock_db, draft_body):
        body = draft_body()
        body["columns"].append(dict(body["columns"][0]))

        response = await client.put(f"/api/v1/entries/{ENTRY_ID}", json=body)

        assert response.status_code == 422
        assert response.json()["code"] == "INVALID_COLUMN"
        mock_db["entries"].find_one_and_update.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("sent", [None, "", "n/a"])
    async def test_unusable_client_totals_are_recomputed(self, client, draft_body, sent):
        body = draft_body(weights=(10, 5), grand_total=sent, total_earned=sent)
        body["columns"][0]["columnTotal"] = sent

        response = await client.post(
            "/api/v1/entries/draft/weight",
            json={"draft": body, "column_index": 0, "row_index": 0, "value": "20"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["columns"][0]["columnTotal"] == 25.0
        assert data["grand_total"] == 25.0
        assert data["total_earned"] == 500.0

    @pytest.mark.asyncio
    async def test_unusable_client_totals_do_not_block_save(self, client, mock_db, draft_body):
        mock_db["entries"].insert_one.return_value = inserted()
        body = draft_body(grand_total="", total_earned=None)
        body["columns"][0]["columnTotal"] = None

        response = await client.post("/api/v1/entries", json=body)

        assert response.status_code == 201
        assert response.json()["grand_total"] == 15.0


class TestDeleteEntry:

    @pytest.mark.asyncio
    async def test_delete_cascades_to_payments(self, client, mock_db):
        mock_db["entries"].delete_one.return_value = MagicMock(deleted_count=1)

        response = await client.delete(f"/api/v1/entries/{ENTRY_ID}")

        assert response.status_code == 200
        assert response.json() == {"success": True}
        mock_db["payment_methods"].delete_many.assert_called_once_with({
            "entry_id": ObjectId(ENTRY_ID),
            "owner_id": ObjectId(USER_ID)
        })

    @pytest.mark.asyncio
    async def test_delete_missing_entry(self, client, mock_db):
        mock_db["entries"].delete_one.return_value = MagicMock(deleted_count=0)

        response = await client.delete(f"/api/v1/entries/{ENTRY_ID}")

        assert response.status_code == 404
        assert response.json()["detail"] == "Entry not found"

    @pytest.mark.asyncio
    async def test_store_failure_during_payment_cleanup(self, client, mock_db):
        mock_db["payment_methods"].delete_many.side_effect = AutoReconnect("connection reset")

        response = await client.delete(f"/api/v1/entries/{ENTRY_ID}")

        assert response.status_code == 503
        assert response.json()["code"] == "STORE_UNAVAILABLE"
        mock_db["entries"].delete_one.assert_not_called()


class TestEntryNotifications:

    @pytest.mark.asyncio
    async def test_monthly_summary_email(self, client, mock_db, mock_notifier, entry_doc):
        set_find_result(mock_db["entries"], [entry_doc()])

        response = await client.post("/api/v1/entries/summary/2025-01/notify")

        assert response.status_code == 202
        mock_notifier.notify.assert_called_once_with(
            NotificationKind.MONTHLY_EARNINGS,
            "ravi@example.com",
            "Ravi",
            {"month": "Jan 2025", "totalEarnings": "300.00", "totalWeight": "15.00", "entryCount": "1"}
        )

    @pytest.mark.asyncio
    async def test_monthly_summary_without_entries(self, client, mock_db, mock_notifier, entry_doc):
        set_find_result(mock_db["entries"], [entry_doc()])

        response = await client.post("/api/v1/entries/summary/2025-03/notify")

        assert response.status_code == 404
        mock_notifier.notify.assert_not_called()

    @pytest.mark.asyncio
    async def test_monthly_summary_bad_month(self, client):
        response = await client.post("/api/v1/entries/summary/2025-13/notify")
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_payment_due_email(self, client, mock_db, mock_notifier, entry_doc):
        mock_db["entries"].find_one.return_value = entry_doc(payment_due_date="2025-02-01")

        response = await client.post(f"/api/v1/entries/{ENTRY_ID}/payment-due/notify")

        assert response.status_code == 202
        mock_notifier.notify.assert_called_once_with(
            NotificationKind.PAYMENT_DUE,
            "ravi@example.com",
            "Ravi",
            {"dueDate": "01/02/2025", "amount": "300.00"}
        )

    @pytest.mark.asyncio
    async def test_payment_due_without_date(self, client, mock_db, mock_notifier, entry_doc):
        mock_db["entries"].find_one.return_value = entry_doc()

        response = await client.post(f"/api/v1/entries/{ENTRY_ID}/payment-due/notify")

        assert response.status_code == 422
        assert response.json()["code"] == "MISSING_DUE_DATE"
        mock_notifier.notify.assert_not_called()


class TestExport:

    @pytest.mark.asyncio
    async def test_export_entry(self, client, mock_db, entry_doc):
        mock_db["entries"].find_one.return_value = entry_doc()

        response = await client.get(f"/api/v1/entries/{ENTRY_ID}/export")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith(
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
        )
        assert 'filename="BananiExpense_15-01-2025.xlsx"' in response.headers["content-disposition"]

        worksheet = load_workbook(BytesIO(response.content)).active
        assert worksheet["B1"].value == "15/01/2025"

    @pytest.mark.asyncio
    async def test_export_missing_entry(self, client):
        response = await client.get(f"/api/v1/entries/{ENTRY_ID}/export")
        assert response.status_code == 404
