import json
import re

import pytest

from core.models import SHEET_METADATA_ID
from storage import JsonFileStorage, LocalMirrorStore, MemoryStorage
from storage.mirror import ACTIVE_SHEET_KEY, BACKUP_KEY, LEGACY_SHEET_NAME, SHEETS_KEY
from utils.sheet_names import parse_id

from conftest import make_submission


def seed(storage: MemoryStorage, sheets: dict, active: str = None) -> None:
    storage.set_item(SHEETS_KEY, json.dumps(sheets))
    if active:
        storage.set_item(ACTIVE_SHEET_KEY, active)


def test_append_to_empty_store_creates_default_sheet(mirror):
    row = mirror.append_submission(make_submission({"name": "Ada"}), None)

    active = mirror.active_sheet()
    assert active.startswith("Submissions_")
    assert parse_id(active) == row.sheet_id
    assert re.fullmatch(r"\d{6}", row.id)
    assert [r.id for r in mirror.get_rows(active)] == [row.id]


def test_email_scenario_uses_field_label(mirror, email_form):
    sheet = mirror.create_sheet_for_schema(email_form)
    submission = make_submission({"email": "a@b.com"}, title=email_form.title)

    row = mirror.append_submission(submission, email_form)
    flat = row.to_flat()

    assert flat["Email Address"] == "a@b.com"
    assert "email" not in flat
    assert re.fullmatch(r"\d{6}", flat["ID"])
    assert flat["Sheet_ID"] == parse_id(sheet)
    assert flat["Form_Type"] == "Newsletter Signup"
    assert flat["User_Agent"] == "pytest"
    assert list(flat)[:6] == ["ID", "Sheet_ID", "Form_Type", "Submission_Date", "Submission_Time", "User_Agent"]


def test_legacy_columns_without_schema(mirror):
    row = mirror.append_submission(make_submission({"name": "Ada", "email": "ada@example.com"}), None)
    assert row.columns == {
        "Name": "Ada",
        "Email": "ada@example.com",
        "Phone": "",
        "Company": "",
        "Message": "",
    }


def test_append_keeps_free_submission_id_and_replaces_taken_one(mirror):
    first = mirror.append_submission(make_submission({}, id="424242"), None)
    second = mirror.append_submission(make_submission({}, id="424242"), None)
    legacy = mirror.append_submission(make_submission({}, id="sub_1"), None)

    assert first.id == "424242"
    assert second.id != "424242"
    assert re.fullmatch(r"\d{6}", second.id)
    assert re.fullmatch(r"\d{6}", legacy.id)


def test_append_writes_backup_copy(mirror, storage):
    row = mirror.append_submission(make_submission({"name": "Ada"}), None)
    backup = json.loads(storage.get_item(BACKUP_KEY))
    assert [item["id"] for item in backup] == [row.id]
    assert backup[0]["formTitle"] == "Contact Information"


def test_modify_row_updates_only_given_column(mirror, contact_form):
    mirror.create_sheet_for_schema(contact_form)
    row = mirror.append_submission(
        make_submission({"firstName": "Ada", "email": "ada@example.com", "company": "ACME"}),
        contact_form,
    )
    before = row.to_flat()

    assert mirror.modify_row_by_id(row.id, {"Company": "Analytical Engines"}) is True

    after = mirror.get_row(row.id).to_flat()
    assert after["Company"] == "Analytical Engines"
    assert after["Modified_Date"]
    assert after["Modified_Time"]
    for key, value in before.items():
        if key != "Company":
            assert after[key] == value


def test_modify_cannot_change_row_id(mirror):
    row = mirror.append_submission(make_submission({}), None)
    assert mirror.modify_row_by_id(row.id, {"ID": "000000", "Name": "Grace"})
    updated = mirror.get_row(row.id)
    assert updated is not None
    assert updated.columns["Name"] == "Grace"


def test_modify_and_delete_search_historical_sheets(mirror, contact_form, email_form):
    mirror.create_sheet_for_schema(contact_form)
    old_row = mirror.append_submission(make_submission({"firstName": "Ada"}), contact_form)
    mirror.create_sheet_for_schema(email_form)

    assert mirror.modify_row_by_id(old_row.id, {"First Name": "Grace"})
    assert mirror.get_row(old_row.id).columns["First Name"] == "Grace"
    assert mirror.delete_row_by_id(old_row.id)
    assert mirror.get_row(old_row.id) is None


def test_delete_row_removes_it_from_every_sheet(mirror, contact_form):
    mirror.create_sheet_for_schema(contact_form)
    keep = mirror.append_submission(make_submission({"firstName": "Ada"}), contact_form)
    gone = mirror.append_submission(make_submission({"firstName": "Bob"}), contact_form)

    assert mirror.delete_row_by_id(gone.id) is True

    for rows in mirror.get_sheets().values():
        assert gone.id not in [r.id for r in rows]
    assert mirror.get_row(keep.id) is not None


def test_missing_row_returns_false_and_leaves_sheets_alone(mirror, storage):
    mirror.append_submission(make_submission({"name": "Ada"}), None)
    snapshot = storage.get_item(SHEETS_KEY)

    assert mirror.modify_row_by_id("999999", {"Name": "X"}) is False
    assert mirror.delete_row_by_id("999999") is False
    assert storage.get_item(SHEETS_KEY) == snapshot


def test_sheet_metadata_rows_are_protected(mirror, storage):
    seed(storage, {
        "Form_123456_20240101": [{"ID": SHEET_METADATA_ID, "Sheet_ID": "123456"}, {"ID": "111111"}],
    }, active="Form_123456_20240101")

    assert mirror.modify_row_by_id(SHEET_METADATA_ID, {"Form_Type": "x"}) is False
    assert mirror.delete_row_by_id(SHEET_METADATA_ID) is False
    assert len(mirror.get_rows("Form_123456_20240101")) == 2


def test_new_sheet_keeps_history(mirror, contact_form, email_form):
    first = mirror.create_sheet_for_schema(contact_form)
    mirror.append_submission(make_submission({"firstName": "Ada"}), contact_form)
    rows_before = [r.to_flat() for r in mirror.get_rows(first)]

    second = mirror.create_sheet_for_schema(email_form)

    assert second != first
    assert mirror.active_sheet() == second
    assert [r.to_flat() for r in mirror.get_rows(first)] == rows_before
    assert mirror.get_rows(second) == []


def test_list_sheet_metadata_orders_active_first_then_date_desc(mirror, storage):
    seed(storage, {
        "Alpha_111111_20240101": [{"ID": "000001"}],
        "Beta_222222_20240301": [],
        "Gamma_333333_20240201": [{"ID": "000002"}, {"ID": "000003"}],
        "Legacy": [],
    }, active="Alpha_111111_20240101")

    metadata = mirror.list_sheet_metadata()

    assert [m.name for m in metadata] == [
        "Alpha_111111_20240101",
        "Beta_222222_20240301",
        "Gamma_333333_20240201",
        "Legacy",
    ]
    assert metadata[0].is_active
    assert not any(m.is_active for m in metadata[1:])
    assert metadata[2].row_count == 2
    assert metadata[2].form_name_prefix == "Gamma"
    assert metadata[3].sheet_id == ""


def test_find_sheet_by_id(mirror, email_form):
    name = mirror.create_sheet_for_schema(email_form)
    assert mirror.find_sheet_by_id(parse_id(name)) == name
    assert mirror.find_sheet_by_id("000000") is None
    assert mirror.find_sheet_by_id("") is None


def test_dangling_active_pointer_falls_back_to_first_sheet(mirror, storage):
    seed(storage, {"Old_111111_20240101": [], "Newer_222222_20240201": []}, active="Gone_999999_20240101")

    assert mirror.active_sheet() == "Old_111111_20240101"
    row = mirror.append_submission(make_submission({}), None)

    assert row.sheet_id == "111111"
    assert storage.get_item(ACTIVE_SHEET_KEY) == "Old_111111_20240101"


def test_dangling_pointer_without_sheets_creates_default(mirror, storage):
    storage.set_item(ACTIVE_SHEET_KEY, "Gone_999999_20240101")
    row = mirror.append_submission(make_submission({}), None)
    assert mirror.active_sheet().startswith("Submissions_")
    assert mirror.get_row(row.id) is not None


@pytest.mark.parametrize("raw", ["{not json", "[1, 2, 3]", '"text"', '{"Sheet_123456_20240101": "oops"}'])
def test_corrupted_sheets_read_as_empty(mirror, storage, raw):
    storage.set_item(SHEETS_KEY, raw)

    assert mirror.get_sheets() == {}
    assert mirror.list_sheet_metadata() == []
    row = mirror.append_submission(make_submission({}), None)
    assert mirror.get_row(row.id) is not None


def test_restore_from_backup_builds_legacy_sheet(mirror, storage):
    storage.set_item(BACKUP_KEY, json.dumps([
        {"id": "123123", "formTitle": "Contact", "data": {"name": "Ada"}, "timestamp": "2024-01-31T10:00:00"},
        {"formTitle": "Contact", "data": {"email": "b@c.d"}, "timestamp": "2024-02-01T11:30:00"},
    ]))

    content = mirror.sheet_content()

    rows = content["sheets"][LEGACY_SHEET_NAME]
    assert [r["Sheet_ID"] for r in rows] == ["000001", "000001"]
    assert rows[0]["ID"] == "123123"
    assert rows[0]["Name"] == "Ada"
    assert rows[0]["Submission_Date"] == "2024-01-31"
    assert rows[1]["Email"] == "b@c.d"
    assert re.fullmatch(r"\d{6}", rows[1]["ID"])
    assert content["active_sheet"] == LEGACY_SHEET_NAME
    assert mirror.restore_from_backup() is None


def test_load_active_submissions_round_trips_with_stable_schema(mirror, contact_form):
    mirror.create_sheet_for_schema(contact_form)
    data = {"firstName": "Ada", "email": "ada@example.com", "company": "ACME"}
    row = mirror.append_submission(make_submission(data), contact_form)

    submissions = mirror.load_active_submissions(contact_form)

    assert len(submissions) == 1
    assert submissions[0].id == row.id
    assert submissions[0].data == data
    assert submissions[0].form_title == "Contact Information"


def test_load_active_submissions_falls_back_to_backup(mirror, storage):
    storage.set_item(BACKUP_KEY, json.dumps([{"id": "555555", "formTitle": "Old", "data": {"x": "1"}}]))
    submissions = mirror.load_active_submissions(None)
    assert [s.id for s in submissions] == ["555555"]


def test_statistics(mirror, email_form):
    name = mirror.create_sheet_for_schema(email_form)
    stats = mirror.statistics(email_form)
    assert stats.total_sheets == 1
    assert stats.current_active_sheet == name
    assert stats.current_active_sheet_id == parse_id(name)
    assert stats.current_form_id == "form_100001"
    assert mirror.statistics(None).current_form_title == "No Form"


def test_json_file_storage_shares_state_between_stores(tmp_path, email_form):
    path = tmp_path / "store" / "local.json"
    writer = LocalMirrorStore(JsonFileStorage(path))
    writer.create_sheet_for_schema(email_form)
    row = writer.append_submission(make_submission({"email": "a@b.com"}), email_form)

    reader = LocalMirrorStore(JsonFileStorage(path))
    assert reader.get_row(row.id).columns["Email Address"] == "a@b.com"
    assert reader.active_sheet() == writer.active_sheet()


def test_json_file_storage_treats_garbage_as_empty(tmp_path):
    path = tmp_path / "local.json"
    path.write_text("not json at all", encoding="utf-8")
    storage = JsonFileStorage(path)

    assert storage.get_item(SHEETS_KEY) is None
    storage.set_item("currentActiveSheet", "X_123456_20240101")
    assert json.loads(path.read_text(encoding="utf-8")) == {"currentActiveSheet": "X_123456_20240101"}


def test_sheet_schema_is_recorded_per_sheet(mirror, contact_form, email_form):
    first = mirror.create_sheet_for_schema(contact_form)
    second = mirror.create_sheet_for_schema(email_form)

    assert mirror.sheet_schema(first) == (True, contact_form)
    assert mirror.sheet_schema(second)[1].id == email_form.id
    assert mirror.sheet_schema("Unknown_123456_20240101") == (False, None)


def test_default_sheet_records_schema_of_first_row(mirror):
    row = mirror.append_submission(make_submission({"name": "Ada"}), None)
    sheet_name, located = mirror.locate_row(row.id)

    assert located.id == row.id
    assert mirror.sheet_schema(sheet_name) == (True, None)
