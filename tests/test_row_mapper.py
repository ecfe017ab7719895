from datetime import datetime

from core.models import FormDefinition, FormField, Row
from storage.row_mapper import from_row, row_timestamp, row_to_submission, to_row

from conftest import make_submission


def test_to_row_names_columns_by_label(contact_form):
    submission = make_submission(
        {"firstName": "Ada", "email": "ada@example.com", "extra": "ignored"},
        id="123456",
        timestamp=datetime(2024, 1, 31, 9, 5, 0),
    )

    row = to_row(submission, contact_form, "ContactInf_654321_20240131")

    assert row.id == "123456"
    assert row.sheet_id == "654321"
    assert row.form_type == "Contact Information"
    assert row.submission_date == "2024-01-31"
    assert row.submission_time == "09:05:00"
    assert row.columns == {"First Name": "Ada", "Email Address": "ada@example.com", "Company": ""}


def test_to_row_without_schema_uses_legacy_columns():
    row = to_row(make_submission({"phone": 5551234, "message": None}), None, "Legacy")
    assert row.sheet_id == ""
    assert list(row.columns) == ["Name", "Email", "Phone", "Company", "Message"]
    assert row.columns["Phone"] == "5551234"
    assert row.columns["Message"] == ""


def test_reserved_label_is_skipped():
    form = FormDefinition(
        title="Clash",
        fields=[FormField(id="kind", label="Form_Type"), FormField(id="note", label="Note")],
    )
    row = to_row(make_submission({"kind": "spoof", "note": "ok"}, title="Clash"), form, "Clash_111111_20240101")

    assert row.form_type == "Clash"
    assert row.columns == {"Note": "ok"}


def test_list_values_are_joined():
    form = FormDefinition(title="Pick", fields=[FormField(id="tags", label="Tags")])
    row = to_row(make_submission({"tags": ["a", "b"]}), form, "Pick_111111_20240101")
    assert row.columns["Tags"] == "a, b"


def test_from_row_recovers_data_for_same_schema(contact_form):
    data = {"firstName": "Ada", "email": "ada@example.com", "company": "ACME"}
    row = to_row(make_submission(data, id="222222"), contact_form, "ContactInf_111111_20240101")
    assert from_row(row, contact_form) == data


def test_row_to_submission_parses_timestamp(contact_form):
    row = Row.from_flat({
        "ID": "333333",
        "Form_Type": "Contact Information",
        "Submission_Date": "2024-02-29",
        "Submission_Time": "23:59:01",
        "First Name": "Ada",
    })

    submission = row_to_submission(row, contact_form)

    assert submission.id == "333333"
    assert submission.form_id == "contact"
    assert submission.timestamp == datetime(2024, 2, 29, 23, 59, 1)
    assert submission.data["firstName"] == "Ada"
    assert submission.user_agent is None


def test_row_timestamp_tolerates_missing_time():
    row = Row.from_flat({"ID": "444444", "Submission_Date": "2024-03-01", "Submission_Time": "later"})
    assert row_timestamp(row) == datetime(2024, 3, 1)


def test_flat_round_trip_keeps_column_order():
    flat = {"ID": "555555", "Sheet_ID": "111111", "B": "2", "A": "1"}
    row = Row.from_flat(flat)
    assert list(row.to_flat())[-2:] == ["B", "A"]
    assert row.to_flat()["Sheet_ID"] == "111111"


def test_message_only_validation_is_accepted():
    form = FormDefinition.model_validate({
        "title": "Loose",
        "fields": [{"id": "code", "label": "Code", "required": True, "validation": {"message": "bad"}}],
    })

    assert form.fields[0].validation.pattern is None
    assert form.validate_data({"code": "anything"}) == {}
    assert form.validate_data({}) == {"code": "Code is required"}
