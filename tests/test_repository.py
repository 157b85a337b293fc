from datetime import datetime, timezone

import pytest

from message_board_mcp import repository
from message_board_mcp.categories import CategoryTable
from message_board_mcp.document import Document
from message_board_mcp.errors import InvalidIdFormat, MessageNotFound, MissingRequiredField
from message_board_mcp.utils import locale_timestamp

TABS = CategoryTable()
NOW = datetime(2026, 10, 17, 12, 30, 0, tzinfo=timezone.utc)


def _doc(data):
    return Document.from_json(data)


def test_list_all_messages_in_tab_then_index_order():
    doc = _doc({"10": ["j"], "2": ["b0", "b1"], "1": ["a0"], "lastSaved": "t0"})
    ids = [view.id for view in repository.list_messages(doc, TABS)]
    assert ids == ["tab1-msg0", "tab2-msg0", "tab2-msg1", "tab10-msg0"]


def test_list_message_view_fields():
    long_text = "y" * 60
    doc = _doc({"2": [long_text]})
    (view,) = repository.list_messages(doc, TABS)
    assert view.to_dict() == {
        "id": "tab2-msg0",
        "title": "y" * 50 + "...",
        "content": long_text,
        "tabId": "2",
        "category": "Second Messages",
    }


def test_list_by_category_is_case_insensitive():
    doc = _doc({"1": ["a"], "2": ["b", "c"]})
    views = repository.list_messages(doc, TABS, category="second MESSAGES")
    assert [v.content for v in views] == ["b", "c"]


def test_list_unknown_category_is_empty():
    doc = _doc({"1": ["a"]})
    assert repository.list_messages(doc, TABS, category="Nonexistent") == []


def test_list_skips_legacy_scalar_tabs():
    doc = _doc({"1": "legacy", "2": ["b"]})
    assert [v.id for v in repository.list_messages(doc, TABS)] == ["tab2-msg0"]


def test_list_pagination():
    doc = _doc({"1": ["a0", "a1", "a2"], "2": ["b0", "b1"]})
    page_two = repository.list_messages(doc, TABS, limit=2, page=2)
    assert [v.id for v in page_two] == ["tab1-msg2", "tab2-msg0"]
    first = repository.list_messages(doc, TABS, limit=2)
    assert [v.id for v in first] == ["tab1-msg0", "tab1-msg1"]
    assert repository.list_messages(doc, TABS, limit=2, page=9) == []
    assert len(repository.list_messages(doc, TABS, limit=0)) == 5


def test_get_message_echoes_requested_id():
    doc = _doc({"1": ["hello"]})
    view = repository.get_message(doc, TABS, "tab1-msg0")
    assert view.content == "hello"
    assert view.category == "First Messages"
    assert view.id == "tab1-msg0"


@pytest.mark.parametrize("message_id", ["tab1-msg1", "tab1-msg-1", "tab3-msg0", "tab2-msg0"])
def test_get_message_not_found(message_id):
    doc = _doc({"1": ["hello"], "2": "legacy"})
    with pytest.raises(MessageNotFound, match=f"Message not found: {message_id}"):
        repository.get_message(doc, TABS, message_id)


def test_get_message_invalid_and_missing_ids():
    doc = _doc({"1": ["hello"]})
    with pytest.raises(InvalidIdFormat):
        repository.get_message(doc, TABS, "tab0-msg0")
    with pytest.raises(MissingRequiredField, match="messageId is required"):
        repository.get_message(doc, TABS, "")


def test_create_then_get_returns_content():
    doc = _doc({"1": ["hello"], "lastSaved": "t0"})
    next_doc, created = repository.create_message(doc, TABS, "T", "fresh", category="Interested", now=NOW)
    assert created.id == "tab7-msg0"
    assert repository.get_message(next_doc, TABS, created.id).content == "fresh"
    assert doc.sequence("7") is None


def test_create_defaults_to_first_tab():
    doc = _doc({"1": ["hello"]})
    next_doc, created = repository.create_message(doc, TABS, "T", "x", category="Unknown Tab")
    assert created.id == "tab1-msg1"
    assert next_doc.sequence("1") == ("hello", "x")
    _, created_no_category = repository.create_message(doc, TABS, "T", "x")
    assert created_no_category.view.tab_id == "1"


def test_create_payload_echoes_title_and_stamps_created_at():
    doc = _doc({})
    _, created = repository.create_message(doc, TABS, "My title", "body", now=NOW)
    payload = created.to_dict()
    assert payload["title"] == "My title"
    assert payload["createdAt"] == "2026-10-17T12:30:00+00:00"
    assert payload["category"] == "First Messages"


def test_create_coerces_legacy_scalar_tab():
    doc = _doc({"3": "old note"})
    next_doc, created = repository.create_message(doc, TABS, "T", "new", category="Third Messages")
    assert next_doc.sequence("3") == ("old note", "new")
    assert created.id == "tab3-msg1"


def test_create_does_not_touch_last_saved():
    doc = _doc({"1": [], "lastSaved": "t0"})
    next_doc, _ = repository.create_message(doc, TABS, "T", "c", now=NOW)
    assert next_doc.last_saved == "t0"


@pytest.mark.parametrize(("title", "content"), [("", "c"), ("t", ""), (None, "c"), ("t", None)])
def test_create_requires_title_and_content(title, content):
    with pytest.raises(MissingRequiredField, match="title and content are required"):
        repository.create_message(_doc({}), TABS, title, content)


def test_update_content_in_place():
    doc = _doc({"1": ["a", "b"], "lastSaved": "t0"})
    next_doc, update = repository.update_message(doc, TABS, "tab1-msg1", content="B", title="New", now=NOW)
    assert next_doc.sequence("1") == ("a", "B")
    assert next_doc.last_saved == locale_timestamp(NOW)
    assert update.to_dict() == {
        "id": "tab1-msg1",
        "currentId": "tab1-msg1",
        "content": "B",
        "tabId": "1",
        "category": "First Messages",
        "updatedAt": "2026-10-17T12:30:00+00:00",
        "title": "New",
    }


def test_update_without_title_omits_it():
    doc = _doc({"1": ["a"]})
    _, update = repository.update_message(doc, TABS, "tab1-msg0", content="z")
    assert "title" not in update.to_dict()


def test_update_move_keeps_total_count():
    doc = _doc({"1": ["a", "b", "c"], "2": ["x"]})
    next_doc, update = repository.update_message(doc, TABS, "tab1-msg0", category="Second Messages")
    assert next_doc.sequence("1") == ("b", "c")
    assert next_doc.sequence("2") == ("x", "a")
    assert next_doc.message_count() == doc.message_count()
    assert update.current_id == "tab2-msg1"
    assert update.tab_id == "2"


def test_update_move_with_new_content():
    doc = _doc({"1": ["a"]})
    next_doc, update = repository.update_message(doc, TABS, "tab1-msg0", content="A2", category="Affiliate")
    assert next_doc.sequence("1") == ()
    assert next_doc.sequence("8") == ("A2",)
    assert update.content == "A2"


def test_update_same_or_unknown_category_stays_put():
    doc = _doc({"1": ["a", "b"]})
    same_doc, same = repository.update_message(doc, TABS, "tab1-msg0", category="first messages")
    assert same_doc.sequence("1") == ("a", "b")
    assert same.current_id == "tab1-msg0"
    unknown_doc, unknown = repository.update_message(doc, TABS, "tab1-msg0", category="Nope")
    assert unknown_doc.sequence("1") == ("a", "b")
    assert unknown.current_id == "tab1-msg0"


def test_update_move_into_legacy_tab_coerces_it():
    doc = _doc({"1": ["a"], "9": {"legacy": 1}})
    next_doc, update = repository.update_message(doc, TABS, "tab1-msg0", category="Old Connections")
    assert next_doc.sequence("9") == ('{"legacy":1}', "a")
    assert update.current_id == "tab9-msg1"


def test_update_failures_leave_document_untouched():
    doc = _doc({"1": ["a"], "lastSaved": "t0"})
    with pytest.raises(MessageNotFound):
        repository.update_message(doc, TABS, "tab1-msg5", content="x")
    with pytest.raises(MissingRequiredField):
        repository.update_message(doc, TABS, None, content="x")
    assert doc.to_json() == {"1": ["a"], "lastSaved": "t0"}


def test_delete_shifts_later_messages_down():
    doc = _doc({"1": ["first", "second"], "lastSaved": "t0"})
    next_doc, receipt = repository.delete_message(doc, TABS, "tab1-msg0", now=NOW)
    assert next_doc.sequence("1") == ("second",)
    assert next_doc.last_saved == locale_timestamp(NOW)
    # The old id for index 1 is stale; its content now answers at index 0.
    assert repository.get_message(next_doc, TABS, "tab1-msg0").content == "second"
    with pytest.raises(MessageNotFound):
        repository.get_message(next_doc, TABS, "tab1-msg1")
    assert receipt.to_dict() == {
        "success": True,
        "messageId": "tab1-msg0",
        "tabId": "1",
        "category": "First Messages",
        "deletedAt": "2026-10-17T12:30:00+00:00",
    }


def test_delete_last_message_then_get_is_not_found():
    doc = _doc({"4": ["only"]})
    next_doc, _ = repository.delete_message(doc, TABS, "tab4-msg0")
    with pytest.raises(MessageNotFound):
        repository.get_message(next_doc, TABS, "tab4-msg0")


def test_categories_ignore_document():
    assert repository.list_categories(TABS) == TABS.entries()
    assert len(repository.list_categories(TABS)) == 10


def test_create_then_move_scenario():
    doc = _doc({"1": ["hello"], "lastSaved": "t0"})

    doc, created = repository.create_message(doc, TABS, "X", "world", category="Second Messages", now=NOW)
    assert created.id == "tab2-msg0"
    assert doc.to_json() == {"1": ["hello"], "2": ["world"], "lastSaved": "t0"}

    doc, update = repository.update_message(doc, TABS, "tab2-msg0", category="First Messages", now=NOW)
    assert doc.to_json() == {"1": ["hello", "world"], "2": [], "lastSaved": locale_timestamp(NOW)}
    payload = update.to_dict()
    assert payload["id"] == "tab2-msg0"
    assert payload["currentId"] == "tab1-msg1"
    assert payload["category"] == "First Messages"


def test_require_title_and_content_returns_validated_pair():
    assert repository.require_title_and_content("t", "c") == ("t", "c")
