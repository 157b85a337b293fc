import pytest

from message_board_mcp.categories import DEFAULT_TAB_NAMES, CategoryTable


def test_default_table_entries_in_order():
    entries = CategoryTable().entries()
    assert len(entries) == 10
    assert entries[0] == {"id": "1", "name": "First Messages"}
    assert entries[-1] == {"id": "10", "name": "New Task"}
    assert [e["id"] for e in entries] == [key for key, _ in DEFAULT_TAB_NAMES]


def test_name_to_key_is_case_insensitive():
    tabs = CategoryTable()
    assert tabs.name_to_key("second messages") == "2"
    assert tabs.name_to_key("NOT INTERESTED") == "6"


def test_name_to_key_no_match_returns_none():
    tabs = CategoryTable()
    assert tabs.name_to_key("Nonexistent") is None
    assert tabs.name_to_key(None) is None
    assert tabs.name_to_key("") is None


def test_name_to_key_last_match_wins():
    tabs = CategoryTable.from_pairs([("1", "Inbox"), ("2", "Other"), ("3", "INBOX")])
    assert tabs.name_to_key("inbox") == "3"
    assert tabs.keys_for_name("Inbox") == ["1", "3"]


def test_key_to_name_synthesizes_unknown_tabs():
    tabs = CategoryTable()
    assert tabs.key_to_name("7") == "Interested"
    assert tabs.key_to_name("42") == "Tab 42"


def test_from_setting_parses_pairs():
    tabs = CategoryTable.from_setting("1=Todo, 2 = Done ,")
    assert tabs.entries() == [{"id": "1", "name": "Todo"}, {"id": "2", "name": "Done"}]


def test_from_setting_empty_uses_defaults():
    assert CategoryTable.from_setting("") == CategoryTable()


def test_from_setting_rejects_malformed_entries():
    with pytest.raises(ValueError):
        CategoryTable.from_setting("1=Todo,Done")
