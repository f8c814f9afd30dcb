import pytest

from reminders_bridge.builders import (
    CreateList,
    CreateReminder,
    DeleteList,
    DeleteReminder,
    MoveReminder,
    RenameList,
    UpdateReminder,
    build_script,
)
from reminders_bridge.errors import InvalidDateError


def _body(script: str):
    lines = script.splitlines()
    assert lines[0] == 'tell application "Reminders"'
    assert lines[-1] == "end tell"
    return lines[1:-1]


class TestCreateReminder:
    def test_buy_milk_in_errands_with_date_only(self):
        script = build_script(CreateReminder(title="Buy milk", list="Errands", due_date="2025-01-01"))
        assert _body(script) == [
            'if not (exists list "Errands") then',
            '  error "List not found: Errands"',
            "end if",
            'set targetList to list "Errands"',
            'set reminderProps to {name:"Buy milk", allday due date:date "January 1, 2025"}',
            "set newReminder to make new reminder at end of targetList with properties reminderProps",
        ]

    def test_default_list_and_timed_due_date(self):
        script = build_script(CreateReminder(title="Call", due_date="2024-12-25 14:30:00"))
        assert "set targetList to default list" in script
        assert "exists list" not in script
        assert 'due date:date "December 25, 2024 2:30:00 PM"' in script
        assert "allday" not in script

    def test_note_and_url_become_structured_body(self):
        script = build_script(
            CreateReminder(title="Order", note="Pick up", url="https://example.com/order/1")
        )
        assert 'body:"Pick up\\n\\nURLs:\\n- https://example.com/order/1"' in script

    def test_values_are_escaped(self):
        script = build_script(CreateReminder(title='Say "hi"', list="Bob's"))
        assert 'set targetList to list "Bob\\\'s"' in script
        assert 'name:"Say \\"hi\\""' in script
        assert 'error "List not found: Bob\\\'s"' in script

    def test_invalid_due_date_is_rejected(self):
        with pytest.raises(InvalidDateError):
            build_script(CreateReminder(title="x", due_date="2024-13-01"))


class TestUpdateReminder:
    def test_targets_by_title_and_guards(self):
        script = build_script(UpdateReminder(title="Buy milk", list="Errands", completed=True))
        body = _body(script)
        assert body[:9] == [
            'if not (exists list "Errands") then',
            '  error "List not found: Errands"',
            "end if",
            'set targetList to list "Errands"',
            'set targetReminders to reminders of targetList whose name is "Buy milk"',
            "if (count of targetReminders) is 0 then",
            '  error "Reminder not found: Buy milk"',
            "else",
            "  set targetReminder to first item of targetReminders",
        ]
        assert body[9:] == ["  set completed of targetReminder to true", "end if"]

    def test_without_list_searches_every_reminder(self):
        script = build_script(UpdateReminder(title="Buy milk", new_title="Buy oat milk"))
        assert 'set targetReminders to every reminder whose name is "Buy milk"' in script
        assert '  set name of targetReminder to "Buy oat milk"' in script

    def test_one_statement_per_supplied_field(self):
        script = build_script(
            UpdateReminder(title="T", new_title="N", due_date="2025-03-01", note="text", completed=False)
        )
        assert '  set name of targetReminder to "N"' in script
        assert '  set allday due date of targetReminder to date "March 1, 2025"' in script
        assert '  set body of targetReminder to "text"' in script
        assert "  set completed of targetReminder to false" in script

    def test_url_only_appends_to_existing_body(self):
        script = build_script(UpdateReminder(title="T", url="https://example.com"))
        assert "  set currentBody to body of targetReminder" in script
        assert '  if currentBody is missing value then set currentBody to ""' in script
        assert '  set body of targetReminder to currentBody & "\\n\\nURLs:\\n- https://example.com"' in script

    def test_nothing_supplied_only_checks_existence(self):
        body = _body(build_script(UpdateReminder(title="T")))
        assert body[-1] == "end if"
        assert not any(line.startswith("  set ") and "targetReminder to first" not in line for line in body)


class TestDeleteAndMove:
    def test_delete_removes_first_match(self):
        script = build_script(DeleteReminder(title="Buy milk"))
        assert "  delete first item of targetReminders" in script
        assert 'error "Reminder not found: Buy milk"' in script
        assert "exists list" not in script

    def test_delete_in_named_list_guards_the_list(self):
        body = _body(build_script(DeleteReminder(title="Buy milk", list="Errands")))
        assert body[:4] == [
            'if not (exists list "Errands") then',
            '  error "List not found: Errands"',
            "end if",
            'set targetList to list "Errands"',
        ]

    def test_move_guards_both_lists_and_reminder(self):
        body = _body(build_script(MoveReminder(title="Buy milk", from_list="Errands", to_list="Home")))
        assert body[:6] == [
            'if not (exists list "Errands") then',
            '  error "List not found: Errands"',
            "end if",
            'if not (exists list "Home") then',
            '  error "List not found: Home"',
            "end if",
        ]
        assert 'set targetReminders to reminders of sourceList whose name is "Buy milk"' in body
        assert '  error "Reminder not found in list Errands: Buy milk"' in body
        assert "  move targetReminder to destList" in body


class TestListScripts:
    def test_create_list(self):
        assert _body(build_script(CreateList(name="Groceries"))) == [
            'set newList to make new list with properties {name:"Groceries"}'
        ]

    def test_rename_list(self):
        body = _body(build_script(RenameList(name="Groceries", new_name="Shopping")))
        assert body[0] == 'if not (exists list "Groceries") then'
        assert body[-1] == 'set name of list "Groceries" to "Shopping"'

    def test_delete_list(self):
        body = _body(build_script(DeleteList(name="Old")))
        assert body[1] == '  error "List not found: Old"'
        assert body[-1] == 'delete list "Old"'

    def test_unknown_request_type(self):
        with pytest.raises(TypeError):
            build_script(object())
