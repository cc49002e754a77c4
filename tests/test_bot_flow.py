"""
Tests for the Telegram session list and form conversation
"""

from unittest.mock import Mock, AsyncMock, patch

import pytest
from telegram.ext import CommandHandler, ConversationHandler

from katha.commands.session_form import (
    FORM_MENU,
    AWAITING_VALUE,
    PICKING_FORMAT,
    FORM_KIND_KEY,
    FIELD_KEY,
    CREATE,
    EDIT,
    normalize_value,
    new_session_command,
    start_edit,
    field_selected,
    value_received,
    format_selected,
    submit_form,
    cancel_form,
    cancel_command,
    session_form_conversation,
)
from katha.commands.sessions import sessions_command
from katha.editor import BUSY_MESSAGE
from katha.handlers.access import ensure_coach, NOT_AUTHORIZED_MESSAGE
from katha.handlers.buttons import button_callback
from katha.services.formatting import build_session_list
from telegram_bot import register_handlers


def make_callback_update(data: str, user_id: int = 12345):
    query = AsyncMock()
    query.data = data
    update = Mock()
    update.effective_user = Mock(id=user_id)
    update.callback_query = query
    update.message = None
    return update, query


def make_message_update(text: str, user_id: int = 12345):
    update = Mock()
    update.effective_user = Mock(id=user_id)
    update.callback_query = None
    update.message = AsyncMock()
    update.message.text = text
    return update


def make_context():
    context = Mock()
    context.user_data = {}
    return context


@pytest.fixture
def stored_editor(editor):
    """Route editor loading/saving in every handler module to one in-memory editor"""
    targets = [
        "katha.commands.session_form",
        "katha.commands.sessions",
        "katha.handlers.buttons",
    ]
    patchers = []
    for target in targets:
        patchers.append(patch(f"{target}.load_editor", return_value=editor))
        patchers.append(patch(f"{target}.save_editor"))
    for patcher in patchers:
        patcher.start()
    yield editor
    for patcher in patchers:
        patcher.stop()


class TestNormalizeValue:
    """Tests for turning typed text into field values"""

    def test_date_is_checked(self):
        assert normalize_value("default_date", " 2025-03-01 ") == "2025-03-01"
        with pytest.raises(ValueError):
            normalize_value("default_date", "01/03/2025")

    def test_time_is_checked(self):
        assert normalize_value("default_time", "9:05") == "09:05"
        with pytest.raises(ValueError):
            normalize_value("default_time", "25:00")

    def test_dash_clears_optional_fields_only(self):
        assert normalize_value("meeting_link", "-") == ""
        assert normalize_value("title", "-") == "-"

    def test_numbers_are_left_for_validation(self):
        assert normalize_value("price", "105") == "105"


class TestAccess:
    """Tests for restricting the bot to the configured coach"""

    @pytest.mark.asyncio
    async def test_any_user_allowed_without_coach_id(self):
        update = make_message_update("/start")
        assert await ensure_coach(update)

    @pytest.mark.asyncio
    async def test_other_user_rejected(self, monkeypatch):
        monkeypatch.setenv("COACH_TELEGRAM_ID", "999")
        update = make_message_update("/start", user_id=12345)

        assert not await ensure_coach(update)
        update.message.reply_text.assert_called_once_with(NOT_AUTHORIZED_MESSAGE)


class TestSessionList:
    """Tests for rendering and refreshing the list"""

    @pytest.mark.asyncio
    async def test_sessions_command_fetches_and_renders(self, stored_editor, backend):
        update = make_message_update("/sessions")

        await sessions_command(update, make_context())

        assert ("fetch",) in backend.calls
        text = update.message.reply_text.call_args[0][0]
        assert "Discovery Call" in text
        assert "Group Workshop" in text

    def test_list_hides_other_buttons_while_editing(self, editor):
        editor.start_edit("a1")
        _, markup = build_session_list(editor)

        callbacks = [b.callback_data for row in markup.inline_keyboard for b in row]
        assert "edit:a1" in callbacks
        assert "edit:b2" not in callbacks
        assert "delete:b2" not in callbacks
        assert "new_session" not in callbacks

    def test_list_shows_saving_placeholder(self, editor, backend):
        rendered = {}

        def update_session(offering_id, payload):
            rendered["list"] = build_session_list(editor)

        backend.update_session = update_session
        editor.start_edit("a1")
        editor.save_edit()

        text, markup = rendered["list"]
        assert "Saving changes" in text
        callbacks = [b.callback_data for row in markup.inline_keyboard for b in row]
        assert callbacks == ["sessions"]


class TestEditFlow:
    """Tests for the edit conversation"""

    @pytest.mark.asyncio
    async def test_start_edit_opens_form(self, stored_editor):
        update, query = make_callback_update("edit:a1")
        context = make_context()

        state = await start_edit(update, context)

        assert state == FORM_MENU
        assert context.user_data[FORM_KIND_KEY] == EDIT
        assert stored_editor.active_offering_id == "a1"
        assert "Editing" in query.edit_message_text.call_args[0][0]

    @pytest.mark.asyncio
    async def test_second_edit_refused(self, stored_editor):
        stored_editor.start_edit("a1")
        update, query = make_callback_update("edit:b2")

        state = await start_edit(update, make_context())

        assert state == ConversationHandler.END
        query.answer.assert_called_once_with(BUSY_MESSAGE, show_alert=True)
        assert stored_editor.active_offering_id == "a1"

    @pytest.mark.asyncio
    async def test_field_then_value_updates_draft(self, stored_editor):
        stored_editor.start_edit("a1")
        context = make_context()
        context.user_data[FORM_KIND_KEY] = EDIT

        update, _ = make_callback_update("field:price")
        assert await field_selected(update, context) == AWAITING_VALUE
        assert context.user_data[FIELD_KEY] == "price"

        message_update = make_message_update("80")
        assert await value_received(message_update, context) == FORM_MENU
        assert stored_editor.edit_form.draft.price == "80"
        assert stored_editor.get("a1").price == 50

    @pytest.mark.asyncio
    async def test_invalid_date_asks_again(self, stored_editor):
        stored_editor.start_edit("a1")
        context = make_context()
        context.user_data.update({FORM_KIND_KEY: EDIT, FIELD_KEY: "default_date"})

        message_update = make_message_update("tomorrow")
        assert await value_received(message_update, context) == AWAITING_VALUE
        assert stored_editor.edit_form.draft.default_date == ""

    @pytest.mark.asyncio
    async def test_format_picker(self, stored_editor):
        stored_editor.start_edit("a1")
        context = make_context()
        context.user_data[FORM_KIND_KEY] = EDIT

        update, _ = make_callback_update("field:format")
        assert await field_selected(update, context) == PICKING_FORMAT

        update, _ = make_callback_update("format:group")
        assert await format_selected(update, context) == FORM_MENU
        assert stored_editor.edit_form.draft.format == "group"

    @pytest.mark.asyncio
    async def test_submit_saves_and_ends(self, stored_editor, backend):
        stored_editor.start_edit("a1")
        stored_editor.edit_form.change("title", "Intro Call")
        context = make_context()
        context.user_data[FORM_KIND_KEY] = EDIT

        update, query = make_callback_update("submit_form")
        state = await submit_form(update, context)

        assert state == ConversationHandler.END
        assert backend.records[0]["title"] == "Intro Call"
        assert query.edit_message_text.call_args_list[0][0][0] == "⏳ Saving changes…"
        assert "Intro Call" in query.edit_message_text.call_args_list[-1][0][0]

    @pytest.mark.asyncio
    async def test_submit_invalid_stays_on_form(self, stored_editor, backend):
        stored_editor.start_edit("a1")
        stored_editor.edit_form.change("duration", "45")
        context = make_context()
        context.user_data[FORM_KIND_KEY] = EDIT

        update, query = make_callback_update("submit_form")
        state = await submit_form(update, context)

        assert state == FORM_MENU
        assert "multiples of 30" in query.edit_message_text.call_args[0][0]

    @pytest.mark.asyncio
    async def test_cancel_discards_edit(self, stored_editor):
        stored_editor.start_edit("a1")
        stored_editor.edit_form.change("title", "Never saved")
        context = make_context()
        context.user_data[FORM_KIND_KEY] = EDIT

        update, _ = make_callback_update("cancel_form")
        assert await cancel_form(update, context) == ConversationHandler.END
        assert not stored_editor.is_busy
        assert stored_editor.get("a1").title == "Discovery Call"


class TestCreateFlow:
    """Tests for the create conversation"""

    @pytest.mark.asyncio
    async def test_new_session_refused_while_editing(self, stored_editor):
        stored_editor.start_edit("a1")
        update = make_message_update("/newsession")

        state = await new_session_command(update, make_context())

        assert state == ConversationHandler.END
        assert BUSY_MESSAGE in update.message.reply_text.call_args[0][0]

    @pytest.mark.asyncio
    async def test_submit_hidden_until_required_fields(self, stored_editor):
        update = make_message_update("/newsession")
        context = make_context()

        assert await new_session_command(update, context) == FORM_MENU
        markup = update.message.reply_text.call_args[1]["reply_markup"]
        callbacks = [b.callback_data for row in markup.inline_keyboard for b in row]
        assert "submit_form" not in callbacks
        assert context.user_data[FORM_KIND_KEY] == CREATE

    @pytest.mark.asyncio
    async def test_create_submit(self, stored_editor, backend):
        for name, value in {"title": "Career Coaching", "duration": "60", "price": "120"}.items():
            stored_editor.create_form.change(name, value)
        context = make_context()
        context.user_data[FORM_KIND_KEY] = CREATE

        update, query = make_callback_update("submit_form")
        state = await submit_form(update, context)

        assert state == ConversationHandler.END
        assert backend.records[-1]["title"] == "Career Coaching"
        assert "Session created successfully." in query.edit_message_text.call_args[0][0]


class TestDeleteButtons:
    """Tests for the two-step delete buttons"""

    @pytest.mark.asyncio
    async def test_delete_asks_for_confirmation(self, stored_editor, backend):
        update, query = make_callback_update("delete:a1")

        await button_callback(update, make_context())

        assert ("delete", "a1") not in backend.calls
        markup = query.edit_message_text.call_args[1]["reply_markup"]
        callbacks = [b.callback_data for row in markup.inline_keyboard for b in row]
        assert callbacks == ["confirm_delete:a1", "cancel_delete"]

    @pytest.mark.asyncio
    async def test_confirm_deletes(self, stored_editor, backend):
        await button_callback(make_callback_update("delete:a1")[0], make_context())
        update, query = make_callback_update("confirm_delete:a1")

        await button_callback(update, make_context())

        assert ("delete", "a1") in backend.calls
        assert [o.id for o in stored_editor.offerings] == ["b2"]
        assert "Session deleted successfully." in query.edit_message_text.call_args[0][0]

    @pytest.mark.asyncio
    async def test_cancel_keeps_record(self, stored_editor, backend):
        await button_callback(make_callback_update("delete:a1")[0], make_context())
        await button_callback(make_callback_update("cancel_delete")[0], make_context())
        await button_callback(make_callback_update("confirm_delete:a1")[0], make_context())

        assert ("delete", "a1") not in backend.calls
        assert len(stored_editor.offerings) == 2


class TestLeftoverEdit:
    """Tests for getting out of an edit whose form is no longer open"""

    @pytest.mark.asyncio
    async def test_removed_offering_frees_the_list(self, stored_editor, backend):
        stored_editor.start_edit("a1")
        backend.records = [r for r in backend.records if r["id"] != "a1"]
        update = make_message_update("/sessions")

        await sessions_command(update, make_context())

        assert not stored_editor.is_busy
        text = update.message.reply_text.call_args[0][0]
        markup = update.message.reply_text.call_args[1]["reply_markup"]
        callbacks = [b.callback_data for row in markup.inline_keyboard for b in row]
        assert "no longer exists" in text
        assert "edit:b2" in callbacks
        assert "new_session" in callbacks

    @pytest.mark.asyncio
    async def test_cancel_command_without_open_form(self, stored_editor):
        stored_editor.start_edit("a1")
        stored_editor.create_form.change("title", "Kept draft")
        update = make_message_update("/cancel")

        state = await cancel_command(update, make_context())

        assert state == ConversationHandler.END
        assert not stored_editor.is_busy
        assert stored_editor.create_form.draft.title == "Kept draft"

    def test_cancel_registered_outside_conversation(self):
        application = Mock()

        register_handlers(application)

        handlers = [c[0][0] for c in application.add_handler.call_args_list]
        conversation_index = handlers.index(session_form_conversation)
        cancel_indexes = [
            i for i, h in enumerate(handlers)
            if isinstance(h, CommandHandler) and "cancel" in h.commands
        ]
        assert cancel_indexes
        assert cancel_indexes[0] > conversation_index


class TestOpenFormButtons:
    """Tests for buttons pressed on older messages while a form is open"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("data", ["edit:b2", "new_session"])
    async def test_entry_buttons_answered_as_busy(self, stored_editor, backend, data):
        update, query = make_callback_update(data)

        await button_callback(update, make_context())

        query.answer.assert_called_once_with(BUSY_MESSAGE, show_alert=True)
        query.edit_message_text.assert_not_called()
        assert not stored_editor.is_busy

    @pytest.mark.asyncio
    async def test_save_shown_only_after_a_change(self, stored_editor):
        update, query = make_callback_update("edit:a1")
        context = make_context()
        await start_edit(update, context)

        markup = query.edit_message_text.call_args[1]["reply_markup"]
        callbacks = [b.callback_data for row in markup.inline_keyboard for b in row]
        assert "submit_form" not in callbacks

        context.user_data[FIELD_KEY] = "title"
        message_update = make_message_update("Intro Call")
        await value_received(message_update, context)

        markup = message_update.message.reply_text.call_args[1]["reply_markup"]
        callbacks = [b.callback_data for row in markup.inline_keyboard for b in row]
        assert "submit_form" in callbacks
