import pytest

from noponto_core.notifier import TEST_MESSAGE, MilestoneNotifier, NotificationMessage, message_for
from noponto_core.session_monitor import WorkAlmostComplete, WorkComplete


@pytest.fixture
def notifier():
    return MilestoneNotifier()


def test_complete_message():
    message = message_for(WorkComplete(session_id="s1"))
    assert message.title == "🎉 Jornada Completa!"
    assert "8 horas" in message.message
    assert message.kind == "success"
    assert message.icon == "🎉"


def test_complete_message_with_uneven_target():
    message = message_for(WorkComplete(session_id="s1"), target_minutes=390)
    assert "6h 30m" in message.message


def test_almost_complete_message_pluralises():
    assert "3 minutos" in message_for(WorkAlmostComplete(remaining_minutes=3, session_id="s1")).message
    single = message_for(WorkAlmostComplete(remaining_minutes=1, session_id="s1"))
    assert "1 minuto " in single.message
    assert single.icon == "⏰"
    assert single.kind == "warning"


def test_unknown_event_is_rejected():
    with pytest.raises(TypeError):
        message_for(object())


def test_plain_title_gets_default_icon():
    assert NotificationMessage(title="Olá", message="").icon == "✅"
    assert TEST_MESSAGE.icon == "🧪"


def test_duplicate_delivery_is_dropped(notifier):
    shown = []
    notifier.add_presenter(shown.append)

    assert notifier.deliver(WorkComplete(session_id="s1")) is True
    assert notifier.deliver(WorkComplete(session_id="s1")) is False
    assert notifier.deliver(WorkComplete(session_id="s2")) is True
    assert notifier.deliver(WorkAlmostComplete(remaining_minutes=2, session_id="s2")) is True

    assert [message.kind for message in shown] == ["success", "success", "warning"]


def test_failing_presenter_does_not_block_others(notifier, log_messages):
    shown = []

    def broken(message):
        raise RuntimeError("tray unavailable")

    notifier.add_presenter(broken)
    notifier.add_presenter(shown.append)
    delivered = []
    notifier.delivered.connect(delivered.append)

    notifier.deliver(WorkComplete(session_id="s1"))

    assert len(shown) == 1
    assert delivered == shown
    assert any(message.startswith("ERROR|") and "presenter" in message for message in log_messages)


def test_test_notification_bypasses_deduplication(notifier):
    shown = []
    notifier.add_presenter(shown.append)

    notifier.show_test_notification()
    notifier.show_test_notification()

    assert shown == [TEST_MESSAGE, TEST_MESSAGE]
