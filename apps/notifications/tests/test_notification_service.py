import pytest
from django.contrib.auth import get_user_model
from django.core import mail

from apps.notifications.models import Notification
from apps.notifications.services import create_notification, deliver_notification
from apps.notifications.tasks import deliver_notification_email


@pytest.fixture
def recipient():
    return get_user_model().objects.create_user(username="recipient", email="recipient@example.com", password="pass")


@pytest.mark.django_db
def test_create_notification_links_entity(recipient):
    notification = create_notification(recipient.pk, "Hello", "Body", entity=recipient)

    assert notification.entity_type == "user"
    assert notification.entity_id == str(recipient.pk)
    assert not notification.is_read


@pytest.mark.django_db
def test_deliver_notification_emails_once(recipient):
    notification = create_notification(recipient.pk, "Booking confirmed", "Your PIN is 1234")

    assert deliver_notification(notification.pk)
    assert deliver_notification(notification.pk)

    assert len(mail.outbox) == 1
    assert mail.outbox[0].subject == "Booking confirmed"
    assert mail.outbox[0].to == ["recipient@example.com"]
    notification.refresh_from_db()
    assert notification.emailed_at is not None


@pytest.mark.django_db
def test_in_app_notifications_are_not_emailed(recipient):
    notification = create_notification(
        recipient.pk, "Heads up", "In-app only", notification_type=Notification.Type.IN_APP
    )
    assert not deliver_notification(notification.pk)
    assert mail.outbox == []


@pytest.mark.django_db
def test_recipient_without_email_keeps_notification_in_app():
    user = get_user_model().objects.create_user(username="noemail", password="pass")
    notification = create_notification(user.pk, "Hi", "There")

    assert not deliver_notification(notification.pk)
    assert mail.outbox == []


@pytest.mark.django_db
def test_delivery_task_runs_eagerly(recipient):
    notification = create_notification(recipient.pk, "Extended", "New PIN 5678")
    assert deliver_notification_email.delay(notification.pk).get() is True
    assert len(mail.outbox) == 1


@pytest.mark.django_db
def test_missing_notification_is_skipped():
    assert not deliver_notification(123456)
