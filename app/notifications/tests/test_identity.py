"""Tests for identity sources."""

import pytest
from django.contrib.auth.models import AnonymousUser
from django.contrib.auth.signals import user_logged_in, user_logged_out

from authentication.models import User
from notifications.identity import AuthSignalIdentitySource, StaticIdentitySource


class TestStaticIdentitySource:
    def test_anonymous_user_is_nobody(self):
        assert StaticIdentitySource(AnonymousUser()).current_user() is None

    @pytest.mark.django_db
    def test_set_user_notifies(self, user):
        source = StaticIdentitySource()
        seen = []
        source.on_change(seen.append)

        source.set_user(user)
        source.set_user(None)

        assert seen == [user, None]


@pytest.mark.django_db
class TestAuthSignalIdentitySource:
    def test_follows_login_and_logout(self, user):
        source = AuthSignalIdentitySource()
        seen = []
        subscription = source.on_change(seen.append)

        user_logged_in.send(sender=User, request=None, user=user)
        assert source.current_user() == user

        user_logged_out.send(sender=User, request=None, user=user)
        assert source.current_user() is None

        assert seen == [user, None]
        subscription.cancel()

    def test_disconnects_after_last_subscription(self, user):
        source = AuthSignalIdentitySource()
        seen = []
        source.on_change(seen.append).cancel()

        user_logged_in.send(sender=User, request=None, user=user)

        assert seen == []
        assert source.current_user() is None

    def test_signed_in_user_token_saved(self, service, user, transport):
        from authentication.models import Profile
        from notifications.services import PushNotificationService

        identity = AuthSignalIdentitySource()
        signal_service = PushNotificationService(
            transport=transport,
            display=service.display,
            identity=identity,
            audit=service.audit,
        )
        signal_service.initialize()

        user_logged_in.send(sender=User, request=None, user=user)

        assert Profile.objects.get(user=user).fcm_token == transport.token
        signal_service.dispose()
