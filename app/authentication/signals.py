"""
Profile provisioning.

The token registry merges the device token into the user's Profile, so
every user gets an (empty) profile row as soon as it is created.
"""

import logging

from django.conf import settings
from django.db.models.signals import post_save
from django.dispatch import receiver

logger = logging.getLogger(__name__)


@receiver(post_save, sender=settings.AUTH_USER_MODEL, dispatch_uid="provision_profile")
def provision_profile(sender, instance, created, raw=False, **kwargs):
    if not created or raw:
        return

    from authentication.models import Profile

    _, made = Profile.objects.get_or_create(user=instance)
    if made:
        logger.debug(f"Provisioned profile for user {instance.pk}")
