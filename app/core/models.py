"""
Abstract model shared by the pipeline's durable stores.

Usage:
    from core.models import BaseModel

    class PendingDeviceToken(BaseModel):
        token = models.CharField(max_length=512, unique=True)
"""

from __future__ import annotations

from django.db import models


class BaseModel(models.Model):
    """
    Adds ``created_at`` / ``updated_at`` to a model.

    created_at is written once, on insert, so an upsert through
    update_or_create keeps the time a row was first observed while
    updated_at tracks the latest write.
    """

    created_at = models.DateTimeField(
        auto_now_add=True,
        db_index=True,
        help_text="First write of the row",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="Latest write of the row",
    )

    class Meta:
        abstract = True
        ordering = ["-created_at"]
