# SPDX-License-Identifier: AGPL-3.0-or-later
"""
Security audit log.

Rows are written once and never changed: updating or deleting an
existing entry raises.
"""

import uuid

from django.db import models

from apps.authz.types import EntityType

from .entries import LAB_MEMBER, PERMISSION_TEMPLATE, AuditAction

ENTITY_TYPE_CHOICES = EntityType.choices() + [
    (LAB_MEMBER, "Lab member"),
    (PERMISSION_TEMPLATE, "Permission template"),
]


class AuditLogImmutable(Exception):
    """Raised on attempts to modify or delete an audit entry."""


class SecurityAuditLog(models.Model):
    """
    Audit log entry for a security-relevant event.

    Records permission checks, access denials and permission changes.
    User and lab are stored as plain identifiers so entries outlive the
    records they mention.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    # Event
    action = models.CharField(max_length=30, choices=AuditAction.choices(), verbose_name="Action")
    entity_type = models.CharField(max_length=30, choices=ENTITY_TYPE_CHOICES, verbose_name="Entity type")
    entity_id = models.CharField(max_length=128, blank=True, null=True, verbose_name="Entity ID")

    # Actor
    user_id = models.CharField(max_length=64, blank=True, null=True, verbose_name="User ID")
    user_email = models.CharField(max_length=254, blank=True, verbose_name="User email")
    lab_id = models.CharField(max_length=64, blank=True, null=True, verbose_name="Lab ID")

    # Decision
    authorization_method = models.CharField(max_length=30, blank=True, verbose_name="Authorization method")
    required_permission = models.CharField(max_length=100, blank=True, verbose_name="Required permission")
    was_authorized = models.BooleanField(default=False, verbose_name="Authorized")
    details = models.JSONField(default=dict, blank=True, verbose_name="Details")
    error_message = models.TextField(blank=True, verbose_name="Error message")

    # Request
    ip_address = models.GenericIPAddressField(blank=True, null=True, verbose_name="IP address")
    user_agent = models.TextField(blank=True, verbose_name="User agent")
    endpoint = models.CharField(max_length=500, blank=True, verbose_name="Endpoint")
    http_method = models.CharField(max_length=10, blank=True, verbose_name="HTTP method")
    session_id = models.CharField(max_length=100, blank=True, verbose_name="Session ID")

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "security_audit_logs"
        verbose_name = "Audit entry"
        verbose_name_plural = "Audit log"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["lab_id", "created_at"], name="security_au_lab_id_7c1f0e_idx"),
            models.Index(fields=["user_id", "created_at"], name="security_au_user_id_4b2d9a_idx"),
            models.Index(fields=["action", "was_authorized"], name="security_au_action_e83a51_idx"),
        ]

    def __str__(self):
        return f"{self.user_id or '-'}: {self.action} {self.entity_type} {self.entity_id or ''}".strip()

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise AuditLogImmutable("Audit log entries cannot be modified")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise AuditLogImmutable("Audit log entries cannot be deleted")
