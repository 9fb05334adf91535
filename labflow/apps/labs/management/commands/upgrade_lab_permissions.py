# SPDX-License-Identifier: AGPL-3.0-or-later
"""
Management command to re-apply role default permissions to lab members.

Usage:
    # Upgrade every lab
    python manage.py upgrade_lab_permissions

    # Upgrade one lab
    python manage.py upgrade_lab_permissions --lab "Cardiology Lab"
"""

from django.core.management.base import BaseCommand, CommandError

from apps.authz.templates import PermissionTemplateService
from apps.labs.models import Lab


class Command(BaseCommand):
    help = "Re-apply default permission templates to all active lab members"

    def add_arguments(self, parser):
        parser.add_argument(
            "--lab",
            type=str,
            help="Lab name or slug (default: all active labs)",
        )

    def handle(self, *args, **options):
        labs = Lab.objects.filter(is_active=True)
        if options["lab"]:
            labs = labs.filter(name__icontains=options["lab"]) | labs.filter(slug__icontains=options["lab"])
            if not labs.exists():
                raise CommandError(f"No lab found matching: {options['lab']}")

        service = PermissionTemplateService()
        total = 0
        for lab in labs.distinct():
            upgraded = service.upgrade_all(lab.pk)
            total += upgraded
            self.stdout.write(f"  {lab.name}: {upgraded} members upgraded")

        self.stdout.write(self.style.SUCCESS(f"Done! Upgraded {total} memberships."))
