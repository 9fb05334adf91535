# SPDX-License-Identifier: AGPL-3.0-or-later
"""
Management command to set up default permission templates for labs.

Usage:
    # Create templates for all labs
    python manage.py setup_permission_templates

    # Create templates for a specific lab
    python manage.py setup_permission_templates --lab "Cardiology Lab"

    # List the built-in templates
    python manage.py setup_permission_templates --list
"""

import textwrap

from django.core.management.base import BaseCommand, CommandError

from apps.authz.templates import PermissionTemplateService
from apps.common.permissions import DEFAULT_TEMPLATES
from apps.labs.models import Lab, PermissionTemplate


class Command(BaseCommand):
    help = "Set up default permission templates for labs"

    def add_arguments(self, parser):
        parser.add_argument(
            "--lab",
            type=str,
            help="Lab name or slug (default: all labs)",
        )
        parser.add_argument(
            "--list",
            action="store_true",
            help="List the built-in permission templates",
        )
        parser.add_argument(
            "--force",
            action="store_true",
            help="Reset existing default templates to the built-in bundles",
        )

    def handle(self, *args, **options):
        if options["list"]:
            self.list_templates()
            return

        if options["lab"]:
            labs = Lab.objects.filter(name__icontains=options["lab"]) | Lab.objects.filter(
                slug__icontains=options["lab"]
            )
            if not labs.exists():
                raise CommandError(f"No lab found matching: {options['lab']}")
        else:
            labs = Lab.objects.all()

        if not labs.exists():
            self.stdout.write(self.style.WARNING("No labs found. Create a lab first."))
            return

        service = PermissionTemplateService()
        total = 0

        for lab in labs.distinct():
            self.stdout.write(f"\nProcessing: {lab.name}")

            existing = PermissionTemplate.objects.filter(lab=lab, is_default=True).count()
            if existing >= len(DEFAULT_TEMPLATES) and not options["force"]:
                self.stdout.write(self.style.WARNING(f"  {existing} default templates already exist. Use --force to reset."))
                continue

            templates = service.create_default_templates(lab, force=options["force"])
            total += len(templates)

            self.stdout.write(self.style.SUCCESS(f"  Created/reset {len(templates)} templates:"))
            for template in templates:
                self.stdout.write(f"    - {template.name} ({template.enabled_count} flags)")

        self.stdout.write("")
        self.stdout.write(self.style.SUCCESS(f"Done! Created or reset {total} templates."))

    def list_templates(self):
        """List the built-in templates."""
        self.stdout.write("\nDefault permission templates:\n")
        self.stdout.write("=" * 80)

        for key, info in DEFAULT_TEMPLATES.items():
            admin_marker = " [ADMIN]" if "is_admin" in info["enabled"] else ""
            self.stdout.write(f"\n{info['name']}{admin_marker}")
            self.stdout.write(f"  Key: {key}")
            self.stdout.write(f"  Enabled flags: {len(info['enabled'])}")
            for line in textwrap.fill(info["description"], width=70).split("\n"):
                self.stdout.write(f"  {line}")

        self.stdout.write("\n" + "=" * 80)
        self.stdout.write(f"\nTotal: {len(DEFAULT_TEMPLATES)} templates defined")
