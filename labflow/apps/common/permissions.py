# SPDX-License-Identifier: AGPL-3.0-or-later
"""
Capability catalogue for lab memberships.

Defines:
- The boolean capability flags every LabMembership carries
- Capability categories (for admin grouping)
- Default permission templates per lab role
- Lookup utilities

A capability is stored as a BooleanField of the same name on
apps.labs.models.LabMembership. is_admin / is_super_admin are not
capabilities; they are bypass flags, but default templates carry them
so that applying a template sets the whole bundle at once.
"""

from typing import Dict


# =============================================================================
# CAPABILITY DEFINITIONS
# =============================================================================

CAPABILITIES = {
    # === ADMINISTRATION ===
    "can_manage_members": "Manage lab members",
    "can_manage_lab_settings": "Manage lab settings",
    "can_view_audit_logs": "View audit logs",
    "can_manage_permissions": "Manage member permissions",

    # === PROJECTS & STUDIES ===
    "can_create_projects": "Create projects",
    "can_edit_all_projects": "Edit all projects",
    "can_delete_projects": "Delete projects",
    "can_view_all_projects": "View all projects",
    "can_archive_projects": "Archive projects",
    "can_restore_projects": "Restore archived projects",

    # === TASKS ===
    "can_assign_tasks": "Assign tasks",
    "can_edit_all_tasks": "Edit all tasks",
    "can_delete_tasks": "Delete tasks",
    "can_view_all_tasks": "View all tasks",
    "can_manage_task_templates": "Manage task templates",
    "can_set_task_priorities": "Set task priorities",

    # === IDEAS ===
    "can_approve_ideas": "Approve ideas",
    "can_reject_ideas": "Reject ideas",
    "can_edit_all_ideas": "Edit all ideas",
    "can_delete_ideas": "Delete ideas",
    "can_implement_ideas": "Implement ideas",

    # === DATA & REPORTING ===
    "can_access_reports": "Access reports",
    "can_export_data": "Export data",
    "can_view_analytics": "View analytics",
    "can_manage_deadlines": "Manage deadlines",
    "can_view_financials": "View financials",

    # === CROSS-LAB COLLABORATION ===
    "can_invite_external_users": "Invite external users",
    "can_share_across_labs": "Share across labs",
    "can_access_shared_projects": "Access shared projects",
    "can_create_cross_lab_projects": "Create cross-lab projects",

    # === MEETINGS & COMMUNICATION ===
    "can_schedule_meetings": "Schedule meetings",
    "can_manage_standups": "Manage standups",
    "can_send_lab_announcements": "Send lab announcements",
    "can_moderate_discussions": "Moderate discussions",

    # === RESOURCES & ASSETS ===
    "can_manage_assets": "Manage assets",
    "can_allocate_budget": "Allocate budget",
    "can_manage_equipment": "Manage equipment",
    "can_manage_documents": "Manage documents",
}

# Bypass flags carried by templates alongside the capabilities
ADMIN_FLAGS = ("is_admin", "is_super_admin")

TEMPLATE_FLAGS = ADMIN_FLAGS + tuple(CAPABILITIES)


# =============================================================================
# CAPABILITY CATEGORIES (for admin grouping)
# =============================================================================

CAPABILITY_CATEGORIES = {
    "administration": {
        "name": "Administration",
        "capabilities": [
            "can_manage_members", "can_manage_lab_settings",
            "can_view_audit_logs", "can_manage_permissions",
        ],
    },
    "projects": {
        "name": "Projects & studies",
        "capabilities": [
            "can_create_projects", "can_edit_all_projects", "can_delete_projects",
            "can_view_all_projects", "can_archive_projects", "can_restore_projects",
        ],
    },
    "tasks": {
        "name": "Tasks",
        "capabilities": [
            "can_assign_tasks", "can_edit_all_tasks", "can_delete_tasks",
            "can_view_all_tasks", "can_manage_task_templates", "can_set_task_priorities",
        ],
    },
    "ideas": {
        "name": "Ideas",
        "capabilities": [
            "can_approve_ideas", "can_reject_ideas", "can_edit_all_ideas",
            "can_delete_ideas", "can_implement_ideas",
        ],
    },
    "reporting": {
        "name": "Data & reporting",
        "capabilities": [
            "can_access_reports", "can_export_data", "can_view_analytics",
            "can_manage_deadlines", "can_view_financials",
        ],
    },
    "collaboration": {
        "name": "Cross-lab collaboration",
        "capabilities": [
            "can_invite_external_users", "can_share_across_labs",
            "can_access_shared_projects", "can_create_cross_lab_projects",
        ],
    },
    "meetings": {
        "name": "Meetings & communication",
        "capabilities": [
            "can_schedule_meetings", "can_manage_standups",
            "can_send_lab_announcements", "can_moderate_discussions",
        ],
    },
    "resources": {
        "name": "Resources & assets",
        "capabilities": [
            "can_manage_assets", "can_allocate_budget",
            "can_manage_equipment", "can_manage_documents",
        ],
    },
}


# =============================================================================
# DEFAULT PERMISSION TEMPLATES
# =============================================================================
# Each template lists the flags it switches ON. Applying a template
# overwrites the whole bundle, so everything not listed ends up False.

DEFAULT_TEMPLATES = {
    # -------------------------------------------------------------------------
    # PRINCIPAL INVESTIGATOR - lab head, full administrative access
    # -------------------------------------------------------------------------
    "principal_investigator": {
        "name": "Principal Investigator",
        "description": "Full administrative access and oversight of all lab operations",
        "enabled": [
            "is_admin",
            *CAPABILITIES.keys(),
        ],
    },

    # -------------------------------------------------------------------------
    # RESEARCH COORDINATOR - runs projects and day-to-day coordination
    # -------------------------------------------------------------------------
    "research_coordinator": {
        "name": "Research Coordinator",
        "description": "Manage projects, tasks, and team coordination",
        "enabled": [
            "can_manage_members",
            # Projects - no delete, no restore
            "can_create_projects", "can_edit_all_projects",
            "can_view_all_projects", "can_archive_projects",
            # Tasks - full
            "can_assign_tasks", "can_edit_all_tasks", "can_delete_tasks",
            "can_view_all_tasks", "can_manage_task_templates", "can_set_task_priorities",
            # Ideas - everything except delete
            "can_approve_ideas", "can_reject_ideas", "can_edit_all_ideas",
            "can_implement_ideas",
            # Reporting - no financials
            "can_access_reports", "can_export_data", "can_view_analytics",
            "can_manage_deadlines",
            # Collaboration
            "can_share_across_labs", "can_access_shared_projects",
            # Meetings - full
            "can_schedule_meetings", "can_manage_standups",
            "can_send_lab_announcements", "can_moderate_discussions",
            # Resources
            "can_manage_equipment", "can_manage_documents",
        ],
    },

    # -------------------------------------------------------------------------
    # RESEARCH ASSISTANT - creates and manages own work
    # Own records stay editable through ownership, not through these flags.
    # -------------------------------------------------------------------------
    "research_assistant": {
        "name": "Research Assistant",
        "description": "Create and manage own work, collaborate on shared projects",
        "enabled": [
            "can_create_projects", "can_view_all_projects",
            "can_assign_tasks", "can_view_all_tasks",
            "can_implement_ideas",
            "can_access_reports", "can_view_analytics", "can_manage_deadlines",
            "can_access_shared_projects",
            "can_schedule_meetings",
            "can_manage_documents",
        ],
    },

    # -------------------------------------------------------------------------
    # RESEARCH FELLOW - advanced research with collaboration rights
    # -------------------------------------------------------------------------
    "research_fellow": {
        "name": "Research Fellow",
        "description": "Advanced research capabilities with collaboration permissions",
        "enabled": [
            "can_create_projects", "can_view_all_projects",
            "can_assign_tasks", "can_view_all_tasks", "can_set_task_priorities",
            "can_implement_ideas",
            "can_access_reports", "can_export_data", "can_view_analytics",
            "can_manage_deadlines",
            "can_share_across_labs", "can_access_shared_projects",
            "can_schedule_meetings", "can_moderate_discussions",
            "can_manage_documents",
        ],
    },
}

FALLBACK_TEMPLATE_KEY = "research_assistant"

# Lab role -> default template key
ROLE_TEMPLATE_KEYS = {
    "PRINCIPAL_INVESTIGATOR": "principal_investigator",
    "CO_PRINCIPAL_INVESTIGATOR": "principal_investigator",
    "LAB_ADMINISTRATOR": "principal_investigator",
    "PI": "principal_investigator",
    "ADMIN": "principal_investigator",
    "CLINICAL_RESEARCH_COORDINATOR": "research_coordinator",
    "REGULATORY_COORDINATOR": "research_coordinator",
    "STAFF_COORDINATOR": "research_coordinator",
    "RESEARCH_COORDINATOR": "research_coordinator",
    "DATA_SCIENTIST": "research_fellow",
    "DATA_ANALYST": "research_fellow",
    "FELLOW": "research_fellow",
    "RESEARCHER": "research_fellow",
    "MEDICAL_STUDENT": "research_assistant",
    "RESEARCH_ASSISTANT": "research_assistant",
    "VOLUNTEER_RESEARCH_ASSISTANT": "research_assistant",
    "EXTERNAL_COLLABORATOR": "research_assistant",
    "STUDENT": "research_assistant",
}


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

def get_capabilities_by_category() -> dict:
    """
    Get capabilities grouped by category.

    Returns:
        Dict with category name and capability details
    """
    result = {}
    for cat_code, cat_info in CAPABILITY_CATEGORIES.items():
        result[cat_code] = {
            "name": cat_info["name"],
            "capabilities": [
                {"code": cap, "name": CAPABILITIES.get(cap, cap)}
                for cap in cat_info["capabilities"]
                if cap in CAPABILITIES
            ],
        }
    return result


def get_template_info(template_key: str) -> dict:
    """Get info about a default template."""
    return DEFAULT_TEMPLATES.get(template_key, {})


def build_capability_bundle(template_key: str) -> Dict[str, bool]:
    """
    Expand a default template into a complete flag bundle.

    Every template flag is present in the result; flags the template
    does not enable are False.
    """
    enabled = set(DEFAULT_TEMPLATES[template_key]["enabled"])
    return {flag: flag in enabled for flag in TEMPLATE_FLAGS}


def default_template_key_for_role(role: str) -> str:
    """Get the default template key for a lab role."""
    return ROLE_TEMPLATE_KEYS.get(role, FALLBACK_TEMPLATE_KEY)
