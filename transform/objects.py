"""
Per-object-type transforms applied to server exports.
"""

import copy
from typing import Optional

from transform.base import convert_whitespace, delete_if_empty, delete_properties, keep_properties


def identity(obj: dict) -> dict:
    return obj


def transform_sensor(sensor: dict) -> dict:
    """Split the description and every query script into lines."""
    sensor = copy.deepcopy(sensor)

    if "description" in sensor:
        sensor["description"] = convert_whitespace(sensor["description"])

    for query in sensor.get("queries") or []:
        if "script" in query:
            query["script"] = convert_whitespace(query["script"])

    return sensor


def transform_content_set(content_set: dict) -> dict:
    content_set = delete_properties(copy.deepcopy(content_set), ["disable_action_approval", "is_namespace_default_repo"])
    return delete_if_empty(content_set, "meta_data")


def transform_content_set_role(role: dict) -> dict:
    role = delete_properties(copy.deepcopy(role), ["taas_internal_flag"])
    return delete_if_empty(role, "meta_data")


def transform_content_set_privilege(privilege: dict) -> dict:
    privilege = delete_properties(copy.deepcopy(privilege), ["taas_internal_flag"])
    return delete_if_empty(privilege, "meta_data")


def transform_saved_question(saved_question: dict) -> dict:
    # Presentation settings differ between servers without changing the question
    return delete_properties(copy.deepcopy(saved_question), [
        "question",
        "sentence",
        "merge_flag",
        "drilldown_flag",
        "default_tab",
        "default_grid_zoom_level",
        "default_line_zoom_level",
        "meta_data",
        "content_set",
    ])


def transform_saved_action(saved_action: dict) -> dict:
    saved_action = delete_properties(copy.deepcopy(saved_action), [
        "content_set",
        "start_time",
        "policy_sq",
        "policy_row_filter_group",
        "policy_flag",
    ])

    group = saved_action.get("group")
    if isinstance(group, dict):
        group.pop("name", None)

    return saved_action


def transform_connect_settings(settings_obj: dict) -> dict:
    return delete_properties(copy.deepcopy(settings_obj), ["id", "createdAt", "updatedAt"])



def anonymize_user(user: dict) -> dict:
    return keep_properties(user, ["name", "display_name"])


def anonymize_user_group(user_group: dict) -> dict:
    return keep_properties(user_group, ["name"])


def _named_reference(ref: Optional[dict], names: dict) -> Optional[dict]:
    if ref is None:
        return None
    return {"name": names.get(ref.get("id"))}


def resolve_role_privilege(
    role_privilege: dict,
    content_sets: dict,
    roles: dict,
    privileges: dict
) -> dict:
    """
    Replace the server-local ids of a role privilege with names.

    Args:
        role_privilege: Raw content_set_role_privilege object
        content_sets: Map of content set id -> name
        roles: Map of content set role id -> name
        privileges: Map of content set privilege id -> name

    Returns:
        New object with content_set, content_set_role and
        content_set_privilege references by name
    """
    return {
        "content_set": _named_reference(role_privilege.get("content_set"), content_sets),
        "content_set_role": _named_reference(role_privilege.get("content_set_role"), roles),
        "content_set_privilege": _named_reference(role_privilege.get("content_set_privilege"), privileges),
    }


def role_privilege_name(resolved: dict) -> str:
    """"<content set>-<role>-<privilege>" name of a resolved role privilege."""
    parts = []
    for key in ("content_set", "content_set_role", "content_set_privilege"):
        ref = resolved.get(key)
        parts.append(str(ref["name"]) if ref else "None")
    return "-".join(parts)


def resolve_role_membership(membership: dict, users: dict, roles: dict) -> dict:
    """Replace the user and role ids of a role membership with names."""
    return {
        "user": _named_reference(membership.get("user"), users),
        "content_set_role": _named_reference(membership.get("content_set_role"), roles),
    }


def role_membership_name(resolved: dict) -> str:
    user = resolved.get("user")
    role = resolved.get("content_set_role")
    return f"{user['name'] if user else 'None'}-{role['name'] if role else 'None'}"
