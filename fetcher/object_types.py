"""
Registry of the configuration object types that can be exported and compared.

Each ObjectType describes how the objects are pulled from a server:
- EXPORT_ALL: one POST /export with {"<export_key>": {"include_all": true}}
- LIST_THEN_EXPORT: GET /<list_endpoint>, then one POST /export per object
- LIST: GET /<list_endpoint>, objects written as returned (after transform)
- ROLE_PRIVILEGES / ROLE_MEMBERSHIPS: list, then resolve ids to names
- CONNECT: connect plugin settings and connections, in two subdirectories
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from transform.objects import (
    anonymize_user,
    anonymize_user_group,
    identity,
    transform_content_set,
    transform_content_set_privilege,
    transform_content_set_role,
    transform_saved_action,
    transform_saved_question,
    transform_sensor,
)


class RetrievalMode(str, Enum):
    EXPORT_ALL = "export_all"
    LIST_THEN_EXPORT = "list_then_export"
    LIST = "list"
    ROLE_PRIVILEGES = "role_privileges"
    ROLE_MEMBERSHIPS = "role_memberships"
    CONNECT = "connect"


def _never(obj: dict) -> bool:
    return False


def _deleted(obj: dict) -> bool:
    return bool(obj.get("deleted_flag"))


def _deleted_or_locked(obj: dict) -> bool:
    return bool(obj.get("deleted_flag")) or obj.get("locked_out", 0) != 0


def _reserved_content_set(obj: dict) -> bool:
    content_set = obj.get("content_set") or {}
    return content_set.get("name") == "Reserved"


def _name(obj: dict) -> str:
    return obj["name"]


@dataclass(frozen=True)
class ObjectType:
    """How one kind of configuration object is retrieved and stored."""
    key: str
    label: str
    mode: RetrievalMode
    export_key: str = ""
    list_endpoint: str = ""
    transform: Callable[[dict], dict] = identity
    skip: Callable[[dict], bool] = _never
    name_of: Callable[[dict], str] = _name
    subdirectories: tuple[str, ...] = ()

    @property
    def folder_label(self) -> str:
        """Label used in directory names ("Saved Questions" -> "SavedQuestions")."""
        return self.label.replace(" ", "")


CONNECT_SETTINGS_DIR = "Settings"
CONNECT_CONNECTIONS_DIR = "Connections"

OBJECT_TYPES: dict[str, ObjectType] = {
    t.key: t for t in [
        ObjectType(
            key="sensors",
            label="Sensors",
            mode=RetrievalMode.EXPORT_ALL,
            export_key="sensors",
            transform=transform_sensor,
        ),
        ObjectType(
            key="packages",
            label="Packages",
            mode=RetrievalMode.LIST_THEN_EXPORT,
            export_key="package_specs",
            list_endpoint="packages",
            skip=_reserved_content_set,
        ),
        ObjectType(
            key="dashboards",
            label="Dashboards",
            mode=RetrievalMode.LIST_THEN_EXPORT,
            export_key="dashboards",
            list_endpoint="dashboards",
            skip=_deleted,
        ),
        ObjectType(
            key="dashboard_groups",
            label="Dashboard Groups",
            mode=RetrievalMode.EXPORT_ALL,
            export_key="dashboard_groups",
            skip=_deleted,
        ),
        ObjectType(
            key="groups",
            label="Groups",
            mode=RetrievalMode.LIST_THEN_EXPORT,
            export_key="groups",
            list_endpoint="groups",
            skip=_deleted,
        ),
        ObjectType(
            key="saved_questions",
            label="Saved Questions",
            mode=RetrievalMode.LIST_THEN_EXPORT,
            export_key="saved_questions",
            list_endpoint="saved_questions",
            transform=transform_saved_question,
        ),
        ObjectType(
            key="saved_actions",
            label="Saved Actions",
            mode=RetrievalMode.LIST_THEN_EXPORT,
            export_key="saved_actions",
            list_endpoint="saved_actions",
            transform=transform_saved_action,
        ),
        ObjectType(
            key="content_sets",
            label="Content Sets",
            mode=RetrievalMode.EXPORT_ALL,
            export_key="content_sets",
            transform=transform_content_set,
        ),
        ObjectType(
            key="content_set_privileges",
            label="Content Set Privileges",
            mode=RetrievalMode.EXPORT_ALL,
            export_key="content_set_privileges",
            transform=transform_content_set_privilege,
        ),
        ObjectType(
            key="content_set_roles",
            label="Content Set Roles",
            mode=RetrievalMode.EXPORT_ALL,
            export_key="content_set_roles",
            transform=transform_content_set_role,
        ),
        ObjectType(
            key="content_set_role_privileges",
            label="Content Set Role Privileges",
            mode=RetrievalMode.ROLE_PRIVILEGES,
            list_endpoint="content_set_role_privileges",
        ),
        ObjectType(
            key="content_set_role_memberships",
            label="Content Set Role Memberships",
            mode=RetrievalMode.ROLE_MEMBERSHIPS,
            list_endpoint="content_set_role_memberships",
        ),
        ObjectType(
            key="users",
            label="Users",
            mode=RetrievalMode.LIST,
            list_endpoint="users",
            transform=anonymize_user,
            skip=_deleted_or_locked,
        ),
        ObjectType(
            key="user_groups",
            label="User Groups",
            mode=RetrievalMode.LIST,
            list_endpoint="user_groups",
            transform=anonymize_user_group,
            skip=_deleted,
        ),
        ObjectType(
            key="connect_configurations",
            label="Connect Configurations",
            mode=RetrievalMode.CONNECT,
            subdirectories=(CONNECT_SETTINGS_DIR, CONNECT_CONNECTIONS_DIR),
        ),
    ]
}


def get_object_type(key: str) -> Optional[ObjectType]:
    """Look up an object type by key (e.g. "sensors")."""
    return OBJECT_TYPES.get(key)
