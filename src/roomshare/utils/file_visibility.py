"""Gate for toggling a room file between private and public.

Visibility is independent of encryption and storage location; an authorized
actor may move a file in either direction.
"""

from typing import Any, List

from roomshare.core.exceptions import PermissionDeniedError, ValidationError
from roomshare.core.permissions import RoomPermissions
from roomshare.schemas.room import FileView, FileVisibility, RoomFile, parse_visibility


def parse_target_visibility(value: Any) -> FileVisibility:
    visibility = parse_visibility(value)
    if visibility is None:
        raise ValidationError("Visibility must be 'private' or 'public'")
    return visibility


def ensure_can_change_visibility(permissions: RoomPermissions, file: RoomFile) -> None:
    if not permissions.can_change_visibility(file):
        raise PermissionDeniedError(
            "change file visibility",
            "Only room admins, the creator or the uploader can change file visibility",
        )


def build_file_views(permissions: RoomPermissions, files: List[RoomFile]) -> List[FileView]:
    return [
        FileView(file=f, can_change_visibility=permissions.can_change_visibility(f))
        for f in files
    ]
