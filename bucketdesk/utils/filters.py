"""
Apply parsed filter criteria to a list of file entries.
"""
from datetime import datetime, timezone
from typing import List, Optional

from bucketdesk.models import FileEntry, ParsedFilters
from bucketdesk.utils.formatters import parse_iso_timestamp

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def file_extension(name: str) -> str:
    """Lower-cased text after the last dot (the whole name when there is no dot)."""
    return name.rsplit('.', 1)[-1].lower()


def matches_filters(entry: FileEntry, filters: ParsedFilters) -> bool:
    """Check a single entry against every criterion that is set."""
    if filters.file_type and file_extension(entry.name) != filters.file_type.lower():
        return False

    if filters.name_contains and filters.name_contains.lower() not in entry.name.lower():
        return False

    size = entry.size or 0
    if filters.size_min_bytes is not None and size < filters.size_min_bytes:
        return False
    if filters.size_max_bytes is not None and size > filters.size_max_bytes:
        return False

    if filters.date_from or filters.date_to:
        modified = parse_iso_timestamp(entry.last_modified) or EPOCH
        # An unparseable bound never excludes anything
        date_from = parse_iso_timestamp(filters.date_from)
        date_to = parse_iso_timestamp(filters.date_to)
        if date_from and modified < date_from:
            return False
        if date_to and modified > date_to:
            return False

    return True


def apply_filters(files: List[FileEntry], filters: Optional[ParsedFilters]) -> List[FileEntry]:
    """
    Narrow a file list with parsed filter criteria.

    Args:
        files: Entries to filter
        filters: Criteria; None leaves the list unchanged

    Returns:
        Entries satisfying every set criterion, in their original order
    """
    if filters is None:
        return list(files)
    return [entry for entry in files if matches_filters(entry, filters)]
