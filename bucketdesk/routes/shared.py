"""
Request helpers shared by the S3 and assistant blueprints.
"""
from typing import Any, Dict, List

from flask import request

from bucketdesk.models import FileEntry, FolderEntry
from bucketdesk.services.s3_service import S3Service, get_s3_service
from bucketdesk.utils.validators import clean_text, ensure_dict_list, require_fields


def get_json_body() -> Dict[str, Any]:
    """Return the JSON object body, or {} for a missing or non-object body."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def s3_service_from_body(data: Dict[str, Any], message: str = 'Missing bucket or credentials') -> S3Service:
    """
    Build an S3Service from the bucket/credential fields of a request body.

    Raises:
        ValidationError: With `message` when bucket or credentials are blank
    """
    bucket, access_key, secret_key = require_fields(
        message, data.get('bucket'), data.get('accessKeyId'), data.get('secretAccessKey')
    )
    return get_s3_service(bucket, access_key, secret_key, region=clean_text(data.get('region')) or None)


def file_entries_from(value: Any) -> List[FileEntry]:
    """Parse a client-supplied file slice, skipping malformed items."""
    return [FileEntry.from_dict(item) for item in ensure_dict_list(value) if item.get('key')]


def folder_entries_from(value: Any) -> List[FolderEntry]:
    """Parse a client-supplied folder slice, skipping malformed items."""
    return [FolderEntry.from_dict(item) for item in ensure_dict_list(value) if item.get('name')]
