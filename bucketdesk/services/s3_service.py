"""
AWS S3 service for the file browser.

Every instance is built from credentials supplied with the request; nothing
is cached between requests. Calls that hit the wrong regional endpoint are
retried once after looking up the bucket's real region.
"""
import logging
import os
import re
from typing import Any, Dict, Iterable, List, Optional, Tuple

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from flask import current_app, has_app_context

from bucketdesk.config import DEFAULT_REGION
from bucketdesk.models import FileEntry, FolderEntry
from bucketdesk.utils.formatters import basename_from_key, format_iso_timestamp

logger = logging.getLogger(__name__)

WRONG_ENDPOINT_PATTERNS = [
    re.compile(r'must be addressed using the specified endpoint', re.IGNORECASE),
    re.compile(r'PermanentRedirect', re.IGNORECASE),
    re.compile(r'please send.*this endpoint', re.IGNORECASE),
]

# GetBucketLocation still reports the pre-2013 alias for Ireland
LEGACY_LOCATION_CONSTRAINTS = {'EU': 'eu-west-1'}

REGION_HINT = (
    "Bucket is in a different region. Open Connect, select the correct AWS Region "
    "(e.g. Mumbai for ap-south-1), and Save connection again."
)


class S3Error(Exception):
    """Base exception for S3 errors."""
    pass


class BucketRegionError(S3Error):
    """Raised when the bucket's region cannot be discovered."""
    pass


def is_wrong_endpoint_error(error: Exception) -> bool:
    """
    Check whether an SDK error means the bucket lives behind another regional endpoint.

    Args:
        error: Exception raised by a boto3 call

    Returns:
        True if the call should be retried against the bucket's own region
    """
    if isinstance(error, ClientError):
        if error.response.get('Error', {}).get('Code') == 'PermanentRedirect':
            return True
    message = str(error)
    return any(pattern.search(message) for pattern in WRONG_ENDPOINT_PATTERNS)


def region_from_location_constraint(location: Optional[str]) -> str:
    """Map a GetBucketLocation LocationConstraint to a region name."""
    region = (location or '').strip()
    if not region:
        # us-east-1 buckets report no constraint
        return DEFAULT_REGION
    return LEGACY_LOCATION_CONSTRAINTS.get(region, region)


class S3Service:
    """Service for S3 operations on one bucket with caller-supplied credentials."""

    PAGE_SIZE = 1000
    DELETE_BATCH_SIZE = 1000

    def __init__(self, bucket_name: str, aws_access_key: str, aws_secret_key: str, region: str = None):
        """Initialize S3 service."""
        self.bucket_name = bucket_name
        self.region = (region or DEFAULT_REGION).strip()
        self._aws_access_key = aws_access_key.strip()
        self._aws_secret_key = aws_secret_key.strip()
        self.s3_client = self._make_client(self.region)

    def _make_client(self, region: str):
        return boto3.client(
            's3',
            region_name=region,
            aws_access_key_id=self._aws_access_key,
            aws_secret_access_key=self._aws_secret_key
        )

    # ------------------------------------------------------------------
    # Region handling
    # ------------------------------------------------------------------

    def get_bucket_region(self) -> str:
        """
        Look up the bucket's region through the us-east-1 endpoint.

        Returns:
            Region name, e.g. 'ap-south-1'
        """
        discovery_client = self._make_client(DEFAULT_REGION)
        response = discovery_client.get_bucket_location(Bucket=self.bucket_name)
        return region_from_location_constraint(response.get('LocationConstraint'))

    def discover_region(self) -> str:
        """Switch this service to the bucket's real region and return it."""
        try:
            region = self.get_bucket_region()
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Bucket region discovery failed for {self.bucket_name}: {e}")
            raise BucketRegionError(REGION_HINT) from e

        logger.info(f"Bucket {self.bucket_name} resolved to region {region} (was {self.region})")
        self.region = region
        self.s3_client = self._make_client(region)
        return region

    def _call(self, method_name: str, **params) -> Dict[str, Any]:
        """
        Invoke an S3 client method, retrying once in the bucket's region on a redirect.

        The method is looked up on the current client at call time so the
        retry goes through the rebuilt client.
        """
        try:
            return getattr(self.s3_client, method_name)(**params)
        except ClientError as e:
            if not is_wrong_endpoint_error(e):
                raise
            logger.warning(f"{method_name} on {self.bucket_name} hit the wrong endpoint for {self.region}")

        self.discover_region()
        return getattr(self.s3_client, method_name)(**params)

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def _list_pages(self, prefix: str = '', delimiter: str = None) -> Iterable[Dict[str, Any]]:
        """Yield ListObjectsV2 pages, following continuation tokens."""
        params = {'Bucket': self.bucket_name, 'MaxKeys': self.PAGE_SIZE}
        if prefix:
            params['Prefix'] = prefix
        if delimiter:
            params['Delimiter'] = delimiter

        continuation_token = None
        while True:
            if continuation_token:
                params['ContinuationToken'] = continuation_token
            page = self._call('list_objects_v2', **params)
            yield page

            continuation_token = page.get('NextContinuationToken') if page.get('IsTruncated') else None
            if not continuation_token:
                break

    def list_folder(self, prefix: str = '') -> Tuple[List[FolderEntry], List[FileEntry]]:
        """
        List one folder level of the bucket.

        Args:
            prefix: Folder prefix ending with '/', or '' for the bucket root

        Returns:
            Tuple of (folders, files). Folders come from common prefixes and
            zero-byte placeholder objects, de-duplicated by name.
        """
        folders: Dict[str, str] = {}
        files: List[FileEntry] = []

        def relative_name(key: str) -> str:
            name = key[len(prefix):] if prefix and key.startswith(prefix) else key
            return name[:-1] if name.endswith('/') else name

        for page in self._list_pages(prefix=prefix, delimiter='/'):
            for common_prefix in page.get('CommonPrefixes', []):
                folder_prefix = common_prefix.get('Prefix') or ''
                name = relative_name(folder_prefix)
                if name and name not in folders:
                    folders[name] = folder_prefix

            for obj in page.get('Contents', []):
                key = obj.get('Key')
                if not key or key == prefix:
                    continue
                if key.endswith('/'):
                    name = relative_name(key)
                    if name and name not in folders:
                        folders[name] = key
                    continue
                files.append(FileEntry(
                    key=key,
                    name=basename_from_key(key),
                    size=obj.get('Size', 0),
                    last_modified=format_iso_timestamp(obj.get('LastModified'))
                ))

        folder_entries = [FolderEntry(name=name, prefix=folder_prefix) for name, folder_prefix in folders.items()]
        logger.debug(f"Listed {self.bucket_name}/{prefix}: {len(folder_entries)} folders, {len(files)} files")
        return folder_entries, files

    def list_keys(self, prefix: str) -> List[str]:
        """Return every key under a prefix (no delimiter, all pages)."""
        keys = []
        for page in self._list_pages(prefix=prefix):
            keys.extend(obj['Key'] for obj in page.get('Contents', []) if obj.get('Key'))
        return keys

    def list_all_files(self, max_files: int = 2000) -> List[FileEntry]:
        """
        Flat listing of the whole bucket, skipping folder placeholders.

        Args:
            max_files: Stop after this many files

        Returns:
            List of FileEntry, at most max_files long
        """
        files: List[FileEntry] = []
        for page in self._list_pages():
            for obj in page.get('Contents', []):
                key = obj.get('Key')
                if not key or key.endswith('/'):
                    continue
                files.append(FileEntry(
                    key=key,
                    name=basename_from_key(key),
                    size=obj.get('Size'),
                    last_modified=format_iso_timestamp(obj.get('LastModified'))
                ))
                if len(files) >= max_files:
                    return files
        return files

    # ------------------------------------------------------------------
    # Deletion
    # ------------------------------------------------------------------

    def _delete_batches(self, keys: List[str]) -> int:
        """Delete keys with DeleteObjects, at most DELETE_BATCH_SIZE per request."""
        for start in range(0, len(keys), self.DELETE_BATCH_SIZE):
            batch = keys[start:start + self.DELETE_BATCH_SIZE]
            response = self._call(
                'delete_objects',
                Bucket=self.bucket_name,
                Delete={'Objects': [{'Key': key} for key in batch], 'Quiet': True}
            )
            errors = response.get('Errors') or []
            if errors:
                logger.warning(
                    f"DeleteObjects reported {len(errors)} failures in {self.bucket_name}, "
                    f"first: {errors[0].get('Key')} ({errors[0].get('Code')})"
                )
        return len(keys)

    def delete_keys(self, keys: List[str]) -> int:
        """
        Delete objects by key; keys ending in '/' also delete everything under them.

        Args:
            keys: Object keys and/or folder prefixes

        Returns:
            Number of keys submitted for deletion
        """
        to_delete: Dict[str, None] = {}
        for raw_key in keys:
            key = raw_key.strip()
            if not key:
                continue
            if key.endswith('/'):
                for nested in self.list_keys(key):
                    to_delete.setdefault(nested, None)
            to_delete.setdefault(key, None)

        deleted = self._delete_batches(list(to_delete))
        logger.info(f"Deleted {deleted} objects from {self.bucket_name}")
        return deleted

    def delete_prefix(self, prefix: str) -> int:
        """Delete every object under a folder prefix. Returns the number deleted."""
        keys = self.list_keys(prefix)
        if not keys:
            return 0
        deleted = self._delete_batches(keys)
        logger.info(f"Deleted folder {self.bucket_name}/{prefix} ({deleted} objects)")
        return deleted

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _copy(self, source_key: str, target_key: str) -> None:
        self._call(
            'copy_object',
            Bucket=self.bucket_name,
            CopySource={'Bucket': self.bucket_name, 'Key': source_key},
            Key=target_key
        )

    def rename(self, old_key: str, new_key: str) -> None:
        """
        Rename an object, or a folder when old_key ends with '/'.

        S3 has no rename: objects are copied to the new key and the originals
        deleted once every copy has succeeded.
        """
        if not old_key.endswith('/'):
            self._copy(old_key, new_key)
            self._delete_batches([old_key])
            logger.info(f"Renamed {old_key} -> {new_key} in {self.bucket_name}")
            return

        moves = [(key, new_key + key[len(old_key):]) for key in self.list_keys(old_key)]
        for source_key, target_key in moves:
            self._copy(source_key, target_key)
        self._delete_batches([source_key for source_key, _ in moves])
        logger.info(f"Renamed folder {old_key} -> {new_key} ({len(moves)} objects) in {self.bucket_name}")

    def create_folder(self, folder_key: str) -> str:
        """Write the zero-byte placeholder object that represents an empty folder."""
        self._call('put_object', Bucket=self.bucket_name, Key=folder_key, Body=b'', ContentLength=0)
        return folder_key

    def upload_bytes(self, s3_key: str, body: bytes, content_type: str) -> None:
        """
        Upload file content through the server.

        The content is held in memory so the region retry can resend it.
        """
        self._call(
            'put_object',
            Bucket=self.bucket_name,
            Key=s3_key,
            Body=body,
            ContentType=content_type
        )
        logger.info(f"Uploaded {s3_key} ({len(body)} bytes) to {self.bucket_name}")

    def generate_upload_url(self, s3_key: str, expires_in: int = 300) -> str:
        """
        Generate a presigned PUT URL for direct browser-to-S3 upload.

        Args:
            s3_key: Destination key
            expires_in: URL lifetime in seconds

        Returns:
            Presigned URL string
        """
        try:
            return self.s3_client.generate_presigned_url(
                'put_object',
                Params={'Bucket': self.bucket_name, 'Key': s3_key},
                ExpiresIn=expires_in
            )
        except ClientError as e:
            raise S3Error(f"Failed to generate upload URL: {e}")

    # ------------------------------------------------------------------
    # Bucket configuration
    # ------------------------------------------------------------------

    def get_cors_rules(self) -> List[Dict[str, Any]]:
        """Return the bucket's CORS rules, or [] when none are configured."""
        try:
            return self._call('get_bucket_cors', Bucket=self.bucket_name).get('CORSRules', [])
        except ClientError as e:
            if e.response.get('Error', {}).get('Code') == 'NoSuchCORSConfiguration':
                return []
            raise S3Error(f"Failed to read CORS configuration: {e}")

    def put_cors_configuration(self, cors_configuration: Dict[str, Any]) -> None:
        """Replace the bucket's CORS configuration."""
        self._call('put_bucket_cors', Bucket=self.bucket_name, CORSConfiguration=cors_configuration)
        logger.info(f"Updated CORS configuration for {self.bucket_name}")


def build_cors_configuration(origins: List[str]) -> Dict[str, Any]:
    """
    CORS rules that let a browser PUT to presigned upload URLs and read listings.

    Args:
        origins: Allowed origins, e.g. ['http://localhost:5700']

    Returns:
        CORSConfiguration dictionary for put_bucket_cors
    """
    allowed_origins = [origin.strip().rstrip('/') for origin in origins if origin and origin.strip()]
    if not allowed_origins:
        raise ValueError("At least one origin is required")

    return {
        'CORSRules': [
            {
                'AllowedHeaders': ['*'],
                'AllowedMethods': ['GET', 'PUT', 'POST', 'DELETE', 'HEAD'],
                'AllowedOrigins': allowed_origins,
                'ExposeHeaders': ['ETag', 'x-amz-request-id', 'x-amz-id-2'],
                'MaxAgeSeconds': 3600
            }
        ]
    }


def get_s3_service(bucket_name: str, aws_access_key: str, aws_secret_key: str,
                   region: str = None) -> S3Service:
    """
    Factory function to create S3Service instance.

    Args:
        bucket_name: Bucket to operate on
        aws_access_key: Caller's access key id
        aws_secret_key: Caller's secret access key
        region: Caller's region; falls back to AWS_REGION config, then us-east-1

    Returns:
        S3Service instance
    """
    if not region:
        if has_app_context():
            region = current_app.config.get('AWS_REGION')
        else:
            region = os.getenv('AWS_REGION')
    return S3Service(bucket_name, aws_access_key, aws_secret_key, region or DEFAULT_REGION)
