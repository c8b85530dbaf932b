"""
S3 object endpoints for the file browser.

Routes:
- POST /api/s3/list - List one folder level (folders + files)
- POST /api/s3/delete - Delete keys (folder keys delete their contents too)
- POST /api/s3/delete-folder - Delete everything under a folder prefix
- POST /api/s3/rename - Rename a file or folder (copy + delete)
- POST /api/s3/create-folder - Create an empty folder placeholder
- POST /api/s3/upload - Upload a file through the server (multipart form)
- POST /api/s3/upload-url - Presigned PUT URL for direct browser upload

Every request carries the bucket name and the caller's access keys; the
server stores no credentials.
"""
from flask import Blueprint, request, jsonify, current_app
from werkzeug.exceptions import HTTPException

from bucketdesk.routes.shared import get_json_body, s3_service_from_body
from bucketdesk.services.s3_service import get_s3_service
from bucketdesk.utils.validators import (
    ValidationError, clean_text, normalize_folder_key, require_fields, validate_s3_key
)

bp = Blueprint('s3_objects', __name__, url_prefix='/api/s3')


@bp.route('/list', methods=['POST'])
def list_objects():
    """
    List the folders and files directly under a prefix.

    Request body:
        {"bucket", "accessKeyId", "secretAccessKey", "region"?, "prefix"?}

    Returns:
        {
            "folders": [{"name": "reports", "prefix": "reports/"}],
            "files": [{"key", "name", "size", "lastModified"}],
            "resolvedRegion": "ap-south-1"
        }
    """
    try:
        data = get_json_body()
        s3_service = s3_service_from_body(data, 'Missing bucket, accessKeyId, or secretAccessKey')
        prefix = clean_text(data.get('prefix'))

        folders, files = s3_service.list_folder(prefix)

        return jsonify({
            'folders': [folder.to_dict() for folder in folders],
            'files': [entry.to_dict() for entry in files],
            'resolvedRegion': s3_service.region
        }), 200

    except ValidationError as e:
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        current_app.logger.error(f"S3 list error: {e}", exc_info=True)
        return jsonify({'error': str(e) or 'Failed to list bucket'}), 500


@bp.route('/delete', methods=['POST'])
def delete_objects():
    """
    Delete objects. Keys ending in "/" also delete every object under them.

    Request body:
        {"bucket", "accessKeyId", "secretAccessKey", "region"?, "keys": [...]}

    Returns:
        {"deleted": 12}
    """
    try:
        data = get_json_body()
        s3_service = s3_service_from_body(data)

        keys = data.get('keys')
        if not isinstance(keys, list) or not keys:
            raise ValidationError('Missing or empty keys array')

        deleted = s3_service.delete_keys([key for key in keys if isinstance(key, str)])

        return jsonify({'deleted': deleted}), 200

    except ValidationError as e:
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        current_app.logger.error(f"S3 delete error: {e}", exc_info=True)
        return jsonify({'error': str(e) or 'Delete failed'}), 500


@bp.route('/delete-folder', methods=['POST'])
def delete_folder():
    """
    Delete a folder and everything under it.

    Request body:
        {"bucket", "accessKeyId", "secretAccessKey", "region"?, "prefix": "reports/"}

    Returns:
        {"deleted": 40}
    """
    try:
        data = get_json_body()
        s3_service = s3_service_from_body(data)

        prefix = clean_text(data.get('prefix'))
        if not prefix or not prefix.endswith('/'):
            raise ValidationError('prefix must be a folder key ending with /')

        deleted = s3_service.delete_prefix(prefix)

        return jsonify({'deleted': deleted}), 200

    except ValidationError as e:
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        current_app.logger.error(f"S3 delete-folder error: {e}", exc_info=True)
        return jsonify({'error': str(e) or 'Delete folder failed'}), 500


@bp.route('/rename', methods=['POST'])
def rename_object():
    """
    Rename a file, or a folder when oldKey ends with "/".

    Request body:
        {"bucket", "accessKeyId", "secretAccessKey", "region"?, "oldKey", "newKey"}

    Returns:
        {"renamed": true}
    """
    try:
        data = get_json_body()
        s3_service = s3_service_from_body(data)

        old_key, new_key = require_fields('Missing oldKey or newKey', data.get('oldKey'), data.get('newKey'))
        if old_key == new_key:
            raise ValidationError('oldKey and newKey are the same')
        if old_key.endswith('/') and not new_key.endswith('/'):
            raise ValidationError('Folder rename must end with /')
        validate_s3_key(new_key)

        s3_service.rename(old_key, new_key)

        return jsonify({'renamed': True}), 200

    except ValidationError as e:
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        current_app.logger.error(f"S3 rename error: {e}", exc_info=True)
        return jsonify({'error': str(e) or 'Rename failed'}), 500


@bp.route('/create-folder', methods=['POST'])
def create_folder():
    """
    Create an empty folder (a zero-byte object whose key ends with "/").

    Request body:
        {"bucket", "accessKeyId", "secretAccessKey", "region"?, "key": "reports/2024"}

    Returns:
        {"success": true, "key": "reports/2024/"}
    """
    try:
        data = get_json_body()
        message = 'Missing bucket, accessKeyId, secretAccessKey, or key'
        require_fields(message, data.get('key'))
        s3_service = s3_service_from_body(data, message)

        folder_key = normalize_folder_key(data['key'])
        validate_s3_key(folder_key)

        s3_service.create_folder(folder_key)

        return jsonify({'success': True, 'key': folder_key}), 200

    except ValidationError as e:
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        current_app.logger.error(f"Create folder error: {e}", exc_info=True)
        return jsonify({'error': str(e) or 'Failed to create folder'}), 500


@bp.route('/upload', methods=['POST'])
def upload_object():
    """
    Upload a file through the server.

    Expected form data:
        - file: File object
        - bucket, accessKeyId, secretAccessKey, key
        - region (optional)

    Returns:
        {"ok": true, "key": "reports/q1.pdf"}
    """
    try:
        file = request.files.get('file')
        if file is None:
            raise ValidationError('Missing or invalid file')

        bucket, access_key, secret_key, key = require_fields(
            'Missing bucket, credentials, or key',
            request.form.get('bucket'),
            request.form.get('accessKeyId'),
            request.form.get('secretAccessKey'),
            request.form.get('key')
        )
        validate_s3_key(key)

        s3_service = get_s3_service(
            bucket, access_key, secret_key,
            region=clean_text(request.form.get('region')) or None
        )
        content_type = file.mimetype or 'application/octet-stream'
        s3_service.upload_bytes(key, file.read(), content_type)

        return jsonify({'ok': True, 'key': key}), 200

    except ValidationError as e:
        return jsonify({'error': str(e)}), 400
    except HTTPException:
        # Oversized bodies surface here as 413 when the form is parsed
        raise
    except Exception as e:
        current_app.logger.error(f"S3 upload error: {e}", exc_info=True)
        return jsonify({'error': str(e) or 'Upload failed'}), 500


@bp.route('/upload-url', methods=['POST'])
def get_upload_url():
    """
    Generate a presigned PUT URL for uploading straight from the browser.

    Request body:
        {"bucket", "accessKeyId", "secretAccessKey", "region"?, "key"}

    Returns:
        {"uploadUrl": "https://..."}
    """
    try:
        data = get_json_body()
        message = 'Missing bucket, accessKeyId, secretAccessKey, or key'
        (key,) = require_fields(message, data.get('key'))
        s3_service = s3_service_from_body(data, message)
        validate_s3_key(key)

        upload_url = s3_service.generate_upload_url(
            key, expires_in=current_app.config['UPLOAD_URL_EXPIRES_SECONDS']
        )

        return jsonify({'uploadUrl': upload_url}), 200

    except ValidationError as e:
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        current_app.logger.error(f"Upload URL error: {e}", exc_info=True)
        return jsonify({'error': str(e) or 'Failed to create upload URL'}), 500
