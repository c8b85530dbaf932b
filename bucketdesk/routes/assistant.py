"""
Generative-AI assistant endpoints.

Routes:
- POST /api/ai/ask - Short answer about the open folder
- POST /api/ai/chat - Chat reply with optional filters and highlighted keys
- POST /api/ai/query - Natural-language search over the current view
- POST /api/ai/report - One-pager or digest summary of a folder
- POST /api/ai/command - Command-bar intent parsing
- POST /api/ai/filters - Natural-language filter parsing
- POST /api/ai/suggest-upload - Folder and tag suggestion for pending uploads
"""
from flask import Blueprint, jsonify, current_app

from bucketdesk.models import ChatReply, CommandIntent
from bucketdesk.routes.shared import file_entries_from, folder_entries_from, get_json_body
from bucketdesk.services.assistant import (
    build_ask_prompt,
    build_chat_prompt,
    build_command_prompt,
    build_filters_prompt,
    build_query_prompt,
    build_report_prompt,
    build_upload_suggestion_prompt,
    normalize_filters,
    normalize_intent,
    normalize_match,
    normalize_upload_suggestion,
    split_match_answer,
)
from bucketdesk.services.s3_service import get_s3_service
from bucketdesk.services.text_generation_service import get_text_generation_service
from bucketdesk.utils.validators import (
    ValidationError, clean_text, ensure_string_list, optional_text, require_fields
)

bp = Blueprint('assistant', __name__, url_prefix='/api/ai')

CHAT_FALLBACK_MESSAGE = (
    "I couldn't process that. Try asking about this folder's files, "
    "applying a filter, or asking for a summary."
)
COMMAND_FALLBACK = CommandIntent(
    action='none',
    arguments={'message': 'Try: find …, summarize, new folder …, or report'}
)


@bp.route('/ask', methods=['POST'])
def ask():
    """
    Answer a question about the folder currently open in the browser.

    Request body:
        {"question", "folderPath"?, "files": [...], "subfolderNames": [...]}

    Returns:
        {"answer": "..."}
    """
    try:
        data = get_json_body()
        (question,) = require_fields('Missing question', data.get('question'))

        prompt = build_ask_prompt(
            question,
            optional_text(data.get('folderPath')),
            file_entries_from(data.get('files')),
            ensure_string_list(data.get('subfolderNames'))
        )
        answer = get_text_generation_service().generate_text(prompt)

        return jsonify({'answer': answer.strip()}), 200

    except ValidationError as e:
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        current_app.logger.error(f"AI ask error: {e}", exc_info=True)
        return jsonify({'error': str(e) or 'Ask failed'}), 500


def _list_bucket_for_chat(data, fallback_files):
    """
    Use the whole bucket as chat context when the client sent its credentials.

    Listing failures fall back to the files the client sent.
    """
    bucket_name = clean_text(data.get('bucketName'))
    credentials = data.get('credentials')
    if not bucket_name or not isinstance(credentials, dict):
        return fallback_files

    access_key = clean_text(credentials.get('accessKeyId'))
    secret_key = clean_text(credentials.get('secretAccessKey'))
    if not access_key or not secret_key:
        return fallback_files

    try:
        s3_service = get_s3_service(bucket_name, access_key, secret_key,
                                    region=clean_text(data.get('region')) or None)
        return s3_service.list_all_files(max_files=current_app.config['CHAT_MAX_BUCKET_FILES'])
    except Exception as e:
        current_app.logger.warning(
            f"Failed to list bucket {bucket_name} for chat, using current folder only: {e}"
        )
        return fallback_files


@bp.route('/chat', methods=['POST'])
def chat():
    """
    Chat about the bucket. The reply may carry filters to apply and keys to highlight.

    Request body:
        {
            "message", "folderPath"?, "files": [...], "folders": [...],
            "bucketName"?, "region"?, "credentials"?: {"accessKeyId", "secretAccessKey"}
        }

    Returns:
        {"message": "...", "filters": {...} | null, "match": [keys] | null}
    """
    try:
        data = get_json_body()
        (message,) = require_fields('Missing message', data.get('message'))

        files = _list_bucket_for_chat(data, file_entries_from(data.get('files')))
        prompt = build_chat_prompt(
            message,
            optional_text(data.get('folderPath')),
            optional_text(data.get('bucketName')),
            files,
            folder_entries_from(data.get('folders'))
        )

        result = get_text_generation_service().generate_text_with_json(
            prompt,
            fallback={'message': CHAT_FALLBACK_MESSAGE, 'filters': None, 'match': None}
        )
        if not isinstance(result, dict):
            result = {}

        reply = ChatReply(
            message=clean_text(result.get('message')) or 'No response.',
            filters=normalize_filters(result['filters']) if isinstance(result.get('filters'), dict) else None,
            match=normalize_match(result.get('match'))
        )

        return jsonify(reply.to_dict()), 200

    except ValidationError as e:
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        current_app.logger.error(f"AI chat error: {e}", exc_info=True)
        return jsonify({'error': str(e) or 'Chat failed'}), 500


@bp.route('/query', methods=['POST'])
def query():
    """
    Search the current view in natural language.

    Request body:
        {"query", "files": [...]}

    Returns:
        {"answer": "...", "match": [keys]}
    """
    try:
        data = get_json_body()
        (query_text,) = require_fields('Missing query', data.get('query'))

        prompt = build_query_prompt(query_text, file_entries_from(data.get('files')))
        response = get_text_generation_service().generate_text(prompt)

        return jsonify(split_match_answer(response)), 200

    except ValidationError as e:
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        current_app.logger.error(f"AI query error: {e}", exc_info=True)
        return jsonify({'error': str(e) or 'AI query failed'}), 500


@bp.route('/report', methods=['POST'])
def report():
    """
    Generate a one-pager or weekly-digest summary of a folder.

    Request body:
        {"type"?: "one-pager" | "digest", "folderPath"?, "files": [...], "bucketName"?}

    Returns:
        {"report": "...", "type": "one-pager", "scope": "reports/"}
    """
    try:
        data = get_json_body()
        report_type = clean_text(data.get('type')) or 'one-pager'
        folder_path = optional_text(data.get('folderPath'))

        prompt = build_report_prompt(
            report_type,
            folder_path,
            file_entries_from(data.get('files')),
            optional_text(data.get('bucketName'))
        )
        report_text = get_text_generation_service().generate_text(prompt)

        return jsonify({
            'report': report_text.strip(),
            'type': report_type,
            'scope': folder_path or 'root'
        }), 200

    except Exception as e:
        current_app.logger.error(f"AI report error: {e}", exc_info=True)
        return jsonify({'error': str(e) or 'Report generation failed'}), 500


@bp.route('/command', methods=['POST'])
def command():
    """
    Interpret command-bar input as a single intent.

    Request body:
        {"text": "new folder invoices"}

    Returns:
        {"intent": {"action": "create_folder", "name": "invoices"}}
    """
    try:
        data = get_json_body()
        (text,) = require_fields('Missing text', data.get('text'))

        result = get_text_generation_service().generate_text_with_json(
            build_command_prompt(text),
            fallback=COMMAND_FALLBACK.to_dict()
        )
        intent = normalize_intent(result, COMMAND_FALLBACK)

        return jsonify({'intent': intent.to_dict()}), 200

    except ValidationError as e:
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        current_app.logger.error(f"AI command error: {e}", exc_info=True)
        return jsonify({'error': str(e) or 'Command parse failed'}), 500


@bp.route('/filters', methods=['POST'])
def filters():
    """
    Parse a natural-language filter.

    Request body:
        {"text": "PDFs larger than 5MB"}

    Returns:
        {"filters": {"fileType": "pdf", "sizeMinBytes": 5242880}}
    """
    try:
        data = get_json_body()
        (text,) = require_fields('Missing text', data.get('text'))

        result = get_text_generation_service().generate_text_with_json(
            build_filters_prompt(text), fallback={}
        )

        return jsonify({'filters': normalize_filters(result).to_dict()}), 200

    except ValidationError as e:
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        current_app.logger.error(f"AI filters error: {e}", exc_info=True)
        return jsonify({'error': str(e) or 'Parse filters failed'}), 500


@bp.route('/suggest-upload', methods=['POST'])
def suggest_upload():
    """
    Suggest a destination folder and tags for files about to be uploaded.

    Request body:
        {"fileNames": [...], "existingFolders": [...]}

    Returns:
        {"suggestedFolder": "invoices/2024", "suggestedTags": ["invoice", "2024"]}
    """
    try:
        data = get_json_body()
        file_names = ensure_string_list(data.get('fileNames'))
        if not file_names:
            return jsonify({'suggestedFolder': '', 'suggestedTags': []}), 200

        result = get_text_generation_service().generate_text_with_json(
            build_upload_suggestion_prompt(file_names, ensure_string_list(data.get('existingFolders'))),
            fallback={'suggestedFolder': '', 'suggestedTags': []}
        )

        return jsonify(normalize_upload_suggestion(result)), 200

    except Exception as e:
        current_app.logger.error(f"AI suggest-upload error: {e}", exc_info=True)
        return jsonify({'error': str(e) or 'Suggestion failed'}), 500
