"""Bucket assistant prompt and reply-parsing modules."""
from .parsers import (
    JsonExtractionError,
    extract_json_object,
    split_match_answer,
    normalize_filters,
    normalize_match,
    normalize_intent,
    normalize_upload_suggestion,
)
from .prompts import (
    format_file_list,
    build_ask_prompt,
    build_chat_prompt,
    build_query_prompt,
    build_report_prompt,
    build_command_prompt,
    build_filters_prompt,
    build_upload_suggestion_prompt,
)

__all__ = [
    # Parsers
    'JsonExtractionError',
    'extract_json_object',
    'split_match_answer',
    'normalize_filters',
    'normalize_match',
    'normalize_intent',
    'normalize_upload_suggestion',
    # Prompts
    'format_file_list',
    'build_ask_prompt',
    'build_chat_prompt',
    'build_query_prompt',
    'build_report_prompt',
    'build_command_prompt',
    'build_filters_prompt',
    'build_upload_suggestion_prompt',
]
