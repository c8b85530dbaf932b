"""Prompt templates for the bucket assistant."""
from typing import List, Optional

from bucketdesk.models import FileEntry, FolderEntry
from bucketdesk.utils.formatters import format_folder_label, format_size_kb

ASK_FILE_LIMIT = 300
CHAT_FILE_LIMIT = 400
QUERY_FILE_LIMIT = 200
REPORT_FILE_LIMIT = 500
UPLOAD_NAME_LIMIT = 20


def format_file_line(entry: FileEntry, size_style: str = 'bytes') -> str:
    """
    Render one file as a prompt bullet.

    Args:
        entry: File to describe
        size_style: 'bytes' -> ", 1234 bytes"; 'size' -> ", size: 1234"
    """
    details = f"key: {entry.key}"
    if entry.size is not None:
        details += f", {entry.size} bytes" if size_style == 'bytes' else f", size: {entry.size}"
    if entry.last_modified:
        details += f", modified: {entry.last_modified}"
    return f"- {entry.name} ({details})"


def format_file_list(files: List[FileEntry], limit: int, empty_text: str, size_style: str = 'bytes') -> str:
    """Bullet list of at most `limit` files, or `empty_text` when there are none."""
    if not files:
        return empty_text
    return "\n".join(format_file_line(entry, size_style) for entry in files[:limit])


def format_report_file_list(files: List[FileEntry]) -> str:
    if not files:
        return "(no files)"
    lines = []
    for entry in files[:REPORT_FILE_LIMIT]:
        details = format_size_kb(entry.size)
        if entry.last_modified:
            details += f", {entry.last_modified}"
        lines.append(f"- {entry.name} ({details})")
    return "\n".join(lines)


def build_ask_prompt(question: str, folder_path: Optional[str], files: List[FileEntry],
                     subfolder_names: List[str]) -> str:
    """Prompt for a short answer about the currently open folder."""
    folder_label = format_folder_label(folder_path)
    file_list = format_file_list(files, ASK_FILE_LIMIT, "(no files in this folder)")
    subfolders_line = (
        f"SUBFOLDERS in this folder: {', '.join(subfolder_names)}."
        if subfolder_names else "(no subfolders)"
    )

    return f"""You are an assistant for an S3 bucket workspace. You are describing ONLY the folder below. Use the exact folder name "{folder_label}" when you refer to it. Do not substitute a different folder name.

CURRENT FOLDER (the one you are describing): {folder_label}

FILES in this folder:
{file_list}

{subfolders_line}

USER QUESTION: {question}

Answer in 2-4 short sentences. Mention specific file names from the list above when relevant. Do not make up files. If this folder has no files, say so and use the folder name "{folder_label}"."""


def build_chat_prompt(message: str, folder_path: Optional[str], bucket_name: Optional[str],
                      files: List[FileEntry], folders: List[FolderEntry]) -> str:
    """Prompt for the chat panel; asks for a {message, filters, match} JSON envelope."""
    folder_label = format_folder_label(folder_path)
    file_list = format_file_list(files, CHAT_FILE_LIMIT, "(no files in this folder)")
    subfolders_line = (
        f"Subfolders: {', '.join(folder.name for folder in folders)}."
        if folders else "(no subfolders)"
    )

    return f"""You are a helpful assistant for an S3 bucket workspace. The user can ask anything about their S3 bucket: list or describe files, filter (e.g. "show only PDFs", "give me the 2 files", "last 7 days"), get a short summary/report, or find specific files, even if they live in different folders.

CURRENT FOLDER VIEW: {folder_label}
Bucket (for context only, do not mention unless user asks): {bucket_name or "(unknown)"}

FILES across the bucket (use exact "key" values if you return match):
{file_list}

{subfolders_line}

USER MESSAGE: {message}

Important constraints:
- You do NOT have conversation memory. Treat each USER MESSAGE as independent; never say you "already applied" a filter from earlier messages.
- When the user asks to "list" or "show all" files of a certain type (e.g. "what png files do we have"), return a clear list of those files using their exact "key" paths (e.g. "images/logo.png"). Use "match" with the same keys.
- Only mention filters if the user explicitly asked you to narrow or change the view in THIS message (e.g. "only PDFs", "last 7 days"). When you mention a filter, you MUST also return a consistent "filters" object that reflects what you described.
- If the user asks "what filter?" or something similar without enough context, explain that you don't see any filter request in THIS message and briefly describe what kinds of filters are available.

Respond with a JSON object only, no other text:
{{
  "message": "Your friendly, direct answer in 2-4 sentences. Mention specific file names when relevant. If they asked to filter or 'give me X files', say what you're showing and list the files.",
  "filters": null or a filter object to apply: {{ "fileType": "pdf" | null, "dateFrom": "ISO date" | null, "dateTo": "ISO date" | null, "sizeMinBytes": number | null, "sizeMaxBytes": number | null, "nameContains": "substring" | null }}. Only set if the user asked to filter/narrow (e.g. "only PDFs", "last 7 days", "larger than 5MB"). Use null for unspecified. For "last 7 days" set dateFrom to 7 days ago in ISO format.
  "match": null or an array of file keys (exact "key" values from the list above) that match the user's request. Use when they ask for specific files (e.g. "the 2 files", "the invoices") so the app can highlight them. Only include keys from the FILES list.
}}

Examples:
- "what's in this folder?" -> message describing files, filters: null, match: null
- "give me the 2 files" -> message listing the 2 files, filters: null, match: [key1, key2]
- "show only PDFs" -> message confirming, filters: {{ "fileType": "pdf", ... }}, match: null
- "clear filters" or "reset filters" -> message confirming, filters: null, match: null
- "summarize" / "generate a one-pager" -> message with summary or report text, filters: null, match: null"""


def build_query_prompt(query: str, files: List[FileEntry]) -> str:
    """Prompt for natural-language search over the current view."""
    file_list = format_file_list(files, QUERY_FILE_LIMIT, "(no files in current view)", size_style='size')

    return f"""You are a file search assistant. Given the following list of files in an S3 bucket folder, answer the user's search question.

FILES:
{file_list}

USER QUESTION: {query}

Instructions:
- If the user is asking which files match a criteria (e.g. "invoices", "PDFs", "from last week"), respond with a JSON object: {{"match": ["key1", "key2", ...]}} listing the keys of matching files. Only include keys from the list above. If none match, use {{"match": []}}.
- If the user is asking a general question (e.g. "what's in this folder?", "how many PDFs?"), answer in 1-2 short sentences, then if relevant add a JSON object on a new line: {{"match": ["key1", ...]}} for any files you referenced.
- Prefer responding with valid JSON when the intent is clearly to filter or find files. Use the exact "key" values from the list."""


def build_report_prompt(report_type: str, folder_path: Optional[str], files: List[FileEntry],
                        bucket_name: Optional[str]) -> str:
    """Prompt for a one-pager (default) or a weekly-digest summary."""
    file_list = format_report_file_list(files)
    scope = f"Folder: {folder_path}" if folder_path else "Bucket root"
    bucket = f"Bucket: {bucket_name}\n" if bucket_name else ""

    if report_type == 'digest':
        return f"""Generate a short "Weekly digest" style summary (3-5 bullet points) for this S3 scope. Be concise.

{bucket}{scope}

FILES:
{file_list}

Output plain text, no markdown headers. Focus on: what's here, file types, approximate size, and any notable patterns."""

    return f"""Generate a one-pager summary (one short paragraph, then optional bullet points) for this S3 scope. Suitable for sharing or quick reference.

{bucket}{scope}

FILES:
{file_list}

Output plain text. Start with one paragraph (2-3 sentences), then up to 5 bullet points if useful."""


def build_command_prompt(text: str) -> str:
    """Prompt that maps command-bar input to a single intent object."""
    return f"""The user typed a command in a command bar (like Cmd+K). Interpret their intent. Reply with ONLY a JSON object.

User typed: "{text}"

Possible actions:
- find / search: {{"action": "find", "query": "their search query"}}
- summarize: {{"action": "summarize", "scope": "optional: folder name or 'bucket'"}}
- create folder: {{"action": "create_folder", "name": "suggested folder name"}}
- upload: {{"action": "upload", "hint": "optional hint"}}
- report: {{"action": "report", "type": "one-pager" or "digest"}}
- navigate: {{"action": "navigate", "path": "folder path"}}
- unclear: {{"action": "none", "message": "short suggestion"}}

Use the most likely single action. For "find X" or "search for X" use action "find" with query X. For "new folder X" use "create_folder" with name X."""


def build_filters_prompt(text: str) -> str:
    """Prompt that turns a natural-language filter into ParsedFilters JSON."""
    return f"""Parse the user's natural language filter into a structured filter. Reply with ONLY a JSON object, no other text.

User said: "{text}"

Output format (use null for unspecified):
{{
  "fileType": "extension without dot, e.g. pdf, csv, or null",
  "dateFrom": "ISO date string for 'after this date', or null",
  "dateTo": "ISO date string for 'before this date', or null",
  "sizeMinBytes": number or null (e.g. "larger than 5MB" -> 5242880),
  "sizeMaxBytes": number or null (e.g. "smaller than 1MB" -> 1048576),
  "nameContains": "substring to search in filename, or null"
}}

Examples:
- "Show only PDFs" -> {{"fileType": "pdf", "dateFrom": null, "dateTo": null, "sizeMinBytes": null, "sizeMaxBytes": null, "nameContains": null}}
- "Files updated in the last 7 days" -> use dateFrom as 7 days ago in ISO format, rest null
- "Larger than 5MB" -> {{"fileType": null, "dateFrom": null, "dateTo": null, "sizeMinBytes": 5242880, "sizeMaxBytes": null, "nameContains": null}}
- "invoices from last month" -> dateFrom/dateTo for last month, nameContains "invoice", rest null
"""


def build_upload_suggestion_prompt(file_names: List[str], existing_folders: List[str]) -> str:
    """Prompt asking where a batch of uploads should go and how to tag it."""
    names = ", ".join(file_names[:UPLOAD_NAME_LIMIT])
    folders = ", ".join(existing_folders) if existing_folders else "(none yet)"

    return f"""Based on these file names about to be uploaded, suggest a single folder path (e.g. "invoices/2024" or "reports") and a few tags. Use only alphanumeric, hyphen, underscore. Prefer reusing one of the existing folders if it fits.

File names: {names}
Existing folders: {folders}

Reply with ONLY a JSON object:
{{"suggestedFolder": "path/without/leading/slash", "suggestedTags": ["tag1", "tag2", "tag3"]}}
Use empty string for suggestedFolder if root is best. Max 5 tags."""
