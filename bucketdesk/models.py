"""
Request/response shapes exchanged with the browser.

Nothing here is persisted: entries are rebuilt from S3 on every call.
"""
from dataclasses import dataclass, field, asdict
from typing import Optional, Dict, Any, List


@dataclass
class FileEntry:
    """One S3 object as shown in the file browser."""
    key: str = ''
    name: str = ''
    size: Optional[int] = None
    last_modified: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the camelCase dictionary the UI expects."""
        return {
            'key': self.key,
            'name': self.name,
            'size': self.size,
            'lastModified': self.last_modified
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FileEntry':
        """Create from a client-supplied dictionary, tolerating missing fields."""
        key = str(data.get('key') or '')
        name = data.get('name') or key.split('/')[-1]
        size = data.get('size')
        if size is not None:
            try:
                size = int(size)
            except (TypeError, ValueError):
                size = None
        return cls(
            key=key,
            name=str(name),
            size=size,
            last_modified=data.get('lastModified') or None
        )


@dataclass
class FolderEntry:
    """Synthetic folder derived from a common key prefix."""
    name: str = ''
    prefix: str = ''

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FolderEntry':
        """Create from dictionary."""
        return cls(name=str(data.get('name') or ''), prefix=str(data.get('prefix') or ''))


@dataclass
class ParsedFilters:
    """Filter criteria produced by the model and applied to a file list."""
    file_type: Optional[str] = None
    date_from: Optional[str] = None
    date_to: Optional[str] = None
    size_min_bytes: Optional[int] = None
    size_max_bytes: Optional[int] = None
    name_contains: Optional[str] = None

    FIELD_NAMES = {
        'fileType': 'file_type',
        'dateFrom': 'date_from',
        'dateTo': 'date_to',
        'sizeMinBytes': 'size_min_bytes',
        'sizeMaxBytes': 'size_max_bytes',
        'nameContains': 'name_contains',
    }

    def to_dict(self) -> Dict[str, Any]:
        """Convert to camelCase, omitting unset criteria."""
        result = {}
        for wire_name, attr in self.FIELD_NAMES.items():
            value = getattr(self, attr)
            if value is not None:
                result[wire_name] = value
        return result

    def is_empty(self) -> bool:
        return not self.to_dict()


@dataclass
class CommandIntent:
    """Command-bar intent: an action name plus its arguments."""
    action: str = 'none'
    arguments: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Flatten into {"action": ..., **arguments}."""
        return {'action': self.action, **self.arguments}


@dataclass
class ChatReply:
    """Envelope returned by the chat endpoint."""
    message: str = ''
    filters: Optional[ParsedFilters] = None
    match: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'message': self.message,
            'filters': self.filters.to_dict() if self.filters and not self.filters.is_empty() else None,
            'match': self.match
        }
