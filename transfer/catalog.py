"""Client-side filtering of object listings by category and search text."""

from typing import Iterable, List, Optional

from common.types import StoredObjectMetadata

CATEGORY_EXTENSIONS = {
    'images': ('jpg', 'jpeg', 'png', 'gif', 'svg', 'webp'),
    'documents': ('pdf', 'doc', 'docx', 'txt', 'rtf'),
    'videos': ('mp4', 'avi', 'mov', 'wmv', 'flv', 'webm'),
    'audio': ('mp3', 'wav', 'flac', 'aac', 'ogg'),
    'archives': ('zip', 'rar', '7z', 'tar', 'gz'),
}

CATEGORIES = ('all', 'profile') + tuple(CATEGORY_EXTENSIONS)


def extension_of(name: str) -> str:
    _, dot, extension = name.rpartition('.')
    return extension.lower() if dot else ''


def filter_objects(
    objects: Iterable[StoredObjectMetadata],
    category: str = 'all',
    query: Optional[str] = None,
) -> List[StoredObjectMetadata]:
    """
    Narrow a listing to one category, then to names or content types containing ``query``.

    Raises:
        ValueError: If ``category`` is unknown
    """
    if category not in CATEGORIES:
        raise ValueError(f"Unknown category '{category}'. Expected one of: {', '.join(CATEGORIES)}")

    selected = list(objects)

    if category == 'profile':
        selected = [o for o in selected if o.is_distinguished]
    elif category != 'all':
        extensions = CATEGORY_EXTENSIONS[category]
        selected = [o for o in selected if extension_of(o.name) in extensions]

    if query:
        needle = query.lower()
        selected = [
            o for o in selected
            if needle in o.name.lower() or needle in o.content_type.lower()
        ]

    return selected
