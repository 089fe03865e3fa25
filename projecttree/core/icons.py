# projecttree/core/icons.py
from typing import Callable, Dict, Optional

IconResolver = Callable[[str], str]

DEFAULT_FILE_ICON = "file"
FOLDER_ICON = "folder"
FOLDER_OPEN_ICON = "folder-open"

# Extension -> icon token (Lucide icon names)
FILE_ICON_MAP: Dict[str, str] = {
    # JavaScript/TypeScript
    "js": "zap", "jsx": "atom", "ts": "code-2", "tsx": "layers",
    # Stylesheets
    "css": "paintbrush", "scss": "palette", "sass": "palette", "less": "brush",
    # Markup
    "html": "layout", "htm": "layout", "xml": "file-type", "svg": "shapes",
    # Data
    "json": "braces", "yaml": "list", "yml": "list", "toml": "file-key", "csv": "sheet",
    # Documents
    "md": "book-open", "markdown": "book-open", "txt": "file-text", "pdf": "file-down",
    "doc": "file-edit", "docx": "file-edit",
    # Images
    "png": "camera", "jpg": "camera", "jpeg": "camera", "gif": "film", "webp": "image", "ico": "star",
    # Configuration
    "env": "key", "config": "cog", "conf": "cog", "gitignore": "eye-off",
    # Build / packaging
    "lock": "shield", "dockerfile": "box",
    # Languages
    "py": "snake", "java": "coffee", "php": "server", "rb": "gem", "go": "zap",
    "rs": "shield-check", "c": "cpu", "cpp": "cpu", "cs": "hash",
    # Databases
    "sql": "database", "db": "hard-drive", "sqlite": "hard-drive",
    # Archives
    "zip": "package", "rar": "package", "7z": "package", "tar": "package", "gz": "package",
    # Executables
    "exe": "play-circle", "msi": "play-circle", "app": "monitor", "dmg": "monitor",
    # Misc
    "log": "scroll-text",
    "ttf": "type", "woff": "type", "woff2": "type", "eot": "type",
    "mp3": "headphones", "wav": "headphones", "flac": "headphones",
    "mp4": "video", "avi": "video", "mov": "video",
}


def file_extension(file_name: str) -> str:
    """Text after the last dot, lower-cased. Names without a dot are returned whole ("Dockerfile")."""
    return file_name.rsplit(".", 1)[-1].lower()


def resolve_icon(file_name: str, icon_map: Optional[Dict[str, str]] = None) -> str:
    """Maps a file name to an icon token. Only the name is inspected, never the contents."""
    table = FILE_ICON_MAP if icon_map is None else icon_map
    return table.get(file_extension(file_name), DEFAULT_FILE_ICON)
