import json
from pathlib import Path

from .cli_config import get_config
from .document import BlueprintDocument
from .error_handling import ErrorCategory, get_error_handler
from .structured_logging import log_document_operation

BLUEPRINT_FILENAME = "blueprint.json"


def resolve_blueprint_path(path: str) -> Path:
    """Map a directory to the blueprint.json it holds; files pass through."""
    candidate = Path(path)
    if candidate.is_dir():
        return candidate / BLUEPRINT_FILENAME
    return candidate


def _validate_file_path(file_path: str) -> Path:
    """
    Validate a blueprint path before reading it.

    Args:
        file_path: The file or directory path to validate

    Returns:
        Path: Validated and resolved path object

    Raises:
        ValueError: If path is invalid or unsafe
    """
    if not file_path or not isinstance(file_path, str):
        raise ValueError("File path must be a non-empty string")

    try:
        path = resolve_blueprint_path(file_path).resolve()
    except (OSError, ValueError) as e:
        raise ValueError(f"Invalid file path: {e}")

    if not path.exists():
        raise ValueError(f"File does not exist: {path}")

    if not path.is_file():
        raise ValueError(f"Path is not a file: {path}")

    config = get_config()
    allowed_extensions = set(config.security.allowed_file_extensions)
    if path.suffix.lower() not in allowed_extensions:
        raise ValueError(f"File type not allowed: {path.suffix}")

    try:
        file_size = path.stat().st_size
    except OSError as e:
        raise ValueError(f"Cannot access file: {e}")

    max_file_size = config.security.max_file_size_bytes
    if file_size > max_file_size:
        raise ValueError(f"File too large: {file_size} bytes (max: {max_file_size})")

    return path


def _safe_read_file_streaming(path: Path, chunk_size: int = 8192) -> str:
    """
    Read a validated file in chunks, enforcing the size limit as it goes.

    Raises:
        ValueError: If file cannot be read safely
    """
    max_content_size = get_config().security.max_file_size_bytes

    try:
        content_parts = []
        total_size = 0

        with open(path, encoding="utf-8") as f:
            while True:
                chunk = f.read(chunk_size)
                if not chunk:
                    break

                total_size += len(chunk.encode("utf-8"))
                if total_size > max_content_size:
                    raise ValueError(
                        f"File too large: {total_size} bytes (max: {max_content_size})"
                    )

                content_parts.append(chunk)

        return "".join(content_parts)

    except UnicodeDecodeError:
        raise ValueError("File contains invalid UTF-8 characters")
    except PermissionError:
        raise ValueError("Permission denied reading file")
    except OSError as e:
        raise ValueError(f"Error reading file: {e}")


def load_blueprint_file(file_path: str) -> BlueprintDocument:
    """
    Load a blueprint.json file into a document.

    Args:
        file_path: Path to the blueprint file, or a directory containing one

    Returns:
        BlueprintDocument: The loaded document, lines not yet decoded

    Raises:
        ValueError: If the file cannot be read or is not a blueprint object
    """
    error_handler = get_error_handler()
    validated_path = _validate_file_path(file_path)
    content = _safe_read_file_streaming(validated_path)

    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        error_handler.error(
            ErrorCategory.PARSING,
            f"Invalid JSON format in blueprint: {e}",
            "parsers",
            "load_blueprint_file",
            exception=e,
            details={"file_path": validated_path.name},
        )
        raise ValueError(f"Invalid JSON format: {e}")

    try:
        document = BlueprintDocument.from_dict(data, source=str(validated_path))
    except ValueError as e:
        error_handler.error(
            ErrorCategory.VALIDATION,
            str(e),
            "parsers",
            "load_blueprint_file",
            exception=e,
            details={"file_path": validated_path.name},
        )
        raise

    log_document_operation(
        "load",
        path=validated_path.name,
        dependencies=len(document.depend),
        env_vars=len(document.envvar),
    )
    return document


def save_blueprint_file(document: BlueprintDocument, file_path: str) -> Path:
    """
    Write a document as pretty-printed blueprint JSON.

    Raises:
        ValueError: If the file cannot be written
    """
    path = resolve_blueprint_path(file_path)
    content = json.dumps(document.to_dict(), indent=2, ensure_ascii=False) + "\n"

    try:
        with open(path, "w", encoding="utf-8") as f:
            f.write(content)
    except OSError as e:
        get_error_handler().error(
            ErrorCategory.FILESYSTEM,
            f"Error writing blueprint: {e}",
            "parsers",
            "save_blueprint_file",
            exception=e,
            details={"file_path": path.name},
        )
        raise ValueError(f"Error writing file: {e}")

    log_document_operation("save", path=path.name)
    return path
