"""
In-memory blueprint document and list decoding.

A blueprint keeps its dependency and environment entries as raw lines, the
same way they appear in ``blueprint.json``. Decoding a list runs the line
codec once per element, in order, and collects a ``LineError`` for every
line that fails instead of stopping at the first one.
"""

import time
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Generic, List, Optional, Tuple, TypeVar

from .cli_config import get_config
from .dependency import DependencyEntry, EnvVarEntry
from .dependency_codec import parse_dependency_line, render_dependency_line
from .envvar_codec import parse_env_var_line, render_env_var_line
from .error_handling import FormatError, LineTooLongError, log_parsing_error
from .structured_logging import (
    log_decode_complete,
    log_decode_start,
    log_line_rejected,
)

T = TypeVar("T")

# JSON key -> attribute, in output order
STRING_FIELDS = {
    "BLUEPRINT": "blueprint",
    "NAME": "name",
    "TYPE": "type",
    "VERSION": "version",
    "ENVIRONMENT": "environment",
    "WORKDIR": "workdir",
    "CONTEXT": "context",
    "DEPLOYABILITY": "deployability",
}
LIST_FIELDS = {
    "CMD": "cmd",
    "DEPEND": "depend",
    "ENVVAR": "envvar",
}
# Lists of encoded lines; CMD and the string fields pass through untouched
LINE_FIELDS = ("DEPEND", "ENVVAR")


@dataclass(frozen=True)
class LineError:
    """A rejected line, the field it came from and where it sat in that list."""

    field_name: str
    index: int
    line: str
    error: FormatError

    @property
    def kind(self) -> str:
        return self.error.kind.value

    def to_dict(self, include_line: bool = True) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "field": self.field_name,
            "index": self.index,
            "kind": self.kind,
            "message": str(self.error),
        }
        if include_line:
            data["line"] = self.line
        return data


@dataclass
class DecodeResult(Generic[T]):
    """Entries decoded from one list, in list order, plus per-line errors."""

    entries: List[T] = field(default_factory=list)
    errors: List[LineError] = field(default_factory=list)
    total_lines: int = 0

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def error_count(self) -> int:
        return len(self.errors)


def _decode_lines(
    lines: List[str],
    decoder: Callable[[str], T],
    field_name: str,
    max_line_length: Optional[int],
    document_name: Optional[str],
    include_text: bool,
) -> DecodeResult[T]:
    result: DecodeResult[T] = DecodeResult(total_lines=len(lines))
    start = time.perf_counter()
    log_decode_start(field_name, len(lines), document=document_name)

    for index, line in enumerate(lines):
        try:
            if max_line_length is not None and len(line) > max_line_length:
                raise LineTooLongError(
                    f"Line exceeds {max_line_length} characters", line=line
                )
            result.entries.append(decoder(line))
        except FormatError as e:
            result.errors.append(
                LineError(field_name=field_name, index=index, line=line, error=e)
            )
            log_line_rejected(field_name, index, e.kind.value)
            shown = f": {line.strip()[:100]}" if include_text else ""
            log_parsing_error(
                f"Rejected {field_name} line {index}{shown}",
                module="document",
                function="_decode_lines",
                line_number=index,
                file_path=document_name,
                exception=e,
            )

    log_decode_complete(
        field_name,
        len(result.entries),
        len(result.errors),
        (time.perf_counter() - start) * 1000,
    )
    return result


def decode_dependency_lines(
    lines: List[str],
    case_sensitive: Optional[bool] = None,
    document_name: Optional[str] = None,
) -> DecodeResult[DependencyEntry]:
    """
    Decode a DEPEND list with per-line error collection.

    Args:
        lines: Raw dependency lines
        case_sensitive: Category matching policy, defaults to the configured one
        document_name: Source name used in log records

    Returns:
        DecodeResult: Decoded entries in list order and one error per bad line
    """
    config = get_config()
    if case_sensitive is None:
        case_sensitive = config.codec.case_sensitive_categories

    return _decode_lines(
        lines,
        lambda line: parse_dependency_line(line, case_sensitive=case_sensitive),
        "DEPEND",
        config.security.max_line_length,
        document_name,
        include_text=True,
    )


def decode_env_var_lines(
    lines: List[str], document_name: Optional[str] = None
) -> DecodeResult[EnvVarEntry]:
    """Decode an ENVVAR list; line text is kept out of log output."""
    return _decode_lines(
        lines,
        parse_env_var_line,
        "ENVVAR",
        get_config().security.max_line_length,
        document_name,
        include_text=False,
    )


@dataclass
class BlueprintDocument:
    """Editable state of one blueprint."""

    blueprint: str = ""
    name: str = ""
    type: str = ""
    version: str = ""
    environment: str = ""
    workdir: str = ""
    context: str = ""
    deployability: str = ""
    cmd: List[str] = field(default_factory=list)
    depend: List[str] = field(default_factory=list)
    envvar: List[str] = field(default_factory=list)
    extra_fields: Dict[str, Any] = field(default_factory=dict)
    source: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], source: Optional[str] = None) -> "BlueprintDocument":
        """
        Build a document from decoded blueprint JSON.

        Missing keys become empty values. Present values other than DEPEND
        and ENVVAR lines are kept as they are, and keys this tool does not
        know about are written back by ``to_dict``.

        Raises:
            ValueError: Data is not an object, a list field is not a list, or
                a DEPEND/ENVVAR item is not a string
        """
        if not isinstance(data, dict):
            raise ValueError(
                f"Blueprint must be a JSON object, got {type(data).__name__}"
            )

        kwargs: Dict[str, Any] = {"source": source}
        for key, attr in STRING_FIELDS.items():
            kwargs[attr] = data.get(key, "")

        for key, attr in LIST_FIELDS.items():
            value = data.get(key)
            if value is None:
                value = []
            if not isinstance(value, list):
                raise ValueError(f"Blueprint field {key} must be a list")
            if key in LINE_FIELDS:
                for index, item in enumerate(value):
                    if not isinstance(item, str):
                        raise ValueError(
                            f"Blueprint field {key} item {index} must be a string, "
                            f"got {type(item).__name__}"
                        )
            kwargs[attr] = list(value)

        known = set(STRING_FIELDS) | set(LIST_FIELDS)
        kwargs["extra_fields"] = {k: v for k, v in data.items() if k not in known}
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        for key, attr in STRING_FIELDS.items():
            data[key] = getattr(self, attr)
        for key, attr in LIST_FIELDS.items():
            data[key] = list(getattr(self, attr))
        data.update(self.extra_fields)
        return data

    def decode_dependencies(
        self, case_sensitive: Optional[bool] = None
    ) -> DecodeResult[DependencyEntry]:
        return decode_dependency_lines(
            self.depend, case_sensitive=case_sensitive, document_name=self.source
        )

    def decode_env_vars(self) -> DecodeResult[EnvVarEntry]:
        return decode_env_var_lines(self.envvar, document_name=self.source)

    def set_dependencies(self, entries: List[DependencyEntry]) -> None:
        self.depend = [render_dependency_line(entry) for entry in entries]

    def set_env_vars(self, entries: List[EnvVarEntry]) -> None:
        self.envvar = [render_env_var_line(entry) for entry in entries]

    def add_dependency(self, entry: DependencyEntry) -> str:
        line = render_dependency_line(entry)
        self.depend.append(line)
        return line

    def add_env_var(self, entry: EnvVarEntry) -> str:
        line = render_env_var_line(entry)
        self.envvar.append(line)
        return line

    def add_command(self, command: str) -> None:
        self.cmd.append(command)

    def remove_dependency(self, index: int) -> str:
        return self.depend.pop(index)

    def remove_env_var(self, index: int) -> str:
        return self.envvar.pop(index)

    def remove_command(self, index: int) -> str:
        return self.cmd.pop(index)

    def normalized(
        self, case_sensitive: Optional[bool] = None
    ) -> Tuple["BlueprintDocument", List[LineError]]:
        """
        Return a copy with every valid line in canonical form.

        Invalid lines stay verbatim at their original position and are
        returned alongside the copy. Env errors follow dependency errors.
        """
        depend_result = self.decode_dependencies(case_sensitive=case_sensitive)
        env_result = self.decode_env_vars()

        depend = _rerender(self.depend, depend_result, render_dependency_line)
        envvar = _rerender(self.envvar, env_result, render_env_var_line)

        copy = replace(
            self,
            cmd=list(self.cmd),
            depend=depend,
            envvar=envvar,
            extra_fields=dict(self.extra_fields),
        )
        return copy, depend_result.errors + env_result.errors


def _rerender(
    lines: List[str], result: DecodeResult[T], render: Callable[[T], str]
) -> List[str]:
    failed = {error.index for error in result.errors}
    entries = iter(result.entries)
    return [
        line if index in failed else render(next(entries))
        for index, line in enumerate(lines)
    ]
