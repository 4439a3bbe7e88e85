"""Codec for KEY=VALUE environment variable lines."""

from .dependency import EnvVarEntry
from .error_handling import EmptyKeyError, MissingSeparatorError

SEPARATOR = "="


def parse_env_var_line(line: str) -> EnvVarEntry:
    """
    Split an environment line on its first '='.

    The value keeps any further '=' characters and surrounding whitespace.

    Raises:
        MissingSeparatorError: Line contains no '='
        EmptyKeyError: Nothing precedes the first '='
    """
    key, separator, value = line.partition(SEPARATOR)
    if not separator:
        raise MissingSeparatorError(
            "Environment line has no '=' separator", line=line
        )
    if not key:
        raise EmptyKeyError("Environment line has an empty key", line=line)
    return EnvVarEntry(key=key, value=value)


def render_env_var_line(entry: EnvVarEntry) -> str:
    return f"{entry.key}{SEPARATOR}{entry.value}"


class EnvVarCodec:
    """Object form of the environment line codec."""

    def parse(self, line: str) -> EnvVarEntry:
        return parse_env_var_line(line)

    def render(self, entry: EnvVarEntry) -> str:
        return render_env_var_line(entry)
