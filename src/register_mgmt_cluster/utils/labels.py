"""Parsing of the ``--labels`` command-line value."""

from register_mgmt_cluster.constants import ERROR_INVALID_LABEL_PAIR
from register_mgmt_cluster.errors import FormatError

KEY_VALUE_LENGTH = 2


def parse_labels(data: str) -> dict[str, str] | None:
    """
    Parse a ``key1=value1,key2=value2`` label specification.

    Args:
        data: Comma-separated key=value pairs, possibly empty

    Returns:
        Mapping of stripped keys to stripped values, or None for empty input

    Raises:
        FormatError: If any pair does not split into exactly a key and a value.
            Nothing is returned for the pairs parsed before the bad one.
    """
    if data == "":
        return None

    result: dict[str, str] = {}
    for pair in data.split(","):
        kv = pair.split("=")
        if len(kv) != KEY_VALUE_LENGTH:
            raise FormatError(ERROR_INVALID_LABEL_PAIR.format(pair), field="labels")
        result[kv[0].strip()] = kv[1].strip()
    return result
