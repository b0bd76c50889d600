import os


def create_dirs(path: str) -> None:
    """
    Create all parent directories for a given path.

    Args:
        path: File path for which to create parent directories
    """
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)


def strip_hex_prefix(value: str) -> str:
    """Lower-cases a hex string and drops its '0x' prefix, if any."""
    value = value.lower()
    return value[2:] if value.startswith("0x") else value
