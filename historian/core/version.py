from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _version

DISTRIBUTION = "irc-historian"


def package_version() -> str:
    try:
        return _version(DISTRIBUTION)
    except PackageNotFoundError:
        return "0.0.0"


def version_string() -> str:
    """Title and version as announced in logs and CTCP VERSION replies."""
    return f"historian-{package_version()}"
