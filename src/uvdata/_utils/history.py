from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("uvdata")
except PackageNotFoundError:
    # running from a source tree that was never installed
    __version__ = "unknown"

VERSION_STR = f"  Read/written with uvdata version: {__version__}."


def _strip_whitespace(text: str) -> str:
    return "".join(text.split())


def check_history_version(history: str, version_string: str = VERSION_STR) -> bool:
    """Check if version_string is present in history, ignoring whitespace."""
    return _strip_whitespace(version_string) in _strip_whitespace(history)


def stamp_history(history: str, version_string: str = VERSION_STR) -> str:
    """
    Append the version stamp to a history string unless already present.

    Parameters
    ----------
    history : str
        Free-text history.
    version_string : str
        Stamp to append. Defaults to this library's version stamp.

    Returns
    -------
    str
        History carrying exactly one copy of the stamp. Stamping an
        already stamped history returns it unchanged.
    """
    if check_history_version(history, version_string):
        return history
    return history + version_string
