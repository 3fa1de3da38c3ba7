from importlib.metadata import PackageNotFoundError, version


def get_app_version() -> str:
    """Get the version from the installed package metadata."""
    try:
        return version("census-mcp")
    except PackageNotFoundError:
        return "unknown"
