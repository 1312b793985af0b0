try:
    from importlib.metadata import version

    __version__ = version("command-utils")
except Exception:
    __version__ = "0.0.0"
