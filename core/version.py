from importlib import metadata

try:
    __version__ = metadata.version("baytcalc")
except metadata.PackageNotFoundError:  # pragma: no cover - during local dev
    from baytcalc import __version__
