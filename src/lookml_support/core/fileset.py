from pathlib import Path

from .errors import SourceError

LOOKML_SUFFIXES = (".lkml", ".lookml")


def discover_lookml_files(paths: list[Path]) -> list[Path]:
    """Expand files and directories into the LookML files they contain."""
    files: list[Path] = []
    for path in paths:
        if path.is_dir():
            for suffix in LOOKML_SUFFIXES:
                files.extend(path.rglob(f"*{suffix}"))
        else:
            files.append(path)
    return sorted(set(files))


def read_source(path: Path) -> str:
    """
    Read a LookML source file as UTF-8.

    Raises:
        SourceError: If the file is missing or not valid UTF-8
    """
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise SourceError(f"{path}: file not found") from e
    except UnicodeDecodeError as e:
        raise SourceError(f"{path}: not valid UTF-8 ({e.reason})") from e
    except OSError as e:
        raise SourceError(f"{path}: {e.strerror or e}") from e
