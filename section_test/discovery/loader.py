"""Suite file loader.

Imports a suite file with a Session active, so that its module-level
``@add_test`` declarations register into that session.
"""

import hashlib
import importlib.util
import logging
import sys
from pathlib import Path
from typing import Union

from ..exceptions import SuiteLoadError
from ..session import Session, activate

logger = logging.getLogger(__name__)


def _module_name(path: Path) -> str:
    digest = hashlib.sha256(str(path).encode("utf-8")).hexdigest()[:7]
    return f"section_test_suite_{path.stem}_{digest}"


def load_suite(file_path: Union[str, Path], session: Session) -> Session:
    """Import ``file_path`` and register its tests into ``session``.

    The suite's directory is put on ``sys.path`` while it is imported so it
    can import helper modules next to it.

    Raises:
        SuiteLoadError: If the file is missing, is not a Python file, or fails
            to compile or import.
    """
    path = Path(file_path).resolve()

    if not path.is_file():
        raise SuiteLoadError(f"Suite file not found: {path}")
    if path.suffix != ".py":
        raise SuiteLoadError(f"Expected a .py suite file, got: {path.suffix or path.name}")

    module_name = _module_name(path)
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise SuiteLoadError(f"Cannot import suite file: {path}")
    module = importlib.util.module_from_spec(spec)

    suite_dir = str(path.parent)
    sys.path.insert(0, suite_dir)
    session.loading_file = str(path)
    # Registered before execution so the suite can look itself up while importing
    sys.modules[module_name] = module
    loaded = False
    try:
        with activate(session):
            spec.loader.exec_module(module)
        loaded = True
    except (ImportError, SyntaxError) as e:
        raise SuiteLoadError(f"Failed to import suite {path}: {e}") from e
    finally:
        if not loaded:
            sys.modules.pop(module_name, None)
        session.loading_file = None
        if suite_dir in sys.path:
            sys.path.remove(suite_dir)

    logger.debug("Loaded %d test(s) from %s", len(session.roots), path)
    return session
