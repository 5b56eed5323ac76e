#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mail2md/utils/decorators.py
"""Decorators guarding the parsing entry points, and a DEBUG-level timer."""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from functools import wraps
from typing import Any, Callable, Generator, List

from mail2md.exceptions import DependencyError
from mail2md.utils.packages import PackageSpec, find_unmet_requirements


def requires_dependencies(converter_name: str, packages: List[PackageSpec]) -> Callable:
    """Raise ``DependencyError`` before the call when a requirement is unmet.

    The check runs on every call until it passes once; after that the
    decorated function is called directly, since the conversion entry points
    run once per document.

    Parameters
    ----------
    converter_name : str
        Component named in the error message, e.g. ``"HTML parser"``
    packages : list of tuple
        ``(install_name, import_name, version_spec)`` requirements

    Raises
    ------
    DependencyError
        Listing the missing packages and version mismatches, with an install
        hint

    Examples
    --------
        >>> @requires_dependencies("HTML parser", [("beautifulsoup4", "bs4", ">=4.9.0")])
        ... def parse(html):
        ...     from bs4 import BeautifulSoup
        ...     return BeautifulSoup(html, "html.parser")

    """

    def decorator(func: Callable) -> Callable:
        satisfied = False

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            nonlocal satisfied
            if not satisfied:
                missing, mismatches, first_error = find_unmet_requirements(packages)
                if missing or mismatches:
                    raise DependencyError(
                        converter_name=converter_name,
                        missing_packages=missing,
                        version_mismatches=mismatches,
                        original_import_error=first_error,
                    ) from first_error
                satisfied = True
            return func(*args, **kwargs)

        return wrapper

    return decorator


@contextmanager
def debug_timer(logger: logging.Logger, operation: str) -> Generator[None, None, None]:
    """Log how long the enclosed block took, at DEBUG level.

    The clock is not read at all when ``logger`` is not enabled for DEBUG.

    Examples
    --------
        >>> with debug_timer(logger, "HTML to Markdown conversion"):
        ...     result = extractor.convert(html)

    """
    if not logger.isEnabledFor(logging.DEBUG):
        yield
        return

    start = time.perf_counter()
    try:
        yield
    finally:
        logger.debug("%s took %.3fs", operation, time.perf_counter() - start)
