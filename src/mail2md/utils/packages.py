#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mail2md/utils/packages.py
"""Installed-package checks used to report missing parser dependencies."""

from __future__ import annotations

import importlib
from importlib import metadata
from typing import Iterable, List, Optional, Tuple

from packaging import version
from packaging.specifiers import InvalidSpecifier, SpecifierSet

PackageSpec = Tuple[str, str, str]
VersionMismatch = Tuple[str, str, str]


def get_package_version(package_name: str) -> Optional[str]:
    """Return the installed version of a distribution, or None.

    ``package_name`` is the name used with pip (``beautifulsoup4``), not
    the import name (``bs4``).
    """
    try:
        return metadata.version(package_name)
    except metadata.PackageNotFoundError:
        return None


def check_version_requirement(package_name: str, version_spec: str) -> Tuple[bool, Optional[str]]:
    """Check an installed distribution against a version specifier.

    Parameters
    ----------
    package_name : str
        Distribution name
    version_spec : str
        Specifier such as ``">=4.9.0"``. An unparsable specifier is
        treated as satisfied.

    Returns
    -------
    tuple of (bool, str or None)
        Whether the requirement holds, and the installed version

    """
    installed_version = get_package_version(package_name)
    if not installed_version:
        return False, None

    try:
        spec = SpecifierSet(version_spec)
    except InvalidSpecifier:
        return True, installed_version
    return version.parse(installed_version) in spec, installed_version


def find_unmet_requirements(
    packages: Iterable[PackageSpec],
) -> Tuple[List[Tuple[str, str]], List[VersionMismatch], Optional[ImportError]]:
    """Import each package and compare its version with the requirement.

    Parameters
    ----------
    packages : iterable of (install_name, import_name, version_spec)
        Requirements to check; an empty ``version_spec`` accepts any version

    Returns
    -------
    missing : list of (install_name, version_spec)
        Packages that cannot be imported
    mismatches : list of (install_name, required, installed)
        Packages whose installed version fails the specifier
    first_error : ImportError or None
        The first import failure, for chaining

    """
    missing: List[Tuple[str, str]] = []
    mismatches: List[VersionMismatch] = []
    first_error: Optional[ImportError] = None

    for install_name, import_name, version_spec in packages:
        try:
            importlib.import_module(import_name)
        except ImportError as e:
            missing.append((install_name, version_spec))
            first_error = first_error or e
            continue
        if version_spec:
            ok, installed = check_version_requirement(install_name, version_spec)
            if not ok:
                mismatches.append((install_name, version_spec, installed or "unknown"))

    return missing, mismatches, first_error
