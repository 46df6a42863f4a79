"""
Reading of the .gitmodules manifest
"""

import os
from typing import List

MANIFEST_FILENAME = ".gitmodules"
MODULE_PREFIX = "path = "


def read_manifest_paths(root: str) -> List[str]:
    """Return the submodule paths declared in ``<root>/.gitmodules``

    A missing manifest declares no submodules. Any other read failure
    propagates.
    """
    manifest = os.path.join(root, MANIFEST_FILENAME)
    try:
        with open(manifest, encoding="utf-8") as f:
            lines = f.read().split("\n")
    except FileNotFoundError:
        return []

    paths = []
    for line in lines:
        line = line.strip()
        if line.startswith(MODULE_PREFIX):
            paths.append(line[len(MODULE_PREFIX) :])
    return paths


def existing_submodules(root: str) -> List[str]:
    """Return absolute paths of declared submodules present on disk

    Declared paths missing from the working tree are submodules that have
    not been initialized yet and are skipped.
    """
    paths = []
    for module_path in read_manifest_paths(root):
        full_path = os.path.join(root, module_path)
        if not os.path.exists(full_path):
            continue
        paths.append(full_path)
    return paths
