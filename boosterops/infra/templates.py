"""
Deployment template and catalog YAML editing for boosterops.

Boosters ship OpenShift templates (``.openshiftio/application.yaml``) that
reference their own version through a placeholder token. Releases swap the
token for the released version and restore it afterwards.

Structured edits (runtime image version, launcher catalog entries) go
through PyYAML. Those rewrites normalize the file's formatting.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE_GLOB = "**/.openshiftio/application.yaml"
RUNTIME_VERSION_PARAMETER = "RUNTIME_VERSION"


def find_templates(root: Path, pattern: str = DEFAULT_TEMPLATE_GLOB) -> List[Path]:
    """Find deployment templates under a booster directory."""
    return sorted(p for p in Path(root).glob(pattern) if p.is_file())


def replace_in_files(files: Iterable[Path], old: str, new: str) -> List[Path]:
    """
    Replace every occurrence of ``old`` with ``new``.

    Returns:
        Files whose content changed
    """
    changed = []
    for path in files:
        text = path.read_text()
        updated = text.replace(old, new)
        if updated != text:
            path.write_text(updated)
            changed.append(path)
            logger.debug(f"{path}: replaced {old} with {new}")
    return changed


def read_yaml(path: Path) -> Any:
    with open(path, 'r') as f:
        return yaml.safe_load(f)


def write_yaml(path: Path, data: Any) -> None:
    with open(path, 'w') as f:
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)


def template_name(path: Path) -> Optional[str]:
    """The ``metadata.name`` of a template."""
    data = read_yaml(path) or {}
    return (data.get('metadata') or {}).get('name')


def set_template_parameter(path: Path, name: str, value: str) -> bool:
    """
    Set the value of a template parameter.

    Returns:
        True if the file changed
    """
    data = read_yaml(path) or {}
    changed = False
    for parameter in data.get('parameters') or []:
        if parameter.get('name') == name and parameter.get('value') != value:
            parameter['value'] = value
            changed = True
    if changed:
        write_yaml(path, data)
    return changed


def runtime_image(path: Path) -> Optional[str]:
    """
    Image used by a template's runtime ImageStream.

    The ImageStream name starts with ``runtime`` and the tag carrying the
    image is named ``RUNTIME_VERSION``. The image tag is stripped, e.g.
    ``registry.access.redhat.com/redhat-openjdk-18/openjdk18-openshift``.
    """
    data = read_yaml(path) or {}
    for obj in data.get('objects') or []:
        if obj.get('kind') != 'ImageStream':
            continue
        if not str((obj.get('metadata') or {}).get('name', '')).startswith('runtime'):
            continue
        for tag in (obj.get('spec') or {}).get('tags') or []:
            if tag.get('name') == RUNTIME_VERSION_PARAMETER:
                image = (tag.get('from') or {}).get('name')
                if image:
                    return image.split(':')[0]
    return None


# Launcher catalog

def get_source_ref(booster_yaml: Path) -> Optional[str]:
    """The git ref a catalog entry points to (``source.git.ref``)."""
    data = read_yaml(booster_yaml) or {}
    return ((data.get('source') or {}).get('git') or {}).get('ref')


def set_source_ref(booster_yaml: Path, ref: str) -> bool:
    data = read_yaml(booster_yaml) or {}
    git = data.setdefault('source', {}).setdefault('git', {})
    if git.get('ref') == ref:
        return False
    git['ref'] = ref
    write_yaml(booster_yaml, data)
    return True


def rename_runtime_versions(
    metadata_yaml: Path,
    runtime_id: str,
    names: Dict[str, str]
) -> bool:
    """
    Rename versions of a runtime in the catalog metadata.

    Args:
        metadata_yaml: Catalog ``metadata.yaml``
        runtime_id: Runtime to edit, e.g. ``spring-boot``
        names: Version id to new display name

    Returns:
        True if the file changed
    """
    data = read_yaml(metadata_yaml) or {}
    changed = False
    for runtime in data.get('runtimes') or []:
        if runtime.get('id') != runtime_id:
            continue
        for version in runtime.get('versions') or []:
            name = names.get(version.get('id'))
            if name and version.get('name') != name:
                version['name'] = name
                changed = True
    if changed:
        write_yaml(metadata_yaml, data)
    return changed
