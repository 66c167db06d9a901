"""
Starter projects for ``buildora new``.

Usage:
    project = create_project("My Site", ProjectType.HTML)
    # project.files: index.html, style.css, script.js — all at root
"""
from __future__ import annotations

import logging

from ..models import ROOT_ID, Project, ProjectType, new_id
from ..tree import TreeManager
from .templates import html, php

logger = logging.getLogger(__name__)

_TEMPLATE_MAP: dict[ProjectType, dict[str, str]] = {
    ProjectType.HTML: html.FILES,
    ProjectType.PHP: php.FILES,
}


def create_project(name: str, project_type: ProjectType | str = ProjectType.HTML) -> Project:
    """
    Build a new Project populated from the template for ``project_type``.
    Template files are added through TreeManager so they get fresh ids and
    kinds inferred from their names.
    """
    project_type = ProjectType(project_type)
    project = Project(id=new_id(), name=name, type=project_type)
    tree = TreeManager(project)
    for filename, template in _TEMPLATE_MAP[project_type].items():
        tree.add_file(ROOT_ID, filename, content=template.format(name=name))
    logger.debug("Scaffolded %s project %r (%d files)", project_type.value, name, len(project.files))
    return project
