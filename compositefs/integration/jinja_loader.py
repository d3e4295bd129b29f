#!/usr/bin/env python3
"""Jinja2 template loading from CompositeFS providers.

CompositeLoader lets a Jinja2 environment load templates from any provider,
typically a composite that overlays development overrides on bundled
templates:

Example:
    >>> templates = new_composite_fs(DirFS("./dev"), PackageFS("myapp", "templates"))
    >>> env = jinja2.Environment(loader=CompositeLoader(templates))
    >>> env.get_template("views/home.html").render(title="Home")
"""

from typing import Callable, List, Optional, Tuple

import jinja2
from jinja2.loaders import split_template_path

from compositefs.core import helpers
from compositefs.core.errors import CompositeError
from compositefs.core.path_utils import join_path
from compositefs.core.types import Provider
from compositefs.infrastructure.logger import get_logger

logger = get_logger("compositefs.jinja")


class CompositeLoader(jinja2.BaseLoader):
    """Jinja2 loader reading templates through a provider.

    A template missing from every layer raises jinja2.TemplateNotFound.
    Any other layer failure propagates unchanged so misbehaving providers
    are not mistaken for missing templates.
    """

    def __init__(self, provider: Provider, encoding: str = "utf-8"):
        """Initialize loader.

        Args:
            provider: Provider (usually a CompositeFS) holding the templates
            encoding: Encoding of the template files
        """
        self.provider = provider
        self.encoding = encoding

    def get_source(
        self, environment: jinja2.Environment, template: str
    ) -> Tuple[str, Optional[str], Callable[[], bool]]:
        path = "/".join(split_template_path(template))

        try:
            data = helpers.read_file(self.provider, path)
        except FileNotFoundError:
            raise jinja2.TemplateNotFound(template)

        mtime = self._mtime(path)
        logger.debug("Template loaded", template=template, size=len(data))

        def uptodate() -> bool:
            return mtime is not None and self._mtime(path) == mtime

        return data.decode(self.encoding), path, uptodate

    def _mtime(self, path: str) -> Optional[float]:
        try:
            return helpers.stat(self.provider, path).mtime
        except (OSError, CompositeError):
            return None

    def list_templates(self) -> List[str]:
        """List every file reachable from the provider root, sorted."""
        found: List[str] = []
        pending = ["."]

        while pending:
            directory = pending.pop()
            for entry in helpers.read_dir(self.provider, directory):
                path = join_path(directory, entry.name)
                if entry.is_dir:
                    pending.append(path)
                else:
                    found.append(path)

        return sorted(found)
