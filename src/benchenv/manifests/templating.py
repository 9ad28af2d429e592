from collections.abc import Mapping
from typing import Any

import jinja2
from loguru import logger

from .model import ManifestFile, RenderedDocument, TemplateRenderError


def normalize(value: Any) -> str:
    """
    Replace every `.` in *value* with a `-`. Kubernetes object names and label values may not contain dots, so values
    like version numbers need to be normalized before they can be used there.
    """

    return str(value).replace(".", "-")


class ManifestTemplater:
    """
    Helper class to substitute variables into manifest templates.

    Templates are rendered with Jinja2. Every binding is available as a top-level name, e.g. `{{ PR_NUMBER }}`.
    Referencing a name that has no binding is an error. The `normalize` helper is available both as a function and
    as a filter.
    """

    def __init__(self, bindings: Mapping[str, str]) -> None:
        self._env = jinja2.Environment(undefined=jinja2.StrictUndefined, keep_trailing_newline=True)
        self._bindings = dict(bindings)

        for name, func in _HELPERS.items():
            self._env.globals[name] = func
            self._env.filters[name] = func

    def render(self, template: str) -> str:
        """
        Renders the given template.

        Raises:
            jinja2.TemplateError: If the template is malformed or references an unbound variable.
        """

        return self._env.from_string(template).render(self._bindings)

    def render_file(self, file: ManifestFile) -> RenderedDocument:
        """
        Renders a manifest file.

        Raises:
            TemplateRenderError: If the file is not valid UTF-8, the template is malformed, or it references a
                variable that has no binding.
        """

        logger.debug("Rendering manifest template '{}'", file.path)
        try:
            content = self.render(file.raw_template.decode("utf-8"))
        except UnicodeDecodeError as exc:
            raise TemplateRenderError(file.path, f"File is not valid UTF-8: {exc}") from exc
        except jinja2.TemplateSyntaxError as exc:
            raise TemplateRenderError(file.path, f"Syntax error on line {exc.lineno}: {exc.message}") from exc
        except jinja2.TemplateError as exc:
            raise TemplateRenderError(file.path, str(exc)) from exc
        return RenderedDocument(file.path, content.encode("utf-8"))


_HELPERS = {
    "normalize": normalize,
    # Spelling used by older manifests.
    "normalise": normalize,
}


def render(files: list[ManifestFile], bindings: Mapping[str, str]) -> list[RenderedDocument]:
    """
    Render all *files* with the given variable *bindings*. Stops at the first file that fails to render.
    """

    templater = ManifestTemplater(bindings)
    return [templater.render_file(file) for file in files]
