import datetime
import os
from jinja2 import Environment, BaseLoader, TemplateError
from shutterpy.domain.models import ExportConfig, EXTENSIONS


class FilenameTemplater:
    """
    Handles generation of filenames using Jinja2 templates.
    """

    def __init__(self) -> None:
        # Using a minimal environment for performance and safety
        self.env = Environment(
            loader=BaseLoader(),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def render(self, pattern: str, context: dict) -> str:
        """
        Renders the filename pattern with the provided context.
        Falls back to a safe default if rendering fails.
        """
        try:
            template = self.env.from_string(pattern)
            render_context = {"date": datetime.date.today().isoformat(), **context}
            rendered = template.render(render_context).strip()
            if not rendered:
                raise ValueError("Template rendered to empty string")
            # Keep the result a plain file name
            return rendered.replace(os.sep, "_").replace("/", "_")
        except (TemplateError, ValueError, TypeError):
            original = context.get("original_name", "photo")
            return f"edited_{original}"


def render_export_filename(
    source_name: str,
    settings: ExportConfig,
    extra: dict | None = None,
) -> str:
    """
    Full output file name (with extension) for an exported photo.
    """
    context = {
        "original_name": os.path.splitext(os.path.basename(source_name))[0] or "photo",
        "format": settings.export_fmt.value.lower(),
        **(extra or {}),
    }
    base_name = FilenameTemplater().render(settings.filename_pattern, context)
    return f"{base_name}.{EXTENSIONS[settings.export_fmt]}"
