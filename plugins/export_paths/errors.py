from mkdocs.exceptions import PluginError


class ExportPathError(PluginError):
    """Base error for everything that must abort a static export."""


class InvalidPath(ExportPathError):
    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"[export_paths] invalid output path '{path}': {reason}")


class DuplicatePath(ExportPathError):
    """Two sources claim the same output path.

    ``existing`` and ``new`` are the colliding render targets, or the
    colliding content files when two files share a slug.
    """

    def __init__(self, path: str, existing, new):
        self.path = path
        self.existing = existing
        self.new = new
        super().__init__(
            f"[export_paths] output path '{path}' is generated twice: "
            f"{existing} conflicts with {new}"
        )


class UnresolvableReference(ExportPathError):
    def __init__(self, path: str, page: str):
        self.path = path
        self.page = page
        super().__init__(
            f"[export_paths] output path '{path}' references page '{page}', "
            "which has no page source"
        )
