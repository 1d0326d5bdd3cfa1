class DocsearchError(Exception):
    """Base class for docsearch failures."""


class IndexBuildError(DocsearchError):
    """The index could not be built; no artifact was written."""


class IndexUnavailableError(DocsearchError):
    """The search index could not be fetched or decoded."""
