"""
Request handlers.

    resources.py  request path → Missing | Directory | File
    static.py     HTTPRequest → HTTPResponse for the served tree
"""

from .resources import Directory, File, Missing, PathResolver, ResourceEntry
from .static import StaticFileHandler, render_directory_listing

__all__ = [
    "Directory",
    "File",
    "Missing",
    "PathResolver",
    "ResourceEntry",
    "StaticFileHandler",
    "render_directory_listing",
]
