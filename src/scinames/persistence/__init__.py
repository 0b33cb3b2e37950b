"""Loading and saving projects as (optionally gzip-compressed) XML."""

from .reader import ProjectXMLReader, is_gzip_file, read_project
from .writer import ProjectXMLWriter, write_project

__all__ = ["ProjectXMLReader", "ProjectXMLWriter", "read_project", "write_project", "is_gzip_file"]
