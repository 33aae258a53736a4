"""Sync Markdown user stories with Linear issues."""

from .config_loader import ConfigError, ResolvedConfig, load_config
from .content_parser import ParseError, parse_markdown
from .content_serializer import serialize_stories
from .content_writer import WriteBackUpdate, write_back_ids
from .exporter import StoryExporter, export_records
from .importer import StoryImporter, import_documents
from .linear_client import LinearApiError, LinearClient
from .models import (
    DocumentError,
    ExportFilters,
    ExportResult,
    Frontmatter,
    ImportResult,
    ImportSummary,
    Story,
    StoryDocument,
)
from .resolvers import Resolver, ResolverError

__version__ = '0.1.0'

__all__ = [
    'ConfigError',
    'DocumentError',
    'ExportFilters',
    'ExportResult',
    'Frontmatter',
    'ImportResult',
    'ImportSummary',
    'LinearApiError',
    'LinearClient',
    'ParseError',
    'ResolvedConfig',
    'Resolver',
    'ResolverError',
    'Story',
    'StoryDocument',
    'StoryExporter',
    'StoryImporter',
    'WriteBackUpdate',
    'export_records',
    'import_documents',
    'load_config',
    'parse_markdown',
    'serialize_stories',
    'write_back_ids',
]
