"""Collaborator interfaces consumed by the services."""

from .file_system_protocol import FileSystemProtocol
from .git_client_protocol import GitClientFactory, GitClientProtocol

__all__ = ["FileSystemProtocol", "GitClientFactory", "GitClientProtocol"]
