"""
Client side of the category manager: API client, state cache and CLI.
"""

from client.api_client import ApiError, CategoryApiClient
from client.state import CategoryState

__all__ = ['ApiError', 'CategoryApiClient', 'CategoryState']
