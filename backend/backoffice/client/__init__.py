from .api_client import ApiError, BackofficeClient, CategoryHasChildrenError, TokenStore

__all__ = ['ApiError', 'BackofficeClient', 'CategoryHasChildrenError', 'TokenStore']
