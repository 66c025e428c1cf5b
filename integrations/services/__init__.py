# Integration service clients
from .greyfinch import GreyfinchClient, GreyfinchAPIError

__all__ = ['GreyfinchClient', 'GreyfinchAPIError']
