"""
Custom Exceptions for FinMate
"""

class FinMateException(Exception):
    """Base exception for all FinMate errors"""
    def __init__(self, message: str, error_code: str = None):
        self.message = message
        self.error_code = error_code
        super().__init__(self.message)

class ValidationException(FinMateException):
    """Raised when input validation fails"""
    pass

class DatabaseException(FinMateException):
    """Raised when database operations fail"""
    pass

class NotFoundException(FinMateException):
    """Raised when a referenced record does not exist for the user"""
    pass

class ExternalServiceException(FinMateException):
    """Raised when a third-party API call fails"""
    pass

class TextGenerationException(ExternalServiceException):
    """Raised when the text-generation API fails or returns nothing usable"""
    pass

class MarketDataException(ExternalServiceException):
    """Raised when the market-data API fails or reports an error payload"""
    pass

class RateLimitException(MarketDataException):
    """Raised when the market-data API answers with a quota notice"""
    pass

class InvalidTradeException(FinMateException):
    """Raised when a paper trade cannot be executed"""
    pass
