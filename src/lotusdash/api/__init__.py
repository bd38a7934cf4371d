from .rest_client import ApiError, LotusApi

__all__ = ["ApiError", "LotusApi"]
