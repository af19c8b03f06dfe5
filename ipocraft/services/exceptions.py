# ipocraft/services/exceptions.py


class IPONotFoundError(LookupError):
    """요청한 IPO 없음"""


class BrokerNotFoundError(LookupError):
    """요청한 증권사 없음"""


class DuplicateSlugError(ValueError):
    """이미 사용 중인 슬러그"""
