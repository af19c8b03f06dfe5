# ipocraft/models/__init__.py
from .base import Base, BaseModel
from .ipo_model import IPO
from .gmp_history_model import GmpHistory
from .broker_model import Broker

__all__ = ["Base", "BaseModel", "IPO", "GmpHistory", "Broker"]
