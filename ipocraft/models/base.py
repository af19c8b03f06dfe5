# ipocraft/models/base.py
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class BaseModel(Base):
    """모든 ORM 모델의 공통 부모 (추상)"""
    __abstract__ = True
