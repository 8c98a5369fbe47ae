from sqlalchemy import Column, String

from ..config import settings
from ..database import Base

TOKEN_MAX_LENGTH = 50


class Redirect(Base):
    """Token to destination mapping, read-only to this service"""
    __tablename__ = settings.REDIRECT_TABLE

    token = Column(String(TOKEN_MAX_LENGTH), primary_key=True)
    destination_url = Column(String(2048), nullable=False)

    def __repr__(self):
        return f"<Redirect {self.token} -> {self.destination_url}>"
