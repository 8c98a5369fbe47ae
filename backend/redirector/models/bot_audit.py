from sqlalchemy import Column, String, DateTime

from ..config import settings
from ..database import Base
from .click import DEVICE_MAX_LENGTH, IP_MAX_LENGTH
from .redirect import TOKEN_MAX_LENGTH


class BotAudit(Base):
    """Crawler hits, written alongside the click row when a bot is detected"""
    __tablename__ = settings.BOT_AUDIT_TABLE

    audit_id = Column(String(36), primary_key=True)
    click_id = Column(String(36), nullable=False)
    link_id = Column(String(TOKEN_MAX_LENGTH), nullable=False)
    crawler = Column(String(100), nullable=False)
    user_agent = Column(String(DEVICE_MAX_LENGTH), nullable=True)
    ipaddress = Column(String(IP_MAX_LENGTH), nullable=False)
    tracked_date = Column(DateTime(timezone=True), nullable=False)

    def __repr__(self):
        return f"<BotAudit {self.crawler} on {self.link_id}>"
