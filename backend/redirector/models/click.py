from sqlalchemy import Column, Integer, String, DateTime

from ..config import settings
from ..database import Base
from .redirect import TOKEN_MAX_LENGTH

DEVICE_MAX_LENGTH = 255
REFERRER_MAX_LENGTH = 512
ATTRIBUTION_MAX_LENGTH = 100
IP_MAX_LENGTH = 64


class LinkClick(Base):
    """One row per resolved click, append-only"""
    __tablename__ = settings.CLICK_TABLE

    click_id = Column(String(36), primary_key=True)
    tracked_date = Column(DateTime(timezone=True), nullable=False)
    load_ts = Column(DateTime(timezone=True), nullable=False)
    link_id = Column(String(TOKEN_MAX_LENGTH), nullable=False)  # token, not a hard FK
    device = Column(String(DEVICE_MAX_LENGTH), nullable=True)  # raw user agent
    os = Column(String(20), nullable=False)

    # Geo, all set or all NULL
    country = Column(String(100), nullable=True)
    state = Column(String(100), nullable=True)
    city = Column(String(100), nullable=True)

    ipaddress = Column(String(IP_MAX_LENGTH), nullable=False)
    click_count = Column(Integer, nullable=False, default=1)
    referrer = Column(String(REFERRER_MAX_LENGTH), nullable=True)

    # Attribution, only when upstream supplies them
    campaign_id = Column(String(ATTRIBUTION_MAX_LENGTH), nullable=True)
    execution_id = Column(String(ATTRIBUTION_MAX_LENGTH), nullable=True)
    recipient_id = Column(String(ATTRIBUTION_MAX_LENGTH), nullable=True)

    def __repr__(self):
        return f"<LinkClick {self.click_id} for {self.link_id}>"
