from sqlalchemy import Boolean, Column, DateTime, Integer, JSON, Numeric, String, Text
from sqlalchemy.sql import func

from catalog.db.base import Base


class KlaraProductOverride(Base):
    __tablename__ = "klara_product_overrides"

    id = Column(Integer, primary_key=True, index=True)
    klara_article_id = Column(String, unique=True, index=True, nullable=False)
    custom_name = Column(String, nullable=True)
    custom_description = Column(Text, nullable=True)
    custom_price = Column(Numeric(10, 2), nullable=True)
    custom_images = Column(JSON, nullable=False, default=list)  # ordered URLs
    custom_data = Column(JSON, nullable=True)  # tasting attributes, see CustomData
    is_active = Column(Boolean, nullable=False, default=True)
    is_featured = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
