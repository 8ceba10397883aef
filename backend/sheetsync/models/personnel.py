from sqlalchemy import Boolean, Column, DateTime, Integer, Text
from sqlalchemy.sql import func
from sheetsync.core.db import Base

class Personnel(Base):
    __tablename__ = "personnel"

    id = Column(Integer, primary_key=True, autoincrement=True)

    external_id = Column(Text, nullable=True, unique=True, index=True)
    source = Column(Text, nullable=False, default="manual", index=True)
    source_sheet = Column(Text, nullable=True, index=True)

    name = Column(Text, nullable=False)
    title = Column(Text, nullable=False, default="CIRAK")   # USTA / CIRAK / YONETICI / OFIS
    role = Column(Text, nullable=False, default="teknisyen")
    active = Column(Boolean, nullable=False, default=True)
    start_year = Column(Integer, nullable=True)

    phone = Column(Text, nullable=True)
    email = Column(Text, nullable=True)
    address = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)
