from sqlalchemy import Boolean, Column, DateTime, Float, Integer, Text
from sqlalchemy.sql import func
from sheetsync.core.db import Base

class Vessel(Base):
    __tablename__ = "vessels"

    id = Column(Integer, primary_key=True, autoincrement=True)

    external_id = Column(Text, nullable=True, unique=True, index=True)
    source = Column(Text, nullable=False, default="manual", index=True)
    source_sheet = Column(Text, nullable=True, index=True)

    name = Column(Text, nullable=False)
    serial_no = Column(Text, nullable=True)
    brand = Column(Text, nullable=True)
    model = Column(Text, nullable=True)
    length_m = Column(Float, nullable=True)
    engine_type = Column(Text, nullable=True)
    engine_serial_no = Column(Text, nullable=True)
    build_year = Column(Integer, nullable=True)
    colour = Column(Text, nullable=True)
    ownership = Column(Text, nullable=True)

    address = Column(Text, nullable=True)
    phone = Column(Text, nullable=True)
    email = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)
