from sqlalchemy import Column, Date, DateTime, Integer, Text
from sqlalchemy.sql import func
from sheetsync.core.db import Base

class Service(Base):
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # NULL for records created by hand in the app; sheet rows always carry one.
    external_id = Column(Text, nullable=True, unique=True, index=True)
    source = Column(Text, nullable=False, default="manual", index=True)
    source_sheet = Column(Text, nullable=True, index=True)

    service_date = Column(Date, nullable=True, index=True)
    service_time = Column(Text, nullable=True)

    vessel_name = Column(Text, nullable=False, default="")
    address = Column(Text, nullable=False, default="")
    location = Column(Text, nullable=False, default="")
    location_group = Column(Text, nullable=False, default="DIS_SERVIS", index=True)
    description = Column(Text, nullable=False, default="")

    contact_name = Column(Text, nullable=True)
    contact_phone = Column(Text, nullable=True)

    status = Column(Text, nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)
