"""Video model for uploaded and transcoded videos."""

from sqlalchemy import BigInteger, Column, String, DateTime, Float, Integer, JSON, Text
from sqlalchemy.sql import func
import uuid
from datetime import datetime, timezone

from database import Base


class Video(Base):
    """Uploaded video plus the Cloudinary assets derived from it."""

    __tablename__ = "videos"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    public_id = Column(String, nullable=False, unique=True, index=True)
    original_size = Column(BigInteger, nullable=False)
    compressed_size = Column(BigInteger, nullable=False)
    duration = Column(Float, nullable=False, default=0)
    user_id = Column(String, nullable=False, index=True)  # Clerk user id, set once
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
        index=True,
    )
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Derived assets, each independently optional
    ai_preview_url = Column(String, nullable=True)
    thumbnail_url = Column(String, nullable=True)
    high_quality_url = Column(String, nullable=True)
    original_quality_url = Column(String, nullable=True)
    key_moments = Column(JSON, nullable=False, default=list)
    compression_ratio = Column(Float, nullable=True)
    preview_duration = Column(Integer, nullable=True)
