"""
SQLAlchemy ORM models for database tables
"""

from datetime import datetime, timezone
from sqlalchemy import Column, String, Integer, DateTime, Boolean, Text, ForeignKey, Index
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserModel(Base):
    """SQLAlchemy ORM model for users table"""

    __tablename__ = "users"

    # Lowercased 0x-prefixed wallet address
    address = Column(String(42), primary_key=True)
    win_1_amount = Column(String(78), nullable=True)

    # AI usage gate state
    ai_usage_count = Column(Integer, default=0, nullable=False)
    ai_usage_reset_date = Column(DateTime(timezone=True), nullable=True)
    ai_challenge_uuid = Column(String(36), nullable=True)
    ai_challenge_created_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), default=_utcnow, onupdate=_utcnow, nullable=False)

    def __repr__(self):
        return f"<User(address='{self.address}', ai_usage_count={self.ai_usage_count})>"


class TemplateModel(Base):
    """SQLAlchemy ORM model for templates table"""

    __tablename__ = "templates"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    url = Column(String(2048), nullable=False)
    json_data = Column(Text, nullable=False)
    owner_address = Column(String(42), ForeignKey("users.address"), nullable=False)
    moderated = Column(Boolean, default=False, nullable=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), default=_utcnow, onupdate=_utcnow, nullable=False)

    __table_args__ = (
        Index('idx_templates_owner', 'owner_address'),
        Index('idx_templates_moderated', 'moderated'),
    )

    def __repr__(self):
        return f"<Template(id={self.id}, title='{self.title}', moderated={self.moderated})>"


class AppModel(Base):
    """SQLAlchemy ORM model for apps table"""

    __tablename__ = "apps"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    owner_address = Column(String(42), ForeignKey("users.address"), nullable=False)
    template_id = Column(Integer, ForeignKey("templates.id"), nullable=False)
    json_data = Column(Text, nullable=True)
    moderated = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), default=_utcnow, onupdate=_utcnow, nullable=False)

    __table_args__ = (
        Index('idx_apps_owner', 'owner_address'),
        Index('idx_apps_moderated', 'moderated'),
    )

    def __repr__(self):
        return f"<App(id={self.id}, name='{self.name}', moderated={self.moderated})>"
