from sqlalchemy import Column, Integer, String, Date, DateTime, Index, CheckConstraint
from .base import Base, now_utc

MEMBER_STATUSES = ("NEWCOMER", "ACTIVE", "LONG_TERM_ABSENT", "MOVED", "GRADUATED")


class Person(Base):
    __tablename__ = 'people'
    id = Column(Integer, primary_key=True, autoincrement=True)
    display_name = Column(String, nullable=False)
    phone = Column(String, nullable=True)
    birth_date = Column(Date, nullable=True)
    member_status = Column(String, nullable=False, default='ACTIVE')
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    __table_args__ = (
        Index('ix_people_display_name', 'display_name'),
        CheckConstraint(
            "member_status in ('NEWCOMER','ACTIVE','LONG_TERM_ABSENT','MOVED','GRADUATED')",
            name='ck_people_member_status',
        ),
    )
